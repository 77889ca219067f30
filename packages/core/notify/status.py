from __future__ import annotations

import logging
from typing import Iterable, Literal, Optional, Protocol

log = logging.getLogger(__name__)

Severity = Literal["INFO", "SUCCESS", "WARNING", "ERROR"]

_LOG_LEVELS = {
    "INFO": logging.INFO,
    "SUCCESS": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


class StatusSink(Protocol):
    """
    One-way status channel towards whatever presents messages to the operator.

    May be called from any thread; implementations own their thread safety
    and must not block the caller.
    """

    def notify(self, message: str, severity: Severity = "INFO") -> None:
        ...


class LoggingStatusSink:
    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._log = logger or logging.getLogger("packages.core.status")

    def notify(self, message: str, severity: Severity = "INFO") -> None:
        self._log.log(_LOG_LEVELS.get(severity, logging.INFO), f"Status: {message}")


class FanOutStatusSink:
    """Delivers each message to several sinks; a failing sink does not affect the others."""

    def __init__(self, sinks: Iterable[StatusSink]) -> None:
        self._sinks = list(sinks)

    def notify(self, message: str, severity: Severity = "INFO") -> None:
        for sink in self._sinks:
            try:
                sink.notify(message, severity)
            except Exception:
                log.exception(f"Status sink {type(sink).__name__} failed")
