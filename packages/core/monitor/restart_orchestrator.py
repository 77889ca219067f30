"""
Kill-and-relaunch of the managed applications.

Applications are handled strictly left to right. A failure on one entry is
recorded in its outcome and never stops the remaining entries.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Callable, Iterable, Optional

from packages.core.notify.status import Severity, StatusSink
from .process_supervisor import ProcessSupervisor
from .types import RestartOutcome, RestartSummary

log = logging.getLogger(__name__)

GRACE_SECONDS = 0.2


def file_display_name(path: str) -> str:
    """Base name of an executable path, treating both slash styles as separators."""
    return path.replace("\\", "/").rsplit("/", 1)[-1]


class RestartOrchestrator:
    def __init__(
        self,
        supervisor: ProcessSupervisor,
        sink: Optional[StatusSink] = None,
        grace_seconds: float = GRACE_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        file_exists: Callable[[str], bool] = os.path.isfile,
    ) -> None:
        self._supervisor = supervisor
        self._sink = sink
        self._grace_seconds = grace_seconds
        self._sleep = sleep
        self._file_exists = file_exists

    def _report(self, message: str, severity: Severity) -> None:
        if not self._sink:
            return
        try:
            self._sink.notify(message, severity)
        except Exception:
            log.exception("Status sink failed")

    def restart(self, paths: Iterable[str]) -> RestartSummary:
        summary = RestartSummary()
        for path in paths:
            outcome = self._restart_one(path)
            summary.outcomes.append(outcome)
        log.info(
            f"Restart run finished: {summary.succeeded} succeeded, "
            f"{summary.failed} failed, {summary.skipped} skipped"
        )
        return summary

    def _restart_one(self, path: str) -> RestartOutcome:
        file_name = file_display_name(path)

        if not self._file_exists(path):
            self._report(f"Skipping restart: File not found at '{file_name}'.", "WARNING")
            return RestartOutcome(path=path, status="SKIPPED", reason="file not found")

        try:
            process_name = os.path.splitext(file_name)[0]
            pids = self._supervisor.find_pids(process_name)

            if pids:
                for pid in pids:
                    self._supervisor.kill(pid)
                # Let the OS release the image file and any bound ports
                self._sleep(self._grace_seconds)

            self._supervisor.spawn(path)
        except Exception as e:
            log.exception(f"Error restarting {path}")
            self._report(f"Error restarting '{file_name}': {e}", "ERROR")
            return RestartOutcome(path=path, status="FAILED", reason=str(e))

        return RestartOutcome(path=path, status="SUCCEEDED")
