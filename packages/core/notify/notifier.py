from __future__ import annotations

import logging
import threading

from .status import Severity

log = logging.getLogger(__name__)

TITLE = "USB Device App Restarter"


class ToastStatusSink:
    """
    Windows toast notifications for status messages.

    Only WARNING and above plus successful restart summaries are shown by
    default; routine INFO messages would otherwise flood the action center.
    """

    def __init__(self, min_severity: Severity = "SUCCESS") -> None:
        from win10toast import ToastNotifier
        self._toaster = ToastNotifier()
        self._lock = threading.Lock()
        self._order = ["INFO", "SUCCESS", "WARNING", "ERROR"]
        self._min_rank = self._order.index(min_severity)

    def notify(self, message: str, severity: Severity = "INFO") -> None:
        if self._order.index(severity) < self._min_rank:
            return
        with self._lock:
            try:
                self._toaster.show_toast(TITLE, message, duration=6, threaded=True)
            except Exception:
                log.exception("Failed to show toast notification")
