from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from packages.core.errors import SubscriptionError
from .device_notifier import DeviceNotifier
from .types import DeviceArrivalEvent, DeviceInfo

log = logging.getLogger(__name__)


def _now_iso() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%S", time.localtime())


def to_arrival_event(info: DeviceInfo) -> DeviceArrivalEvent:
    """Prefer the hardware identifier; captions are often empty or generic."""
    device_id = (info.device_id or "").strip() or (info.caption or "").strip()
    description = (info.caption or "").strip() or device_id or "Unknown Device"
    return DeviceArrivalEvent(device_id=device_id, description=description, at=_now_iso())


class DeviceWatcher:
    """Single subscription to a DeviceNotifier, translating raw arrivals into events."""

    def __init__(self, notifier: DeviceNotifier) -> None:
        self._notifier = notifier
        self._lock = threading.Lock()
        self._active = False

    @property
    def active(self) -> bool:
        with self._lock:
            return self._active

    def start(
        self,
        on_event: Callable[[DeviceArrivalEvent], None],
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> None:
        with self._lock:
            if self._active:
                raise SubscriptionError("Device watcher is already running")

            def handle_arrival(info: DeviceInfo) -> None:
                on_event(to_arrival_event(info))

            def handle_error(exc: Exception) -> None:
                log.error(f"Device notification channel failed: {exc}")
                if on_error:
                    on_error(exc)

            try:
                self._notifier.subscribe(handle_arrival, handle_error)
            except Exception as e:
                # Leave nothing half registered
                try:
                    self._notifier.unsubscribe()
                except Exception:
                    log.exception("Cleanup after failed subscription also failed")
                if isinstance(e, SubscriptionError):
                    raise
                raise SubscriptionError(str(e)) from e

            self._active = True
        log.info("Device watcher started")

    def stop(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
            try:
                self._notifier.unsubscribe()
            except Exception:
                log.exception("Error while unsubscribing from device notifications")
        log.info("Device watcher stopped")
