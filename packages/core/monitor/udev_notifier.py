"""
Linux device arrivals through udev netlink events (pyudev).
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from packages.core.errors import SubscriptionError
from .device_notifier import ArrivalCallback, DeviceNotifier, ErrorCallback
from .types import DeviceInfo

log = logging.getLogger(__name__)


def _clean(value: Optional[str]) -> str:
    # udev encodes spaces in model strings as underscores
    return " ".join((value or "").replace("_", " ").split())


def device_info_from_udev(device: Any) -> DeviceInfo:
    props = device.properties
    return DeviceInfo(
        device_id=props.get("ID_SERIAL") or device.sys_path or "",
        caption=_clean(props.get("ID_MODEL_FROM_DATABASE") or props.get("ID_MODEL")),
    )


def _guarded_observer(pyudev: Any, monitor: Any, callback: Any, on_error: ErrorCallback) -> Any:
    # pyudev lets a failing observer thread die silently
    class GuardedObserver(pyudev.MonitorObserver):
        def run(self) -> None:
            try:
                super().run()
            except Exception as e:
                log.exception("udev observer stopped")
                on_error(e)

    return GuardedObserver(monitor, callback=callback, name="UdevDeviceNotifier")


class UdevDeviceNotifier(DeviceNotifier):
    """Reports `add` events for USB devices on a pyudev observer thread."""

    def __init__(self) -> None:
        self._observer: Any = None

    def subscribe(self, on_arrival: ArrivalCallback, on_error: ErrorCallback) -> None:
        if self._observer is not None:
            raise SubscriptionError("udev notifier is already subscribed")

        def handle(device: Any) -> None:
            if device.action != "add":
                return
            try:
                on_arrival(device_info_from_udev(device))
            except Exception as e:
                log.exception("udev event handling failed")
                on_error(e)

        try:
            import pyudev
            context = pyudev.Context()
            monitor = pyudev.Monitor.from_netlink(context)
            monitor.filter_by(subsystem="usb", device_type="usb_device")
            # Bind the netlink socket here so permission errors surface to the caller
            monitor.start()
            observer = _guarded_observer(pyudev, monitor, handle, on_error)
            observer.daemon = True
            observer.start()
        except (ImportError, OSError) as e:
            raise SubscriptionError(f"udev monitoring unavailable: {e}") from e

        self._observer = observer
        log.info("Subscribed to udev USB device events")

    def unsubscribe(self) -> None:
        observer, self._observer = self._observer, None
        if observer is None:
            return
        try:
            observer.send_stop()
        except OSError:
            log.exception("Failed to stop udev observer")
        log.info("Unsubscribed from udev device events")
