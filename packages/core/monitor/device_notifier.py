from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from typing import Callable

from .types import DeviceInfo

ArrivalCallback = Callable[[DeviceInfo], None]
ErrorCallback = Callable[[Exception], None]


class DeviceNotifier(ABC):
    """Interface to the host's device-arrival notification channel."""

    @abstractmethod
    def subscribe(self, on_arrival: ArrivalCallback, on_error: ErrorCallback) -> None:
        """
        Register for arrivals. `on_arrival` may be called from a backend thread.
        `on_error` is called once if the channel fails after subscribing.
        Raises SubscriptionError if the channel cannot be initialized.
        """
        ...

    @abstractmethod
    def unsubscribe(self) -> None:
        """Release the registration. Must be safe to call when not subscribed."""
        ...


def default_notifier() -> DeviceNotifier:
    """Notifier backend for the running platform."""
    if sys.platform == "win32":
        from .pnp_notifier import PnpPollingDeviceNotifier
        return PnpPollingDeviceNotifier()
    from .udev_notifier import UdevDeviceNotifier
    return UdevDeviceNotifier()
