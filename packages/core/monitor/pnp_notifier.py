"""
Windows device arrivals by polling the present PnP device list.

Uses PowerShell's Get-PnpDevice (Windows 10+) through subprocess. A baseline
is taken on subscribe; afterwards every instance ID that was not present in
the previous poll is reported as an arrival, mirroring a WMI
__InstanceCreationEvent query on Win32_PnPEntity with a 2 second interval.
"""

from __future__ import annotations

import json
import logging
import subprocess
import threading
from typing import Dict, Optional

from packages.core.errors import SubscriptionError
from .device_notifier import ArrivalCallback, DeviceNotifier, ErrorCallback
from .types import DeviceInfo

log = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 2.0
MAX_CONSECUTIVE_FAILURES = 5

_PS_COMMAND = (
    "[Console]::OutputEncoding = [System.Text.Encoding]::UTF8; "
    "@(Get-PnpDevice -PresentOnly | Select-Object InstanceId, FriendlyName)"
    " | ConvertTo-Json -Depth 2"
)


def query_present_devices(timeout: float = 15.0) -> Dict[str, str]:
    """
    Return a mapping of instance ID -> friendly name for present PnP devices.

    Raises:
        RuntimeError: PowerShell failed or returned unparsable output.
        OSError: PowerShell could not be started.
    """
    try:
        result = subprocess.run(
            ["powershell", "-NoLogo", "-NoProfile", "-NonInteractive", "-Command", _PS_COMMAND],
            capture_output=True,
            text=False,
            timeout=timeout,
            creationflags=subprocess.CREATE_NO_WINDOW if hasattr(subprocess, 'CREATE_NO_WINDOW') else 0
        )
    except subprocess.TimeoutExpired as e:
        raise RuntimeError(f"Get-PnpDevice timed out after {timeout:.0f}s") from e

    if result.returncode != 0:
        stderr_text = (result.stderr or b"").decode("utf-8", errors="replace").strip()
        raise RuntimeError(stderr_text or f"PowerShell exited with code {result.returncode}")

    output = (result.stdout or b"").decode("utf-8", errors="replace").strip() or "[]"
    try:
        data = json.loads(output)
    except ValueError as e:
        raise RuntimeError(f"Unexpected Get-PnpDevice output: {output[:200]}") from e

    # A single device is serialized as an object rather than a list
    if isinstance(data, dict):
        data = [data]

    devices: Dict[str, str] = {}
    for item in data:
        instance_id = item.get("InstanceId")
        if not instance_id:
            continue
        devices[instance_id] = item.get("FriendlyName") or ""
    return devices


class PnpPollingDeviceNotifier(DeviceNotifier):
    def __init__(
        self,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        max_failures: int = MAX_CONSECUTIVE_FAILURES,
    ) -> None:
        self._poll_interval = poll_interval
        self._max_failures = max_failures
        self._thread: Optional[threading.Thread] = None
        self._stop_evt = threading.Event()

    def subscribe(self, on_arrival: ArrivalCallback, on_error: ErrorCallback) -> None:
        if self._thread is not None:
            raise SubscriptionError("PnP notifier is already subscribed")

        try:
            baseline = query_present_devices()
        except (RuntimeError, OSError) as e:
            raise SubscriptionError(f"PnP device query unavailable: {e}") from e

        log.info(f"Ignoring {len(baseline)} device(s) already present")
        self._stop_evt = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            args=(baseline, on_arrival, on_error, self._stop_evt),
            name="PnpPollingDeviceNotifier",
            daemon=True,
        )
        self._thread.start()

    def unsubscribe(self) -> None:
        self._stop_evt.set()
        self._thread = None

    def _run(
        self,
        previous: Dict[str, str],
        on_arrival: ArrivalCallback,
        on_error: ErrorCallback,
        stop_evt: threading.Event,
    ) -> None:
        failures = 0
        while not stop_evt.wait(self._poll_interval):
            try:
                current = query_present_devices()
            except (RuntimeError, OSError) as e:
                failures += 1
                log.warning(f"Error reading PnP devices ({failures}/{self._max_failures}): {e}")
                if failures >= self._max_failures:
                    on_error(e)
                    return
                continue
            failures = 0

            # Iteration order of `current` is the order PowerShell listed them
            for instance_id, name in current.items():
                if stop_evt.is_set():
                    return
                if instance_id in previous:
                    continue
                log.debug(f"PnP device arrived: {name} ({instance_id})")
                on_arrival(DeviceInfo(device_id=instance_id, caption=name))
            previous = current
