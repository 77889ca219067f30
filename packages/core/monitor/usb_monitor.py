"""
Monitor controller: device arrivals in, application restarts out.

State machine: IDLE -> MONITORING -> IDLE

Arrivals are queued and handled one at a time on a single worker thread, so
two restart runs never overlap and each event reads the configuration only
after the previous event finished. Configuration edits are refused while
MONITORING; that lock is the only guard the settings need.
"""

from __future__ import annotations

import logging
import os
import queue
import threading
from dataclasses import replace
from typing import Callable, List, Optional, Tuple

from packages.core.autostart import AutoStartRegistrar, NoopAutoStart
from packages.core.errors import ConfigurationError, ConfigurationLockedError, SubscriptionError
from packages.core.notify.status import Severity, StatusSink
from packages.shared.store import SettingsStore
from .device_watcher import DeviceWatcher
from .filter_engine import accepts, parse_filter_text
from .restart_orchestrator import RestartOrchestrator, file_display_name
from .types import DeviceArrivalEvent, MonitorState, RestartSummary

log = logging.getLogger(__name__)

HandledCallback = Callable[[DeviceArrivalEvent, Optional[RestartSummary]], None]

_STOP = None


class UsbMonitorController:
    def __init__(
        self,
        store: SettingsStore,
        watcher: DeviceWatcher,
        orchestrator: RestartOrchestrator,
        sink: StatusSink,
        autostart: Optional[AutoStartRegistrar] = None,
        file_exists: Callable[[str], bool] = os.path.isfile,
    ) -> None:
        self._store = store
        self._watcher = watcher
        self._orchestrator = orchestrator
        self._sink = sink
        self._autostart = autostart or NoopAutoStart()
        self._file_exists = file_exists

        self._state = MonitorState()
        self._lock = threading.Lock()
        self._lifecycle_lock = threading.RLock()
        # Bumped on every start/stop; queued events from an older session are dropped
        self._session = 0

        self._queue: "queue.Queue[Optional[Tuple[int, DeviceArrivalEvent]]]" = queue.Queue()
        self._worker: Optional[threading.Thread] = None
        self._pending = 0
        self._idle = threading.Condition()

        self._handled_cb: Optional[HandledCallback] = None

    # --- Observers ---

    def on_handled(self, cb: HandledCallback) -> None:
        self._handled_cb = cb

    def get_state(self) -> MonitorState:
        with self._lock:
            return replace(self._state)

    @property
    def is_monitoring(self) -> bool:
        with self._lock:
            return self._state.status == "MONITORING"

    @property
    def configuration_locked(self) -> bool:
        return self.is_monitoring

    def _report(self, message: str, severity: Severity = "INFO") -> None:
        try:
            self._sink.notify(message, severity)
        except Exception:
            log.exception("Status sink failed")

    # --- Lifecycle ---

    def start(self) -> None:
        """
        Begin watching for device arrivals.

        Raises:
            ConfigurationError: no applications configured, or none exists on disk.
            SubscriptionError: the device notification channel could not be opened.
        """
        with self._lifecycle_lock:
            if self.is_monitoring:
                return

            paths = self._store.load_paths()
            if not paths:
                self._report("Error: Please add at least one application path to the list.", "ERROR")
                raise ConfigurationError("no applications configured")

            valid = [p for p in paths if self._file_exists(p)]
            if not valid:
                self._report("Error: No valid executable paths found in the list.", "ERROR")
                raise ConfigurationError("no valid executable paths")

            if not parse_filter_text(self._store.load_filter_text()):
                self._report(
                    "Warning: No device filters defined. Every device connection will restart the applications.",
                    "WARNING",
                )

            self._ensure_worker()
            with self._lock:
                self._session += 1
                session = self._session
                self._state.status = "MONITORING"

            try:
                self._watcher.start(
                    lambda event: self._enqueue(session, event),
                    self._on_watcher_error,
                )
            except SubscriptionError as e:
                with self._lock:
                    self._session += 1
                    self._state.status = "IDLE"
                self._report(f"Failed to start device monitoring: {e}", "ERROR")
                raise

            log.info(f"Monitoring started (session {session})")
            self._report(
                f"Monitoring started for {len(valid)} application(s). Waiting for USB connection...",
                "SUCCESS",
            )

    def stop(self) -> None:
        """Stop watching. Idempotent; a restart run already in progress completes."""
        with self._lifecycle_lock:
            with self._lock:
                was_monitoring = self._state.status == "MONITORING"
                self._session += 1
                self._state.status = "IDLE"
            self._watcher.stop()
            if was_monitoring:
                log.info("Monitoring stopped")
                self._report("Monitoring stopped.", "INFO")

    def close(self) -> None:
        """Stop monitoring and shut down the worker thread."""
        self.stop()
        worker, self._worker = self._worker, None
        if worker is not None:
            self._queue.put(_STOP)
            worker.join(timeout=5.0)

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until every queued arrival has been handled. Returns False on timeout."""
        with self._idle:
            return self._idle.wait_for(lambda: self._pending == 0, timeout)

    def _on_watcher_error(self, exc: Exception) -> None:
        self._report(f"Device monitoring failed: {exc}", "ERROR")
        self.stop()

    # --- Event pipeline ---

    def _ensure_worker(self) -> None:
        if self._worker is not None and self._worker.is_alive():
            return
        self._worker = threading.Thread(target=self._run, name="UsbMonitorWorker", daemon=True)
        self._worker.start()

    def _enqueue(self, session: int, event: DeviceArrivalEvent) -> None:
        with self._idle:
            self._pending += 1
        self._queue.put((session, event))

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                return
            session, event = item
            try:
                with self._lock:
                    live = session == self._session and self._state.status == "MONITORING"
                if live:
                    self._process(event)
                else:
                    log.debug(f"Discarding arrival of '{event.description}' from a stopped session")
            finally:
                with self._idle:
                    self._pending -= 1
                    if self._pending == 0:
                        self._idle.notify_all()

    def _process(self, event: DeviceArrivalEvent) -> None:
        summary: Optional[RestartSummary] = None
        try:
            summary = self.handle_event(event)
        except Exception as e:
            log.exception("Error processing device event")
            self._report(f"Error processing device event: {e}", "ERROR")

        if self._handled_cb:
            try:
                self._handled_cb(event, summary)
            except Exception:
                log.exception("on_handled callback failed")

    def handle_event(self, event: DeviceArrivalEvent) -> Optional[RestartSummary]:
        """
        Filter one arrival and restart the applications if it is accepted.
        Returns the restart summary, or None when the device was filtered out.
        """
        with self._lock:
            self._state.last_device = event.description

        patterns = parse_filter_text(self._store.load_filter_text())
        paths = self._store.load_paths()

        if not patterns:
            self._report("No device filters defined; restarting on every device connection.", "WARNING")

        def on_invalid(pattern: str, error: Exception) -> None:
            self._report(f"Invalid filter pattern '{pattern}': {error}", "ERROR")

        if not accepts(event.device_id, patterns, on_invalid=on_invalid):
            log.info(f"Device '{event.description}' ({event.device_id}) rejected by filters")
            self._report(f"Device '{event.description}' connected: no matching filter, restart skipped.", "INFO")
            return None

        self._report(
            f"USB Device Connected: '{event.description}'. Attempting to restart {len(paths)} application(s)...",
            "INFO",
        )
        summary = self._orchestrator.restart(paths)
        with self._lock:
            self._state.last_summary = summary

        if summary.succeeded > 0:
            self._report(
                f"Successfully restarted {summary.succeeded} application(s) due to USB connection.",
                "SUCCESS",
            )
        return summary

    # --- Configuration (only while IDLE) ---

    def _ensure_unlocked(self) -> None:
        if self.configuration_locked:
            raise ConfigurationLockedError("Stop monitoring before changing the configuration.")

    def _saved(self, ok: bool) -> bool:
        if not ok:
            self._report("Error saving settings.", "ERROR")
        return ok

    def list_applications(self) -> List[str]:
        return self._store.load_paths()

    def add_application(self, path: str) -> bool:
        self._ensure_unlocked()
        path = (path or "").strip()
        if not path:
            raise ConfigurationError("application path must not be empty")

        paths = self._store.load_paths()
        if path in paths:
            self._report("Application is already in the list.", "WARNING")
            return False

        paths.append(path)
        if not self._saved(self._store.save_paths(paths)):
            return False
        self._report(f"Added: {file_display_name(path)}.", "INFO")
        return True

    def remove_application(self, path: str) -> bool:
        self._ensure_unlocked()
        paths = self._store.load_paths()
        if path not in paths:
            self._report("Please select an application to remove.", "WARNING")
            return False

        paths.remove(path)
        if not self._saved(self._store.save_paths(paths)):
            return False
        self._report(f"Removed: {file_display_name(path)}.", "INFO")
        return True

    def set_filter_text(self, text: str) -> bool:
        self._ensure_unlocked()
        if not self._saved(self._store.save_filter_text(text)):
            return False
        count = len(parse_filter_text(text))
        if count:
            self._report(f"Saved {count} device filter(s).", "INFO")
        else:
            self._report("Device filters cleared. Every device connection will restart the applications.", "WARNING")
        return True

    def set_auto_start(self, enabled: bool) -> bool:
        """
        Toggle launch at login. When the OS registration fails the flag is
        stored as disabled and False is returned.
        """
        self._ensure_unlocked()
        if enabled:
            if self._autostart.set_enabled(True):
                self._saved(self._store.save_auto_start(True))
                if self._autostart.registers_login_item:
                    self._report("Auto-Start enabled. App will run on login.", "SUCCESS")
                else:
                    self._report(
                        "Auto-Start saved, but login registration is not supported on this system. "
                        "Add the app to your session startup items.",
                        "WARNING",
                    )
                return True
            self._saved(self._store.save_auto_start(False))
            self._report("Error enabling Auto-Start. Check permissions.", "ERROR")
            return False

        self._autostart.set_enabled(False)
        self._saved(self._store.save_auto_start(False))
        self._report("Auto-Start disabled.", "INFO")
        return True

    def sync_auto_start(self) -> None:
        """Re-assert the OS registration for a saved auto-start flag."""
        if self._store.load_auto_start():
            self._autostart.set_enabled(True)
