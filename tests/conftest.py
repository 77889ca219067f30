# tests/conftest.py: Fakes for the OS-facing interfaces and shared fixtures.

import threading
import time
from typing import Dict, List, Optional, Tuple

import pytest

from packages.core.errors import SubscriptionError
from packages.core.monitor.device_notifier import DeviceNotifier
from packages.core.monitor.types import DeviceInfo
from packages.shared.config import AppConfig
from packages.shared.store import MemoryConfigStore


class FakeNotifier(DeviceNotifier):
    """Synthesizes device arrivals instead of listening to the OS."""

    def __init__(self, fail_with: Optional[Exception] = None):
        self.fail_with = fail_with
        self.on_arrival = None
        self.on_error = None
        self.subscribe_calls = 0
        self.unsubscribe_calls = 0

    def subscribe(self, on_arrival, on_error):
        self.subscribe_calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        self.on_arrival = on_arrival
        self.on_error = on_error

    def unsubscribe(self):
        self.unsubscribe_calls += 1
        self.on_arrival = None
        self.on_error = None

    @property
    def subscribed(self) -> bool:
        return self.on_arrival is not None

    def arrive(self, device_id: str = "", caption: str = ""):
        assert self.on_arrival is not None, "not subscribed"
        self.on_arrival(DeviceInfo(device_id=device_id, caption=caption))

    def fail(self, exc: Exception):
        assert self.on_error is not None, "not subscribed"
        self.on_error(exc)


class FakeSupervisor:
    """Records find/kill/spawn calls; `running` maps process names to PIDs."""

    def __init__(self, running: Optional[Dict[str, List[int]]] = None, spawn_delay: float = 0.0):
        self.running = running or {}
        self.spawn_delay = spawn_delay
        self.fail_spawn: Dict[str, Exception] = {}
        self.fail_kill: Dict[int, Exception] = {}
        self.calls: List[Tuple[str, object]] = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()
        self._next_pid = 1000

    def find_pids(self, name):
        with self._lock:
            self.calls.append(("find", name))
            return list(self.running.get(name.lower(), []))

    def kill(self, pid):
        with self._lock:
            self.calls.append(("kill", pid))
        if pid in self.fail_kill:
            raise self.fail_kill[pid]

    def spawn(self, path):
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            self.calls.append(("spawn", path))
        try:
            if self.spawn_delay:
                time.sleep(self.spawn_delay)
            if path in self.fail_spawn:
                raise self.fail_spawn[path]
            with self._lock:
                self._next_pid += 1
                return self._next_pid
        finally:
            with self._lock:
                self.active -= 1

    def spawned(self) -> List[str]:
        return [arg for op, arg in self.calls if op == "spawn"]

    def killed(self) -> List[int]:
        return [arg for op, arg in self.calls if op == "kill"]


class RecordingSink:
    def __init__(self):
        self.messages: List[Tuple[str, str]] = []
        self._lock = threading.Lock()

    def notify(self, message, severity="INFO"):
        with self._lock:
            self.messages.append((message, severity))

    def with_severity(self, severity: str) -> List[str]:
        return [m for m, s in self.messages if s == severity]

    def contains(self, fragment: str) -> bool:
        return any(fragment in m for m, _ in self.messages)


class FakeAutoStart:
    def __init__(self, succeed: bool = True, registers_login_item: bool = True):
        self.registers_login_item = registers_login_item
        self.succeed = succeed
        self.calls: List[bool] = []

    def set_enabled(self, enabled):
        self.calls.append(enabled)
        return self.succeed


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def supervisor() -> FakeSupervisor:
    return FakeSupervisor()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def store() -> MemoryConfigStore:
    return MemoryConfigStore(AppConfig(paths=[r"C:\Apps\foo.exe"], regex_filters="(?i)usb.*drive"))


@pytest.fixture
def failing_notifier() -> FakeNotifier:
    return FakeNotifier(fail_with=SubscriptionError("notification service unavailable"))


@pytest.fixture
def autostart() -> FakeAutoStart:
    return FakeAutoStart()
