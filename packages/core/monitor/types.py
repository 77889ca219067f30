from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional

MonitorStatus = Literal["IDLE", "MONITORING"]
RestartStatus = Literal["SKIPPED", "SUCCEEDED", "FAILED"]


@dataclass(frozen=True)
class DeviceInfo:
    """Raw description of an arrived device as reported by a notifier backend."""
    device_id: str = ""  # hardware / instance identifier
    caption: str = ""  # display name


@dataclass(frozen=True)
class DeviceArrivalEvent:
    device_id: str
    description: str
    at: str


@dataclass(frozen=True)
class RestartOutcome:
    path: str
    status: RestartStatus
    reason: Optional[str] = None


@dataclass
class RestartSummary:
    outcomes: List[RestartOutcome] = field(default_factory=list)

    def _count(self, status: RestartStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def succeeded(self) -> int:
        return self._count("SUCCEEDED")

    @property
    def failed(self) -> int:
        return self._count("FAILED")

    @property
    def skipped(self) -> int:
        return self._count("SKIPPED")


@dataclass
class MonitorState:
    status: MonitorStatus = "IDLE"
    last_device: Optional[str] = None
    last_summary: Optional[RestartSummary] = None
