from __future__ import annotations

from typing import Any, List
from pydantic import BaseModel, Field, field_validator, model_validator

SETTINGS_VERSION = 1


class AppConfig(BaseModel):
    """Persisted settings: managed executables, device filters and auto-start."""

    version: int = SETTINGS_VERSION
    paths: List[str] = Field(default_factory=list)
    # Raw newline-joined text, split into patterns only when read
    regex_filters: str = ""
    auto_start: bool = False

    @model_validator(mode="before")
    @classmethod
    def _upgrade_legacy_record(cls, data: Any) -> Any:
        """
        Accept the unversioned record written by the first release:
        {"paths": "a|b", "autoStart": true, "regexFilters": "..."}
        """
        if not isinstance(data, dict) or "version" in data:
            return data
        upgraded = dict(data)
        raw_paths = upgraded.get("paths")
        if isinstance(raw_paths, str):
            upgraded["paths"] = [p for p in raw_paths.split("|") if p]
        if "autoStart" in upgraded:
            upgraded["auto_start"] = upgraded.pop("autoStart")
        if "regexFilters" in upgraded:
            upgraded["regex_filters"] = upgraded.pop("regexFilters")
        upgraded["version"] = SETTINGS_VERSION
        return upgraded

    @field_validator("paths")
    @classmethod
    def _dedupe_paths(cls, value: List[str]) -> List[str]:
        # Insertion-ordered set; blank entries are dropped
        return list(dict.fromkeys(p for p in value if p.strip()))
