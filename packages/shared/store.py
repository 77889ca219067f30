from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any, List, Optional, Protocol

from pydantic import ValidationError

from packages.shared.config import AppConfig
from packages.shared.paths import settings_path, ensure_app_dirs

log = logging.getLogger(__name__)


class SettingsStore(Protocol):
    """Accessors over the settings record. Every save rewrites the whole record."""

    def load(self) -> AppConfig:
        ...

    def save(self, cfg: AppConfig) -> bool:
        ...

    def load_paths(self) -> List[str]:
        ...

    def save_paths(self, paths: List[str]) -> bool:
        ...

    def load_filter_text(self) -> str:
        ...

    def save_filter_text(self, text: str) -> bool:
        ...

    def load_auto_start(self) -> bool:
        ...

    def save_auto_start(self, enabled: bool) -> bool:
        ...


class _FieldAccessors:
    """Field-level load/save built on top of load() and save()."""

    def load(self) -> AppConfig:
        raise NotImplementedError

    def save(self, cfg: AppConfig) -> bool:
        raise NotImplementedError

    def load_paths(self) -> List[str]:
        return list(self.load().paths)

    def save_paths(self, paths: List[str]) -> bool:
        return self.save(self.load().model_copy(update={"paths": list(paths)}))

    def load_filter_text(self) -> str:
        return self.load().regex_filters

    def save_filter_text(self, text: str) -> bool:
        return self.save(self.load().model_copy(update={"regex_filters": text}))

    def load_auto_start(self) -> bool:
        return self.load().auto_start

    def save_auto_start(self, enabled: bool) -> bool:
        return self.save(self.load().model_copy(update={"auto_start": bool(enabled)}))


class ConfigStore(_FieldAccessors):
    """
    JSON settings file under the per-user application data directory.

    Reads go to disk every time so callers always see the latest saved state.
    A missing, unreadable or invalid file yields defaults; save failures are
    logged and reported through the return value.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        if path is None:
            ensure_app_dirs()
            path = settings_path()
        self._path = Path(path)
        self._lock = threading.Lock()

    def load(self) -> AppConfig:
        with self._lock:
            if not self._path.exists():
                return AppConfig()
            try:
                raw = self._path.read_text(encoding="utf-8")
                # Legacy records may carry raw newlines inside strings
                data: Any = json.loads(raw, strict=False)
                return AppConfig.model_validate(data)
            except (OSError, ValueError, ValidationError) as e:
                log.warning(f"Could not read settings from {self._path}: {e}; using defaults")
                return AppConfig()

    def save(self, cfg: AppConfig) -> bool:
        # Re-validate so direct model_copy updates still dedupe paths
        cfg = AppConfig.model_validate(cfg.model_dump())
        with self._lock:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                self._path.write_text(cfg.model_dump_json(indent=2), encoding="utf-8")
            except OSError:
                log.exception(f"Error saving settings to {self._path}")
                return False
        log.info(f"Settings saved to: {self._path}")
        return True

    def path(self) -> str:
        return str(self._path)


class MemoryConfigStore(_FieldAccessors):
    """In-process settings, used for tests and diagnostics."""

    def __init__(self, cfg: Optional[AppConfig] = None) -> None:
        self._cfg = cfg or AppConfig()
        self._lock = threading.Lock()

    def load(self) -> AppConfig:
        with self._lock:
            return self._cfg.model_copy(deep=True)

    def save(self, cfg: AppConfig) -> bool:
        validated = AppConfig.model_validate(cfg.model_dump())
        with self._lock:
            self._cfg = validated
        return True
