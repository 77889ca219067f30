from __future__ import annotations

import os
import sys
from pathlib import Path

import platformdirs

APP_NAME = "UsbRestartMonitor"

def app_data_dir() -> Path:
    if sys.platform != "win32":
        return Path(platformdirs.user_config_dir(APP_NAME, appauthor=False))
    base = os.environ.get("APPDATA") or str(Path.home())
    return Path(base) / APP_NAME

def settings_path() -> Path:
    return app_data_dir() / "settings.json"

def logs_dir() -> Path:
    return app_data_dir() / "logs"

def log_path() -> Path:
    return logs_dir() / "restart-monitor.log"

def ensure_app_dirs() -> None:
    logs_dir().mkdir(parents=True, exist_ok=True)
