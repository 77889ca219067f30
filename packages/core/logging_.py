from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

from packages.shared.paths import log_path, ensure_app_dirs

LOG_LEVEL_ENV = "USB_RESTART_MONITOR_LOG_LEVEL"


def _configured_level() -> int:
    name = os.environ.get(LOG_LEVEL_ENV, "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def setup_logging() -> None:
    """Console plus rotating file logging. Safe to call more than once."""
    ensure_app_dirs()
    level = _configured_level()
    root = logging.getLogger()
    root.setLevel(level)

    if root.handlers:
        return

    fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s - %(message)s")

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(fmt)
    root.addHandler(console)

    file_handler = RotatingFileHandler(str(log_path()), maxBytes=2_000_000, backupCount=3, encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    # One line per PnP poll at DEBUG is too chatty even when debugging restarts
    logging.getLogger("packages.core.monitor.pnp_notifier").setLevel(max(level, logging.INFO))
