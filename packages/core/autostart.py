"""
Launch-at-login registration.

On Windows this is a value under HKCU\\Software\\Microsoft\\Windows\\CurrentVersion\\Run.
Elsewhere auto-start is left to the desktop session and registration is a no-op.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional, Protocol

log = logging.getLogger(__name__)

RUN_KEY_PATH = r"Software\Microsoft\Windows\CurrentVersion\Run"
RUN_VALUE_NAME = "UsbRestartMonitor"


class AutoStartRegistrar(Protocol):
    # False when set_enabled() only succeeds without registering anything
    registers_login_item: bool

    def set_enabled(self, enabled: bool) -> bool:
        """Register or unregister launch at login. Returns False on failure."""
        ...


class NoopAutoStart:
    registers_login_item = False

    def set_enabled(self, enabled: bool) -> bool:
        return True


def default_launch_command() -> str:
    if getattr(sys, "frozen", False):
        return f'"{sys.executable}"'
    # pythonw avoids a console window at login
    exe = sys.executable
    pythonw = os.path.join(os.path.dirname(exe), "pythonw.exe")
    if os.path.exists(pythonw):
        exe = pythonw
    return f'"{exe}" -m apps.desktop.main'


class RunKeyAutoStart:
    registers_login_item = True

    def __init__(self, command: Optional[str] = None, value_name: str = RUN_VALUE_NAME) -> None:
        self._command = command or default_launch_command()
        self._value_name = value_name

    def set_enabled(self, enabled: bool) -> bool:
        try:
            import winreg
            with winreg.OpenKey(winreg.HKEY_CURRENT_USER, RUN_KEY_PATH, 0, winreg.KEY_ALL_ACCESS) as key:
                if enabled:
                    winreg.SetValueEx(key, self._value_name, 0, winreg.REG_SZ, self._command)
                    log.info(f"Registered {self._value_name} to run at login")
                else:
                    try:
                        winreg.DeleteValue(key, self._value_name)
                        log.info(f"Removed {self._value_name} from login items")
                    except FileNotFoundError:
                        pass
            return True
        except (ImportError, OSError) as e:
            log.error(f"Registry error: {e}")
            return False


def default_autostart() -> AutoStartRegistrar:
    if sys.platform == "win32":
        return RunKeyAutoStart()
    return NoopAutoStart()
