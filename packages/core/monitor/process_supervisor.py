from __future__ import annotations

import logging
import os
import subprocess
import sys
from typing import List, Protocol

import psutil

log = logging.getLogger(__name__)


class ProcessSupervisor(Protocol):
    """OS process operations needed to restart an application."""

    def find_pids(self, name: str) -> List[int]:
        """PIDs of running processes whose image name, without extension, equals `name`."""
        ...

    def kill(self, pid: int) -> None:
        """Forcibly terminate a process. A process that is already gone is not an error."""
        ...

    def spawn(self, path: str) -> int:
        """Launch an executable detached from this process and return its PID."""
        ...


def _image_stem(name: str) -> str:
    return os.path.splitext(name)[0].lower()


class PsutilProcessSupervisor:
    def __init__(self) -> None:
        self._children: List[subprocess.Popen] = []

    def find_pids(self, name: str) -> List[int]:
        key = name.lower()
        pids: List[int] = []
        for p in psutil.process_iter(attrs=["pid", "name"]):
            try:
                n = p.info.get("name")
                if n and _image_stem(str(n)) == key:
                    pids.append(int(p.info["pid"]))
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                continue
        return pids

    def kill(self, pid: int) -> None:
        try:
            psutil.Process(pid).kill()
            log.info(f"Killed process {pid}")
        except psutil.NoSuchProcess:
            log.debug(f"Process {pid} already exited")

    def spawn(self, path: str) -> int:
        kwargs: dict = {
            "cwd": os.path.dirname(path) or None,
            "stdin": subprocess.DEVNULL,
            "stdout": subprocess.DEVNULL,
            "stderr": subprocess.DEVNULL,
            "close_fds": True,
        }
        if sys.platform == "win32":
            kwargs["creationflags"] = subprocess.DETACHED_PROCESS | subprocess.CREATE_NEW_PROCESS_GROUP
        else:
            kwargs["start_new_session"] = True
        proc = subprocess.Popen([path], **kwargs)
        # poll() reaps children that have exited since the last launch
        self._children = [c for c in self._children if c.poll() is None]
        self._children.append(proc)
        log.info(f"Launched {path} (pid {proc.pid})")
        return proc.pid
