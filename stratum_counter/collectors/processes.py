from __future__ import annotations
import logging
import os
from pathlib import Path

import psutil

from ..errors import ProcessNotFound
from ..models import Process
from .linux import PROC_ROOT, read_ns_inode

log = logging.getLogger(__name__)

class ProcessInventory:
    """Resolves a pid to the attributes needed for container matching.

    Nothing is cached: pids get recycled, so a Process is only meaningful
    for the snapshot it was resolved in.
    """

    def __init__(self, proc_root: str | os.PathLike = PROC_ROOT):
        self.proc_root = Path(proc_root)

    def _cgroup(self, pid: int) -> str:
        # no procfs, or the process exited after psutil saw it
        try:
            return (self.proc_root / str(pid) / "cgroup").read_text()
        except OSError as e:
            log.debug("cgroup of pid %d unreadable: %s", pid, e)
            return ""

    def resolve(self, pid: int) -> Process:
        try:
            name = psutil.Process(pid).name()
        except psutil.NoSuchProcess:
            raise ProcessNotFound(pid) from None
        except psutil.AccessDenied:
            name = "?"
        return Process(
            pid=pid,
            name=name,
            cgroup=self._cgroup(pid),
            pid_namespace=read_ns_inode(self.proc_root / str(pid) / "ns" / "pid"),
        )
