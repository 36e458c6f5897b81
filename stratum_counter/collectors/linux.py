from __future__ import annotations
import logging
import os
import re
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..errors import SocketEnumerationError
from ..models import Connection, TcpState
from ..utils.net import parse_hex_endpoint

log = logging.getLogger(__name__)

PROC_ROOT = "/proc"
TABLES = ("tcp", "tcp6")
NS_RE = re.compile(r"^\w+:\[(?P<inode>\d+)\]$")
SOCKET_RE = re.compile(r"^socket:\[(?P<inode>\d+)\]$")

def ns_inode(link: str | os.PathLike) -> Optional[int]:
    """'/proc/42/ns/net' -> 4026531992; OSError propagates."""
    m = NS_RE.match(os.readlink(link))
    return int(m.group("inode")) if m else None

def read_ns_inode(link: str | os.PathLike) -> Optional[int]:
    try:
        return ns_inode(link)
    except OSError:
        return None

def _check_access(what: str, read: int, denied: int) -> None:
    if not denied:
        return
    if not read:
        raise SocketEnumerationError("insufficient privilege to map sockets to processes")
    log.warning("permission denied on %s of %d process(es); their sockets are not attributed",
                what, denied)

def parse_tcp_line(line: str) -> Optional[Tuple[Connection, int]]:
    """
    One row of /proc/net/tcp{,6}:
      sl local_address rem_address st tx:rx tr:when retrnsmt uid timeout inode ...
    Returns None for the header and blank lines, raises ValueError on garbage.
    """
    trimmed = line.strip()
    if not trimmed or trimmed.startswith("sl"):
        return None
    parts = trimmed.split()
    if len(parts) < 10:
        raise ValueError(f"expected at least 10 fields, got {len(parts)}")
    laddr, lport = parse_hex_endpoint(parts[1])
    raddr, rport = parse_hex_endpoint(parts[2])
    state = TcpState(int(parts[3], 16))
    inode = int(parts[9])
    return Connection(laddr, lport, raddr, rport, state), inode

def parse_tcp_table(text: str) -> List[Tuple[Connection, int]]:
    rows: List[Tuple[Connection, int]] = []
    for line in text.splitlines():
        try:
            row = parse_tcp_line(line)
        except ValueError as e:
            log.debug("skipping socket table line %r: %s", line, e)
            continue
        if row:
            rows.append(row)
    return rows

def list_pids(proc_root: Path) -> List[int]:
    return sorted(int(n) for n in os.listdir(proc_root) if n.isdecimal())

def socket_owners(proc_root: Path, pids: List[int]) -> Dict[int, int]:
    """Map socket inode -> pid by walking /proc/<pid>/fd; lowest pid wins."""
    owners: Dict[int, int] = {}
    me = os.getpid()
    read = denied = 0
    for pid in sorted(pids):
        fd_dir = proc_root / str(pid) / "fd"
        try:
            fds = os.listdir(fd_dir)
        except PermissionError:
            denied += 1
            continue
        except OSError:
            # exited mid-scan
            continue
        if pid != me:
            read += 1
        for fd in fds:
            try:
                m = SOCKET_RE.match(os.readlink(fd_dir / fd))
            except OSError:
                continue
            if m:
                owners.setdefault(int(m.group("inode")), pid)
    _check_access("fd tables", read, denied)
    return owners

class LinuxSocketTable:
    """All TCP sockets visible through procfs, across network namespaces."""

    def __init__(self, proc_root: str | os.PathLike = PROC_ROOT):
        self.proc_root = Path(proc_root)

    def _namespace_dirs(self, pids: List[int]) -> List[Path]:
        # the host table first, then one representative pid per other netns
        dirs = [self.proc_root / "net"]
        seen = set()
        own = read_ns_inode(self.proc_root / "self" / "ns" / "net")
        if own is not None:
            seen.add(own)
        me = os.getpid()
        read = denied = 0
        for pid in pids:
            try:
                ns = ns_inode(self.proc_root / str(pid) / "ns" / "net")
            except PermissionError:
                denied += 1
                continue
            except OSError:
                continue
            if pid != me:
                read += 1
            if ns is None or ns in seen:
                continue
            seen.add(ns)
            dirs.append(self.proc_root / str(pid) / "net")
        _check_access("network namespaces", read, denied)
        log.debug("reading %d network namespace(s)", len(dirs))
        return dirs

    def read_connections(self) -> List[Connection]:
        try:
            pids = list_pids(self.proc_root)
        except OSError as e:
            raise SocketEnumerationError(f"cannot list {self.proc_root}: {e}") from e

        dirs = self._namespace_dirs(pids)
        owners = socket_owners(self.proc_root, pids)

        conns: List[Connection] = []
        seen = set()
        for net_dir in dirs:
            for table in TABLES:
                path = net_dir / table
                try:
                    text = path.read_text()
                except OSError as e:
                    if net_dir is dirs[0] and table == "tcp":
                        raise SocketEnumerationError(f"cannot read {path}: {e}") from e
                    # tcp6 disabled, or the namespace's last process exited
                    log.debug("skipping %s: %s", path, e)
                    continue
                for conn, inode in parse_tcp_table(text):
                    key = (inode, conn.local_address, conn.local_port,
                           conn.remote_address, conn.remote_port)
                    if key in seen:
                        continue
                    seen.add(key)
                    if inode:
                        conn = replace(conn, pid=owners.get(inode))
                    conns.append(conn)
        log.debug("socket table: %d sockets, %d owned inodes", len(conns), len(owners))
        return conns
