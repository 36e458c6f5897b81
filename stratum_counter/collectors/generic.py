from __future__ import annotations
import logging

import psutil

from ..errors import SocketEnumerationError
from ..models import Connection, TcpState

log = logging.getLogger(__name__)

def _addr(a) -> tuple[str, int]:
    if not a:
        return ("*", 0)
    return (a.ip if hasattr(a, 'ip') else a[0], a.port if hasattr(a, 'port') else a[1])

class GenericSocketTable:
    """psutil-backed reader for platforms without procfs."""

    def read_connections(self) -> list[Connection]:
        try:
            raw = psutil.net_connections(kind='tcp')
        except (psutil.AccessDenied, OSError) as e:
            raise SocketEnumerationError(f"cannot enumerate TCP sockets: {e}") from e

        conns: list[Connection] = []
        seen = set()
        for c in raw:
            try:
                state = TcpState.parse(c.status)
            except ValueError:
                log.debug("skipping socket with status %r", c.status)
                continue
            l = _addr(c.laddr)
            r = _addr(c.raddr)
            key = (l, r, c.pid)
            if key in seen:
                continue
            seen.add(key)
            conns.append(Connection(l[0], l[1], r[0], r[1], state, c.pid or None))
        return conns
