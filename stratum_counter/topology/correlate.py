from __future__ import annotations
import logging
import warnings
from typing import Dict, Iterable, List, Optional

from ..config import DEFAULT_PORT, DEFAULT_STATE
from ..errors import ContainerMembershipAmbiguous, ProcessNotFound
from ..models import AddressSide, Connection, Container, ContainerReport, Process, TcpState
from .snapshot import ContainerSource, ProcessSource, Snapshot

log = logging.getLogger(__name__)

def filter_connections(conns: Iterable[Connection], port: int,
                       state: TcpState = DEFAULT_STATE,
                       side: AddressSide = AddressSide.LOCAL) -> List[Connection]:
    return [c for c in conns if c.port(side) == port and c.state == state]

def claim(process: Process, containers: Iterable[Container],
          registry: ContainerSource) -> Optional[Container]:
    """First container in registry order that contains process."""
    matches = [c for c in containers if registry.contains(c, process)]
    if not matches:
        return None
    if len(matches) > 1:
        names = ", ".join(c.name for c in matches)
        warnings.warn(
            f"pid {process.pid} matches several containers ({names}); using {matches[0].name}",
            ContainerMembershipAmbiguous,
            stacklevel=2,
        )
    return matches[0]

def correlate(snapshot: Snapshot, inventory: ProcessSource, registry: ContainerSource,
              port: int = DEFAULT_PORT, state: TcpState = DEFAULT_STATE,
              side: AddressSide = AddressSide.LOCAL) -> List[ContainerReport]:
    """Group the snapshot's matching connections by owning container.

    Connections whose process is gone or not containerized are dropped.
    Container order is first-seen; connection order follows the socket table.
    """
    wanted = filter_connections(snapshot.connections, port, state, side)
    log.debug("%d of %d sockets on %s port %d (%s)",
              len(wanted), len(snapshot.connections), side.value, port, state.name)

    # per-pass memo only; pids are recycled between runs
    resolved: Dict[int, Optional[Process]] = {}
    claimed: Dict[int, Optional[Container]] = {}
    groups: Dict[str, ContainerReport] = {}

    for conn in wanted:
        if conn.pid is None:
            log.debug("no owner for %s:%d -> %s:%d, dropped",
                      conn.local_address, conn.local_port, conn.remote_address, conn.remote_port)
            continue
        if conn.pid not in resolved:
            try:
                resolved[conn.pid] = inventory.resolve(conn.pid)
            except ProcessNotFound:
                log.debug("pid %d exited during scan, dropped", conn.pid)
                resolved[conn.pid] = None
        process = resolved[conn.pid]
        if process is None:
            continue
        if conn.pid not in claimed:
            claimed[conn.pid] = claim(process, snapshot.containers, registry)
        container = claimed[conn.pid]
        if container is None:
            log.debug("pid %d (%s) is not in a container, dropped", process.pid, process.name)
            continue
        report = groups.get(container.id)
        if report is None:
            report = groups[container.id] = ContainerReport(container)
        report.connections.append(conn)

    return list(groups.values())
