from __future__ import annotations
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Protocol, Sequence

from ..models import Connection, Container, Process

log = logging.getLogger(__name__)

class SocketSource(Protocol):
    def read_connections(self) -> Sequence[Connection]: ...

class ContainerSource(Protocol):
    def list_running_containers(self) -> Sequence[Container]: ...
    def contains(self, container: Container, process: Process) -> bool: ...

class ProcessSource(Protocol):
    def resolve(self, pid: int) -> Process: ...

@dataclass(frozen=True)
class Snapshot:
    connections: tuple[Connection, ...]
    containers: tuple[Container, ...]

def take_snapshot(sockets: SocketSource, registry: ContainerSource,
                  concurrent: bool = True) -> Snapshot:
    """Read the socket table and the container list for one point in time.

    The two reads are independent I/O; with concurrent=True they overlap.
    Either failure propagates unchanged.
    """
    if not concurrent:
        conns = sockets.read_connections()
        containers = registry.list_running_containers()
    else:
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="snapshot") as pool:
            f_conns = pool.submit(sockets.read_connections)
            f_containers = pool.submit(registry.list_running_containers)
            conns = f_conns.result()
            containers = f_containers.result()
    log.debug("snapshot: %d sockets, %d containers", len(conns), len(containers))
    return Snapshot(tuple(conns), tuple(containers))
