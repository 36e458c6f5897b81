from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Optional

class TcpState(IntEnum):
    # kernel codes (include/net/tcp_states.h); JSON consumers rely on them
    ESTABLISHED = 1
    SYN_SENT = 2
    SYN_RECV = 3
    FIN_WAIT1 = 4
    FIN_WAIT2 = 5
    TIME_WAIT = 6
    CLOSE = 7
    CLOSE_WAIT = 8
    LAST_ACK = 9
    LISTEN = 10
    CLOSING = 11
    NEW_SYN_RECV = 12

    @classmethod
    def parse(cls, value) -> "TcpState":
        """Accept a state name ('established', 'SYN_RECEIVED') or its code."""
        if isinstance(value, int):
            return cls(value)
        s = str(value).strip().upper().replace("-", "_")
        if s.isdigit():
            return cls(int(s))
        s = _STATE_ALIASES.get(s, s)
        try:
            return cls[s]
        except KeyError:
            raise ValueError(f"unknown TCP state: {value!r}") from None

_STATE_ALIASES = {
    "SYN_RECEIVED": "SYN_RECV",
    "CLOSED": "CLOSE",
    "FIN_WAIT_1": "FIN_WAIT1",
    "FIN_WAIT_2": "FIN_WAIT2",
}

class AddressSide(Enum):
    LOCAL = "local"
    REMOTE = "remote"

@dataclass(frozen=True)
class Connection:
    local_address: str
    local_port: int
    remote_address: str
    remote_port: int
    state: TcpState
    pid: Optional[int] = None

    def port(self, side: AddressSide) -> int:
        return self.remote_port if side is AddressSide.REMOTE else self.local_port

@dataclass(frozen=True)
class Process:
    pid: int
    name: str = "?"
    cgroup: str = ""
    pid_namespace: Optional[int] = None

@dataclass(frozen=True)
class Container:
    name: str
    id: str
    root_pid: int = 0
    pid_namespace: Optional[int] = None

    @property
    def short_id(self) -> str:
        return self.id[:12]

@dataclass
class ContainerReport:
    container: Container
    connections: list[Connection] = field(default_factory=list)

