from __future__ import annotations
from typing import List, Sequence

import orjson

from .models import AddressSide, Connection, ContainerReport, TcpState
from .utils.net import format_endpoint

RULE = "=" * 40
SUBRULE = "-" * 40

def connection_to_dict(c: Connection) -> dict:
    return {
        "local_addr": c.local_address,
        "local_port": c.local_port,
        "remote_addr": c.remote_address,
        "remote_port": c.remote_port,
        "state": int(c.state),
    }

def report_to_list(reports: Sequence[ContainerReport]) -> List[dict]:
    return [
        {
            "name": r.container.name,
            "id": r.container.id,
            "connections": [connection_to_dict(c) for c in r.connections],
        }
        for r in reports
    ]

def render_json(reports: Sequence[ContainerReport]) -> str:
    return orjson.dumps(report_to_list(reports), option=orjson.OPT_INDENT_2).decode()

def render_text(reports: Sequence[ContainerReport], port: int,
                state: TcpState = TcpState.ESTABLISHED,
                side: AddressSide = AddressSide.LOCAL) -> str:
    lines = [f"TCP connections on {side.value} port {port} ({state.name})", RULE]
    if not reports:
        lines.append("No matching connections.")
    for r in reports:
        lines.append(f"Container: {r.container.name}")
        lines.append(f"ID: {r.container.short_id}")
        lines.append(f"Connections: {len(r.connections)}")
        lines.append(SUBRULE)
        for c in r.connections:
            local = format_endpoint(c.local_address, c.local_port)
            remote = format_endpoint(c.remote_address, c.remote_port)
            lines.append(f"  {local} -> {remote} {c.state.name}")
        lines.append(RULE)
    return "\n".join(lines)
