from __future__ import annotations
import socket, struct, ipaddress

def ipv4_from_dword(dw: int) -> str:
    # procfs prints the in-memory (host order) word
    return socket.inet_ntoa(struct.pack('=I', dw & 0xFFFFFFFF))

def ipv6_from_bytes(b: bytes) -> str:
    addr = ipaddress.IPv6Address(b)
    if addr.ipv4_mapped is not None:
        return str(addr.ipv4_mapped)
    return str(addr)

def ipv6_from_hex(h: str) -> str:
    """Decode a procfs tcp6 address: four 32-bit words, each in host order."""
    words = [int(h[i:i + 8], 16) for i in range(0, 32, 8)]
    return ipv6_from_bytes(struct.pack('=4I', *words))

def parse_hex_endpoint(endpoint: str) -> tuple[str, int]:
    """'0100007F:0D05' -> ('127.0.0.1', 3333)."""
    host, sep, port = endpoint.partition(':')
    if not sep:
        raise ValueError(f"bad endpoint: {endpoint!r}")
    if len(host) == 8:
        addr = ipv4_from_dword(int(host, 16))
    elif len(host) == 32:
        addr = ipv6_from_hex(host)
    else:
        raise ValueError(f"bad address: {host!r}")
    return addr, int(port, 16)

def format_endpoint(addr: str, port: int) -> str:
    if ':' in addr:
        return f"[{addr}]:{port}"
    return f"{addr}:{port}"
