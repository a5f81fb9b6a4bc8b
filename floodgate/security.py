from __future__ import annotations

import ipaddress
from typing import Sequence

from starlette.requests import Request

Network = ipaddress.IPv4Network | ipaddress.IPv6Network


def parse_trusted_networks(value: str) -> list[Network]:
    """Parse a comma separated list such as "127.0.0.1/32,::1/128,172.17.0.0/16"."""
    nets: list[Network] = []
    for part in (value or "").split(","):
        part = part.strip()
        if not part:
            continue
        try:
            nets.append(ipaddress.ip_network(part, strict=False))
        except ValueError:
            continue
    return nets


def parse_ip(value: str) -> str | None:
    value = (value or "").strip()
    if not value:
        return None
    try:
        return str(ipaddress.ip_address(value))
    except ValueError:
        return None


def is_trusted_proxy(host: str, trusted: Sequence[Network]) -> bool:
    try:
        ip = ipaddress.ip_address(host)
    except ValueError:
        return False
    return any(ip in net for net in trusted)


def client_ip(request: Request, trusted: Sequence[Network] = ()) -> str:
    """Address the request is counted against.

    Forwarding headers are only honoured when the direct peer is a trusted
    proxy; the right-most untrusted X-Forwarded-For hop wins.
    """
    peer = request.client.host if request.client else ""
    if not trusted:
        return peer or "unknown"
    peer_ip = parse_ip(peer)
    if peer_ip and is_trusted_proxy(peer_ip, trusted):
        xff = request.headers.get("x-forwarded-for") or ""
        if xff:
            chain: list[str] = []
            for part in xff.split(","):
                ip = parse_ip(part)
                if ip:
                    chain.append(ip)
            while chain and is_trusted_proxy(chain[-1], trusted):
                chain.pop()
            if chain:
                return chain[-1]
        x_real_ip = parse_ip(request.headers.get("x-real-ip") or "")
        if x_real_ip:
            return x_real_ip
    if peer:
        return peer
    return "unknown"
