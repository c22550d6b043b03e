"""Request helpers shared by the route modules."""

from fastapi import Request


def client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, else the socket peer, else ``unknown``."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    if request.client is not None and request.client.host:
        return request.client.host
    return "unknown"
