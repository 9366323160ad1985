"""Anonymous rater identity derived from the client's network origin."""

from __future__ import annotations

import hashlib
from typing import Mapping, Optional

DEFAULT_CLIENT_IP = "127.0.0.1"


def resolve_client_ip(headers: Mapping[str, str], peer_host: Optional[str] = None) -> str:
    """Pick the originating IP: first X-Forwarded-For hop, then X-Real-IP, then the socket peer."""

    forwarded_for = headers.get("x-forwarded-for")
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop
    real_ip = headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()
    return peer_host or DEFAULT_CLIENT_IP


def derive_anonymous_id(client_ip: str, salt: str) -> str:
    return hashlib.sha256(f"{client_ip}{salt}".encode("utf-8")).hexdigest()
