"""Log sanitization helpers.

Actor ids and client addresses are masked before they reach the logs; decision
content (deal names, reasoning) is never logged, only record ids.
"""

import hashlib
from typing import Optional


def hash_identifier(value: str, length: int = 8) -> str:
    """Return a short, stable hash of ``value`` prefixed with ``h:``.

    The hash is stable across processes so log lines for one actor can still
    be correlated.
    """
    if not value:
        return "h:empty"
    digest = hashlib.sha256(value.encode()).hexdigest()[:length]
    return f"h:{digest}"


def mask_ip(ip: str) -> str:
    """Keep the first octet of an IPv4 address, e.g. 10.1.2.3 -> 10.***.***.**"""
    parts = ip.split(".")
    if len(parts) != 4:
        return "***.***.***.***"
    return f"{parts[0]}.***.***.**"


def sanitize_user_id(user_id: Optional[str]) -> str:
    """Hash an actor id for logging; absent actors log as ``anonymous``."""
    if not user_id:
        return "anonymous"
    return hash_identifier(user_id)
