"""Shared utilities for the Decision Memory API."""

from utils.sanitize import hash_identifier, mask_ip, sanitize_user_id

__all__ = [
    "hash_identifier",
    "mask_ip",
    "sanitize_user_id",
]
