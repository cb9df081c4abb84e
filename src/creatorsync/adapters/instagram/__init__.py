"""Public interface for the Instagram profile adapter."""

from __future__ import annotations

from .client import InstagramProfileClient, snapshot_from_payload
from .schema import ProfileHoverResponse, UserData

__all__ = [
    "InstagramProfileClient",
    "ProfileHoverResponse",
    "UserData",
    "snapshot_from_payload",
]
