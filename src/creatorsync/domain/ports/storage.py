"""Port for the blob store holding profile photos."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


class BlobStoreError(RuntimeError):
    """Raised when a blob upload fails."""


@runtime_checkable
class BlobStore(Protocol):
    def upload(self, key: str, data: bytes, content_type: str) -> str:
        """Store ``data`` under ``key`` and return an opaque reference."""
        ...

    def public_url(self, reference: str) -> str: ...
