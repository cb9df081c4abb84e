"""Filesystem blob store for profile photos."""

from __future__ import annotations

import re
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, Final
from urllib.parse import quote

from creatorsync.domain.ports import BlobStore, BlobStoreError

if TYPE_CHECKING:
    from creatorsync.config import BlobStoreConfig

log = getLogger(__name__)

_UNSAFE_KEY_CHARS: Final = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_key(key: str) -> str:
    """Reduce ``key`` to a single safe path segment."""

    cleaned = _UNSAFE_KEY_CHARS.sub("_", key.strip()).strip("._")
    if not cleaned:
        raise BlobStoreError(f"Invalid blob key: {key!r}")
    return cleaned


class LocalBlobStore:
    """Store blobs as files under ``root``; references are the sanitised keys."""

    def __init__(self, root: Path, public_base_url: str | None = None) -> None:
        self.root = root
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None

    @classmethod
    def from_config(cls, config: BlobStoreConfig) -> LocalBlobStore:
        return cls(config.root, config.public_base_url)

    def upload(self, key: str, data: bytes, content_type: str) -> str:
        reference = sanitize_key(key)
        target = self.root / reference
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise BlobStoreError(f"Could not store {reference}: {exc}") from exc
        log.debug("Stored %d bytes (%s) as %s", len(data), content_type, reference)
        return reference

    def public_url(self, reference: str) -> str:
        if self.public_base_url is not None:
            return f"{self.public_base_url}/{quote(reference)}"
        return (self.root / reference).resolve().as_uri()


if TYPE_CHECKING:
    _blob_store_check: BlobStore = LocalBlobStore(Path())
