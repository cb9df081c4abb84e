from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from creatorsync.adapters.blob_storage import LocalBlobStore, sanitize_key
from creatorsync.config import BlobStoreConfig
from creatorsync.domain.ports import BlobStore, BlobStoreError

if TYPE_CHECKING:
    from pathlib import Path


def test_sanitize_key_flattens_path_segments() -> None:
    assert sanitize_key("../janedoe/1700000000000.jpg") == "janedoe_1700000000000.jpg"
    assert sanitize_key("jane doe.png") == "jane_doe.png"


def test_sanitize_key_rejects_empty_keys() -> None:
    with pytest.raises(BlobStoreError):
        sanitize_key(" ../ ")


def test_upload_writes_file_and_returns_reference(tmp_path: Path) -> None:
    store = LocalBlobStore(tmp_path / "photos")

    reference = store.upload("janedoe-1.jpg", b"jpeg-bytes", "image/jpeg")

    assert isinstance(store, BlobStore)
    assert reference == "janedoe-1.jpg"
    assert (tmp_path / "photos" / reference).read_bytes() == b"jpeg-bytes"
    assert store.public_url(reference).startswith("file://")


def test_public_url_uses_configured_base(tmp_path: Path) -> None:
    store = LocalBlobStore.from_config(
        BlobStoreConfig(root=tmp_path, public_base_url="https://cdn.example.com/photos/")
    )

    assert store.public_url("janedoe-1.jpg") == "https://cdn.example.com/photos/janedoe-1.jpg"


def test_upload_failure_raises_blob_store_error(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("occupied", encoding="utf-8")
    store = LocalBlobStore(blocker)

    with pytest.raises(BlobStoreError):
        store.upload("janedoe-1.jpg", b"jpeg-bytes", "image/jpeg")
