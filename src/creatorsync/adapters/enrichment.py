"""Throttled profile enrichment with best-effort avatar transfer.

``ThrottledProfileEnricher`` exposes a synchronous ``enrich`` call but runs
all network work on one private event loop, so the rate gate, the lookup
client and the avatar client live on the same loop for the enricher's whole
lifetime.
"""

from __future__ import annotations

import asyncio
import time
from logging import getLogger
from typing import TYPE_CHECKING, Final, Protocol, Self

import httpx
from aiolimiter import AsyncLimiter

from creatorsync.adapters.http_resilience import ResilientClient
from creatorsync.config.http_resilience import ResilienceConfig, RetryPolicy
from creatorsync.config.importing import (
    DEFAULT_AVATAR_TIMEOUT_SECONDS,
    DEFAULT_ENRICHMENT_INTERVAL_SECONDS,
    DEFAULT_ENRICHMENT_TIMEOUT_SECONDS,
)
from creatorsync.domain.ports import (
    BlobStoreError,
    EnrichmentResult,
    LookupFailure,
    ProfileLookupResult,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from creatorsync.domain.ports import BlobStore

log = getLogger(__name__)

_EXTENSIONS: Final[dict[str, str]] = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}
DEFAULT_AVATAR_CONTENT_TYPE: Final = "image/jpeg"


class ProfileLookupClient(Protocol):
    async def lookup(self, handle: str) -> ProfileLookupResult: ...

    async def aclose(self) -> None: ...


def _default_avatar_client() -> ResilientClient:
    return ResilientClient(
        ResilienceConfig(
            name="avatars",
            timeout_seconds=DEFAULT_AVATAR_TIMEOUT_SECONDS,
            retry=RetryPolicy(total=2),
        )
    )


def _epoch_millis() -> int:
    return time.time_ns() // 1_000_000


def avatar_key(handle: str, content_type: str, *, millis: int) -> str:
    """Blob key ``{handle}-{epoch_millis}.<ext>``, unique across repeated runs."""

    extension = _EXTENSIONS.get(content_type.split(";")[0].strip().lower(), "jpg")
    return f"{handle}-{millis}.{extension}"


class ThrottledProfileEnricher:
    """Look up brand-new handles one at a time, at most once per gate interval."""

    def __init__(
        self,
        *,
        lookup_client: ProfileLookupClient,
        blob_store: BlobStore | None = None,
        gate: AsyncLimiter | None = None,
        interval_seconds: float = DEFAULT_ENRICHMENT_INTERVAL_SECONDS,
        lookup_timeout_seconds: float = DEFAULT_ENRICHMENT_TIMEOUT_SECONDS,
        avatar_timeout_seconds: float = DEFAULT_AVATAR_TIMEOUT_SECONDS,
        avatar_client_factory: Callable[[], ResilientClient] = _default_avatar_client,
        clock: Callable[[], int] = _epoch_millis,
    ) -> None:
        self._lookup_client = lookup_client
        self._blob_store = blob_store
        self._interval_seconds = interval_seconds
        self._gate = gate
        self._lookup_timeout = lookup_timeout_seconds
        self._avatar_timeout = avatar_timeout_seconds
        self._avatar_client_factory = avatar_client_factory
        self._avatar_client: ResilientClient | None = None
        self._clock = clock
        self._runner: asyncio.Runner | None = asyncio.Runner()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        if self._runner is None:
            return
        try:
            self._runner.run(self._aclose())
        finally:
            self._runner.close()
            self._runner = None

    def enrich(self, handle: str) -> EnrichmentResult:
        if self._runner is None:
            raise RuntimeError("Enricher is closed")
        return self._runner.run(self._enrich(handle))

    async def _aclose(self) -> None:
        await self._lookup_client.aclose()
        if self._avatar_client is not None:
            await self._avatar_client.aclose()
            self._avatar_client = None

    def _limiter(self) -> AsyncLimiter:
        # created on the runner's loop, one acquisition per interval
        if self._gate is None:
            self._gate = AsyncLimiter(1, self._interval_seconds)
        return self._gate

    async def _enrich(self, handle: str) -> EnrichmentResult:
        lookup = await self._lookup(handle)
        snapshot = lookup.snapshot
        if snapshot is None or not snapshot.avatar_source_url or self._blob_store is None:
            return EnrichmentResult(lookup=lookup)

        try:
            async with asyncio.timeout(self._avatar_timeout):
                avatar_url = await self._transfer_avatar(
                    handle, snapshot.avatar_source_url, self._blob_store
                )
        except (TimeoutError, httpx.HTTPError, BlobStoreError) as exc:
            detail = "avatar transfer timed out" if isinstance(exc, TimeoutError) else str(exc)
            log.warning("Avatar transfer for %s failed: %s", handle, detail)
            return EnrichmentResult(lookup=lookup, avatar_error=detail)
        return EnrichmentResult(lookup=lookup, avatar_url=avatar_url)

    async def _lookup(self, handle: str) -> ProfileLookupResult:
        async with self._limiter():
            try:
                async with asyncio.timeout(self._lookup_timeout):
                    result = await self._lookup_client.lookup(handle)
            except TimeoutError:
                log.warning("Profile lookup for %s timed out", handle)
                return ProfileLookupResult(
                    failure=LookupFailure.TRANSIENT_ERROR, detail="lookup timed out"
                )
        if not result.ok:
            log.info("Profile lookup for %s: %s", handle, result.failure)
        return result

    async def _transfer_avatar(self, handle: str, source_url: str, blob_store: BlobStore) -> str:
        if self._avatar_client is None:
            self._avatar_client = self._avatar_client_factory()
        response = await self._avatar_client.get(source_url)
        response.raise_for_status()
        content_type = response.headers.get("content-type", DEFAULT_AVATAR_CONTENT_TYPE)
        key = avatar_key(handle, content_type, millis=self._clock())
        reference = blob_store.upload(key, response.content, content_type)
        return blob_store.public_url(reference)
