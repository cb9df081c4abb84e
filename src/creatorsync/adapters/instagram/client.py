"""HTTP client for the RapidAPI Instagram profile lookup."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from creatorsync.adapters.http_resilience import ResilientClient
from creatorsync.config.instagram import get_instagram_config
from creatorsync.domain.ports import LookupFailure, ProfileLookupResult, ProfileSnapshot

from .schema import ProfileHoverResponse

if TYPE_CHECKING:
    from collections.abc import Callable

    from creatorsync.config import InstagramConfig, ResilienceConfig

log = getLogger(__name__)

PROFILE_HOVER_PATH = "/ig_get_fb_profile_hover.php"


def _should_cache_payload(payload: object) -> bool:
    try:
        return ProfileHoverResponse.model_validate(payload).found
    except ValidationError:
        return False


def _default_config() -> InstagramConfig:
    return get_instagram_config(cache_predicate=_should_cache_payload)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def snapshot_from_payload(handle: str, payload: ProfileHoverResponse) -> ProfileSnapshot | None:
    user = payload.user_data
    if not payload.found or user is None:
        return None
    return ProfileSnapshot(
        handle=handle,
        display_name=user.full_name,
        follower_count=max(user.follower_count, 0),
        avatar_source_url=user.avatar_url,
    )


@dataclass(slots=True)
class InstagramProfileClient:
    """One profile lookup per call; throttling is the caller's job.

    The underlying HTTP client is created lazily and must be used from a single
    event loop until ``aclose`` is awaited.
    """

    config: InstagramConfig = field(default_factory=_default_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    _client: ResilientClient | None = field(default=None, init=False, repr=False)

    def _http(self) -> ResilientClient:
        if self._client is None:
            self._client = self.client_factory(self.config.resilience)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def lookup(self, handle: str) -> ProfileLookupResult:
        try:
            response = await self._http().get(
                PROFILE_HOVER_PATH, params={"username_or_url": handle}
            )
        except httpx.HTTPError as exc:
            log.warning(f"Profile lookup for {handle} failed: {exc!r}")
            return ProfileLookupResult(failure=LookupFailure.TRANSIENT_ERROR, detail=str(exc))

        failure = _failure_for_status(response.status_code)
        if failure is not None:
            return ProfileLookupResult(failure=failure, detail=f"HTTP {response.status_code}")

        try:
            payload = ProfileHoverResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            log.warning(f"Unexpected profile payload for {handle}: {exc}")
            return ProfileLookupResult(
                failure=LookupFailure.TRANSIENT_ERROR, detail="unexpected payload"
            )

        snapshot = snapshot_from_payload(handle, payload)
        if snapshot is None:
            detail = str(payload.error) if payload.error else "no user data"
            return ProfileLookupResult(failure=LookupFailure.NOT_FOUND, detail=detail)
        return ProfileLookupResult(snapshot=snapshot)


def _failure_for_status(status_code: int) -> LookupFailure | None:
    if status_code == httpx.codes.NOT_FOUND:
        return LookupFailure.NOT_FOUND
    if status_code == httpx.codes.TOO_MANY_REQUESTS:
        return LookupFailure.RATE_LIMITED
    if status_code >= httpx.codes.BAD_REQUEST:
        return LookupFailure.TRANSIENT_ERROR
    return None
