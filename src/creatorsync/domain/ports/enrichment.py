"""Ports for external profile enrichment."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol, runtime_checkable


class LookupFailure(StrEnum):
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    TRANSIENT_ERROR = "transient_error"


@dataclass(frozen=True, slots=True)
class ProfileSnapshot:
    """Baseline public profile data for a handle."""

    handle: str
    display_name: str | None = None
    follower_count: int = 0
    avatar_source_url: str | None = None


@dataclass(frozen=True, slots=True)
class ProfileLookupResult:
    """Either a snapshot or a typed failure, never both."""

    snapshot: ProfileSnapshot | None = None
    failure: LookupFailure | None = None
    detail: str | None = None

    def __post_init__(self) -> None:
        if (self.snapshot is None) == (self.failure is None):
            raise ValueError("ProfileLookupResult needs exactly one of snapshot or failure")

    @property
    def ok(self) -> bool:
        return self.snapshot is not None


@dataclass(frozen=True, slots=True)
class EnrichmentResult:
    """Outcome of enriching a new influencer, including the avatar transfer."""

    lookup: ProfileLookupResult
    avatar_url: str | None = None
    avatar_error: str | None = None

    @property
    def snapshot(self) -> ProfileSnapshot | None:
        return self.lookup.snapshot


@runtime_checkable
class ProfileEnricher(Protocol):
    """Throttled, time-bounded lookup used for newly created influencers."""

    def enrich(self, handle: str) -> EnrichmentResult: ...
