"""Classify a resolved handle against the store."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from creatorsync.domain.model import Influencer
    from creatorsync.domain.ports import InfluencerRepository


class ResolutionStatus(StrEnum):
    NEW = "new"
    EXISTING = "existing"
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True, slots=True)
class IdentityResolution:
    status: ResolutionStatus
    handle: str
    influencer: Influencer | None = None
    match_count: int = 0


def resolve_identity(handle: str, influencers: InfluencerRepository) -> IdentityResolution:
    """Case-insensitive exact lookup of ``handle``.

    More than one match means the store's uniqueness guarantee has been broken;
    the caller treats that as fatal for the record only.
    """

    normalized = handle.strip().lower()
    matches = list(influencers.find_by_handle(normalized))
    if not matches:
        return IdentityResolution(status=ResolutionStatus.NEW, handle=normalized)
    if len(matches) == 1:
        return IdentityResolution(
            status=ResolutionStatus.EXISTING,
            handle=normalized,
            influencer=matches[0],
            match_count=1,
        )
    return IdentityResolution(
        status=ResolutionStatus.AMBIGUOUS, handle=normalized, match_count=len(matches)
    )


__all__ = ["IdentityResolution", "ResolutionStatus", "resolve_identity"]
