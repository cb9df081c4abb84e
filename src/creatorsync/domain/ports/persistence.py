"""Ports for persisting import aggregates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from creatorsync.domain.model import Campaign, CampaignInfluencer, Influencer, Operator

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import date
    from uuid import UUID


class PersistenceError(RuntimeError):
    """Raised when the store rejects a write."""


class DuplicateHandleError(PersistenceError):
    """Raised when inserting an influencer whose handle already exists."""

    def __init__(self, handle: str) -> None:
        super().__init__(f"Influencer handle already exists: {handle}")
        self.handle = handle


class DuplicateAssociationError(PersistenceError):
    """Raised when a (campaign, influencer) pair is inserted twice."""


@dataclass(frozen=True, slots=True)
class CampaignSpec:
    """Name and optional date range used to find or create a campaign."""

    name: str
    start_date: date | None = None
    end_date: date | None = None


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class InfluencerRepository(Repository[Influencer], Protocol):
    """Persistence contract for influencers."""

    def get(self, influencer_id: UUID) -> Influencer | None: ...

    def find_by_handle(self, handle: str) -> Sequence[Influencer]:
        """Return every influencer whose handle matches ``handle`` case-insensitively."""
        ...

    def update(self, influencer: Influencer, changes: dict[str, object]) -> None: ...

    def missing_avatars(self, *, limit: int | None = None) -> Sequence[Influencer]: ...


@runtime_checkable
class CampaignRepository(Repository[Campaign], Protocol):
    """Persistence contract for campaigns."""

    def find_by_name(self, name: str) -> Campaign | None: ...

    def find_or_create(self, spec: CampaignSpec) -> Campaign: ...


@runtime_checkable
class AssociationRepository(Repository[CampaignInfluencer], Protocol):
    """Persistence contract for campaign/influencer associations."""

    def get(self, *, campaign_id: UUID, influencer_id: UUID) -> CampaignInfluencer | None: ...

    def most_recent_for(self, influencer_id: UUID) -> CampaignInfluencer | None: ...


@runtime_checkable
class OperatorRepository(Repository[Operator], Protocol):
    """Persistence contract for internal operators."""

    def list_all(self) -> Sequence[Operator]: ...
