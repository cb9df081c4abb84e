"""Persistent records touched by the roster import."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from uuid import UUID, uuid4

from creatorsync.domain.model.enums import (
    ApprovalStatus,
    CampaignState,
    GarmentSize,
    PartnershipType,
    RelationshipStatus,
    Tier,
)


def new_id() -> UUID:
    return uuid4()


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(eq=False, kw_only=True)
class Operator:
    """Internal team member who can own influencer relationships."""

    id: UUID = field(default_factory=new_id)
    display_name: str


@dataclass(eq=False, kw_only=True)
class Influencer:
    """Canonical person record keyed by a case-insensitive handle."""

    id: UUID = field(default_factory=new_id)
    handle: str
    display_name: str
    avatar_url: str | None = None
    follower_count: int = 0
    email: str | None = None
    phone: str | None = None
    mailing_address: str | None = None
    partnership_type: PartnershipType = PartnershipType.UNASSIGNED
    relationship_status: RelationshipStatus = RelationshipStatus.PROSPECT
    tier: Tier = Tier.C
    top_size: GarmentSize | None = None
    bottoms_size: GarmentSize | None = None
    notes: str | None = None
    owner_id: UUID | None = None
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        self.handle = self.handle.strip().lower()
        if self.follower_count < 0:
            raise ValueError("follower_count must be non-negative")

    def append_note(self, note: str) -> None:
        if not self.notes:
            self.notes = note
            return
        self.notes = f"{self.notes}\n{note}"


@dataclass(eq=False, kw_only=True)
class Campaign:
    id: UUID = field(default_factory=new_id)
    name: str
    start_date: date | None = None
    end_date: date | None = None
    status: CampaignState = CampaignState.ACTIVE
    created_at: datetime = field(default_factory=utc_now)


@dataclass(eq=False, kw_only=True)
class CampaignInfluencer:
    """Association between one influencer and one campaign (unique per pair)."""

    id: UUID = field(default_factory=new_id)
    campaign_id: UUID
    influencer_id: UUID
    partnership_type: PartnershipType = PartnershipType.UNASSIGNED
    status: RelationshipStatus = RelationshipStatus.PROSPECT
    approval_status: ApprovalStatus | None = None
    notes: str | None = None
    created_at: datetime = field(default_factory=utc_now)
