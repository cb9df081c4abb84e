"""Public domain model surface."""

from __future__ import annotations

from creatorsync.domain.model.entities import (
    Campaign,
    CampaignInfluencer,
    Influencer,
    Operator,
    new_id,
    utc_now,
)
from creatorsync.domain.model.enums import (
    ApprovalStatus,
    CampaignState,
    GarmentSize,
    PartnershipType,
    RelationshipStatus,
    Tier,
    status_rank,
)

__all__ = [
    "ApprovalStatus",
    "Campaign",
    "CampaignInfluencer",
    "CampaignState",
    "GarmentSize",
    "Influencer",
    "Operator",
    "PartnershipType",
    "RelationshipStatus",
    "Tier",
    "new_id",
    "status_rank",
    "utc_now",
]
