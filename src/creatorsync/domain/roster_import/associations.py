"""Link influencers to campaigns at most once per pair."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from creatorsync.domain.model import CampaignInfluencer, PartnershipType
from creatorsync.domain.ports import DuplicateAssociationError

if TYPE_CHECKING:
    from creatorsync.domain.model import (
        ApprovalStatus,
        Campaign,
        Influencer,
        RelationshipStatus,
    )
    from creatorsync.domain.ports import ImportRepositories

log = getLogger(__name__)


class AssociationOutcome(StrEnum):
    CREATED = "created"
    ALREADY_LINKED = "already_linked"


@dataclass(frozen=True, slots=True)
class AssociationResult:
    outcome: AssociationOutcome
    association: CampaignInfluencer | None


def inherited_partnership_type(
    repositories: ImportRepositories,
    influencer: Influencer,
    explicit: PartnershipType,
) -> PartnershipType:
    """Explicit type wins; otherwise the most recent prior association, then the influencer."""

    if explicit is not PartnershipType.UNASSIGNED:
        return explicit
    previous = repositories.associations.most_recent_for(influencer.id)
    if previous is not None and previous.partnership_type is not PartnershipType.UNASSIGNED:
        return previous.partnership_type
    return influencer.partnership_type


def ensure_association(
    repositories: ImportRepositories,
    *,
    campaign: Campaign,
    influencer: Influencer,
    partnership_type: PartnershipType,
    status: RelationshipStatus,
    approval_status: ApprovalStatus | None = None,
    notes: str | None = None,
) -> AssociationResult:
    existing = repositories.associations.get(
        campaign_id=campaign.id, influencer_id=influencer.id
    )
    if existing is not None:
        return AssociationResult(AssociationOutcome.ALREADY_LINKED, existing)

    association = CampaignInfluencer(
        campaign_id=campaign.id,
        influencer_id=influencer.id,
        partnership_type=inherited_partnership_type(repositories, influencer, partnership_type),
        status=status,
        approval_status=approval_status,
        notes=notes,
    )
    try:
        repositories.associations.add(association)
    except DuplicateAssociationError:
        log.info(
            "Association %s/%s was created concurrently", campaign.name, influencer.handle
        )
        return AssociationResult(AssociationOutcome.ALREADY_LINKED, None)
    return AssociationResult(AssociationOutcome.CREATED, association)


__all__ = [
    "AssociationOutcome",
    "AssociationResult",
    "ensure_association",
    "inherited_partnership_type",
]
