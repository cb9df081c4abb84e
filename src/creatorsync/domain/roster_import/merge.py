"""Field-level merge policy for roster imports.

Updates never erase or regress stored data: contact fields and sizes are only
filled when blank, an assigned partnership type is never replaced by
``unassigned`` and relationship status only moves forward. The per-field
policy lives in ``MERGE_RULES``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Final

from creatorsync.domain.model import (
    Influencer,
    PartnershipType,
    RelationshipStatus,
    Tier,
    status_rank,
)

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import date
    from uuid import UUID

    from creatorsync.domain.model import GarmentSize
    from creatorsync.domain.ports import ProfileSnapshot


class MergeRule(StrEnum):
    FILL_BLANK = "fill_blank"
    ASSIGNED_ONLY = "assigned_only"
    MONOTONIC_STATUS = "monotonic_status"


MERGE_RULES: Final[Mapping[str, MergeRule]] = {
    "email": MergeRule.FILL_BLANK,
    "phone": MergeRule.FILL_BLANK,
    "mailing_address": MergeRule.FILL_BLANK,
    "top_size": MergeRule.FILL_BLANK,
    "bottoms_size": MergeRule.FILL_BLANK,
    "owner_id": MergeRule.FILL_BLANK,
    "partnership_type": MergeRule.ASSIGNED_ONLY,
    "relationship_status": MergeRule.MONOTONIC_STATUS,
}


@dataclass(frozen=True, slots=True, kw_only=True)
class IncomingFields:
    """Normalized values carried by one candidate row."""

    email: str | None = None
    phone: str | None = None
    mailing_address: str | None = None
    top_size: GarmentSize | None = None
    bottoms_size: GarmentSize | None = None
    owner_id: UUID | None = None
    partnership_type: PartnershipType = PartnershipType.UNASSIGNED
    relationship_status: RelationshipStatus = RelationshipStatus.PROSPECT
    notes: str | None = None


def _is_blank(value: object) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def _should_apply(rule: MergeRule, current: object, incoming: object) -> bool:
    if _is_blank(incoming):
        return False
    match rule:
        case MergeRule.FILL_BLANK:
            return _is_blank(current)
        case MergeRule.ASSIGNED_ONLY:
            return incoming != PartnershipType.UNASSIGNED and incoming != current
        case MergeRule.MONOTONIC_STATUS:
            return status_rank(incoming) > status_rank(current)  # type: ignore[arg-type]


def plan_update(existing: Influencer, incoming: IncomingFields) -> dict[str, object]:
    """Return the changes to apply to ``existing``; an empty dict means no change."""

    changes: dict[str, object] = {}
    for field_name, rule in MERGE_RULES.items():
        current = getattr(existing, field_name)
        value = getattr(incoming, field_name)
        if _should_apply(rule, current, value):
            changes[field_name] = value
    return changes


def apply_update(influencer: Influencer, changes: Mapping[str, object]) -> None:
    for field_name, value in changes.items():
        if field_name not in MERGE_RULES:
            raise KeyError(f"No merge rule for field {field_name!r}")
        setattr(influencer, field_name, value)


def provenance_note(source_label: str, imported_on: date) -> str:
    return f"Imported from {source_label} on {imported_on.isoformat()}"


def build_new_influencer(
    incoming: IncomingFields,
    *,
    handle: str,
    snapshot: ProfileSnapshot | None,
    avatar_url: str | None,
    fallback_name: str,
    source_label: str,
    imported_on: date,
    tier: Tier = Tier.C,
) -> Influencer:
    """Build the full record for a handle that is not yet stored."""

    display_name = fallback_name
    follower_count = 0
    if snapshot is not None:
        display_name = snapshot.display_name or fallback_name
        follower_count = max(snapshot.follower_count, 0)

    influencer = Influencer(
        handle=handle,
        display_name=display_name,
        avatar_url=avatar_url,
        follower_count=follower_count,
        email=incoming.email,
        phone=incoming.phone,
        mailing_address=incoming.mailing_address,
        partnership_type=incoming.partnership_type,
        relationship_status=incoming.relationship_status,
        tier=tier,
        top_size=incoming.top_size,
        bottoms_size=incoming.bottoms_size,
        notes=incoming.notes,
        owner_id=incoming.owner_id,
    )
    influencer.append_note(provenance_note(source_label, imported_on))
    return influencer


__all__ = [
    "MERGE_RULES",
    "IncomingFields",
    "MergeRule",
    "apply_update",
    "build_new_influencer",
    "plan_update",
    "provenance_note",
]
