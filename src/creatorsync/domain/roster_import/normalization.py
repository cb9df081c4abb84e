"""Field normalizers mapping free-text roster values onto canonical enums.

Every mapper is total: unknown input yields the documented fallback instead
of raising.
"""

from __future__ import annotations

import re
from typing import Final

from creatorsync.domain.model import (
    ApprovalStatus,
    GarmentSize,
    PartnershipType,
    RelationshipStatus,
    status_rank,
)

_PARTNERSHIP_ALIASES: Final[dict[str, PartnershipType]] = {
    "paid": PartnershipType.PAID,
    "gifted": PartnershipType.GIFTED_NO_ASK,
    "gifted no ask": PartnershipType.GIFTED_NO_ASK,
    "gifted (no ask)": PartnershipType.GIFTED_NO_ASK,
    "gifted soft ask": PartnershipType.GIFTED_SOFT_ASK,
    "gifted (soft ask)": PartnershipType.GIFTED_SOFT_ASK,
    "gifted deliverable ask": PartnershipType.GIFTED_DELIVERABLE_ASK,
    "gifted (deliverable ask)": PartnershipType.GIFTED_DELIVERABLE_ASK,
    "gifted recurring": PartnershipType.GIFTED_RECURRING,
    "gifted (recurring)": PartnershipType.GIFTED_RECURRING,
    "gifted (reccuring)": PartnershipType.GIFTED_RECURRING,
}

# checked in order after an exact alias miss
_PARTNERSHIP_FRAGMENTS: Final[tuple[tuple[str, PartnershipType], ...]] = (
    ("recurring", PartnershipType.GIFTED_RECURRING),
    ("reccuring", PartnershipType.GIFTED_RECURRING),
    ("no ask", PartnershipType.GIFTED_NO_ASK),
    ("soft ask", PartnershipType.GIFTED_SOFT_ASK),
    ("deliverable", PartnershipType.GIFTED_DELIVERABLE_ASK),
)

_STATUS_ALIASES: Final[dict[str, RelationshipStatus]] = {
    "prospect": RelationshipStatus.PROSPECT,
    "pending": RelationshipStatus.PROSPECT,
    "contacted": RelationshipStatus.CONTACTED,
    "email": RelationshipStatus.CONTACTED,
    "awaiting response": RelationshipStatus.CONTACTED,
    "response received": RelationshipStatus.CONTACTED,
    "followed up": RelationshipStatus.FOLLOWED_UP,
    "lead dead": RelationshipStatus.LEAD_DEAD,
    "creator wants paid": RelationshipStatus.CREATOR_WANTS_PAID,
    "order placed": RelationshipStatus.ORDER_PLACED,
    "place order": RelationshipStatus.ORDER_PLACED,
    "order delivered": RelationshipStatus.ORDER_DELIVERED,
    "delivered & done": RelationshipStatus.ORDER_DELIVERED,
    "order follow up sent": RelationshipStatus.ORDER_FOLLOW_UP_SENT,
    "order follow up two sent": RelationshipStatus.ORDER_FOLLOW_UP_TWO_SENT,
    "posted": RelationshipStatus.POSTED,
    "campaign closed": RelationshipStatus.POSTED,
}

_STATUS_SEPARATORS: Final = re.compile(r"[,\n]")

_SIZE_ALIASES: Final[dict[str, GarmentSize]] = {
    "xs": GarmentSize.XS,
    "x-small": GarmentSize.XS,
    "extra small": GarmentSize.XS,
    "s": GarmentSize.S,
    "small": GarmentSize.S,
    "m": GarmentSize.M,
    "medium": GarmentSize.M,
    "l": GarmentSize.L,
    "large": GarmentSize.L,
    "xl": GarmentSize.XL,
    "x-large": GarmentSize.XL,
    "extra large": GarmentSize.XL,
}


def _fold(value: str | None) -> str:
    if value is None:
        return ""
    return " ".join(value.split()).lower()


def clean_text(value: str | None) -> str | None:
    """Trim ``value``; blank strings become ``None``."""

    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def map_partnership_type(value: str | None) -> PartnershipType:
    folded = _fold(value)
    if not folded:
        return PartnershipType.UNASSIGNED
    exact = _PARTNERSHIP_ALIASES.get(folded)
    if exact is not None:
        return exact
    for fragment, partnership in _PARTNERSHIP_FRAGMENTS:
        if fragment in folded:
            return partnership
    return PartnershipType.UNASSIGNED


def status_tokens(value: str | None) -> list[RelationshipStatus]:
    """Return the recognised statuses in ``value`` in input order."""

    if not value:
        return []
    statuses: list[RelationshipStatus] = []
    for token in _STATUS_SEPARATORS.split(value):
        status = _STATUS_ALIASES.get(_fold(token))
        if status is not None:
            statuses.append(status)
    return statuses


def highest_status(statuses: list[RelationshipStatus]) -> RelationshipStatus | None:
    if not statuses:
        return None
    return max(statuses, key=status_rank)


def map_relationship_status(value: str | None) -> RelationshipStatus:
    """Collapse a (possibly comma-separated) status history to its most advanced state."""

    return highest_status(status_tokens(value)) or RelationshipStatus.PROSPECT


def map_approval_status(value: str | None) -> ApprovalStatus | None:
    folded = _fold(value)
    try:
        return ApprovalStatus(folded)
    except ValueError:
        return None


def map_garment_size(value: str | None) -> GarmentSize | None:
    return _SIZE_ALIASES.get(_fold(value))


__all__ = [
    "clean_text",
    "highest_status",
    "map_approval_status",
    "map_garment_size",
    "map_partnership_type",
    "map_relationship_status",
    "status_tokens",
]
