"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class PartnershipType(StrEnum):
    UNASSIGNED = "unassigned"
    PAID = "paid"
    GIFTED_NO_ASK = "gifted_no_ask"
    GIFTED_SOFT_ASK = "gifted_soft_ask"
    GIFTED_DELIVERABLE_ASK = "gifted_deliverable_ask"
    GIFTED_RECURRING = "gifted_recurring"


class RelationshipStatus(StrEnum):
    """Outreach progression, declared from earliest to most advanced.

    Declaration order is the ranking used everywhere a status must be
    compared; see ``status_rank``.
    """

    PROSPECT = "prospect"
    CONTACTED = "contacted"
    FOLLOWED_UP = "followed_up"
    LEAD_DEAD = "lead_dead"
    CREATOR_WANTS_PAID = "creator_wants_paid"
    ORDER_PLACED = "order_placed"
    ORDER_DELIVERED = "order_delivered"
    ORDER_FOLLOW_UP_SENT = "order_follow_up_sent"
    ORDER_FOLLOW_UP_TWO_SENT = "order_follow_up_two_sent"
    POSTED = "posted"


_STATUS_RANKS: dict[RelationshipStatus, int] = {
    status: rank for rank, status in enumerate(RelationshipStatus)
}


def status_rank(status: RelationshipStatus | str | None) -> int:
    """Return the progression rank of ``status``; unknown values rank below prospect."""

    if status is None:
        return -1
    try:
        return _STATUS_RANKS[RelationshipStatus(status)]
    except ValueError:
        return -1


class ApprovalStatus(StrEnum):
    APPROVED = "approved"
    PENDING = "pending"
    DECLINED = "declined"


class GarmentSize(StrEnum):
    XS = "XS"
    S = "S"
    M = "M"
    L = "L"
    XL = "XL"


class Tier(StrEnum):
    A = "A"
    B = "B"
    C = "C"


class CampaignState(StrEnum):
    ACTIVE = "active"
    COMPLETED = "completed"
