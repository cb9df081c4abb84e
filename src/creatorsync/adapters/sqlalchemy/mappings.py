"""SQLAlchemy mapping metadata for the creatorsync domain model."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    func,
    orm,
)
from sqlalchemy.orm import configure_mappers

from creatorsync.domain.model import (
    ApprovalStatus,
    Campaign,
    CampaignInfluencer,
    CampaignState,
    GarmentSize,
    Influencer,
    Operator,
    PartnershipType,
    RelationshipStatus,
    Tier,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

operator_table = Table(
    "operator",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("display_name", String, nullable=False),
)

influencer_table = Table(
    "influencer",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("handle", String, nullable=False),
    Column("display_name", String, nullable=False),
    Column("avatar_url", String, nullable=True),
    Column("follower_count", Integer, nullable=False, default=0),
    Column("email", String, nullable=True),
    Column("phone", String, nullable=True),
    Column("mailing_address", Text, nullable=True),
    Column("partnership_type", Enum(PartnershipType, native_enum=False), nullable=False),
    Column("relationship_status", Enum(RelationshipStatus, native_enum=False), nullable=False),
    Column("tier", Enum(Tier, native_enum=False), nullable=False),
    Column("top_size", Enum(GarmentSize, native_enum=False), nullable=True),
    Column("bottoms_size", Enum(GarmentSize, native_enum=False), nullable=True),
    Column("notes", Text, nullable=True),
    Column(
        "owner_id",
        UUIDColumnType,
        ForeignKey("operator.id", ondelete="SET NULL"),
        nullable=True,
    ),
    Column("created_at", UTCDateTime(), nullable=False),
)

Index(
    "uq_influencer_handle_lower",
    func.lower(influencer_table.c.handle),
    unique=True,
)

campaign_table = Table(
    "campaign",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name", String, nullable=False, unique=True),
    Column("start_date", Date, nullable=True),
    Column("end_date", Date, nullable=True),
    Column("status", Enum(CampaignState, native_enum=False), nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
)

campaign_influencer_table = Table(
    "campaign_influencer",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "campaign_id",
        UUIDColumnType,
        ForeignKey("campaign.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "influencer_id",
        UUIDColumnType,
        ForeignKey("influencer.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("partnership_type", Enum(PartnershipType, native_enum=False), nullable=False),
    Column("status", Enum(RelationshipStatus, native_enum=False), nullable=False),
    Column("approval_status", Enum(ApprovalStatus, native_enum=False), nullable=True),
    Column("notes", Text, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    UniqueConstraint("campaign_id", "influencer_id"),
    Index("ix_campaign_influencer_influencer_created", "influencer_id", "created_at"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(Operator, operator_table)
    mapper_registry.map_imperatively(Influencer, influencer_table)
    mapper_registry.map_imperatively(Campaign, campaign_table)
    mapper_registry.map_imperatively(CampaignInfluencer, campaign_influencer_table)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
