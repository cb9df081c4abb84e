"""SQLAlchemy adapter package for creatorsync."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyAssociationRepository,
    SqlAlchemyCampaignRepository,
    SqlAlchemyInfluencerRepository,
    SqlAlchemyOperatorRepository,
)
from .unit_of_work import SqlAlchemyImportUnitOfWork, shutdown, startup

__all__ = [
    "SqlAlchemyAssociationRepository",
    "SqlAlchemyCampaignRepository",
    "SqlAlchemyImportUnitOfWork",
    "SqlAlchemyInfluencerRepository",
    "SqlAlchemyOperatorRepository",
    "create_all_tables",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
