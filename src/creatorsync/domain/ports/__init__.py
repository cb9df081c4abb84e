"""Domain port definitions for adapters."""

from __future__ import annotations

from .enrichment import (
    EnrichmentResult,
    LookupFailure,
    ProfileEnricher,
    ProfileLookupResult,
    ProfileSnapshot,
)
from .persistence import (
    AssociationRepository,
    CampaignRepository,
    CampaignSpec,
    DuplicateAssociationError,
    DuplicateHandleError,
    InfluencerRepository,
    OperatorRepository,
    PersistenceError,
    Repository,
)
from .storage import BlobStore, BlobStoreError
from .unit_of_work import (
    ImportRepositories,
    ImportUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "AssociationRepository",
    "BlobStore",
    "BlobStoreError",
    "CampaignRepository",
    "CampaignSpec",
    "DuplicateAssociationError",
    "DuplicateHandleError",
    "EnrichmentResult",
    "ImportRepositories",
    "ImportUnitOfWork",
    "InfluencerRepository",
    "LookupFailure",
    "OperatorRepository",
    "PersistenceError",
    "ProfileEnricher",
    "ProfileLookupResult",
    "ProfileSnapshot",
    "Repository",
    "RepositoryCollection",
    "UnitOfWork",
]
