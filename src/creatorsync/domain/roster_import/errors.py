"""Per-record failure taxonomy for roster imports."""

from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    VALIDATION = "validation"
    UNRESOLVABLE_IDENTITY = "unresolvable_identity"
    AMBIGUOUS_IDENTITY = "ambiguous_identity"
    ENRICHMENT_FAILURE = "enrichment_failure"
    STORAGE_FAILURE = "storage_failure"
    PERSISTENCE_FAILURE = "persistence_failure"


class RecordError(Exception):
    """Failure confined to a single candidate record."""

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AmbiguousIdentityError(RecordError):
    kind = ErrorKind.AMBIGUOUS_IDENTITY


class RecordPersistenceError(RecordError):
    kind = ErrorKind.PERSISTENCE_FAILURE
