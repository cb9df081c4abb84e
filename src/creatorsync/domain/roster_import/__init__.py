"""Influencer identity resolution and campaign import."""

from __future__ import annotations

from .associations import AssociationOutcome, AssociationResult, ensure_association
from .errors import ErrorKind, RecordError
from .joiner import (
    CandidateRecord,
    MappingEntry,
    RosterField,
    RosterRow,
    SecondaryRow,
    build_handle_mapping,
    build_shortcode_index,
    join_sources,
)
from .merge import MERGE_RULES, IncomingFields, MergeRule, build_new_influencer, plan_update
from .orchestrator import (
    ImportRequest,
    ImportSummary,
    OperatorDirectory,
    RecordOutcome,
    RecordResult,
    run_import,
)
from .references import ExtractedReference, ReferenceKind, extract_reference, extract_shortcode
from .resolution import IdentityResolution, ResolutionStatus, resolve_identity

__all__ = [
    "MERGE_RULES",
    "AssociationOutcome",
    "AssociationResult",
    "CandidateRecord",
    "ErrorKind",
    "ExtractedReference",
    "IdentityResolution",
    "ImportRequest",
    "ImportSummary",
    "IncomingFields",
    "MappingEntry",
    "MergeRule",
    "OperatorDirectory",
    "RecordError",
    "RecordOutcome",
    "RecordResult",
    "ReferenceKind",
    "ResolutionStatus",
    "RosterField",
    "RosterRow",
    "SecondaryRow",
    "build_handle_mapping",
    "build_new_influencer",
    "build_shortcode_index",
    "ensure_association",
    "extract_reference",
    "extract_shortcode",
    "join_sources",
    "plan_update",
    "resolve_identity",
    "run_import",
]
