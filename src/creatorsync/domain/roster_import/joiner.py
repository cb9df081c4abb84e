"""Assemble one candidate record per subject from the run's tabular sources.

The roster is the primary source. A curated name -> reference mapping can
supply a usable reference where the roster only has a post link or nothing
at all, and a secondary scrape export resolves post references to their
author via the content shortcode.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from .normalization import clean_text
from .references import ExtractedReference, ReferenceKind, extract_reference, extract_shortcode

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

log = getLogger(__name__)


class RosterField(StrEnum):
    """Logical roster columns, independent of the header spelling in a file."""

    NAME = "name"
    REFERENCE = "reference"
    PARTNERSHIP = "partnership"
    STATUS = "status"
    APPROVAL = "approval"
    TOP_SIZE = "top_size"
    BOTTOMS_SIZE = "bottoms_size"
    EMAIL = "email"
    PHONE = "phone"
    MAILING_ADDRESS = "mailing_address"
    NOTES = "notes"
    ASSIGNEE = "assignee"
    COLLECTION = "collection"


class Provenance(StrEnum):
    ROSTER = "roster"
    MAPPING = "mapping"
    SECONDARY = "secondary"


@dataclass(frozen=True, slots=True)
class RosterRow:
    row_number: int
    fields: Mapping[RosterField, str]

    def get(self, key: RosterField) -> str | None:
        return clean_text(self.fields.get(key))


@dataclass(frozen=True, slots=True)
class SecondaryRow:
    """Row from a post scrape export: the post URL and its author."""

    url: str
    owner_handle: str | None = None
    owner_name: str | None = None


@dataclass(frozen=True, slots=True)
class MappingEntry:
    name: str
    reference: str


@dataclass(slots=True, kw_only=True)
class CandidateRecord:
    """Unified, pre-resolution view of one subject."""

    row_number: int | None
    raw_name: str | None
    raw_reference: str | None
    fields: Mapping[RosterField, str] = field(default_factory=dict)
    reference: ExtractedReference
    shortcode: str | None = None
    handle: str | None = None
    inferred_name: str | None = None
    needs_lookup: bool = False
    provenance: dict[str, Provenance] = field(default_factory=dict)

    def get(self, key: RosterField) -> str | None:
        return clean_text(self.fields.get(key))

    @property
    def label(self) -> str:
        return self.raw_name or self.raw_reference or f"row {self.row_number}"


def _fold_name(name: str) -> str:
    return " ".join(name.split()).casefold()


def build_shortcode_index(rows: Iterable[SecondaryRow]) -> dict[str, SecondaryRow]:
    """Key secondary rows by the shortcode in their own URL; the first row wins."""

    index: dict[str, SecondaryRow] = {}
    for row in rows:
        shortcode = extract_shortcode(row.url)
        if shortcode is None:
            continue
        if shortcode in index:
            log.debug("Duplicate secondary row for shortcode %s ignored", shortcode)
            continue
        index[shortcode] = row
    return index


def build_handle_mapping(entries: Iterable[MappingEntry]) -> dict[str, MappingEntry]:
    """Key mapping entries by case-folded name; the first entry for a name wins."""

    mapping: dict[str, MappingEntry] = {}
    for entry in entries:
        name = clean_text(entry.name)
        reference = clean_text(entry.reference)
        if name is None or reference is None:
            continue
        mapping.setdefault(_fold_name(name), MappingEntry(name=name, reference=reference))
    return mapping


def join_sources(
    roster: Iterable[RosterRow],
    *,
    shortcode_index: Mapping[str, SecondaryRow],
    handle_mapping: Mapping[str, MappingEntry],
) -> list[CandidateRecord]:
    """Produce candidate records for every roster row and unmatched mapping entry."""

    candidates: list[CandidateRecord] = []
    seen_names: set[str] = set()

    for row in roster:
        candidate = _candidate_from_roster(row, handle_mapping)
        if candidate.raw_name:
            seen_names.add(_fold_name(candidate.raw_name))
        candidates.append(_resolve_via_secondary(candidate, shortcode_index))

    for key, entry in handle_mapping.items():
        if key in seen_names:
            continue
        candidate = CandidateRecord(
            row_number=None,
            raw_name=entry.name,
            raw_reference=entry.reference,
            reference=extract_reference(entry.reference),
            provenance={"name": Provenance.MAPPING, "reference": Provenance.MAPPING},
        )
        candidates.append(_resolve_via_secondary(candidate, shortcode_index))

    return candidates


def _candidate_from_roster(
    row: RosterRow, handle_mapping: Mapping[str, MappingEntry]
) -> CandidateRecord:
    name = row.get(RosterField.NAME)
    raw_reference = row.get(RosterField.REFERENCE)
    reference = extract_reference(raw_reference)
    provenance = {key.value: Provenance.ROSTER for key in row.fields}

    if reference.kind is not ReferenceKind.HANDLE and name is not None:
        mapped = handle_mapping.get(_fold_name(name))
        if mapped is not None:
            raw_reference = mapped.reference
            reference = extract_reference(mapped.reference)
            provenance[RosterField.REFERENCE.value] = Provenance.MAPPING

    return CandidateRecord(
        row_number=row.row_number,
        raw_name=name,
        raw_reference=raw_reference,
        fields=row.fields,
        reference=reference,
        handle=reference.handle,
        provenance=provenance,
    )


def _resolve_via_secondary(
    candidate: CandidateRecord, shortcode_index: Mapping[str, SecondaryRow]
) -> CandidateRecord:
    reference = candidate.reference
    if reference.kind is ReferenceKind.HANDLE:
        candidate.handle = reference.handle
        return candidate
    if reference.kind is not ReferenceKind.POST_REFERENCE:
        return candidate

    candidate.shortcode = reference.shortcode
    match = shortcode_index.get(reference.shortcode or "")
    owner = extract_reference(match.owner_handle) if match is not None else None
    if owner is None or owner.kind is not ReferenceKind.HANDLE:
        candidate.needs_lookup = True
        return candidate

    candidate.handle = owner.handle
    candidate.provenance["handle"] = Provenance.SECONDARY
    owner_name = clean_text(match.owner_name) if match is not None else None
    if owner_name is not None:
        candidate.inferred_name = owner_name
        candidate.provenance["display_name"] = Provenance.SECONDARY
    return candidate


__all__ = [
    "CandidateRecord",
    "MappingEntry",
    "Provenance",
    "RosterField",
    "RosterRow",
    "SecondaryRow",
    "build_handle_mapping",
    "build_shortcode_index",
    "join_sources",
]
