"""Readers for the roster, secondary scrape export and handle mapping files.

Header names vary between exports; each logical field accepts a small set of
aliases, matched case-insensitively after trimming.
"""

from __future__ import annotations

import csv
from logging import getLogger
from typing import TYPE_CHECKING, Final

from creatorsync.config import ConfigurationError
from creatorsync.domain.roster_import import MappingEntry, RosterField, RosterRow, SecondaryRow

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence
    from pathlib import Path

log = getLogger(__name__)

ROSTER_ALIASES: Final[Mapping[RosterField, tuple[str, ...]]] = {
    RosterField.NAME: ("name", "full name"),
    RosterField.REFERENCE: (
        "ig",
        "instagram handle",
        "instagram",
        "instagram url",
        "handle",
    ),
    RosterField.PARTNERSHIP: ("partnership type",),
    RosterField.STATUS: ("comms status", "status"),
    RosterField.APPROVAL: ("approval status",),
    RosterField.TOP_SIZE: ("top size",),
    RosterField.BOTTOMS_SIZE: ("bottom size", "bottoms size"),
    RosterField.EMAIL: ("email", "email address"),
    RosterField.PHONE: ("phone number", "phone"),
    RosterField.MAILING_ADDRESS: ("shipping info", "mailing address", "address"),
    RosterField.NOTES: ("notes",),
    RosterField.ASSIGNEE: ("assignee", "owner"),
    RosterField.COLLECTION: ("collection",),
}
ROSTER_REQUIRED: Final = (RosterField.NAME, RosterField.REFERENCE)

SECONDARY_URL_ALIASES: Final = ("inputurl", "url", "posturl", "post url")
SECONDARY_HANDLE_ALIASES: Final = ("ownerusername", "username")
SECONDARY_NAME_ALIASES: Final = ("ownerfullname", "fullname")


class SourceLoadError(ConfigurationError):
    """Raised when an input file cannot be read or lacks required columns."""


def _normalize_header(header: str | None) -> str:
    return (header or "").replace("\ufeff", "").strip().lower()


def _find_column(headers: Sequence[str], aliases: Iterable[str]) -> str | None:
    normalized = {_normalize_header(header): header for header in headers}
    for alias in aliases:
        column = normalized.get(alias)
        if column is not None:
            return column
    return None


def _read_dict_rows(path: Path) -> tuple[list[str], list[dict[str, str]]]:
    try:
        with path.open(encoding="utf-8-sig", newline="") as handle:
            reader = csv.DictReader(handle)
            rows = list(reader)
            headers = list(reader.fieldnames or [])
    except (OSError, UnicodeDecodeError, csv.Error) as exc:
        raise SourceLoadError(f"Cannot read {path}: {exc}") from exc
    return headers, rows


def _cell(raw: Mapping[str, str | None], column: str | None) -> str | None:
    if column is None:
        return None
    return (raw.get(column) or "").strip() or None


def read_roster(path: Path) -> list[RosterRow]:
    headers, rows = _read_dict_rows(path)
    columns: dict[RosterField, str] = {}
    for field_name, aliases in ROSTER_ALIASES.items():
        column = _find_column(headers, aliases)
        if column is not None:
            columns[field_name] = column

    missing = [field_name.value for field_name in ROSTER_REQUIRED if field_name not in columns]
    if missing:
        raise SourceLoadError(f"{path} is missing required column(s): {', '.join(missing)}")

    roster: list[RosterRow] = []
    # header is line 1
    for row_number, raw in enumerate(rows, start=2):
        fields = {
            field_name: value
            for field_name, column in columns.items()
            if (value := (raw.get(column) or "").strip())
        }
        if not fields:
            continue
        roster.append(RosterRow(row_number=row_number, fields=fields))
    log.info("Loaded %d roster row(s) from %s", len(roster), path)
    return roster


def read_secondary(path: Path) -> list[SecondaryRow]:
    headers, rows = _read_dict_rows(path)
    url_column = _find_column(headers, SECONDARY_URL_ALIASES)
    handle_column = _find_column(headers, SECONDARY_HANDLE_ALIASES)
    name_column = _find_column(headers, SECONDARY_NAME_ALIASES)
    if url_column is None or handle_column is None:
        raise SourceLoadError(f"{path} needs a post URL column and an owner username column")

    secondary: list[SecondaryRow] = []
    for raw in rows:
        url = (raw.get(url_column) or "").strip()
        if not url:
            continue
        secondary.append(
            SecondaryRow(
                url=url,
                owner_handle=_cell(raw, handle_column),
                owner_name=_cell(raw, name_column),
            )
        )
    log.info("Loaded %d secondary row(s) from %s", len(secondary), path)
    return secondary


def read_mapping(path: Path) -> list[MappingEntry]:
    """Parse ``name<TAB>reference`` lines; blank or incomplete lines are ignored."""

    try:
        text = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceLoadError(f"Cannot read {path}: {exc}") from exc

    entries: list[MappingEntry] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        name, separator, reference = line.partition("\t")
        if not separator or not name.strip() or not reference.strip():
            log.debug("Ignoring mapping line without a tab-separated reference: %r", line)
            continue
        entries.append(MappingEntry(name=name.strip(), reference=reference.strip()))
    return entries


def write_mapping(path: Path, entries: Iterable[MappingEntry]) -> int:
    """Write ``entries`` in the mapping-file format and return the count written."""

    lines = [f"{entry.name}\t{entry.reference}" for entry in entries]
    path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
    return len(lines)
