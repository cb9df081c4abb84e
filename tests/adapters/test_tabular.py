from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from creatorsync.adapters.tabular import (
    SourceLoadError,
    read_mapping,
    read_roster,
    read_secondary,
    write_mapping,
)
from creatorsync.domain.roster_import import MappingEntry, RosterField

if TYPE_CHECKING:
    from pathlib import Path


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_read_roster_accepts_header_aliases_and_bom(tmp_path: Path) -> None:
    roster_csv = _write(
        tmp_path / "roster.csv",
        "\ufeffFull Name,Instagram Handle,Comms Status,Bottom Size,Owner\n"
        "Jane Doe,@janedoe,Contacted,m,Ann\n",
    )

    [row] = read_roster(roster_csv)

    assert row.row_number == 2
    assert row.get(RosterField.NAME) == "Jane Doe"
    assert row.get(RosterField.REFERENCE) == "@janedoe"
    assert row.get(RosterField.STATUS) == "Contacted"
    assert row.get(RosterField.BOTTOMS_SIZE) == "m"
    assert row.get(RosterField.ASSIGNEE) == "Ann"


def test_read_roster_skips_empty_rows_but_keeps_numbering(tmp_path: Path) -> None:
    roster_csv = _write(
        tmp_path / "roster.csv",
        "Name,IG\nJane Doe,@janedoe\n,\nSam Smith,@samsmith\n",
    )

    rows = read_roster(roster_csv)

    assert [row.row_number for row in rows] == [2, 4]


def test_read_roster_requires_name_and_reference_columns(tmp_path: Path) -> None:
    roster_csv = _write(tmp_path / "roster.csv", "Name,Email\nJane Doe,jane@example.com\n")

    with pytest.raises(SourceLoadError, match="reference"):
        read_roster(roster_csv)


def test_read_roster_reports_unreadable_file(tmp_path: Path) -> None:
    with pytest.raises(SourceLoadError, match="Cannot read"):
        read_roster(tmp_path / "missing.csv")


def test_read_secondary_maps_owner_columns(tmp_path: Path) -> None:
    secondary_csv = _write(
        tmp_path / "scrape.csv",
        "inputUrl,ownerUsername,ownerFullName\n"
        "https://www.instagram.com/p/ABC123/,janedoe,Jane Doe\n"
        ",ignored,Nobody\n"
        "https://www.instagram.com/p/XYZ789/,,\n",
    )

    rows = read_secondary(secondary_csv)

    assert [row.url for row in rows] == [
        "https://www.instagram.com/p/ABC123/",
        "https://www.instagram.com/p/XYZ789/",
    ]
    assert rows[0].owner_handle == "janedoe"
    assert rows[0].owner_name == "Jane Doe"
    assert rows[1].owner_handle is None


def test_read_secondary_requires_url_and_owner(tmp_path: Path) -> None:
    secondary_csv = _write(tmp_path / "scrape.csv", "inputUrl,likes\nhttps://x/p/1/,3\n")

    with pytest.raises(SourceLoadError):
        read_secondary(secondary_csv)


def test_read_mapping_ignores_incomplete_lines(tmp_path: Path) -> None:
    mapping_file = _write(
        tmp_path / "mapping.tsv",
        "Jane Doe\t@janedoe\n\nno tab here\nSam Smith\t \n Ann Lee \t annlee \n",
    )

    entries = read_mapping(mapping_file)

    assert entries == [
        MappingEntry(name="Jane Doe", reference="@janedoe"),
        MappingEntry(name="Ann Lee", reference="annlee"),
    ]


def test_write_mapping_output_is_readable(tmp_path: Path) -> None:
    target = tmp_path / "manual.tsv"
    entries = [MappingEntry(name="Jane Doe", reference="https://www.instagram.com/p/ABC123/")]

    written = write_mapping(target, entries)

    assert written == 1
    assert target.read_text(encoding="utf-8") == (
        "Jane Doe\thttps://www.instagram.com/p/ABC123/\n"
    )
    assert read_mapping(target) == entries
