from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from creatorsync.app import AvatarRefreshResult
from creatorsync.domain.model import Operator, Tier
from creatorsync.domain.ports import CampaignSpec
from creatorsync.domain.roster_import import ImportSummary, RecordOutcome, RecordResult
from creatorsync.ui import cli as cli_module

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture(autouse=True)
def reset_cancel_flag() -> Iterator[None]:
    cli_module._CANCEL.clear()  # noqa: SLF001  # type: ignore[reportPrivateUsage]
    yield
    cli_module._CANCEL.clear()  # noqa: SLF001  # type: ignore[reportPrivateUsage]


def _capture_import(
    monkeypatch: pytest.MonkeyPatch, summary: ImportSummary | None = None
) -> dict[str, object]:
    captured: dict[str, object] = {}

    def fake_import(**kwargs: object) -> ImportSummary:
        captured.update(kwargs)
        return summary or ImportSummary()

    monkeypatch.setattr(cli_module, "import_roster", fake_import)
    return captured


def test_import_command_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _capture_import(monkeypatch)

    cli_module.main(["import", "roster.csv", "--campaign", "Jan 26"])

    assert captured["roster_path"] == Path("roster.csv")
    assert captured["campaign"] == CampaignSpec(name="Jan 26")
    assert captured["collection_campaigns"] == {}
    assert captured["skip_declined"] is None
    assert captured["tier"] is None
    assert captured["enrich"] is True
    cancel_event = cli_module._CANCEL  # noqa: SLF001  # type: ignore[reportPrivateUsage]
    assert captured["cancel_event"] is cancel_event


def test_import_command_with_flags(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _capture_import(monkeypatch)

    cli_module.main(
        [
            "import",
            "roster.csv",
            "--campaign",
            "Jan 26",
            "--start",
            "2026-01-01",
            "--end",
            "2026-01-31",
            "--secondary",
            "scrape.csv",
            "--mapping",
            "mapping.tsv",
            "--collection-campaign",
            "Spring Drop=Spring 26",
            "--skip-declined",
            "--tier",
            "A",
            "--no-enrich",
        ]
    )

    campaign = CampaignSpec(name="Jan 26", start_date=date(2026, 1, 1), end_date=date(2026, 1, 31))
    assert captured["campaign"] == campaign
    assert captured["secondary_path"] == Path("scrape.csv")
    assert captured["mapping_path"] == Path("mapping.tsv")
    assert captured["collection_campaigns"] == {
        "Spring Drop": CampaignSpec(
            name="Spring 26", start_date=date(2026, 1, 1), end_date=date(2026, 1, 31)
        )
    }
    assert captured["skip_declined"] is True
    assert captured["tier"] is Tier.A
    assert captured["enrich"] is False


@pytest.mark.parametrize(
    "extra",
    [
        ["--start", "not-a-date"],
        ["--start", "2026-02-01", "--end", "2026-01-01"],
        ["--collection-campaign", "missing-separator"],
    ],
)
def test_import_command_validation_errors_exit_2(
    monkeypatch: pytest.MonkeyPatch, extra: list[str]
) -> None:
    _capture_import(monkeypatch)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["import", "roster.csv", "--campaign", "Jan 26", *extra])

    assert excinfo.value.code == 2


def test_import_command_writes_manual_lookups(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    summary = ImportSummary()
    summary.record(
        RecordResult(
            row_number=5,
            name="Mystery Poster",
            reference="https://www.instagram.com/p/ZZZ999/ (see DMs)",
            outcome=RecordOutcome.NEEDS_MANUAL_LOOKUP,
        )
    )
    _capture_import(monkeypatch, summary)
    target = tmp_path / "manual.tsv"

    cli_module.main(
        ["import", "roster.csv", "--campaign", "Jan 26", "--manual-lookup-out", str(target)]
    )

    assert target.read_text(encoding="utf-8") == (
        "Mystery Poster\thttps://www.instagram.com/p/ZZZ999/\n"
    )


def test_import_command_prints_json(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _capture_import(monkeypatch)

    cli_module.main(["import", "roster.csv", "--campaign", "Jan 26", "--json"])

    assert '"created": 0' in capsys.readouterr().out


def test_fatal_errors_exit_1(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken_import(**_: object) -> ImportSummary:
        raise RuntimeError("database is locked")

    monkeypatch.setattr(cli_module, "import_roster", broken_import)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["import", "roster.csv", "--campaign", "Jan 26"])

    assert excinfo.value.code == 1


def test_refresh_avatars_passes_limit(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_refresh(**kwargs: object) -> AvatarRefreshResult:
        captured.update(kwargs)
        return AvatarRefreshResult(candidates=0)

    monkeypatch.setattr(cli_module, "refresh_missing_avatars", fake_refresh)

    cli_module.main(["refresh-avatars", "--limit", "25"])

    assert captured == {"limit": 25}


def test_operator_add(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_add(**kwargs: object) -> Operator:
        captured.update(kwargs)
        return Operator(display_name="Ann Lee")

    monkeypatch.setattr(cli_module, "add_operator", fake_add)

    cli_module.main(["operator", "add", "--display-name", "Ann Lee"])

    assert captured == {"display_name": "Ann Lee"}


def test_sigint_handler_cancels_then_exits() -> None:
    cli_module.sigint_handler(2, None)
    assert cli_module._CANCEL.is_set()  # noqa: SLF001  # type: ignore[reportPrivateUsage]

    with pytest.raises(SystemExit) as excinfo:
        cli_module.sigint_handler(2, None)

    assert excinfo.value.code == 0
