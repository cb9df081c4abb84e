from __future__ import annotations

import argparse
import json
import logging
import sys
import threading
from datetime import date
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from creatorsync.adapters.tabular import write_mapping
from creatorsync.app import add_operator, import_roster, refresh_missing_avatars
from creatorsync.config import ConfigurationError, configure_logging
from creatorsync.domain.model import Tier
from creatorsync.domain.ports import CampaignSpec
from creatorsync.domain.roster_import import MappingEntry, extract_reference

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from creatorsync.domain.roster_import import ImportSummary

log = logging.getLogger(__name__)

_CANCEL = threading.Event()


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import influencer rosters into campaigns")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    importer = subparsers.add_parser("import", help="Import a roster export into a campaign")
    importer.add_argument("roster", type=Path, help="Roster CSV export")
    importer.add_argument(
        "--campaign",
        type=str,
        required=True,
        help="Target campaign name (created when missing)",
    )
    importer.add_argument(
        "--secondary",
        type=Path,
        help="Post scrape CSV used to resolve post links to their author",
    )
    importer.add_argument(
        "--mapping",
        type=Path,
        help="Tab-separated name to profile reference file",
    )
    importer.add_argument("--start", type=str, help="Campaign start date (YYYY-MM-DD)")
    importer.add_argument("--end", type=str, help="Campaign end date (YYYY-MM-DD)")
    importer.add_argument(
        "--collection-campaign",
        action="append",
        default=[],
        metavar="COLLECTION=CAMPAIGN",
        help="Route rows of a collection to another campaign (repeatable)",
    )
    importer.add_argument(
        "--source-label",
        type=str,
        help="Label recorded in the import note (defaults to the roster file name)",
    )
    importer.add_argument(
        "--skip-declined",
        action="store_true",
        default=None,
        help="Skip rows whose approval status is declined",
    )
    importer.add_argument(
        "--tier",
        type=str,
        choices=[tier.value for tier in Tier],
        help="Tier assigned to newly created influencers",
    )
    importer.add_argument(
        "--no-enrich",
        action="store_true",
        help="Do not look up profiles for new influencers",
    )
    importer.add_argument("--json", action="store_true", help="Print the summary as JSON")
    importer.add_argument(
        "--manual-lookup-out",
        type=Path,
        help="Write rows needing a manual lookup as name<TAB>url lines",
    )

    refresh = subparsers.add_parser(
        "refresh-avatars",
        help="Fetch profile photos for influencers without one",
    )
    refresh.add_argument(
        "--limit",
        type=int,
        help="Maximum number of influencers to refresh",
    )

    operator = subparsers.add_parser("operator", help="Operator management commands")
    operator_sub = operator.add_subparsers(dest="operator_command", required=True)
    operator_add = operator_sub.add_parser("add", help="Add an operator")
    operator_add.add_argument(
        "--display-name",
        type=str,
        required=True,
        help="Full name used to match the roster assignee column",
    )

    return parser.parse_args(list(argv))


def _parse_date(value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid date: {value}") from exc


def _campaign_spec(args: argparse.Namespace) -> CampaignSpec:
    name = args.campaign.strip()
    if not name:
        raise ValueError("Campaign name must not be blank")
    start = _parse_date(args.start)
    end = _parse_date(args.end)
    if start and end and start > end:
        raise ValueError("Campaign start must be before end")
    return CampaignSpec(name=name, start_date=start, end_date=end)


def _collection_campaigns(values: Sequence[str], default: CampaignSpec) -> dict[str, CampaignSpec]:
    routes: dict[str, CampaignSpec] = {}
    for value in values:
        collection, separator, campaign = value.partition("=")
        if not separator or not collection.strip() or not campaign.strip():
            raise ValueError(f"Expected COLLECTION=CAMPAIGN, got {value!r}")
        routes[collection.strip()] = CampaignSpec(
            name=campaign.strip(),
            start_date=default.start_date,
            end_date=default.end_date,
        )
    return routes


def _print_summary(summary: ImportSummary, *, as_json: bool) -> None:
    if as_json:
        print(json.dumps(summary.to_dict(), indent=2, default=str))  # noqa: T201
        return
    log.info(
        "Import summary: created=%s, updated=%s, unchanged=%s, skipped_no_handle=%s, "
        "skipped_no_name=%s, skipped_declined=%s, associations_created=%s, "
        "associations_existing=%s, errors=%s, needs_manual_lookup=%s",
        summary.created,
        summary.updated,
        summary.unchanged,
        summary.skipped_no_handle,
        summary.skipped_no_name,
        summary.skipped_declined,
        summary.associations_created,
        summary.associations_existing,
        len(summary.errors),
        len(summary.needs_manual_lookup),
    )
    for error in summary.errors:
        log.warning("  %s (%s): %s", error.name, error.error_kind, error.message)
    for item in summary.needs_manual_lookup:
        log.warning("  needs lookup: %s %s", item.name, item.reference)
    for warning in summary.warnings:
        log.warning("  %s", warning)
    if summary.cancelled:
        log.warning("Run cancelled with %s record(s) not processed", summary.not_processed)


def _write_manual_lookups(path: Path, summary: ImportSummary) -> None:
    entries = [
        MappingEntry(name=item.name or "", reference=extract_reference(item.reference).url)
        for item in summary.needs_manual_lookup
        if item.reference
    ]
    count = write_mapping(path, entries)
    log.info("Wrote %s manual lookup(s) to %s", count, path)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.verbose:
            configure_logging(level=logging.DEBUG, force=True)
        campaign: CampaignSpec | None = None
        routes: dict[str, CampaignSpec] = {}
        if parsed_args.command == "import":
            campaign = _campaign_spec(parsed_args)
            routes = _collection_campaigns(parsed_args.collection_campaign, campaign)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "import" and campaign is not None:
            summary = import_roster(
                roster_path=parsed_args.roster,
                campaign=campaign,
                secondary_path=parsed_args.secondary,
                mapping_path=parsed_args.mapping,
                collection_campaigns=routes,
                source_label=parsed_args.source_label,
                skip_declined=parsed_args.skip_declined,
                tier=Tier(parsed_args.tier) if parsed_args.tier else None,
                enrich=not parsed_args.no_enrich,
                cancel_event=_CANCEL,
            )
            _print_summary(summary, as_json=parsed_args.json)
            if parsed_args.manual_lookup_out is not None:
                _write_manual_lookups(parsed_args.manual_lookup_out, summary)
        elif parsed_args.command == "refresh-avatars":
            result = refresh_missing_avatars(limit=parsed_args.limit)
            log.info(
                "Avatar refresh finished: candidates=%s, updated=%s, failed=%s",
                result.candidates,
                result.updated,
                len(result.failed),
            )
        elif parsed_args.command == "operator" and parsed_args.operator_command == "add":
            operator = add_operator(display_name=parsed_args.display_name)
            log.info("Created operator %s (%s)", operator.display_name, operator.id)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during import")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Stop after the record in progress; a second Ctrl+C exits immediately."""
    if _CANCEL.is_set():
        log.info("Closed by user (Ctrl+C)")
        sys.exit(0)
    log.info("Cancelling after the current record (Ctrl+C again to exit)")
    _CANCEL.set()


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
