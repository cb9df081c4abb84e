"""Application orchestration entry points."""

from __future__ import annotations

from contextlib import ExitStack
from dataclasses import dataclass, field
from datetime import date
from logging import getLogger
from typing import TYPE_CHECKING

from creatorsync.adapters.blob_storage import LocalBlobStore
from creatorsync.adapters.enrichment import ThrottledProfileEnricher
from creatorsync.adapters.instagram import InstagramProfileClient
from creatorsync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyImportUnitOfWork,
    is_started,
    startup,
)
from creatorsync.adapters.tabular import read_mapping, read_roster, read_secondary
from creatorsync.config import get_blob_store_config, get_import_config
from creatorsync.domain.model import Operator, Tier
from creatorsync.domain.ports import CampaignSpec
from creatorsync.domain.roster_import import (
    ImportRequest,
    ImportSummary,
    build_handle_mapping,
    build_shortcode_index,
    join_sources,
    run_import,
)

if TYPE_CHECKING:
    import threading
    from collections.abc import Mapping
    from pathlib import Path

    from creatorsync.config import ImportConfig
    from creatorsync.domain.ports import ProfileEnricher
    from creatorsync.domain.roster_import.orchestrator import UnitOfWorkFactory

log = getLogger(__name__)


@dataclass(slots=True)
class AvatarRefreshResult:
    """Outcome of back-filling avatars for stored influencers."""

    candidates: int = 0
    updated: int = 0
    failed: list[str] = field(default_factory=list)


def _default_unit_of_work_factory() -> UnitOfWorkFactory:
    if not is_started():
        startup()
    return SqlAlchemyImportUnitOfWork


def build_profile_enricher(config: ImportConfig | None = None) -> ThrottledProfileEnricher:
    """Wire the RapidAPI client, blob store and throttle from the environment."""

    effective = config or get_import_config()
    return ThrottledProfileEnricher(
        lookup_client=InstagramProfileClient(),
        blob_store=LocalBlobStore.from_config(get_blob_store_config()),
        interval_seconds=effective.enrichment_interval_seconds,
        lookup_timeout_seconds=effective.enrichment_timeout_seconds,
        avatar_timeout_seconds=effective.avatar_timeout_seconds,
    )


def import_roster(
    *,
    roster_path: Path,
    campaign: CampaignSpec,
    secondary_path: Path | None = None,
    mapping_path: Path | None = None,
    collection_campaigns: Mapping[str, CampaignSpec] | None = None,
    source_label: str | None = None,
    skip_declined: bool | None = None,
    tier: Tier | None = None,
    enrich: bool = True,
    enricher: ProfileEnricher | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    cancel_event: threading.Event | None = None,
    imported_on: date | None = None,
) -> ImportSummary:
    """Load the input files and run one import into ``campaign``.

    Unreadable inputs raise before the store is touched.
    """

    config = get_import_config()
    roster = read_roster(roster_path)
    secondary = read_secondary(secondary_path) if secondary_path is not None else []
    mapping = read_mapping(mapping_path) if mapping_path is not None else []

    candidates = join_sources(
        roster,
        shortcode_index=build_shortcode_index(secondary),
        handle_mapping=build_handle_mapping(mapping),
    )
    request = ImportRequest(
        source_label=source_label or roster_path.name,
        campaign=campaign,
        collection_campaigns=dict(collection_campaigns or {}),
        skip_declined=config.skip_declined if skip_declined is None else skip_declined,
        default_tier=tier or Tier(config.default_tier),
        imported_on=imported_on or date.today(),
    )
    effective_uow = unit_of_work_factory or _default_unit_of_work_factory()

    log.info(
        "Starting import: roster=%s, candidates=%s, campaign=%s, enrich=%s",
        roster_path,
        len(candidates),
        campaign.name,
        enrich,
    )
    with ExitStack() as stack:
        effective_enricher: ProfileEnricher | None = None
        if enrich:
            effective_enricher = enricher or stack.enter_context(build_profile_enricher(config))
        summary = run_import(
            candidates,
            request=request,
            unit_of_work_factory=effective_uow,
            enricher=effective_enricher,
            cancel_event=cancel_event,
        )
    return summary


def refresh_missing_avatars(
    *,
    limit: int | None = None,
    enricher: ProfileEnricher | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> AvatarRefreshResult:
    """Back-fill avatars (and zero follower counts) for influencers without a photo."""

    effective_uow = unit_of_work_factory or _default_unit_of_work_factory()
    with effective_uow() as uow:
        pending = [
            (influencer.id, influencer.handle)
            for influencer in uow.repositories.influencers.missing_avatars(limit=limit)
        ]

    result = AvatarRefreshResult(candidates=len(pending))
    log.info("Refreshing avatars for %s influencer(s)", result.candidates)
    with ExitStack() as stack:
        effective_enricher = enricher or stack.enter_context(build_profile_enricher())
        for influencer_id, handle in pending:
            enrichment = effective_enricher.enrich(handle)
            snapshot = enrichment.snapshot
            if snapshot is None or enrichment.avatar_url is None:
                reason = enrichment.avatar_error or str(enrichment.lookup.failure or "no avatar")
                result.failed.append(f"{handle}: {reason}")
                continue

            with effective_uow() as uow:
                influencer = uow.repositories.influencers.get(influencer_id)
                if influencer is None or influencer.avatar_url:
                    continue
                changes: dict[str, object] = {"avatar_url": enrichment.avatar_url}
                if influencer.follower_count == 0 and snapshot.follower_count > 0:
                    changes["follower_count"] = snapshot.follower_count
                uow.repositories.influencers.update(influencer, changes)
                uow.commit()
            result.updated += 1

    log.info(
        "Finished avatar refresh: candidates=%s, updated=%s, failed=%s",
        result.candidates,
        result.updated,
        len(result.failed),
    )
    return result


def add_operator(
    *,
    display_name: str,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Operator:
    name = display_name.strip()
    if not name:
        raise ValueError("Operator display name must not be blank")
    effective_uow = unit_of_work_factory or _default_unit_of_work_factory()
    operator = Operator(display_name=name)
    with effective_uow() as uow:
        uow.repositories.operators.add(operator)
        uow.commit()
    return operator
