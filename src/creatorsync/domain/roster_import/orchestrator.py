"""Drive one roster import run from joined candidates to a run summary.

Records are processed strictly one after another. Each record resolves its
handle, enriches brand-new handles outside any transaction, then performs all
writes for that record inside its own unit of work. A failure is recorded
against the record and the run continues with the next one.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Any

from creatorsync.domain.model import ApprovalStatus, Tier
from creatorsync.domain.ports import CampaignSpec, DuplicateHandleError, PersistenceError

from .associations import AssociationOutcome, ensure_association
from .errors import AmbiguousIdentityError, ErrorKind, RecordError, RecordPersistenceError
from .joiner import RosterField
from .merge import IncomingFields, apply_update, build_new_influencer, plan_update
from .normalization import (
    clean_text,
    map_approval_status,
    map_garment_size,
    map_partnership_type,
    map_relationship_status,
)
from .resolution import ResolutionStatus, resolve_identity

if TYPE_CHECKING:
    import threading
    from collections.abc import Callable, Iterable, Mapping, Sequence
    from uuid import UUID

    from creatorsync.domain.model import Campaign, Influencer, Operator
    from creatorsync.domain.ports import EnrichmentResult, ImportUnitOfWork, ProfileEnricher

    from .joiner import CandidateRecord

log = getLogger(__name__)


class RecordOutcome(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    SKIPPED_NO_NAME = "skipped_no_name"
    SKIPPED_NO_HANDLE = "skipped_no_handle"
    SKIPPED_DECLINED = "skipped_declined"
    NEEDS_MANUAL_LOOKUP = "needs_manual_lookup"
    ERROR = "error"


@dataclass(frozen=True, slots=True, kw_only=True)
class ImportRequest:
    """Parameters of one import run."""

    source_label: str
    campaign: CampaignSpec
    collection_campaigns: Mapping[str, CampaignSpec] = field(default_factory=dict)
    skip_declined: bool = False
    default_tier: Tier = Tier.C
    imported_on: date = field(default_factory=date.today)

    def campaign_for(self, collection: str | None) -> CampaignSpec:
        if collection:
            folded = collection.strip().casefold()
            for name, spec in self.collection_campaigns.items():
                if name.strip().casefold() == folded:
                    return spec
        return self.campaign

    def all_campaigns(self) -> list[CampaignSpec]:
        specs = [self.campaign]
        for spec in self.collection_campaigns.values():
            if spec not in specs:
                specs.append(spec)
        return specs


@dataclass(slots=True, kw_only=True)
class RecordResult:
    row_number: int | None
    name: str | None
    reference: str | None
    outcome: RecordOutcome
    handle: str | None = None
    shortcode: str | None = None
    campaign: str | None = None
    association: AssociationOutcome | None = None
    changed_fields: list[str] = field(default_factory=list)
    error_kind: ErrorKind | None = None
    message: str | None = None


@dataclass(slots=True)
class ImportSummary:
    """Aggregated outcome of a run; every candidate maps to exactly one record result."""

    created: int = 0
    updated: int = 0
    unchanged: int = 0
    skipped_no_handle: int = 0
    skipped_no_name: int = 0
    skipped_declined: int = 0
    associations_created: int = 0
    associations_existing: int = 0
    errors: list[RecordResult] = field(default_factory=list)
    needs_manual_lookup: list[RecordResult] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    records: list[RecordResult] = field(default_factory=list)
    cancelled: bool = False
    not_processed: int = 0

    def record(self, result: RecordResult) -> None:
        self.records.append(result)
        match result.outcome:
            case RecordOutcome.CREATED:
                self.created += 1
            case RecordOutcome.UPDATED:
                self.updated += 1
            case RecordOutcome.UNCHANGED:
                self.unchanged += 1
            case RecordOutcome.SKIPPED_NO_NAME:
                self.skipped_no_name += 1
            case RecordOutcome.SKIPPED_NO_HANDLE:
                self.skipped_no_handle += 1
            case RecordOutcome.SKIPPED_DECLINED:
                self.skipped_declined += 1
            case RecordOutcome.NEEDS_MANUAL_LOOKUP:
                self.needs_manual_lookup.append(result)
            case RecordOutcome.ERROR:
                self.errors.append(result)
        if result.association is AssociationOutcome.CREATED:
            self.associations_created += 1
        elif result.association is AssociationOutcome.ALREADY_LINKED:
            self.associations_existing += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "created": self.created,
            "updated": self.updated,
            "unchanged": self.unchanged,
            "skipped_no_handle": self.skipped_no_handle,
            "skipped_no_name": self.skipped_no_name,
            "skipped_declined": self.skipped_declined,
            "associations_created": self.associations_created,
            "associations_existing": self.associations_existing,
            "errors": [asdict(item) for item in self.errors],
            "needs_manual_lookup": [asdict(item) for item in self.needs_manual_lookup],
            "warnings": list(self.warnings),
            "cancelled": self.cancelled,
            "not_processed": self.not_processed,
        }


class OperatorDirectory:
    """Resolve free-text assignee names to operator ids."""

    def __init__(self, operators: Iterable[Operator]) -> None:
        self._by_name: dict[str, UUID] = {}
        self._by_first_name: dict[str, UUID] = {}
        for operator in operators:
            name = operator.display_name.strip().casefold()
            if not name:
                continue
            self._by_name.setdefault(name, operator.id)
            self._by_first_name.setdefault(name.split()[0], operator.id)

    def resolve(self, assignee: str | None) -> UUID | None:
        if not assignee:
            return None
        folded = " ".join(assignee.split()).casefold()
        if not folded:
            return None
        match = self._by_name.get(folded)
        if match is not None:
            return match
        return self._by_first_name.get(folded.split()[0])


type UnitOfWorkFactory = Callable[[], ImportUnitOfWork]


def run_import(
    candidates: Sequence[CandidateRecord],
    *,
    request: ImportRequest,
    unit_of_work_factory: UnitOfWorkFactory,
    enricher: ProfileEnricher | None = None,
    cancel_event: threading.Event | None = None,
) -> ImportSummary:
    """Process ``candidates`` in order and return the run summary.

    Campaigns and operators are resolved once up front; failures there abort
    the run before any record is touched.
    """

    summary = ImportSummary()
    with unit_of_work_factory() as uow:
        campaigns = {
            spec: uow.repositories.campaigns.find_or_create(spec)
            for spec in request.all_campaigns()
        }
        directory = OperatorDirectory(uow.repositories.operators.list_all())
        uow.commit()

    processor = _RecordProcessor(
        request=request,
        unit_of_work_factory=unit_of_work_factory,
        enricher=enricher,
        campaigns=campaigns,
        directory=directory,
        summary=summary,
    )

    for index, candidate in enumerate(candidates):
        if cancel_event is not None and cancel_event.is_set():
            summary.cancelled = True
            summary.not_processed = len(candidates) - index
            log.warning("Import cancelled; %d record(s) not processed", summary.not_processed)
            break
        result = processor.process(candidate)
        summary.record(result)
        log.info("[%d/%d] %s -> %s", index + 1, len(candidates), candidate.label, result.outcome)

    log.info(
        "Import finished: created=%d updated=%d unchanged=%d errors=%d manual_lookup=%d",
        summary.created,
        summary.updated,
        summary.unchanged,
        len(summary.errors),
        len(summary.needs_manual_lookup),
    )
    return summary


@dataclass(slots=True, kw_only=True)
class _RecordProcessor:
    request: ImportRequest
    unit_of_work_factory: UnitOfWorkFactory
    enricher: ProfileEnricher | None
    campaigns: dict[CampaignSpec, Campaign]
    directory: OperatorDirectory
    summary: ImportSummary

    def process(self, candidate: CandidateRecord) -> RecordResult:
        result = RecordResult(
            row_number=candidate.row_number,
            name=candidate.raw_name,
            reference=candidate.raw_reference,
            outcome=RecordOutcome.ERROR,
            handle=candidate.handle,
            shortcode=candidate.shortcode,
        )

        if candidate.raw_name is None:
            result.outcome = RecordOutcome.SKIPPED_NO_NAME
            result.error_kind = ErrorKind.VALIDATION
            result.message = "missing name"
            return result
        if candidate.needs_lookup:
            result.outcome = RecordOutcome.NEEDS_MANUAL_LOOKUP
            result.error_kind = ErrorKind.UNRESOLVABLE_IDENTITY
            result.message = f"no secondary match for shortcode {candidate.shortcode}"
            return result
        if candidate.handle is None:
            result.outcome = RecordOutcome.SKIPPED_NO_HANDLE
            result.error_kind = ErrorKind.UNRESOLVABLE_IDENTITY
            result.message = "reference does not resolve to a handle"
            return result

        approval = map_approval_status(candidate.get(RosterField.APPROVAL))
        if self.request.skip_declined and approval is ApprovalStatus.DECLINED:
            result.outcome = RecordOutcome.SKIPPED_DECLINED
            return result

        spec = self.request.campaign_for(candidate.get(RosterField.COLLECTION))
        result.campaign = spec.name
        try:
            self._write(
                candidate,
                result,
                handle=candidate.handle,
                approval=approval,
                campaign=self.campaigns[spec],
            )
        except RecordError as exc:
            result.outcome = RecordOutcome.ERROR
            result.error_kind = exc.kind
            result.message = exc.message
            log.error("Record %s failed: %s", candidate.label, exc.message)
        except (PersistenceError, ValueError) as exc:
            result.outcome = RecordOutcome.ERROR
            result.error_kind = (
                ErrorKind.PERSISTENCE_FAILURE
                if isinstance(exc, PersistenceError)
                else ErrorKind.VALIDATION
            )
            result.message = str(exc)
            log.error("Record %s failed: %s", candidate.label, exc)
        return result

    def _incoming(self, candidate: CandidateRecord) -> IncomingFields:
        return IncomingFields(
            email=candidate.get(RosterField.EMAIL),
            phone=candidate.get(RosterField.PHONE),
            mailing_address=candidate.get(RosterField.MAILING_ADDRESS),
            top_size=map_garment_size(candidate.get(RosterField.TOP_SIZE)),
            bottoms_size=map_garment_size(candidate.get(RosterField.BOTTOMS_SIZE)),
            owner_id=self.directory.resolve(candidate.get(RosterField.ASSIGNEE)),
            partnership_type=map_partnership_type(candidate.get(RosterField.PARTNERSHIP)),
            relationship_status=map_relationship_status(candidate.get(RosterField.STATUS)),
            notes=clean_text(candidate.get(RosterField.NOTES)),
        )

    def _write(
        self,
        candidate: CandidateRecord,
        result: RecordResult,
        *,
        handle: str,
        approval: ApprovalStatus | None,
        campaign: Campaign,
    ) -> None:
        incoming = self._incoming(candidate)

        with self.unit_of_work_factory() as uow:
            resolution = resolve_identity(handle, uow.repositories.influencers)
        self._raise_if_ambiguous(resolution.status, handle, resolution.match_count)

        enrichment: EnrichmentResult | None = None
        if resolution.status is ResolutionStatus.NEW and self.enricher is not None:
            enrichment = self._enrich(self.enricher, handle)

        with self.unit_of_work_factory() as uow:
            repositories = uow.repositories
            # re-verify immediately before insert
            resolution = resolve_identity(handle, repositories.influencers)
            self._raise_if_ambiguous(resolution.status, handle, resolution.match_count)

            influencer: Influencer | None = resolution.influencer
            if influencer is None:
                new = build_new_influencer(
                    incoming,
                    handle=handle,
                    snapshot=enrichment.snapshot if enrichment is not None else None,
                    avatar_url=enrichment.avatar_url if enrichment is not None else None,
                    fallback_name=candidate.inferred_name or candidate.raw_name or handle,
                    source_label=self.request.source_label,
                    imported_on=self.request.imported_on,
                    tier=self.request.default_tier,
                )
                try:
                    repositories.influencers.add(new)
                except DuplicateHandleError:
                    log.info("Handle %s was created concurrently; updating instead", handle)
                    influencer = self._require_existing(handle, uow)
                else:
                    influencer = new
                    result.outcome = RecordOutcome.CREATED

            if result.outcome is not RecordOutcome.CREATED:
                changes = plan_update(influencer, incoming)
                if changes:
                    apply_update(influencer, changes)
                    repositories.influencers.update(influencer, changes)
                    result.outcome = RecordOutcome.UPDATED
                    result.changed_fields = sorted(changes)
                else:
                    result.outcome = RecordOutcome.UNCHANGED

            association = ensure_association(
                repositories,
                campaign=campaign,
                influencer=influencer,
                partnership_type=incoming.partnership_type,
                status=incoming.relationship_status,
                approval_status=approval,
                notes=incoming.notes,
            )
            uow.commit()

        result.handle = influencer.handle
        result.association = association.outcome

    def _require_existing(self, handle: str, uow: ImportUnitOfWork) -> Influencer:
        resolution = resolve_identity(handle, uow.repositories.influencers)
        self._raise_if_ambiguous(resolution.status, handle, resolution.match_count)
        if resolution.influencer is None:
            raise RecordPersistenceError(f"handle {handle} collided on insert but cannot be found")
        return resolution.influencer

    @staticmethod
    def _raise_if_ambiguous(status: ResolutionStatus, handle: str, count: int) -> None:
        if status is ResolutionStatus.AMBIGUOUS:
            raise AmbiguousIdentityError(f"{count} stored influencers match handle {handle}")

    def _enrich(self, enricher: ProfileEnricher, handle: str) -> EnrichmentResult:
        enrichment = enricher.enrich(handle)
        lookup = enrichment.lookup
        if not lookup.ok:
            message = f"{ErrorKind.ENRICHMENT_FAILURE}: {handle}: {lookup.failure}"
            if lookup.detail:
                message = f"{message} ({lookup.detail})"
            self.summary.warnings.append(message)
        if enrichment.avatar_error is not None:
            self.summary.warnings.append(
                f"{ErrorKind.STORAGE_FAILURE}: {handle}: {enrichment.avatar_error}"
            )
        return enrichment


__all__ = [
    "ImportRequest",
    "ImportSummary",
    "OperatorDirectory",
    "RecordOutcome",
    "RecordResult",
    "UnitOfWorkFactory",
    "run_import",
]
