from __future__ import annotations

import threading
from datetime import date
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from creatorsync.domain.model import (
    ApprovalStatus,
    Influencer,
    Operator,
    PartnershipType,
    RelationshipStatus,
)
from creatorsync.domain.ports import CampaignSpec, PersistenceError, ProfileSnapshot
from creatorsync.domain.roster_import import (
    AssociationOutcome,
    ErrorKind,
    ImportRequest,
    OperatorDirectory,
    RecordOutcome,
    SecondaryRow,
    build_shortcode_index,
    join_sources,
    run_import,
)
from tests.helpers.roster import FakeEnricher, make_roster_row

if TYPE_CHECKING:
    from collections.abc import Callable

    from creatorsync.adapters.sqlalchemy.unit_of_work import SqlAlchemyImportUnitOfWork
    from creatorsync.domain.roster_import import CandidateRecord, RosterRow

CAMPAIGN = CampaignSpec(name="Jan 26", start_date=date(2026, 1, 1), end_date=date(2026, 1, 31))
REQUEST = ImportRequest(
    source_label="jan26.csv",
    campaign=CAMPAIGN,
    imported_on=date(2026, 1, 20),
)


def _candidates(*rows: RosterRow) -> list[CandidateRecord]:
    return join_sources(rows, shortcode_index={}, handle_mapping={})


def _stored(uow_factory: Callable[[], SqlAlchemyImportUnitOfWork], handle: str) -> Influencer:
    with uow_factory() as uow:
        [influencer] = uow.repositories.influencers.find_by_handle(handle)
        return influencer


def _association_count(uow_factory: Callable[[], SqlAlchemyImportUnitOfWork]) -> int:
    with uow_factory() as uow:
        campaign = uow.repositories.campaigns.find_by_name(CAMPAIGN.name)
        assert campaign is not None
        return sum(
            1
            for influencer in uow.repositories.influencers.find_by_handle("janedoe")
            if uow.repositories.associations.get(
                campaign_id=campaign.id, influencer_id=influencer.id
            )
            is not None
        )


def test_jane_doe_end_to_end(
    sqlite_unit_of_work: Callable[[], SqlAlchemyImportUnitOfWork],
) -> None:
    candidates = _candidates(
        make_roster_row(
            name="Jane Doe",
            reference="instagram.com/janedoe",
            partnership="Gifted (No Ask)",
            status="Contacted, Followed Up",
        )
    )
    enricher = FakeEnricher(
        snapshots={
            "janedoe": ProfileSnapshot(handle="janedoe", display_name="Jane", follower_count=10)
        },
        avatar_url="https://blobs.example/janedoe-1.jpg",
    )

    summary = run_import(
        candidates,
        request=REQUEST,
        unit_of_work_factory=sqlite_unit_of_work,
        enricher=enricher,
    )

    assert summary.created == 1
    assert summary.associations_created == 1
    assert summary.errors == []
    assert enricher.calls == ["janedoe"]

    influencer = _stored(sqlite_unit_of_work, "janedoe")
    assert influencer.partnership_type is PartnershipType.GIFTED_NO_ASK
    assert influencer.relationship_status is RelationshipStatus.FOLLOWED_UP
    assert influencer.display_name == "Jane"
    assert influencer.avatar_url == "https://blobs.example/janedoe-1.jpg"
    assert influencer.notes == "Imported from jan26.csv on 2026-01-20"
    assert _association_count(sqlite_unit_of_work) == 1


def test_second_run_is_idempotent(
    sqlite_unit_of_work: Callable[[], SqlAlchemyImportUnitOfWork],
) -> None:
    rows = (
        make_roster_row(
            name="Jane Doe",
            reference="@janedoe",
            partnership="Paid",
            status="Order Placed",
            email="jane@example.com",
        ),
    )

    first = run_import(
        _candidates(*rows), request=REQUEST, unit_of_work_factory=sqlite_unit_of_work
    )
    enricher = FakeEnricher()
    second = run_import(
        _candidates(*rows),
        request=REQUEST,
        unit_of_work_factory=sqlite_unit_of_work,
        enricher=enricher,
    )

    assert (first.created, first.associations_created) == (1, 1)
    assert (second.created, second.updated, second.unchanged) == (0, 0, 1)
    assert second.associations_created == 0
    assert second.associations_existing == 1
    assert enricher.calls == []
    assert _association_count(sqlite_unit_of_work) == 1


def test_reimport_fills_blanks_and_never_regresses_status(
    sqlite_unit_of_work: Callable[[], SqlAlchemyImportUnitOfWork],
) -> None:
    run_import(
        _candidates(
            make_roster_row(
                name="Jane Doe",
                reference="janedoe",
                status="Order Delivered",
                email="jane@example.com",
            )
        ),
        request=REQUEST,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    summary = run_import(
        _candidates(
            make_roster_row(
                name="Jane Doe",
                reference="JaneDoe",
                status="Contacted",
                email="other@example.com",
                phone="555-0100",
            )
        ),
        request=REQUEST,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    assert summary.updated == 1
    assert summary.records[0].changed_fields == ["phone"]
    influencer = _stored(sqlite_unit_of_work, "janedoe")
    assert influencer.relationship_status is RelationshipStatus.ORDER_DELIVERED
    assert influencer.email == "jane@example.com"
    assert influencer.phone == "555-0100"


def test_duplicate_rows_in_one_run_create_one_identity(
    sqlite_unit_of_work: Callable[[], SqlAlchemyImportUnitOfWork],
) -> None:
    summary = run_import(
        _candidates(
            make_roster_row(2, name="Jane Doe", reference="@JaneDoe", status="Contacted"),
            make_roster_row(3, name="Jane Doe", reference="janedoe", status="Posted"),
        ),
        request=REQUEST,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    assert (summary.created, summary.updated) == (1, 1)
    assert [record.association for record in summary.records] == [
        AssociationOutcome.CREATED,
        AssociationOutcome.ALREADY_LINKED,
    ]
    assert _stored(sqlite_unit_of_work, "janedoe").relationship_status is RelationshipStatus.POSTED


def test_every_row_maps_to_exactly_one_outcome(
    sqlite_unit_of_work: Callable[[], SqlAlchemyImportUnitOfWork],
) -> None:
    index = build_shortcode_index(
        [SecondaryRow(url="https://www.instagram.com/p/ABC123/", owner_handle="poster")]
    )
    candidates = join_sources(
        [
            make_roster_row(2, reference="@nameless"),
            make_roster_row(3, name="No Handle", reference="n/a!"),
            make_roster_row(4, name="Lost Post", reference="https://www.instagram.com/p/ZZZ/"),
            make_roster_row(5, name="Found Post", reference="https://www.instagram.com/p/ABC123/"),
        ],
        shortcode_index=index,
        handle_mapping={},
    )

    summary = run_import(candidates, request=REQUEST, unit_of_work_factory=sqlite_unit_of_work)

    assert [record.outcome for record in summary.records] == [
        RecordOutcome.SKIPPED_NO_NAME,
        RecordOutcome.SKIPPED_NO_HANDLE,
        RecordOutcome.NEEDS_MANUAL_LOOKUP,
        RecordOutcome.CREATED,
    ]
    assert summary.skipped_no_name == 1
    assert summary.skipped_no_handle == 1
    assert [item.name for item in summary.needs_manual_lookup] == ["Lost Post"]
    assert summary.needs_manual_lookup[0].error_kind is ErrorKind.UNRESOLVABLE_IDENTITY
    assert summary.records[3].handle == "poster"


def test_enrichment_failure_is_a_warning_not_an_error(
    sqlite_unit_of_work: Callable[[], SqlAlchemyImportUnitOfWork],
) -> None:
    summary = run_import(
        _candidates(make_roster_row(name="Jane Doe", reference="janedoe")),
        request=REQUEST,
        unit_of_work_factory=sqlite_unit_of_work,
        enricher=FakeEnricher(),
    )

    assert summary.created == 1
    assert summary.errors == []
    assert summary.warnings == ["enrichment_failure: janedoe: not_found (no user data)"]
    assert _stored(sqlite_unit_of_work, "janedoe").display_name == "Jane Doe"


def test_avatar_failure_still_creates_identity(
    sqlite_unit_of_work: Callable[[], SqlAlchemyImportUnitOfWork],
) -> None:
    enricher = FakeEnricher(
        snapshots={"janedoe": ProfileSnapshot(handle="janedoe", display_name="Jane")},
        avatar_error="avatar transfer timed out",
    )

    summary = run_import(
        _candidates(make_roster_row(name="Jane Doe", reference="janedoe")),
        request=REQUEST,
        unit_of_work_factory=sqlite_unit_of_work,
        enricher=enricher,
    )

    assert summary.created == 1
    assert summary.warnings == ["storage_failure: janedoe: avatar transfer timed out"]
    assert _stored(sqlite_unit_of_work, "janedoe").avatar_url is None


def test_skip_declined_and_collection_routing(
    sqlite_unit_of_work: Callable[[], SqlAlchemyImportUnitOfWork],
) -> None:
    request = ImportRequest(
        source_label="roster.csv",
        campaign=CAMPAIGN,
        collection_campaigns={"Linen": CampaignSpec(name="Linen Launch")},
        skip_declined=True,
        imported_on=date(2026, 1, 20),
    )

    summary = run_import(
        _candidates(
            make_roster_row(2, name="Jane Doe", reference="janedoe", approval="Declined"),
            make_roster_row(
                3, name="Sam Smith", reference="samsmith", collection=" linen ", approval="Approved"
            ),
        ),
        request=request,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    assert summary.skipped_declined == 1
    assert summary.records[1].campaign == "Linen Launch"
    with sqlite_unit_of_work() as uow:
        linen = uow.repositories.campaigns.find_by_name("Linen Launch")
        [sam] = uow.repositories.influencers.find_by_handle("samsmith")
        assert linen is not None
        association = uow.repositories.associations.get(
            campaign_id=linen.id, influencer_id=sam.id
        )
        assert association is not None
        assert association.approval_status is ApprovalStatus.APPROVED


def test_assignee_resolves_to_operator(
    sqlite_unit_of_work: Callable[[], SqlAlchemyImportUnitOfWork],
) -> None:
    operator = Operator(display_name="Maria Lopez")
    with sqlite_unit_of_work() as uow:
        uow.repositories.operators.add(operator)
        uow.commit()

    run_import(
        _candidates(make_roster_row(name="Jane Doe", reference="janedoe", assignee="maria")),
        request=REQUEST,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    assert _stored(sqlite_unit_of_work, "janedoe").owner_id == operator.id


def test_cancellation_stops_at_record_boundary(
    sqlite_unit_of_work: Callable[[], SqlAlchemyImportUnitOfWork],
) -> None:
    cancel = threading.Event()

    class CancellingEnricher(FakeEnricher):
        def enrich(self, handle: str):  # type: ignore[override]
            cancel.set()
            return super().enrich(handle)

    summary = run_import(
        _candidates(
            make_roster_row(2, name="Jane Doe", reference="janedoe"),
            make_roster_row(3, name="Sam Smith", reference="samsmith"),
        ),
        request=REQUEST,
        unit_of_work_factory=sqlite_unit_of_work,
        enricher=CancellingEnricher(),
        cancel_event=cancel,
    )

    assert summary.created == 1
    assert summary.cancelled is True
    assert summary.not_processed == 1
    assert len(summary.records) == 1


def test_insert_collision_is_retried_as_update(
    sqlite_unit_of_work: Callable[[], SqlAlchemyImportUnitOfWork],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.influencers.add(Influencer(handle="janedoe", display_name="Jane"))
        uow.commit()

    from creatorsync.domain.roster_import import orchestrator  # noqa: PLC0415
    from creatorsync.domain.roster_import.resolution import (  # noqa: PLC0415
        IdentityResolution,
        ResolutionStatus,
    )

    calls = {"count": 0}
    real_resolve = orchestrator.resolve_identity

    def stale_resolve(handle: str, influencers: object) -> IdentityResolution:
        calls["count"] += 1
        if calls["count"] <= 2:
            return IdentityResolution(status=ResolutionStatus.NEW, handle=handle)
        return real_resolve(handle, influencers)  # type: ignore[arg-type]

    monkeypatch.setattr(orchestrator, "resolve_identity", stale_resolve)

    summary = run_import(
        _candidates(make_roster_row(name="Jane Doe", reference="janedoe", phone="555")),
        request=REQUEST,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    assert summary.created == 0
    assert summary.updated == 1
    assert summary.errors == []
    assert _stored(sqlite_unit_of_work, "janedoe").phone == "555"


def test_persistence_failure_is_confined_to_the_record(
    sqlite_unit_of_work: Callable[[], SqlAlchemyImportUnitOfWork],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    from creatorsync.adapters.sqlalchemy.repositories import (  # noqa: PLC0415
        SqlAlchemyInfluencerRepository,
    )

    real_add = SqlAlchemyInfluencerRepository.add

    def flaky_add(self: SqlAlchemyInfluencerRepository, entity: Influencer) -> None:
        if entity.handle == "broken":
            raise PersistenceError("disk full")
        real_add(self, entity)

    monkeypatch.setattr(SqlAlchemyInfluencerRepository, "add", flaky_add)

    summary = run_import(
        _candidates(
            make_roster_row(2, name="Broken", reference="broken"),
            make_roster_row(3, name="Jane Doe", reference="janedoe"),
        ),
        request=REQUEST,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    assert summary.created == 1
    [error] = summary.errors
    assert error.name == "Broken"
    assert error.error_kind is ErrorKind.PERSISTENCE_FAILURE

def test_free_text_reference_is_skipped_without_a_handle(
    sqlite_unit_of_work: Callable[[], SqlAlchemyImportUnitOfWork],
) -> None:
    summary = run_import(
        _candidates(make_roster_row(name="Jane Doe", reference="Jane Doe")),
        request=REQUEST,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    assert summary.created == 0
    assert summary.skipped_no_handle == 1
    [record] = summary.records
    assert record.outcome is RecordOutcome.SKIPPED_NO_HANDLE
    with sqlite_unit_of_work() as uow:
        assert uow.repositories.influencers.find_by_handle("jane") == []


def test_row_notes_are_written_to_the_association(
    sqlite_unit_of_work: Callable[[], SqlAlchemyImportUnitOfWork],
) -> None:
    run_import(
        _candidates(make_roster_row(name="Jane Doe", reference="janedoe", notes=" met at event ")),
        request=REQUEST,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    influencer = _stored(sqlite_unit_of_work, "janedoe")
    with sqlite_unit_of_work() as uow:
        campaign = uow.repositories.campaigns.find_by_name(CAMPAIGN.name)
        assert campaign is not None
        association = uow.repositories.associations.get(
            campaign_id=campaign.id, influencer_id=influencer.id
        )

    assert association is not None
    assert association.notes == "met at event"


def test_store_read_failure_is_confined_to_the_record(
    sqlite_unit_of_work: Callable[[], SqlAlchemyImportUnitOfWork],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    real_execute = Session.execute

    def locked_for_alpha(self: Session, statement: Any, *args: Any, **kwargs: Any) -> Any:
        if "alpha" in statement.compile().params.values():
            raise OperationalError("SELECT", {}, Exception("database is locked"))
        return real_execute(self, statement, *args, **kwargs)

    monkeypatch.setattr(Session, "execute", locked_for_alpha)

    summary = run_import(
        _candidates(
            make_roster_row(2, name="Alpha", reference="alpha"),
            make_roster_row(3, name="Beta", reference="beta"),
        ),
        request=REQUEST,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    assert summary.created == 1
    [error] = summary.errors
    assert error.name == "Alpha"
    assert error.error_kind is ErrorKind.PERSISTENCE_FAILURE
    assert "database is locked" in (error.message or "")
    assert _stored(sqlite_unit_of_work, "beta").display_name == "Beta"


def test_ambiguous_handle_is_an_error_and_the_run_continues(
    sqlite_unit_of_work: Callable[[], SqlAlchemyImportUnitOfWork],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    from creatorsync.adapters.sqlalchemy.repositories import (  # noqa: PLC0415
        SqlAlchemyInfluencerRepository,
    )

    real_find = SqlAlchemyInfluencerRepository.find_by_handle
    twins = [
        Influencer(handle="twin", display_name="Twin One"),
        Influencer(handle="twin", display_name="Twin Two"),
    ]

    def find_twins(self: SqlAlchemyInfluencerRepository, handle: str) -> list[Influencer]:
        if handle == "twin":
            return twins
        return list(real_find(self, handle))

    monkeypatch.setattr(SqlAlchemyInfluencerRepository, "find_by_handle", find_twins)

    summary = run_import(
        _candidates(
            make_roster_row(2, name="Twin", reference="twin"),
            make_roster_row(3, name="Solo", reference="solo"),
        ),
        request=REQUEST,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    twin, solo = summary.records
    assert twin.outcome is RecordOutcome.ERROR
    assert twin.error_kind is ErrorKind.AMBIGUOUS_IDENTITY
    assert twin.message is not None
    assert "2 stored influencers" in twin.message
    assert solo.outcome is RecordOutcome.CREATED
    assert summary.created == 1



def test_operator_directory_matches_full_then_first_name() -> None:
    maria = Operator(display_name="Maria Lopez")
    mark = Operator(display_name="Mark Chen")
    directory = OperatorDirectory([maria, mark])

    assert directory.resolve("maria lopez") == maria.id
    assert directory.resolve("Mark") == mark.id
    assert directory.resolve("Mark Someone") == mark.id
    assert directory.resolve("Nobody") is None
    assert directory.resolve(None) is None


def test_summary_to_dict_is_json_friendly(
    sqlite_unit_of_work: Callable[[], SqlAlchemyImportUnitOfWork],
) -> None:
    summary = run_import(
        _candidates(make_roster_row(name="Lost", reference="https://instagram.com/p/X1/")),
        request=REQUEST,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    payload = summary.to_dict()

    assert payload["created"] == 0
    assert payload["needs_manual_lookup"][0]["shortcode"] == "X1"
    assert payload["needs_manual_lookup"][0]["outcome"] == "needs_manual_lookup"
    assert "records" not in payload
