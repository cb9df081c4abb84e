"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from contextlib import contextmanager
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from creatorsync.adapters.sqlalchemy.mappings import (
    campaign_influencer_table,
    campaign_table,
    influencer_table,
    operator_table,
)
from creatorsync.domain.model import Campaign, CampaignInfluencer, Influencer, Operator
from creatorsync.domain.ports import (
    DuplicateAssociationError,
    DuplicateHandleError,
    PersistenceError,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Sequence
    from uuid import UUID

    from sqlalchemy.orm import Session

    from creatorsync.domain.ports import CampaignSpec

log = getLogger(__name__)


@contextmanager
def _store_errors() -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        raise PersistenceError(str(exc)) from exc


def _insert_in_savepoint(
    session: Session, entity: object, on_conflict: Callable[[], Exception]
) -> None:
    """Flush ``entity`` inside a savepoint so a unique violation leaves the session usable."""

    try:
        with session.begin_nested():
            session.add(entity)
            session.flush()
    except IntegrityError as exc:
        raise on_conflict() from exc
    except SQLAlchemyError as exc:
        raise PersistenceError(str(exc)) from exc


class SqlAlchemyInfluencerRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Influencer) -> None:
        _insert_in_savepoint(self.session, entity, lambda: DuplicateHandleError(entity.handle))

    def get(self, influencer_id: UUID) -> Influencer | None:
        with _store_errors():
            return self.session.get(Influencer, influencer_id)

    def find_by_handle(self, handle: str) -> Sequence[Influencer]:
        stmt = select(Influencer).where(
            func.lower(influencer_table.c.handle) == handle.strip().lower()
        )
        with _store_errors():
            return list(self.session.execute(stmt).scalars())

    def update(self, influencer: Influencer, changes: dict[str, object]) -> None:
        for field_name, value in changes.items():
            setattr(influencer, field_name, value)
        with _store_errors():
            self.session.flush()

    def missing_avatars(self, *, limit: int | None = None) -> Sequence[Influencer]:
        stmt = (
            select(Influencer)
            .where(
                (influencer_table.c.avatar_url.is_(None)) | (influencer_table.c.avatar_url == "")
            )
            .order_by(influencer_table.c.created_at, influencer_table.c.handle)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        with _store_errors():
            return list(self.session.execute(stmt).scalars())


class SqlAlchemyCampaignRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Campaign) -> None:
        _insert_in_savepoint(
            self.session,
            entity,
            lambda: PersistenceError(f"Campaign already exists: {entity.name}"),
        )

    def find_by_name(self, name: str) -> Campaign | None:
        stmt = select(Campaign).where(campaign_table.c.name == name.strip())
        with _store_errors():
            return self.session.execute(stmt).scalar_one_or_none()

    def find_or_create(self, spec: CampaignSpec) -> Campaign:
        """Find by name, else insert; a conflicting concurrent insert is re-read."""

        existing = self.find_by_name(spec.name)
        if existing is not None:
            return existing

        campaign = Campaign(
            name=spec.name.strip(),
            start_date=spec.start_date,
            end_date=spec.end_date,
        )
        try:
            self.add(campaign)
        except PersistenceError:
            winner = self.find_by_name(spec.name)
            if winner is None:
                raise
            log.info("Campaign %s was created concurrently", spec.name)
            return winner
        log.info("Created campaign %s", campaign.name)
        return campaign


class SqlAlchemyAssociationRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: CampaignInfluencer) -> None:
        _insert_in_savepoint(
            self.session,
            entity,
            lambda: DuplicateAssociationError(
                f"Association {entity.campaign_id}/{entity.influencer_id} already exists"
            ),
        )

    def get(self, *, campaign_id: UUID, influencer_id: UUID) -> CampaignInfluencer | None:
        stmt = (
            select(CampaignInfluencer)
            .where(campaign_influencer_table.c.campaign_id == campaign_id)
            .where(campaign_influencer_table.c.influencer_id == influencer_id)
        )
        with _store_errors():
            return self.session.execute(stmt).scalar_one_or_none()

    def most_recent_for(self, influencer_id: UUID) -> CampaignInfluencer | None:
        stmt = (
            select(CampaignInfluencer)
            .where(campaign_influencer_table.c.influencer_id == influencer_id)
            .order_by(campaign_influencer_table.c.created_at.desc())
            .limit(1)
        )
        with _store_errors():
            return self.session.execute(stmt).scalar_one_or_none()


class SqlAlchemyOperatorRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Operator) -> None:
        _insert_in_savepoint(
            self.session,
            entity,
            lambda: PersistenceError(f"Operator could not be stored: {entity.display_name}"),
        )

    def list_all(self) -> Sequence[Operator]:
        stmt = select(Operator).order_by(operator_table.c.display_name)
        with _store_errors():
            return list(self.session.execute(stmt).scalars())


if TYPE_CHECKING:
    from creatorsync.domain.ports import (
        AssociationRepository,
        CampaignRepository,
        InfluencerRepository,
        OperatorRepository,
    )

    def _repository_checks(session: Session) -> None:
        _influencers: InfluencerRepository = SqlAlchemyInfluencerRepository(session)
        _campaigns: CampaignRepository = SqlAlchemyCampaignRepository(session)
        _associations: AssociationRepository = SqlAlchemyAssociationRepository(session)
        _operators: OperatorRepository = SqlAlchemyOperatorRepository(session)
