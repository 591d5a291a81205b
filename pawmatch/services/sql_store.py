"""SQLAlchemy implementations of the match workflow storage ports."""

import logging
from collections.abc import Iterable
from contextlib import asynccontextmanager
from typing import Any
from uuid import UUID

from sqlalchemy import and_, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pawmatch.core.exceptions import InvalidInputError, PersistenceError
from pawmatch.models.dog import Dog
from pawmatch.models.match_outcome import MatchOutcome
from pawmatch.models.match_request import MatchRequest
from pawmatch.schemas.dog import DogRecord
from pawmatch.schemas.match_outcome import MatchOutcomeRecord
from pawmatch.schemas.match_request import ACTIVE_STATUSES, MatchRequestRecord, MatchStatus

logger = logging.getLogger(__name__)


def as_uuid(value: UUID | str, field: str = "id") -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise InvalidInputError(f"Invalid identifier: {value}", field=field) from None


@asynccontextmanager
async def storage_errors(db: AsyncSession, action: str):
    """Roll back and re-raise any database failure as PersistenceError."""
    try:
        yield
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Storage failure while trying to %s: %s", action, exc)
        raise PersistenceError(f"Could not {action}") from exc


def _match_query():
    """Requests with their dogs and outcome, refreshed from the database."""
    return (
        select(MatchRequest)
        .options(
            selectinload(MatchRequest.requester_dog),
            selectinload(MatchRequest.requested_dog),
            selectinload(MatchRequest.outcome),
        )
        .execution_options(populate_existing=True)
    )


class SqlDogLookup:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_dog(self, dog_id: UUID) -> DogRecord | None:
        async with storage_errors(self.db, "load dog"):
            result = await self.db.execute(
                select(Dog).where(Dog.id == as_uuid(dog_id, "dog_id"))
            )
            dog = result.scalar_one_or_none()
        return DogRecord.model_validate(dog) if dog else None


class SqlMatchStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, match_id: UUID) -> MatchRequestRecord | None:
        async with storage_errors(self.db, "load match"):
            result = await self.db.execute(
                _match_query().where(MatchRequest.id == as_uuid(match_id, "match_id"))
            )
            row = result.scalar_one_or_none()
        return MatchRequestRecord.model_validate(row) if row else None

    async def insert(self, fields: dict[str, Any]) -> MatchRequestRecord:
        async with storage_errors(self.db, "create match request"):
            row = MatchRequest(**fields)
            self.db.add(row)
            await self.db.commit()
        return await self._reload(row.id)

    async def update_status(
        self,
        match_id: UUID,
        fields: dict[str, Any],
        expected_statuses: Iterable[str],
    ) -> MatchRequestRecord | None:
        """Conditional UPDATE on status; the row count tells whether we won."""
        match_id = as_uuid(match_id, "match_id")
        async with storage_errors(self.db, "update match status"):
            result = await self.db.execute(
                update(MatchRequest)
                .where(
                    and_(
                        MatchRequest.id == match_id,
                        MatchRequest.status.in_(list(expected_statuses)),
                    )
                )
                .values(**fields)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                await self.db.rollback()
                return None
            await self.db.commit()
        return await self._reload(match_id)

    async def list_active_for_context(self, contact_id: UUID) -> list[MatchRequestRecord]:
        query = (
            _match_query()
            .where(
                and_(
                    MatchRequest.contact_id == as_uuid(contact_id, "contact_id"),
                    MatchRequest.status.in_(sorted(ACTIVE_STATUSES)),
                )
            )
            .order_by(MatchRequest.requested_at.desc())
        )
        return await self._fetch_all(query, "load active match requests")

    async def list_for_user(self, user_id: UUID) -> list[MatchRequestRecord]:
        user_id = as_uuid(user_id, "user_id")
        query = (
            _match_query()
            .where(
                or_(
                    MatchRequest.requester_user_id == user_id,
                    MatchRequest.requested_user_id == user_id,
                )
            )
            .order_by(MatchRequest.requested_at.desc())
        )
        return await self._fetch_all(query, "load matches")

    async def list_awaiting_for_dogs(self, dog_ids: Iterable[UUID]) -> list[MatchRequestRecord]:
        ids = [as_uuid(dog_id, "dog_ids") for dog_id in dog_ids]
        query = _match_query().where(
            and_(
                MatchRequest.status == MatchStatus.awaiting_confirmation.value,
                or_(
                    MatchRequest.requester_dog_id.in_(ids),
                    MatchRequest.requested_dog_id.in_(ids),
                ),
            )
        )
        return await self._fetch_all(query, "load awaiting matches")

    async def _reload(self, match_id: UUID) -> MatchRequestRecord:
        record = await self.get_by_id(match_id)
        if record is None:
            raise PersistenceError("Match request disappeared after write")
        return record

    async def _fetch_all(self, query, action: str) -> list[MatchRequestRecord]:
        async with storage_errors(self.db, action):
            result = await self.db.execute(query)
            rows = list(result.scalars().all())
        return [MatchRequestRecord.model_validate(row) for row in rows]


class SqlOutcomeStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def insert(self, fields: dict[str, Any]) -> MatchOutcomeRecord:
        """Unique match_id makes a second outcome for the same match fail."""
        async with storage_errors(self.db, "save match outcome"):
            outcome = MatchOutcome(**fields)
            self.db.add(outcome)
            await self.db.commit()
        return MatchOutcomeRecord.model_validate(outcome)
