import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from datetime import datetime, timedelta, timezone
from typing import Any, AsyncGenerator
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import pawmatch.models  # noqa: F401
from pawmatch.core.exceptions import PersistenceError
from pawmatch.core.security import create_access_token
from pawmatch.database import Base, get_db
from pawmatch.main import app
from pawmatch.models.dog import Dog
from pawmatch.schemas.dog import DogRecord
from pawmatch.schemas.match_outcome import MatchOutcomeRecord
from pawmatch.schemas.match_request import ACTIVE_STATUSES, MatchRequestRecord
from pawmatch.services.match_lifecycle import MatchLifecycle
from pawmatch.services.notifications import CollectingNotificationSink
from pawmatch.services.outcome_verification import OutcomeVerifier

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# In-memory collaborators


class TickingClock:
    """Returns a new instant, one minute later, on every call."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2026, 10, 1, 9, 0, tzinfo=timezone.utc)
        self.calls = 0

    def __call__(self) -> datetime:
        self.current += timedelta(minutes=1)
        self.calls += 1
        return self.current


class InMemoryDogLookup:
    def __init__(self) -> None:
        self.dogs: dict[str, DogRecord] = {}

    def add(
        self,
        gender: str | None = "female",
        user_id: UUID | None = None,
        name: str | None = None,
    ) -> DogRecord:
        dog = DogRecord(
            id=uuid4(),
            user_id=user_id or uuid4(),
            name=name or f"dog-{len(self.dogs) + 1}",
            gender=gender,
        )
        self.dogs[str(dog.id)] = dog
        return dog

    async def get_dog(self, dog_id: UUID) -> DogRecord | None:
        return self.dogs.get(str(dog_id))


class InMemoryOutcomeStore:
    def __init__(self) -> None:
        self.rows: dict[str, MatchOutcomeRecord] = {}

    async def insert(self, fields: dict[str, Any]) -> MatchOutcomeRecord:
        key = str(fields["match_id"])
        if key in self.rows:
            raise PersistenceError("Could not save match outcome")
        record = MatchOutcomeRecord(id=uuid4(), **fields)
        self.rows[key] = record
        return record


class InMemoryMatchStore:
    """Mirrors the SQL store: rows come back joined with their dogs and outcome."""

    def __init__(self, dogs: InMemoryDogLookup, outcomes: InMemoryOutcomeStore) -> None:
        self.dogs = dogs
        self.outcomes = outcomes
        self.rows: dict[str, dict[str, Any]] = {}

    def _record(self, row: dict[str, Any]) -> MatchRequestRecord:
        return MatchRequestRecord(
            **row,
            requester_dog=self.dogs.dogs.get(str(row["requester_dog_id"])),
            requested_dog=self.dogs.dogs.get(str(row["requested_dog_id"])),
            outcome=self.outcomes.rows.get(str(row["id"])),
        )

    def _newest_first(self, rows) -> list[MatchRequestRecord]:
        ordered = sorted(rows, key=lambda row: row["requested_at"], reverse=True)
        return [self._record(row) for row in ordered]

    async def get_by_id(self, match_id: UUID) -> MatchRequestRecord | None:
        row = self.rows.get(str(match_id))
        return self._record(row) if row else None

    async def insert(self, fields: dict[str, Any]) -> MatchRequestRecord:
        row = {"id": uuid4(), **fields}
        self.rows[str(row["id"])] = row
        return self._record(row)

    async def update_status(self, match_id, fields, expected_statuses):
        row = self.rows.get(str(match_id))
        if row is None or row["status"] not in list(expected_statuses):
            return None
        row.update(fields)
        return self._record(row)

    async def list_active_for_context(self, contact_id):
        return self._newest_first(
            row
            for row in self.rows.values()
            if str(row["contact_id"]) == str(contact_id) and row["status"] in ACTIVE_STATUSES
        )

    async def list_for_user(self, user_id):
        return self._newest_first(
            row
            for row in self.rows.values()
            if str(user_id) in (str(row["requester_user_id"]), str(row["requested_user_id"]))
        )

    async def list_awaiting_for_dogs(self, dog_ids):
        wanted = {str(dog_id) for dog_id in dog_ids}
        return self._newest_first(
            row
            for row in self.rows.values()
            if row["status"] == "awaiting_confirmation"
            and (str(row["requester_dog_id"]) in wanted or str(row["requested_dog_id"]) in wanted)
        )


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def sink() -> CollectingNotificationSink:
    return CollectingNotificationSink()


@pytest.fixture
def dogs() -> InMemoryDogLookup:
    return InMemoryDogLookup()


@pytest.fixture
def outcome_store() -> InMemoryOutcomeStore:
    return InMemoryOutcomeStore()


@pytest.fixture
def match_store(dogs: InMemoryDogLookup, outcome_store: InMemoryOutcomeStore) -> InMemoryMatchStore:
    return InMemoryMatchStore(dogs, outcome_store)


@pytest.fixture
def lifecycle(match_store, dogs, sink, clock) -> MatchLifecycle:
    return MatchLifecycle(match_store, dogs, sink, clock=clock)


@pytest.fixture
def verifier(dogs, match_store, outcome_store, sink, clock) -> OutcomeVerifier:
    return OutcomeVerifier(dogs, match_store, outcome_store, sink=sink, clock=clock)


@pytest.fixture
def pair(dogs: InMemoryDogLookup) -> tuple[DogRecord, DogRecord]:
    """(male, female) dogs with different owners."""
    return dogs.add("male", name="Rex"), dogs.add("female", name="Bella")


@pytest_asyncio.fixture
async def awaiting_match(lifecycle: MatchLifecycle, pair) -> MatchRequestRecord:
    """Request from the male dog's owner, accepted by the female dog's owner."""
    male, female = pair
    match = await lifecycle.create_request(
        contact_id=uuid4(),
        requester_dog_id=male.id,
        requested_dog_id=female.id,
        requester_user_id=male.user_id,
    )
    return await lifecycle.accept(match.id)


# Database backed fixtures


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    # Fresh in-memory database per test, bound to the test's event loop
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def create_dog(db_session: AsyncSession):
    """Factory inserting a dog row; returns (dog, auth headers for its owner)."""

    async def _create(
        gender: str = "female",
        user_id: UUID | None = None,
        name: str = "Bella",
    ) -> tuple[Dog, dict[str, str]]:
        dog = Dog(id=uuid4(), user_id=user_id or uuid4(), name=name, gender=gender)
        db_session.add(dog)
        await db_session.commit()
        headers = {"Authorization": f"Bearer {create_access_token(dog.user_id)}"}
        return dog, headers

    return _create
