"""Collaborator contracts the match workflow depends on.

Storage, dog lookup, authentication and notification delivery live outside
the workflow; these protocols are the only surface it calls. Storage
implementations raise PersistenceError for any backend failure.
"""

from collections.abc import Iterable
from typing import Any, Protocol
from uuid import UUID

from pawmatch.schemas.dog import DogRecord
from pawmatch.schemas.match_outcome import MatchOutcomeRecord
from pawmatch.schemas.match_request import MatchRequestRecord
from pawmatch.schemas.notification import Notification


class DogLookup(Protocol):
    async def get_dog(self, dog_id: UUID) -> DogRecord | None:
        """Return the dog or None when it does not exist."""


class MatchStore(Protocol):
    async def get_by_id(self, match_id: UUID) -> MatchRequestRecord | None:
        """Return the request with its dogs and outcome, or None."""

    async def insert(self, fields: dict[str, Any]) -> MatchRequestRecord:
        """Persist a new request and return the stored row."""

    async def update_status(
        self,
        match_id: UUID,
        fields: dict[str, Any],
        expected_statuses: Iterable[str],
    ) -> MatchRequestRecord | None:
        """Apply fields only while status is one of expected_statuses.

        Returns None when the row is missing or its status already moved on.
        """

    async def list_active_for_context(self, contact_id: UUID) -> list[MatchRequestRecord]:
        """Active requests of one conversation, newest first."""

    async def list_for_user(self, user_id: UUID) -> list[MatchRequestRecord]:
        """Requests where the user is requester or requested, newest first."""

    async def list_awaiting_for_dogs(self, dog_ids: Iterable[UUID]) -> list[MatchRequestRecord]:
        """Requests awaiting confirmation that involve any of the dogs."""


class OutcomeStore(Protocol):
    async def insert(self, fields: dict[str, Any]) -> MatchOutcomeRecord:
        """Persist an outcome; a second one for the same match must fail."""


class Authenticator(Protocol):
    async def get_current_user(self) -> UUID | None:
        """Id of the calling user, or None when not authenticated."""


class NotificationSink(Protocol):
    def emit(self, notification: Notification) -> None:
        """Deliver a user-facing message. Must not be relied on."""
