"""
Breeding request lifecycle.

pending -> accepted | declined | cancelled
accepted -> awaiting_confirmation | cancelled
awaiting_confirmation -> completed_success | completed_failed | cancelled

declined, cancelled and both completed states are terminal. accept() moves a
pending request straight to awaiting_confirmation.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from uuid import UUID

from pawmatch.core.exceptions import (
    ActiveRequestConflictError,
    InvalidInputError,
    InvalidOutcomeError,
    InvalidTransitionError,
    NotFoundError,
    ResolutionError,
    UnsupportedStatusError,
)
from pawmatch.schemas.match_request import ACTIVE_STATUSES, MatchRequestRecord, MatchStatus
from pawmatch.schemas.notification import NotificationLevel
from pawmatch.services.notifications import LoggingNotificationSink, notify, reporting_rejections
from pawmatch.services.ports import DogLookup, MatchStore, NotificationSink

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    MatchStatus.pending.value: frozenset(
        {MatchStatus.accepted.value, MatchStatus.declined.value, MatchStatus.cancelled.value}
    ),
    MatchStatus.accepted.value: frozenset(
        {MatchStatus.awaiting_confirmation.value, MatchStatus.cancelled.value}
    ),
    MatchStatus.awaiting_confirmation.value: frozenset(
        {
            MatchStatus.completed_success.value,
            MatchStatus.completed_failed.value,
            MatchStatus.cancelled.value,
        }
    ),
}

STATUS_TIMESTAMP_FIELDS = {
    MatchStatus.accepted.value: "accepted_at",
    MatchStatus.declined.value: "declined_at",
    MatchStatus.cancelled.value: "cancelled_at",
    MatchStatus.awaiting_confirmation.value: "awaiting_confirmation_at",
    MatchStatus.completed_success.value: "completed_at",
    MatchStatus.completed_failed.value: "completed_at",
}

OUTCOME_COMPLETION_STATUS = {
    "success": MatchStatus.completed_success.value,
    "failed": MatchStatus.completed_failed.value,
    "no_show": MatchStatus.completed_failed.value,
}

STATUS_MESSAGES = {
    MatchStatus.accepted.value: "Breeding request accepted",
    MatchStatus.declined.value: "Breeding request declined",
    MatchStatus.cancelled.value: "Breeding request cancelled",
    MatchStatus.awaiting_confirmation.value: "Match is awaiting confirmation",
    MatchStatus.completed_success.value: "Match completed successfully",
    MatchStatus.completed_failed.value: "Match closed without a litter",
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def completion_status_for(outcome: str) -> str:
    """Final match status that goes with a recorded outcome."""
    try:
        return OUTCOME_COMPLETION_STATUS[outcome]
    except (KeyError, TypeError):
        raise InvalidOutcomeError() from None


def parse_status(value: object) -> str:
    try:
        return MatchStatus(value).value
    except (ValueError, TypeError):
        raise UnsupportedStatusError(value) from None


def can_transition(current_status: str, new_status: str) -> bool:
    return new_status in ALLOWED_TRANSITIONS.get(current_status, frozenset())


def _clean_notes(notes: str | None) -> str | None:
    return (notes or "").strip() or None


class MatchLifecycle:
    """Creates breeding requests and moves them through their statuses."""

    def __init__(
        self,
        matches: MatchStore,
        dogs: DogLookup,
        sink: NotificationSink | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.matches = matches
        self.dogs = dogs
        self.sink = sink if sink is not None else LoggingNotificationSink()
        self.clock = clock

    async def create_request(
        self,
        contact_id: UUID | None,
        requester_dog_id: UUID | None,
        requested_dog_id: UUID | None,
        requester_user_id: UUID | None,
        requested_user_id: UUID | None = None,
        notes: str | None = None,
    ) -> MatchRequestRecord:
        """
        Open a new pending request between two dogs.

        Only one active request may exist per conversation. When the
        requested owner is not given it is looked up from the requested dog.
        """
        with reporting_rejections(self.sink):
            if not contact_id:
                raise InvalidInputError("contactId is required", field="contact_id")
            if not requester_dog_id or not requested_dog_id:
                raise InvalidInputError(
                    "Both dogs must be provided to request breeding",
                    field="requested_dog_id" if requester_dog_id else "requester_dog_id",
                )
            if str(requester_dog_id) == str(requested_dog_id):
                raise InvalidInputError("Dogs must be different", field="requested_dog_id")
            if not requester_user_id:
                raise InvalidInputError(
                    "requesterUserId is required", field="requester_user_id"
                )

            active = [
                row
                for row in await self.matches.list_active_for_context(contact_id)
                if row.status in ACTIVE_STATUSES
            ]
            if active:
                raise ActiveRequestConflictError(active[0])

            if not requested_user_id:
                dog = await self.dogs.get_dog(requested_dog_id)
                requested_user_id = dog.user_id if dog else None
            if not requested_user_id:
                raise ResolutionError()

            now = self.clock()
            row = await self.matches.insert(
                {
                    "contact_id": contact_id,
                    "status": MatchStatus.pending.value,
                    "requester_dog_id": requester_dog_id,
                    "requested_dog_id": requested_dog_id,
                    "requester_user_id": requester_user_id,
                    "requested_user_id": requested_user_id,
                    "requester_notes": _clean_notes(notes),
                    "requested_at": now,
                    "last_status_changed_at": now,
                }
            )

        logger.info(
            "Match request %s created in contact %s (dog %s -> dog %s)",
            row.id,
            contact_id,
            requester_dog_id,
            requested_dog_id,
        )
        notify(self.sink, NotificationLevel.success, "Breeding request sent", match_id=row.id)
        return row

    async def get_request(self, match_id: UUID | None) -> MatchRequestRecord:
        if not match_id:
            raise InvalidInputError("matchId is required", field="match_id")
        row = await self.matches.get_by_id(match_id)
        if row is None:
            raise NotFoundError("Match not found", resource="match")
        return row

    async def accept(
        self,
        match_id: UUID | None,
        responder_notes: str | None = None,
    ) -> MatchRequestRecord:
        """Accept a pending request; it becomes ready for an outcome at once."""
        target = MatchStatus.awaiting_confirmation.value
        with reporting_rejections(self.sink, match_id):
            current = await self.get_request(match_id)
            if current.status != MatchStatus.pending.value:
                raise InvalidTransitionError(current.status, target)

            now = self.clock()
            patch = {
                "status": target,
                "accepted_at": now,
                "awaiting_confirmation_at": now,
                "last_status_changed_at": now,
            }
            if _clean_notes(responder_notes):
                patch["responder_notes"] = _clean_notes(responder_notes)

            row = await self._compare_and_set(current, target, patch)

        logger.info("Match request %s accepted", match_id)
        notify(
            self.sink,
            NotificationLevel.success,
            STATUS_MESSAGES[MatchStatus.accepted.value],
            match_id=row.id,
        )
        return row

    async def transition_status(
        self,
        match_id: UUID | None,
        new_status: str,
        responder_notes: str | None = None,
    ) -> MatchRequestRecord:
        """Move a request to new_status and stamp the matching timestamp."""
        with reporting_rejections(self.sink, match_id):
            if not match_id:
                raise InvalidInputError("matchId is required", field="match_id")
            target = parse_status(new_status)
            current = await self.get_request(match_id)
            if not can_transition(current.status, target):
                raise InvalidTransitionError(current.status, target)

            now = self.clock()
            patch = {"status": target, "last_status_changed_at": now}
            timestamp_field = STATUS_TIMESTAMP_FIELDS.get(target)
            if timestamp_field:
                patch[timestamp_field] = now
            if _clean_notes(responder_notes):
                patch["responder_notes"] = _clean_notes(responder_notes)

            row = await self._compare_and_set(current, target, patch)

        logger.info("Match request %s moved %s -> %s", match_id, current.status, target)
        notify(self.sink, NotificationLevel.success, STATUS_MESSAGES[target], match_id=row.id)
        return row

    async def list_for_user(self, user_id: UUID | None) -> list[MatchRequestRecord]:
        """Every request the user takes part in, newest first."""
        if not user_id:
            return []
        rows = await self.matches.list_for_user(user_id)
        return sorted(rows, key=_requested_at_key, reverse=True)

    async def awaiting_dog_ids(self, dog_ids: Iterable[UUID | str | None]) -> set[UUID]:
        """Dogs tied up in a match that is awaiting its outcome.

        Both dogs of every awaiting match touching one of dog_ids are returned.
        """
        wanted: set[UUID] = set()
        for dog_id in dog_ids or ():
            if not dog_id:
                continue
            try:
                wanted.add(dog_id if isinstance(dog_id, UUID) else UUID(str(dog_id)))
            except ValueError:
                raise InvalidInputError(f"Invalid dog id: {dog_id}", field="dog_ids") from None
        if not wanted:
            return set()

        awaiting: set[UUID] = set()
        for row in await self.matches.list_awaiting_for_dogs(sorted(wanted, key=str)):
            awaiting.add(row.requester_dog_id)
            awaiting.add(row.requested_dog_id)
        return awaiting

    async def _compare_and_set(
        self,
        current: MatchRequestRecord,
        target: str,
        patch: dict,
    ) -> MatchRequestRecord:
        row = await self.matches.update_status(current.id, patch, [current.status])
        if row is None:
            # Someone else changed the status between our read and write
            raise InvalidTransitionError(
                current.status,
                target,
                message="This match was updated by someone else. Please refresh and try again.",
            )
        return row


def _requested_at_key(row: MatchRequestRecord) -> float:
    if row.requested_at is None:
        return float("-inf")
    requested_at = row.requested_at
    if requested_at.tzinfo is None:
        requested_at = requested_at.replace(tzinfo=timezone.utc)
    return requested_at.timestamp()
