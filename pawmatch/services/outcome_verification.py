"""
Breeding outcome verification.

An owner attests what happened after a match was accepted. The claim is
checked in a fixed order (input, outcome value, caller, dog ownership, match
membership, role gate) and then normalized:

    success  litter size >= 1 as given, notes required
    failed   litter size forced to 0, notes optional
    no_show  litter size forced to 0, notes required

The owner of a male dog may only report no_show; pregnancy results come from
the female side. Recording an outcome does not close the match; callers follow
up with MatchLifecycle.transition_status(match_id, completion_status_for(outcome)).
"""

import logging
import math
from collections.abc import Callable
from datetime import datetime
from typing import Any
from uuid import UUID

from pawmatch.core.exceptions import (
    ForbiddenOutcomeError,
    InvalidInputError,
    InvalidLitterSizeError,
    InvalidOutcomeError,
    NotesRequiredError,
    NotFoundError,
    NotOwnerError,
    NotParticipantError,
    UnauthenticatedError,
)
from pawmatch.schemas.match_outcome import MatchOutcomeRecord, OutcomeType
from pawmatch.schemas.notification import NotificationLevel
from pawmatch.services.match_lifecycle import utcnow
from pawmatch.services.notifications import LoggingNotificationSink, notify, reporting_rejections
from pawmatch.services.ports import (
    Authenticator,
    DogLookup,
    MatchStore,
    NotificationSink,
    OutcomeStore,
)

logger = logging.getLogger(__name__)

VALID_OUTCOMES = frozenset(o.value for o in OutcomeType)
NOTES_REQUIRED_MESSAGES = {
    OutcomeType.success.value: "Notes are required for successful breeding",
    OutcomeType.no_show.value: "Notes are required for no show outcome",
}


def parse_litter_size(value: Any) -> int:
    """Litter size for a successful breeding: a whole, finite number of at least 1."""
    if value is None or isinstance(value, bool):
        raise InvalidLitterSizeError()

    if isinstance(value, int):
        if value < 1:
            raise InvalidLitterSizeError()
        return value

    if isinstance(value, float):
        number = value
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            raise InvalidLitterSizeError() from None
    else:
        raise InvalidLitterSizeError()

    if not math.isfinite(number) or number < 1:
        raise InvalidLitterSizeError()
    if not number.is_integer():
        raise InvalidLitterSizeError(
            "Litter size must be a whole number of puppies (for example 3, not 2.5)"
        )
    return int(number)


def normalize_outcome_fields(
    outcome: str,
    litter_size: Any,
    notes: str | None,
) -> tuple[int, str | None]:
    """Apply the per-outcome litter size and notes rules.

    Returns (litter_size, notes) as they should be stored.
    """
    trimmed_notes = (notes or "").strip()

    if outcome == OutcomeType.success.value:
        final_litter_size = parse_litter_size(litter_size)
    else:
        # failed means no pregnancy; no_show means no pairing happened
        final_litter_size = 0

    if outcome in NOTES_REQUIRED_MESSAGES and not trimmed_notes:
        raise NotesRequiredError(NOTES_REQUIRED_MESSAGES[outcome])

    return final_litter_size, trimmed_notes or None


class OutcomeVerifier:
    """Validates and records the outcome of a breeding match."""

    def __init__(
        self,
        dogs: DogLookup,
        matches: MatchStore,
        outcomes: OutcomeStore,
        auth: Authenticator | None = None,
        sink: NotificationSink | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.dogs = dogs
        self.matches = matches
        self.outcomes = outcomes
        self.auth = auth
        self.sink = sink if sink is not None else LoggingNotificationSink()
        self.clock = clock

    async def submit_outcome(
        self,
        match_id: UUID | None,
        outcome: str,
        verifying_dog_id: UUID | None,
        litter_size: Any = None,
        notes: str | None = None,
        acting_user_id: UUID | None = None,
    ) -> MatchOutcomeRecord:
        """
        Record the outcome of a match on behalf of one dog's owner.

        The first failed check raises its own error; nothing is written in
        that case. A second outcome for the same match is rejected by the
        outcome store and surfaces as PersistenceError.
        """
        with reporting_rejections(self.sink, match_id):
            if not match_id:
                raise InvalidInputError("matchId is required", field="match_id")
            if not verifying_dog_id:
                raise InvalidInputError("verifiedDogId is required", field="verifying_dog_id")
            if isinstance(outcome, OutcomeType):
                outcome = outcome.value
            if not isinstance(outcome, str) or outcome not in VALID_OUTCOMES:
                raise InvalidOutcomeError()

            if not acting_user_id and self.auth is not None:
                acting_user_id = await self.auth.get_current_user()
            if not acting_user_id:
                raise UnauthenticatedError()

            dog = await self.dogs.get_dog(verifying_dog_id)
            if dog is None:
                raise NotFoundError("Dog not found", resource="dog")
            if str(dog.user_id) != str(acting_user_id):
                raise NotOwnerError()

            match = await self.matches.get_by_id(match_id)
            if match is None:
                raise NotFoundError("Match not found", resource="match")
            if str(verifying_dog_id) not in (
                str(match.requester_dog_id),
                str(match.requested_dog_id),
            ):
                raise NotParticipantError()

            if dog.is_male and outcome != OutcomeType.no_show.value:
                raise ForbiddenOutcomeError()

            final_litter_size, final_notes = normalize_outcome_fields(outcome, litter_size, notes)

            record = await self.outcomes.insert(
                {
                    "match_id": match.id,
                    "verified_by_user_id": acting_user_id,
                    "verified_by_dog_id": dog.id,
                    "outcome": outcome,
                    "litter_size": final_litter_size,
                    "notes": final_notes,
                    "verified_at": self.clock(),
                }
            )

        logger.info(
            "Outcome %s recorded for match %s by dog %s (litter_size=%d)",
            outcome,
            match.id,
            dog.id,
            final_litter_size,
        )
        notify(self.sink, NotificationLevel.success, "Outcome recorded", match_id=match.id)
        return record
