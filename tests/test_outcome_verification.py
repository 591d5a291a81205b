from uuid import uuid4

import pytest

from pawmatch.core.exceptions import (
    ErrorCode,
    ForbiddenOutcomeError,
    InvalidInputError,
    InvalidLitterSizeError,
    InvalidOutcomeError,
    NotesRequiredError,
    NotFoundError,
    NotOwnerError,
    NotParticipantError,
    PersistenceError,
    UnauthenticatedError,
)
from pawmatch.schemas.match_outcome import OutcomeType
from pawmatch.schemas.notification import NotificationLevel
from pawmatch.services.match_lifecycle import completion_status_for
from pawmatch.services.outcome_verification import (
    OutcomeVerifier,
    normalize_outcome_fields,
    parse_litter_size,
)


class StaticAuthenticator:
    def __init__(self, user_id):
        self.user_id = user_id

    async def get_current_user(self):
        return self.user_id


@pytest.mark.asyncio
async def test_female_owner_records_success(verifier, awaiting_match, pair, clock, outcome_store):
    """Female dog owner records a successful breeding."""
    _, female = pair

    record = await verifier.submit_outcome(
        awaiting_match.id,
        "success",
        female.id,
        litter_size=5,
        notes="  Five healthy puppies  ",
        acting_user_id=female.user_id,
    )

    assert record.outcome == "success"
    assert record.litter_size == 5
    assert record.notes == "Five healthy puppies"
    assert record.verified_by_dog_id == female.id
    assert record.verified_by_user_id == female.user_id
    assert record.verified_at == clock.current
    assert str(awaiting_match.id) in outcome_store.rows


@pytest.mark.asyncio
async def test_success_then_transition_completes_match(
    verifier, lifecycle, awaiting_match, pair
):
    """Recorded success closes the match as completed_success."""
    _, female = pair

    record = await verifier.submit_outcome(
        awaiting_match.id,
        "success",
        female.id,
        litter_size="4",
        notes="All good",
        acting_user_id=female.user_id,
    )
    closed = await lifecycle.transition_status(
        awaiting_match.id, completion_status_for(record.outcome)
    )

    assert closed.status == "completed_success"
    assert closed.completed_at is not None
    assert closed.outcome.litter_size == 4


@pytest.mark.asyncio
async def test_male_owner_cannot_report_success(verifier, awaiting_match, pair, outcome_store):
    """Only the female side can report on a pregnancy."""
    male, _ = pair

    with pytest.raises(ForbiddenOutcomeError) as exc_info:
        await verifier.submit_outcome(
            awaiting_match.id,
            "success",
            male.id,
            litter_size=3,
            notes="Puppies!",
            acting_user_id=male.user_id,
        )

    assert exc_info.value.status_code == 403
    assert exc_info.value.code == ErrorCode.AUTHZ_FORBIDDEN_OUTCOME
    assert outcome_store.rows == {}


@pytest.mark.asyncio
async def test_male_owner_reports_no_show(verifier, lifecycle, awaiting_match, pair):
    """Male dog owner reports a no show with litter size forced to 0."""
    male, _ = pair

    record = await verifier.submit_outcome(
        awaiting_match.id,
        "no_show",
        male.id,
        litter_size=7,
        notes="They never arrived",
        acting_user_id=male.user_id,
    )
    closed = await lifecycle.transition_status(
        awaiting_match.id, completion_status_for(record.outcome)
    )

    assert record.litter_size == 0
    assert closed.status == "completed_failed"


@pytest.mark.asyncio
async def test_second_outcome_is_rejected(verifier, awaiting_match, pair, outcome_store):
    """A second outcome for the same match fails in storage."""
    _, female = pair
    await verifier.submit_outcome(
        awaiting_match.id,
        "failed",
        female.id,
        acting_user_id=female.user_id,
    )

    with pytest.raises(PersistenceError):
        await verifier.submit_outcome(
            awaiting_match.id,
            "success",
            female.id,
            litter_size=2,
            notes="Changed my mind",
            acting_user_id=female.user_id,
        )

    assert outcome_store.rows[str(awaiting_match.id)].outcome == "failed"


@pytest.mark.asyncio
async def test_outcome_enum_is_accepted(verifier, awaiting_match, pair):
    """Outcome enum members are accepted."""
    _, female = pair

    record = await verifier.submit_outcome(
        awaiting_match.id,
        OutcomeType.failed,
        female.id,
        acting_user_id=female.user_id,
    )

    assert record.outcome == "failed"


@pytest.mark.asyncio
async def test_missing_match_id(verifier, pair):
    """Match id is required."""
    _, female = pair

    with pytest.raises(InvalidInputError) as exc_info:
        await verifier.submit_outcome(None, "failed", female.id, acting_user_id=female.user_id)

    assert exc_info.value.field == "match_id"


@pytest.mark.asyncio
async def test_missing_dog_id(verifier, awaiting_match, pair):
    """Verifying dog id is required."""
    _, female = pair

    with pytest.raises(InvalidInputError) as exc_info:
        await verifier.submit_outcome(
            awaiting_match.id, "failed", None, acting_user_id=female.user_id
        )

    assert exc_info.value.field == "verifying_dog_id"


@pytest.mark.asyncio
@pytest.mark.parametrize("outcome", ["maybe", "", None, "SUCCESS", 3])
async def test_unknown_outcome(verifier, awaiting_match, pair, outcome):
    """Only success, failed and no_show are outcomes."""
    _, female = pair

    with pytest.raises(InvalidOutcomeError):
        await verifier.submit_outcome(
            awaiting_match.id, outcome, female.id, acting_user_id=female.user_id
        )


@pytest.mark.asyncio
async def test_outcome_checked_before_caller(verifier, awaiting_match, pair):
    """A bad outcome is reported even when nobody is signed in."""
    _, female = pair

    with pytest.raises(InvalidOutcomeError):
        await verifier.submit_outcome(awaiting_match.id, "maybe", female.id)


@pytest.mark.asyncio
async def test_no_caller_is_unauthenticated(verifier, awaiting_match, pair):
    """Outcome needs a signed in caller."""
    _, female = pair

    with pytest.raises(UnauthenticatedError):
        await verifier.submit_outcome(awaiting_match.id, "failed", female.id)


@pytest.mark.asyncio
async def test_caller_resolved_from_authenticator(
    dogs, match_store, outcome_store, awaiting_match, pair
):
    """Caller comes from the authenticator when not given."""
    _, female = pair
    verifier = OutcomeVerifier(
        dogs, match_store, outcome_store, auth=StaticAuthenticator(female.user_id)
    )

    record = await verifier.submit_outcome(awaiting_match.id, "failed", female.id)

    assert record.verified_by_user_id == female.user_id


@pytest.mark.asyncio
async def test_authenticator_without_user(dogs, match_store, outcome_store, awaiting_match, pair):
    """Authenticator without a user means unauthenticated."""
    _, female = pair
    verifier = OutcomeVerifier(dogs, match_store, outcome_store, auth=StaticAuthenticator(None))

    with pytest.raises(UnauthenticatedError):
        await verifier.submit_outcome(awaiting_match.id, "failed", female.id)


@pytest.mark.asyncio
async def test_unknown_dog(verifier, awaiting_match, pair):
    """Unknown verifying dog is not found."""
    _, female = pair

    with pytest.raises(NotFoundError) as exc_info:
        await verifier.submit_outcome(
            awaiting_match.id, "failed", uuid4(), acting_user_id=female.user_id
        )

    assert exc_info.value.metadata["resource"] == "dog"


@pytest.mark.asyncio
async def test_someone_elses_dog(verifier, awaiting_match, pair):
    """Caller must own the verifying dog."""
    male, female = pair

    with pytest.raises(NotOwnerError):
        await verifier.submit_outcome(
            awaiting_match.id, "no_show", female.id, notes="x", acting_user_id=male.user_id
        )


@pytest.mark.asyncio
async def test_ownership_checked_before_match(verifier, pair):
    """Unknown match does not leak when the dog is not yours."""
    male, female = pair

    with pytest.raises(NotOwnerError):
        await verifier.submit_outcome(uuid4(), "failed", female.id, acting_user_id=male.user_id)


@pytest.mark.asyncio
async def test_unknown_match(verifier, pair):
    """Unknown match is not found."""
    _, female = pair

    with pytest.raises(NotFoundError) as exc_info:
        await verifier.submit_outcome(uuid4(), "failed", female.id, acting_user_id=female.user_id)

    assert exc_info.value.metadata["resource"] == "match"


@pytest.mark.asyncio
async def test_dog_outside_match(verifier, awaiting_match, dogs):
    """Verifying dog must be part of the match."""
    stranger = dogs.add("female")

    with pytest.raises(NotParticipantError):
        await verifier.submit_outcome(
            awaiting_match.id, "failed", stranger.id, acting_user_id=stranger.user_id
        )


@pytest.mark.asyncio
async def test_participation_checked_before_role_gate(verifier, awaiting_match, dogs):
    """Participation is checked before the role gate."""
    stranger = dogs.add("male")

    with pytest.raises(NotParticipantError):
        await verifier.submit_outcome(
            awaiting_match.id, "success", stranger.id, acting_user_id=stranger.user_id
        )


@pytest.mark.asyncio
async def test_role_gate_checked_before_litter_size(verifier, awaiting_match, pair):
    """Role gate is checked before the litter size."""
    male, _ = pair

    with pytest.raises(ForbiddenOutcomeError):
        await verifier.submit_outcome(
            awaiting_match.id, "success", male.id, litter_size=0, acting_user_id=male.user_id
        )


@pytest.mark.asyncio
async def test_dog_without_gender_may_report_success(verifier, lifecycle, dogs):
    """Dogs without a gender are not treated as male."""
    male = dogs.add("male")
    unknown = dogs.add(None)
    match = await lifecycle.create_request(
        contact_id=uuid4(),
        requester_dog_id=male.id,
        requested_dog_id=unknown.id,
        requester_user_id=male.user_id,
    )
    await lifecycle.accept(match.id)

    record = await verifier.submit_outcome(
        match.id,
        "success",
        unknown.id,
        litter_size=2,
        notes="Two",
        acting_user_id=unknown.user_id,
    )

    assert record.litter_size == 2


@pytest.mark.asyncio
async def test_rejections_are_notified(verifier, awaiting_match, pair, sink):
    """Rejected outcomes emit a warning."""
    male, _ = pair
    sink.notifications.clear()

    with pytest.raises(ForbiddenOutcomeError):
        await verifier.submit_outcome(
            awaiting_match.id, "success", male.id, litter_size=1, acting_user_id=male.user_id
        )

    assert len(sink.notifications) == 1
    assert sink.notifications[0].level == NotificationLevel.warning
    assert sink.notifications[0].match_id == awaiting_match.id


@pytest.mark.asyncio
async def test_success_is_notified(verifier, awaiting_match, pair, sink):
    """Recorded outcomes emit a success notification."""
    _, female = pair
    sink.notifications.clear()

    await verifier.submit_outcome(
        awaiting_match.id, "failed", female.id, acting_user_id=female.user_id
    )

    assert [n.message for n in sink.notifications] == ["Outcome recorded"]
    assert sink.notifications[0].level == NotificationLevel.success


@pytest.mark.parametrize(
    "value, expected",
    [(1, 1), (12, 12), (3.0, 3), ("6", 6), (" 2 ", 2), ("4.0", 4)],
)
def test_parse_litter_size_valid(value, expected):
    """Whole numbers of at least 1 are valid litter sizes."""
    assert parse_litter_size(value) == expected


@pytest.mark.parametrize(
    "value",
    [None, 0, -2, 0.5, "0", "", "abc", "nan", "inf", float("inf"), True, [3]],
)
def test_parse_litter_size_invalid(value):
    """Missing, small, non-finite or non-numeric litter sizes are invalid."""
    with pytest.raises(InvalidLitterSizeError):
        parse_litter_size(value)


@pytest.mark.parametrize("value", [2.5, "3.7"])
def test_parse_litter_size_fraction(value):
    """Fractional litter sizes are rejected."""
    with pytest.raises(InvalidLitterSizeError) as exc_info:
        parse_litter_size(value)

    assert "whole number" in exc_info.value.message


def test_normalize_failed_ignores_litter_and_allows_empty_notes():
    """Failed forces litter size 0 and keeps notes optional."""
    assert normalize_outcome_fields("failed", 9, "   ") == (0, None)
    assert normalize_outcome_fields("failed", "junk", " no luck ") == (0, "no luck")


def test_normalize_no_show_requires_notes():
    """No show needs notes."""
    with pytest.raises(NotesRequiredError) as exc_info:
        normalize_outcome_fields("no_show", None, "  ")

    assert exc_info.value.message == "Notes are required for no show outcome"


def test_normalize_success_requires_notes():
    """Success needs notes."""
    with pytest.raises(NotesRequiredError) as exc_info:
        normalize_outcome_fields("success", 3, None)

    assert exc_info.value.message == "Notes are required for successful breeding"


def test_normalize_success_checks_litter_before_notes():
    """Litter size is checked before notes."""
    with pytest.raises(InvalidLitterSizeError):
        normalize_outcome_fields("success", 0, None)
