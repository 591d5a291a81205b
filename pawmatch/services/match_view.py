from uuid import UUID

from pawmatch.schemas.match_outcome import OutcomeType
from pawmatch.schemas.match_request import (
    ACTIVE_STATUSES,
    COMPLETED_STATUSES,
    HISTORY_STATUSES,
    MatchRequestRecord,
    MatchStatus,
    MatchView,
)

ALL_OUTCOMES = [OutcomeType.success.value, OutcomeType.failed.value, OutcomeType.no_show.value]
MALE_OWNER_OUTCOMES = [OutcomeType.no_show.value]


def derive_view_model(
    request: MatchRequestRecord | None,
    viewing_user_id: UUID | str | None,
) -> MatchView | None:
    """
    Project a stored request onto one viewer.

    Pure: the stored record is frozen and never modified; the flags are
    recomputed from it on every call.
    """
    if request is None:
        return None

    i_am_requester = (
        str(request.requester_user_id) == str(viewing_user_id) if viewing_user_id else False
    )
    my_dog = request.requester_dog if i_am_requester else request.requested_dog
    partner_dog = request.requested_dog if i_am_requester else request.requester_dog
    is_male_dog_owner = my_dog.is_male if my_dog else False
    status = request.status

    return MatchView(
        **{name: getattr(request, name) for name in MatchRequestRecord.model_fields},
        my_dog=my_dog,
        partner_dog=partner_dog,
        i_am_requester=i_am_requester,
        awaiting_my_outcome=status == MatchStatus.awaiting_confirmation.value,
        is_male_dog_owner=is_male_dog_owner,
        requires_response=status == MatchStatus.pending.value and not i_am_requester,
        can_cancel=i_am_requester and status in ACTIVE_STATUSES,
        is_completed=status in COMPLETED_STATUSES,
        is_history=status in HISTORY_STATUSES,
        direction="sent" if i_am_requester else "received",
        user_status=status,
        allowed_outcomes=list(MALE_OWNER_OUTCOMES if is_male_dog_owner else ALL_OUTCOMES),
    )


def is_participant(request: MatchRequestRecord, user_id: UUID | str | None) -> bool:
    if not user_id:
        return False
    return str(user_id) in (str(request.requester_user_id), str(request.requested_user_id))
