from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from pawmatch.api.deps import (
    get_current_user_id,
    get_dog_lookup,
    get_match_lifecycle,
    get_notification_sink,
    get_outcome_verifier,
)
from pawmatch.core.exceptions import (
    AuthorizationError,
    ConflictError,
    ErrorCode,
    InvalidInputError,
    NotFoundError,
    NotOwnerError,
    NotParticipantError,
)
from pawmatch.schemas.match_outcome import OutcomeSubmit
from pawmatch.schemas.match_request import (
    AwaitingDogsResponse,
    MatchActionResponse,
    MatchListResponse,
    MatchRequestCreate,
    MatchRespond,
    MatchStatus,
    MatchView,
    OutcomeSubmitResponse,
)
from pawmatch.services.match_lifecycle import MatchLifecycle, completion_status_for
from pawmatch.services.match_view import derive_view_model, is_participant
from pawmatch.services.notifications import CollectingNotificationSink
from pawmatch.services.outcome_verification import OutcomeVerifier
from pawmatch.services.sql_store import SqlDogLookup

router = APIRouter(prefix="", tags=["matches"])

CurrentUserId = Annotated[UUID, Depends(get_current_user_id)]
Lifecycle = Annotated[MatchLifecycle, Depends(get_match_lifecycle)]
Sink = Annotated[CollectingNotificationSink, Depends(get_notification_sink)]


async def _get_view_for_participant(
    lifecycle: MatchLifecycle,
    match_id: UUID,
    user_id: UUID,
) -> MatchView:
    """Load a match and project it for the caller, who must take part in it."""
    match = await lifecycle.get_request(match_id)
    if not is_participant(match, user_id):
        raise NotParticipantError("Not your match")
    return derive_view_model(match, user_id)


def _ensure_responder(view: MatchView, user_id: UUID) -> None:
    """Caller must be the requested user and own the requested dog."""
    owner_id = view.requested_dog.user_id if view.requested_dog else None
    if (
        view.i_am_requester
        or str(view.requested_user_id) != str(user_id)
        or str(owner_id) != str(user_id)
    ):
        raise AuthorizationError("Only the other owner can respond to this request")


@router.post("/", response_model=MatchActionResponse, status_code=status.HTTP_201_CREATED)
async def create_match_request(
    data: MatchRequestCreate,
    current_user_id: CurrentUserId,
    lifecycle: Lifecycle,
    dogs: Annotated[SqlDogLookup, Depends(get_dog_lookup)],
    sink: Sink,
) -> MatchActionResponse:
    """
    Ask another owner for a breeding between two dogs.

    Validations:
    - The requesting dog must belong to you
    - The two dogs must be different
    - requested_user_id, when sent, must own the requested dog
    - The conversation must not already have an active request
    """
    my_dog = await dogs.get_dog(data.requester_dog_id)
    if my_dog is None:
        raise NotFoundError("Dog not found", resource="dog")
    if my_dog.user_id != current_user_id:
        raise NotOwnerError("You can only request breeding for your own dog")

    partner_dog = await dogs.get_dog(data.requested_dog_id)
    if partner_dog is None:
        raise NotFoundError("Dog not found", resource="dog")
    if data.requested_user_id and data.requested_user_id != partner_dog.user_id:
        raise InvalidInputError(
            "requestedUserId does not own the requested dog", field="requested_user_id"
        )

    match = await lifecycle.create_request(
        contact_id=data.contact_id,
        requester_dog_id=data.requester_dog_id,
        requested_dog_id=data.requested_dog_id,
        requester_user_id=current_user_id,
        requested_user_id=partner_dog.user_id,
        notes=data.notes,
    )
    return MatchActionResponse(
        match=derive_view_model(match, current_user_id),
        notifications=sink.notifications,
    )


@router.get("/", response_model=MatchListResponse)
async def get_my_matches(
    current_user_id: CurrentUserId,
    lifecycle: Lifecycle,
) -> MatchListResponse:
    """All breeding requests you sent or received, newest first."""
    matches = await lifecycle.list_for_user(current_user_id)
    views = [derive_view_model(match, current_user_id) for match in matches]
    return MatchListResponse(matches=views, total=len(views))


# NOTE: Specific routes MUST be defined before /{match_id} to avoid route conflicts
@router.get("/awaiting-dogs", response_model=AwaitingDogsResponse)
async def get_awaiting_dogs(
    current_user_id: CurrentUserId,
    lifecycle: Lifecycle,
    dog_ids: list[UUID] = Query(default=[]),
) -> AwaitingDogsResponse:
    """Which of the given dogs are in a match still waiting for its outcome."""
    awaiting = await lifecycle.awaiting_dog_ids(dog_ids)
    return AwaitingDogsResponse(dog_ids=sorted(awaiting, key=str))


@router.get("/{match_id}", response_model=MatchView)
async def get_match(
    match_id: UUID,
    current_user_id: CurrentUserId,
    lifecycle: Lifecycle,
) -> MatchView:
    return await _get_view_for_participant(lifecycle, match_id, current_user_id)


@router.post("/{match_id}/accept", response_model=MatchActionResponse)
async def accept_match_request(
    match_id: UUID,
    current_user_id: CurrentUserId,
    lifecycle: Lifecycle,
    sink: Sink,
    data: MatchRespond | None = None,
) -> MatchActionResponse:
    """Accept a pending request. The match then waits for its outcome."""
    view = await _get_view_for_participant(lifecycle, match_id, current_user_id)
    _ensure_responder(view, current_user_id)

    match = await lifecycle.accept(match_id, responder_notes=data.notes if data else None)
    return MatchActionResponse(
        match=derive_view_model(match, current_user_id),
        notifications=sink.notifications,
    )


@router.post("/{match_id}/decline", response_model=MatchActionResponse)
async def decline_match_request(
    match_id: UUID,
    current_user_id: CurrentUserId,
    lifecycle: Lifecycle,
    sink: Sink,
    data: MatchRespond | None = None,
) -> MatchActionResponse:
    view = await _get_view_for_participant(lifecycle, match_id, current_user_id)
    _ensure_responder(view, current_user_id)

    match = await lifecycle.transition_status(
        match_id,
        MatchStatus.declined.value,
        responder_notes=data.notes if data else None,
    )
    return MatchActionResponse(
        match=derive_view_model(match, current_user_id),
        notifications=sink.notifications,
    )


@router.post("/{match_id}/cancel", response_model=MatchActionResponse)
async def cancel_match_request(
    match_id: UUID,
    current_user_id: CurrentUserId,
    lifecycle: Lifecycle,
    sink: Sink,
) -> MatchActionResponse:
    """Withdraw a request you sent while it is still active."""
    view = await _get_view_for_participant(lifecycle, match_id, current_user_id)
    if not view.i_am_requester:
        raise AuthorizationError("Only the requesting owner can cancel this request")

    match = await lifecycle.transition_status(match_id, MatchStatus.cancelled.value)
    return MatchActionResponse(
        match=derive_view_model(match, current_user_id),
        notifications=sink.notifications,
    )


@router.post("/{match_id}/outcome", response_model=OutcomeSubmitResponse)
async def submit_match_outcome(
    match_id: UUID,
    data: OutcomeSubmit,
    current_user_id: CurrentUserId,
    lifecycle: Lifecycle,
    verifier: Annotated[OutcomeVerifier, Depends(get_outcome_verifier)],
    sink: Sink,
) -> OutcomeSubmitResponse:
    """
    Record how the breeding went, then close the match.

    success closes it as completed_success; failed and no_show as
    completed_failed. A success needs a whole litter_size of at least 1
    (2.5 is rejected) and notes.
    """
    view = await _get_view_for_participant(lifecycle, match_id, current_user_id)
    if not view.awaiting_my_outcome:
        raise ConflictError(
            message="Outcomes can only be recorded while the match is awaiting confirmation",
            code=ErrorCode.MATCH_INVALID_TRANSITION,
            field="status",
            metadata={"current_status": view.status},
        )

    outcome = await verifier.submit_outcome(
        match_id,
        data.outcome,
        data.verifying_dog_id,
        litter_size=data.litter_size,
        notes=data.notes,
        acting_user_id=current_user_id,
    )
    match = await lifecycle.transition_status(match_id, completion_status_for(outcome.outcome))

    return OutcomeSubmitResponse(
        outcome=outcome,
        match=derive_view_model(match, current_user_id),
        notifications=sink.notifications,
    )
