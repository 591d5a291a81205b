from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from pawmatch.schemas.dog import DogRecord
from pawmatch.schemas.match_outcome import MatchOutcomeRecord
from pawmatch.schemas.notification import Notification


class MatchStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    declined = "declined"
    cancelled = "cancelled"
    awaiting_confirmation = "awaiting_confirmation"
    completed_success = "completed_success"
    completed_failed = "completed_failed"


# Plain string values so membership works for raw column values too
ACTIVE_STATUSES = frozenset({"pending", "accepted", "awaiting_confirmation"})
COMPLETED_STATUSES = frozenset({"completed_success", "completed_failed"})
HISTORY_STATUSES = COMPLETED_STATUSES | {"declined", "cancelled"}


class MatchRequestRecord(BaseModel):
    """Stored breeding request, optionally with its joined dogs and outcome"""

    id: UUID
    contact_id: UUID
    status: str
    requester_user_id: UUID
    requested_user_id: UUID
    requester_dog_id: UUID
    requested_dog_id: UUID
    requested_at: datetime | None = None
    accepted_at: datetime | None = None
    declined_at: datetime | None = None
    cancelled_at: datetime | None = None
    awaiting_confirmation_at: datetime | None = None
    completed_at: datetime | None = None
    last_status_changed_at: datetime | None = None
    requester_notes: str | None = None
    responder_notes: str | None = None

    requester_dog: DogRecord | None = None
    requested_dog: DogRecord | None = None
    outcome: MatchOutcomeRecord | None = None

    model_config = ConfigDict(from_attributes=True, frozen=True)


class MatchView(MatchRequestRecord):
    """Stored request plus flags derived for one viewing user"""

    my_dog: DogRecord | None = None
    partner_dog: DogRecord | None = None
    i_am_requester: bool
    awaiting_my_outcome: bool
    is_male_dog_owner: bool
    requires_response: bool
    can_cancel: bool
    is_completed: bool
    is_history: bool
    direction: str
    user_status: str
    allowed_outcomes: list[str]


class MatchRequestCreate(BaseModel):
    """Propose a breeding between one of my dogs and a partner dog"""

    contact_id: UUID
    requester_dog_id: UUID
    requested_dog_id: UUID
    requested_user_id: UUID | None = None
    notes: str | None = Field(None, max_length=1000)


class MatchRespond(BaseModel):
    """Optional note left when accepting, declining or cancelling"""

    notes: str | None = Field(None, max_length=1000)


class MatchListResponse(BaseModel):
    matches: list[MatchView]
    total: int


class AwaitingDogsResponse(BaseModel):
    dog_ids: list[UUID]


class MatchActionResponse(BaseModel):
    match: MatchView
    notifications: list[Notification] = []


class OutcomeSubmitResponse(BaseModel):
    outcome: MatchOutcomeRecord
    match: MatchView
    notifications: list[Notification] = []
