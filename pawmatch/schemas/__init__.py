from pawmatch.schemas.dog import DogRecord
from pawmatch.schemas.match_outcome import MatchOutcomeRecord, OutcomeSubmit, OutcomeType
from pawmatch.schemas.match_request import (
    ACTIVE_STATUSES,
    AwaitingDogsResponse,
    MatchActionResponse,
    MatchListResponse,
    MatchRequestCreate,
    MatchRequestRecord,
    MatchRespond,
    MatchStatus,
    MatchView,
    OutcomeSubmitResponse,
)
from pawmatch.schemas.notification import Notification, NotificationLevel

__all__ = [
    "DogRecord",
    "MatchStatus",
    "ACTIVE_STATUSES",
    "MatchRequestRecord",
    "MatchRequestCreate",
    "MatchRespond",
    "MatchView",
    "MatchListResponse",
    "MatchActionResponse",
    "AwaitingDogsResponse",
    "OutcomeType",
    "MatchOutcomeRecord",
    "OutcomeSubmit",
    "OutcomeSubmitResponse",
    "Notification",
    "NotificationLevel",
]
