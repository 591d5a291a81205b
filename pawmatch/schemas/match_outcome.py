from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class OutcomeType(str, Enum):
    success = "success"
    failed = "failed"
    no_show = "no_show"


class MatchOutcomeRecord(BaseModel):
    """Stored breeding outcome"""

    id: UUID
    match_id: UUID
    outcome: str
    litter_size: int
    notes: str | None = None
    verified_by_user_id: UUID
    verified_by_dog_id: UUID
    verified_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True, frozen=True)


class OutcomeSubmit(BaseModel):
    """Outcome claim sent by one of the owners.

    Values are checked by the rule engine rather than here so every rule
    violation keeps its own error code. For success, litter_size must be a
    whole number of at least 1; numeric strings and floats such as 3.0 are
    accepted, fractions such as 2.5 are rejected.
    """

    outcome: str
    verifying_dog_id: UUID
    litter_size: int | float | str | None = None
    notes: str | None = Field(None, max_length=2000)
