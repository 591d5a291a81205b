from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class NotificationLevel(str, Enum):
    success = "success"
    info = "info"
    warning = "warning"
    error = "error"


class Notification(BaseModel):
    """User-facing message produced by a match operation"""

    level: NotificationLevel
    message: str
    code: str | None = None
    match_id: UUID | None = None

    model_config = ConfigDict(frozen=True)
