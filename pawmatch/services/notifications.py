import logging
from contextlib import contextmanager
from uuid import UUID

from pawmatch.core.exceptions import AppException
from pawmatch.schemas.notification import Notification, NotificationLevel
from pawmatch.services.ports import NotificationSink

logger = logging.getLogger(__name__)

LOG_LEVELS = {
    NotificationLevel.success: logging.INFO,
    NotificationLevel.info: logging.INFO,
    NotificationLevel.warning: logging.WARNING,
    NotificationLevel.error: logging.ERROR,
}


class LoggingNotificationSink:
    """Writes notifications to the application log."""

    def emit(self, notification: Notification) -> None:
        level = LOG_LEVELS.get(notification.level, logging.INFO)
        logger.log(
            level,
            "Notification [%s] %s (code=%s, match_id=%s)",
            notification.level.value,
            notification.message,
            notification.code,
            notification.match_id,
        )


class CollectingNotificationSink:
    """Keeps notifications so the caller can return them with its response."""

    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    def emit(self, notification: Notification) -> None:
        self.notifications.append(notification)


def notify(
    sink: NotificationSink | None,
    level: NotificationLevel,
    message: str,
    code: str | None = None,
    match_id: UUID | None = None,
) -> None:
    """Emit to the sink; delivery problems never reach the caller."""
    if sink is None:
        return
    try:
        sink.emit(
            Notification(level=level, message=message, code=code, match_id=match_id)
        )
    except Exception:
        logger.exception("Notification sink failed for message %r", message)


def notify_rejection(
    sink: NotificationSink | None,
    exc: AppException,
    match_id: UUID | None = None,
) -> None:
    level = NotificationLevel.error if exc.status_code >= 500 else NotificationLevel.warning
    notify(sink, level, exc.message, exc.code.value, match_id)


@contextmanager
def reporting_rejections(sink: NotificationSink | None, match_id: UUID | None = None):
    """Forward any AppException raised inside the block to the sink, then re-raise."""
    try:
        yield
    except AppException as exc:
        notify_rejection(sink, exc, match_id)
        raise
