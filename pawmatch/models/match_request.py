import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pawmatch.database import Base

if TYPE_CHECKING:
    from pawmatch.models.dog import Dog
    from pawmatch.models.match_outcome import MatchOutcome

ACTIVE_STATUS_FILTER = "status IN ('pending', 'accepted', 'awaiting_confirmation')"


class MatchRequest(Base):
    __tablename__ = "dog_match_requests"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    # Chat conversation the request was made in
    contact_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    # pending, accepted, declined, cancelled, awaiting_confirmation,
    # completed_success, completed_failed
    status: Mapped[str] = mapped_column(String(30), default="pending", nullable=False)

    requester_user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    requested_user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    requester_dog_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("dogs.id", ondelete="CASCADE"),
        nullable=False,
    )
    requested_dog_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("dogs.id", ondelete="CASCADE"),
        nullable=False,
    )

    requested_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    declined_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    awaiting_confirmation_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_status_changed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    requester_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    responder_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    requester_dog: Mapped["Dog"] = relationship("Dog", foreign_keys=[requester_dog_id])
    requested_dog: Mapped["Dog"] = relationship("Dog", foreign_keys=[requested_dog_id])
    outcome: Mapped["MatchOutcome | None"] = relationship(
        "MatchOutcome", back_populates="match", uselist=False
    )

    __table_args__ = (
        CheckConstraint("requester_dog_id <> requested_dog_id", name="distinct_dogs_check"),
        Index("ix_dog_match_requests_contact_status", "contact_id", "status"),
        Index("ix_dog_match_requests_requester_user_id", "requester_user_id"),
        Index("ix_dog_match_requests_requested_user_id", "requested_user_id"),
        # At most one active request per conversation
        Index(
            "uq_dog_match_requests_active_contact",
            "contact_id",
            unique=True,
            postgresql_where=text(ACTIVE_STATUS_FILTER),
            sqlite_where=text(ACTIVE_STATUS_FILTER),
        ),
    )
