import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pawmatch.database import Base

if TYPE_CHECKING:
    from pawmatch.models.match_request import MatchRequest


class MatchOutcome(Base):
    __tablename__ = "dog_match_outcomes"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    # One outcome per match
    match_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("dog_match_requests.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    # success, failed, no_show
    outcome: Mapped[str] = mapped_column(String(20), nullable=False)
    litter_size: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    verified_by_user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    verified_by_dog_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("dogs.id", ondelete="CASCADE"),
        nullable=False,
    )
    verified_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    match: Mapped["MatchRequest"] = relationship("MatchRequest", back_populates="outcome")

    __table_args__ = (
        CheckConstraint("litter_size >= 0", name="litter_size_non_negative"),
        CheckConstraint(
            "outcome IN ('success', 'failed', 'no_show')", name="outcome_value_check"
        ),
    )
