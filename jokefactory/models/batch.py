"""Batch ORM: a JM submission of exactly batch_size jokes.

Invariants:
    - status transitions: SUBMITTED -> RATED (DRAFT is reserved, never written)
    - locked_by_qc/locked_at set only while SUBMITTED; cleared on rating
    - avg_score, passes_count, rated_at set together, once, on rating

Design Decisions:
    - ix_batches_queue serves the QC dispatch query (round, status, submitted_at)
    - jokes loaded with selectin: batches are always shown with their jokes
"""

from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from jokefactory.core.domain_types import BatchStatus, FEEDBACK_MAX_LENGTH
from jokefactory.db.base import Base, BigIntId


class Batch(Base):
    """Batch entity."""
    __tablename__ = "batches"
    __table_args__ = (
        Index("ix_batches_queue", "round_id", "status", "submitted_at"),
        Index("ix_batches_round_team", "round_id", "team_id"),
    )

    batch_id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    round_id: Mapped[int] = mapped_column(
        ForeignKey("rounds.round_id", ondelete="CASCADE"), nullable=False,
    )
    team_id: Mapped[int] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"), nullable=False,
    )
    status: Mapped[BatchStatus] = mapped_column(
        Enum(BatchStatus, native_enum=False, length=20),
        nullable=False, default=BatchStatus.SUBMITTED,
    )
    submitted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    rated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    avg_score: Mapped[float | None] = mapped_column(
        Numeric(4, 2, asdecimal=False), nullable=True,
    )
    passes_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    feedback: Mapped[str | None] = mapped_column(
        String(FEEDBACK_MAX_LENGTH), nullable=True,
    )
    locked_by_qc: Mapped[int | None] = mapped_column(
        ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True,
    )
    locked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    jokes: Mapped[list["Joke"]] = relationship(  # noqa: F821
        "Joke", back_populates="batch", cascade="all, delete-orphan",
        order_by="Joke.joke_id", lazy="selectin",
    )
