"""PurchaseEvent ORM: append-only log of buys (+1) and returns (-1).

Invariants:
    - delta is +1 or -1
    - Never updated or deleted except by game reset

Design Decisions:
    - Kept separate from purchases (which are deleted on return) so the
      sales-over-time series can be rebuilt from committed rows
"""

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column

from jokefactory.db.base import Base, BigIntId


class PurchaseEvent(Base):
    """Sales log entry."""
    __tablename__ = "purchase_events"
    __table_args__ = (
        CheckConstraint("delta IN (-1, 1)", name="ck_purchase_events_delta"),
        Index("ix_purchase_events_round_time", "round_id", "created_at"),
    )

    event_id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    round_id: Mapped[int] = mapped_column(
        ForeignKey("rounds.round_id", ondelete="CASCADE"), nullable=False,
    )
    team_id: Mapped[int] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"), nullable=False,
    )
    customer_user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True,
    )
    joke_id: Mapped[int] = mapped_column(
        ForeignKey("jokes.joke_id", ondelete="CASCADE"), nullable=False,
    )
    delta: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
