"""Purchase ORM: a customer's claim on a published joke.

Invariants:
    - Unique per (round_id, customer_user_id, joke_id)
    - Created on buy, deleted on return
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from jokefactory.db.base import Base, BigIntId


class Purchase(Base):
    """Purchase entity."""
    __tablename__ = "purchases"
    __table_args__ = (
        UniqueConstraint(
            "round_id", "customer_user_id", "joke_id", name="uq_purchases_claim",
        ),
    )

    purchase_id: Mapped[int] = mapped_column(
        BigIntId, primary_key=True, autoincrement=True,
    )
    round_id: Mapped[int] = mapped_column(
        ForeignKey("rounds.round_id", ondelete="CASCADE"), nullable=False,
    )
    customer_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False,
    )
    joke_id: Mapped[int] = mapped_column(
        ForeignKey("jokes.joke_id", ondelete="CASCADE"), nullable=False, index=True,
    )
    purchased_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
