"""PublishedJoke ORM: a joke rated 5, visible in the market.

Invariants:
    - One-to-one with Joke (joke_id unique); never updated
    - round_id/team_id copied from the batch at publish time
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from jokefactory.db.base import Base, BigIntId


class PublishedJoke(Base):
    """Marketplace item."""
    __tablename__ = "published_jokes"
    __table_args__ = (
        Index("ix_published_jokes_round_team", "round_id", "team_id"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    joke_id: Mapped[int] = mapped_column(
        ForeignKey("jokes.joke_id", ondelete="CASCADE"), nullable=False, unique=True,
    )
    round_id: Mapped[int] = mapped_column(
        ForeignKey("rounds.round_id", ondelete="CASCADE"), nullable=False,
    )
    team_id: Mapped[int] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"), nullable=False,
    )
    published_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
