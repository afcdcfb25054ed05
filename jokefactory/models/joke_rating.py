"""JokeRating ORM: the QC verdict for one joke.

Invariants:
    - At most one rating per joke (upserted on joke_id)
    - rating between 1 and 5
    - A QC who has rated cannot be deleted (qc_user_id ON DELETE RESTRICT)
"""

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from jokefactory.core.domain_types import QCTag
from jokefactory.db.base import Base, BigIntId


class JokeRating(Base):
    """Rating entity."""
    __tablename__ = "joke_ratings"
    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_joke_ratings_range"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    joke_id: Mapped[int] = mapped_column(
        ForeignKey("jokes.joke_id", ondelete="CASCADE"), nullable=False, unique=True,
    )
    qc_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=False,
    )
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    tag: Mapped[QCTag] = mapped_column(
        Enum(QCTag, native_enum=False, length=30), nullable=False,
    )
    rated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
