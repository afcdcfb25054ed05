"""Joke ORM: one joke text belonging to exactly one batch.

Invariants:
    - joke_text immutable after insert
    - joke_title optional, set by QC while rating
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from jokefactory.core.domain_types import JOKE_TITLE_MAX_LENGTH
from jokefactory.db.base import Base, BigIntId


class Joke(Base):
    """Joke entity."""
    __tablename__ = "jokes"

    joke_id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    batch_id: Mapped[int] = mapped_column(
        ForeignKey("batches.batch_id", ondelete="CASCADE"), nullable=False, index=True,
    )
    joke_text: Mapped[str] = mapped_column(Text, nullable=False)
    joke_title: Mapped[str | None] = mapped_column(
        String(JOKE_TITLE_MAX_LENGTH), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    batch: Mapped["Batch"] = relationship(  # noqa: F821
        "Batch", back_populates="jokes",
    )
