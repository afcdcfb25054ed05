"""Team ORM: a named group of one JM and one QC.

Invariants:
    - name is unique ("Team N")
    - Removed only by a full game reset
"""

from datetime import datetime, timezone

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from jokefactory.db.base import Base, BigIntId


class Team(Base):
    """Team entity."""
    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
