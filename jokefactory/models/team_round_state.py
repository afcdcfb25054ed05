"""TeamRoundState ORM: running per-(round, team) counters.

Invariants:
    - One row per (round_id, team_id)
    - Counters never negative (CHECK constraints; points clamped in code)
    - Mutated only while the row is locked FOR UPDATE
"""

from sqlalchemy import CheckConstraint, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from jokefactory.db.base import Base, BigIntId


class TeamRoundState(Base):
    """Per-round team aggregates."""
    __tablename__ = "team_rounds_state"
    __table_args__ = (
        UniqueConstraint("round_id", "team_id", name="uq_team_rounds_state"),
        CheckConstraint(
            "points_earned >= 0 AND batches_created >= 0"
            " AND batches_rated >= 0 AND accepted_jokes >= 0",
            name="ck_team_rounds_state_non_negative",
        ),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    round_id: Mapped[int] = mapped_column(
        ForeignKey("rounds.round_id", ondelete="CASCADE"), nullable=False,
    )
    team_id: Mapped[int] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"), nullable=False,
    )
    points_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    batches_created: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    batches_rated: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    accepted_jokes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
