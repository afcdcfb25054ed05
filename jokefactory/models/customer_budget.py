"""CustomerRoundBudget ORM: per-(round, customer) spending allowance.

Invariants:
    - One row per (round_id, customer_user_id)
    - 0 <= remaining_budget <= starting_budget
    - starting_budget is a snapshot of the round budget at first access
"""

from sqlalchemy import CheckConstraint, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from jokefactory.db.base import Base, BigIntId


class CustomerRoundBudget(Base):
    """Customer budget entity."""
    __tablename__ = "customer_round_budget"
    __table_args__ = (
        UniqueConstraint(
            "round_id", "customer_user_id", name="uq_customer_round_budget",
        ),
        CheckConstraint(
            "remaining_budget >= 0 AND remaining_budget <= starting_budget",
            name="ck_customer_round_budget_bounds",
        ),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    round_id: Mapped[int] = mapped_column(
        ForeignKey("rounds.round_id", ondelete="CASCADE"), nullable=False,
    )
    customer_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False,
    )
    starting_budget: Mapped[int] = mapped_column(Integer, nullable=False)
    remaining_budget: Mapped[int] = mapped_column(Integer, nullable=False)
