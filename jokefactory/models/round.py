"""Round ORM: one timed play session with its own configuration.

Invariants:
    - round_id is chosen by the caller (instructor UI uses 1 and 2)
    - At most one row has status ACTIVE (uq_rounds_single_active, partial index)
    - customer_budget >= 0, batch_size >= 1, prices >= 0
    - started_at is set by the first start and never reset

Design Decisions:
    - Money columns as Numeric(10, 2) read back as float (asdecimal=False)
    - is_popped_active is a UI flag for the instructor popup, not game state
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean, CheckConstraint, DateTime, Enum, Index, Integer, Numeric, text,
)
from sqlalchemy.orm import Mapped, mapped_column

from jokefactory.core.domain_types import RoundStatus
from jokefactory.db.base import Base


class Round(Base):
    """Round entity."""
    __tablename__ = "rounds"
    __table_args__ = (
        CheckConstraint("customer_budget >= 0", name="ck_rounds_budget"),
        CheckConstraint("batch_size >= 1", name="ck_rounds_batch_size"),
        CheckConstraint("market_price >= 0", name="ck_rounds_market_price"),
        CheckConstraint("cost_of_publishing >= 0", name="ck_rounds_publish_cost"),
        Index(
            "uq_rounds_single_active", "status", unique=True,
            postgresql_where=text("status = 'ACTIVE'"),
            sqlite_where=text("status = 'ACTIVE'"),
        ),
    )

    round_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=False,
    )
    round_number: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[RoundStatus] = mapped_column(
        Enum(RoundStatus, native_enum=False, length=20),
        nullable=False, default=RoundStatus.CONFIGURED,
    )
    customer_budget: Mapped[int] = mapped_column(Integer, nullable=False)
    batch_size: Mapped[int] = mapped_column(Integer, nullable=False)
    market_price: Mapped[float] = mapped_column(
        Numeric(10, 2, asdecimal=False), nullable=False,
    )
    cost_of_publishing: Mapped[float] = mapped_column(
        Numeric(10, 2, asdecimal=False), nullable=False,
    )
    is_popped_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    ended_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
