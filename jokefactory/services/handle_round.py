"""Round Handlers: configuration and lifecycle transitions of a round.

Invariants:
    - configure() is an idempotent upsert that never changes status
    - start() locks the round row, refuses while another round is ACTIVE,
      and applies configuration in the same transaction as the transition
    - started_at is written only by the first start; ended_at cleared on (re)start
    - "latest round" is always a query, never cached

Design Decisions:
    - The partial unique index on rounds.status is the last line against two
      concurrent starts; its IntegrityError is surfaced as ConflictError
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from jokefactory.core.domain_types import RoundStatus
from jokefactory.core.enforce_round import check_transition, validate_round_config
from jokefactory.core.errors import ConflictError, ErrorContext
from jokefactory.models.round import Round
from jokefactory.services.store_helpers import (
    get_round_or_404, insert_for, latest_round, utcnow,
)

logger = logging.getLogger(__name__)


class RoundHandlers:
    """Round Lifecycle Manager."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, round_id: int) -> Round:
        return await get_round_or_404(self.db, round_id)

    async def active(self) -> Round | None:
        result = await self.db.execute(
            select(Round).where(Round.status == RoundStatus.ACTIVE),
        )
        return result.scalar_one_or_none()

    async def latest(self) -> Round | None:
        return await latest_round(self.db)

    async def configure(
        self,
        round_id: int,
        customer_budget: int,
        batch_size: int,
        market_price: float,
        cost_of_publishing: float,
    ) -> Round:
        """Create the round as CONFIGURED, or update its settings in place."""
        validate_round_config(
            customer_budget, batch_size, market_price, cost_of_publishing,
        )
        settings = {
            "customer_budget": customer_budget,
            "batch_size": batch_size,
            "market_price": market_price,
            "cost_of_publishing": cost_of_publishing,
        }
        stmt = insert_for(self.db, Round).values(
            round_id=round_id,
            round_number=round_id,
            status=RoundStatus.CONFIGURED,
            is_popped_active=False,
            **settings,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["round_id"], set_=settings,
        )
        await self.db.execute(stmt)
        round_ = await get_round_or_404(self.db, round_id, for_update=True)
        logger.info(
            "Round configured", extra={"round_id": round_id},
        )
        return round_

    async def start(
        self,
        round_id: int,
        customer_budget: int | None = None,
        batch_size: int | None = None,
        market_price: float | None = None,
        cost_of_publishing: float | None = None,
    ) -> Round:
        """Move the round to ACTIVE, applying any supplied settings."""
        round_ = await get_round_or_404(self.db, round_id, for_update=True)
        check_transition(round_id, round_.status, RoundStatus.ACTIVE)

        other = await self.db.execute(
            select(Round.round_id).where(
                Round.status == RoundStatus.ACTIVE, Round.round_id != round_id,
            ),
        )
        other_id = other.scalar_one_or_none()
        if other_id is not None:
            raise ConflictError(
                f"round {other_id} is already active",
                ErrorContext(round_id=round_id),
            )

        budget = round_.customer_budget if customer_budget is None else customer_budget
        size = round_.batch_size if batch_size is None else batch_size
        price = round_.market_price if market_price is None else market_price
        cost = (
            round_.cost_of_publishing
            if cost_of_publishing is None else cost_of_publishing
        )
        validate_round_config(budget, size, price, cost)

        round_.customer_budget = budget
        round_.batch_size = size
        round_.market_price = price
        round_.cost_of_publishing = cost
        round_.status = RoundStatus.ACTIVE
        if round_.started_at is None:
            round_.started_at = utcnow()
        round_.ended_at = None
        try:
            await self.db.flush()
        except IntegrityError:
            raise ConflictError(
                "another round is already active", ErrorContext(round_id=round_id),
            ) from None

        logger.info("Round started", extra={"round_id": round_id})
        return round_

    async def end(self, round_id: int) -> Round:
        round_ = await get_round_or_404(self.db, round_id, for_update=True)
        check_transition(round_id, round_.status, RoundStatus.ENDED)
        round_.status = RoundStatus.ENDED
        round_.ended_at = utcnow()
        await self.db.flush()
        logger.info("Round ended", extra={"round_id": round_id})
        return round_

    async def set_popup_state(self, round_id: int, is_active: bool) -> Round:
        round_ = await get_round_or_404(self.db, round_id, for_update=True)
        round_.is_popped_active = is_active
        await self.db.flush()
        return round_
