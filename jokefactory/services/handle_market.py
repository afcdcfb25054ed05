"""Market Handlers: customer budgets, market listing, buy and return.

Invariants:
    - A budget row is created lazily from the round budget at first access
      and never follows later round reconfiguration
    - buy/return lock the budget row FOR UPDATE before reading it, so the
      same customer's trades serialize
    - Budget change, team points change, purchase row and purchase event
      are written in the same transaction
    - remaining_budget stays within [0, starting_budget]; points never below 0
    - Deleting a customer reverses their purchases first, so team points
      always equal the purchases still on record

Design Decisions:
    - Duplicate purchases are caught both by a prior lookup and by the
      (round, customer, joke) unique constraint
"""

import logging
from dataclasses import dataclass

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from jokefactory.core.domain_types import BatchStatus, Role
from jokefactory.core.errors import (
    ConflictError, ErrorContext, ForbiddenError, ResourceNotFoundError,
)
from jokefactory.core.market_rules import (
    POINTS_PER_SALE, apply_points, performance_label, refund, require_budget,
    spend, team_profit,
)
from jokefactory.models.batch import Batch
from jokefactory.models.customer_budget import CustomerRoundBudget
from jokefactory.models.joke import Joke
from jokefactory.models.published_joke import PublishedJoke
from jokefactory.models.purchase import Purchase
from jokefactory.models.purchase_event import PurchaseEvent
from jokefactory.models.round import Round
from jokefactory.models.team import Team
from jokefactory.models.team_round_state import TeamRoundState
from jokefactory.models.user import User
from jokefactory.services.store_helpers import (
    get_active_round, get_round_or_404, get_user_or_404, insert_for,
    lock_team_state,
)

logger = logging.getLogger(__name__)


@dataclass
class TradeResult:
    joke_id: int
    team_id: int
    budget: CustomerRoundBudget


class MarketHandlers:
    """Market Engine."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _require_role(
        self, user_id: int, roles: frozenset[Role], context: ErrorContext,
    ) -> User:
        user = await get_user_or_404(self.db, user_id)
        if user.role not in roles:
            names = " or ".join(sorted(r.value.lower() for r in roles))
            raise ForbiddenError(f"user must be {names}", context)
        return user

    async def ensure_budget(
        self, round_: Round, customer_id: int, for_update: bool = False,
    ) -> CustomerRoundBudget:
        stmt = insert_for(self.db, CustomerRoundBudget).values(
            round_id=round_.round_id,
            customer_user_id=customer_id,
            starting_budget=round_.customer_budget,
            remaining_budget=round_.customer_budget,
        ).on_conflict_do_nothing(index_elements=["round_id", "customer_user_id"])
        await self.db.execute(stmt)

        query = (
            select(CustomerRoundBudget)
            .where(
                CustomerRoundBudget.round_id == round_.round_id,
                CustomerRoundBudget.customer_user_id == customer_id,
            )
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one()

    async def get_budget(self, round_id: int, user_id: int) -> CustomerRoundBudget:
        context = ErrorContext(round_id=round_id, user_id=user_id)
        await self._require_role(user_id, frozenset({Role.CUSTOMER}), context)
        round_ = await get_round_or_404(self.db, round_id)
        return await self.ensure_budget(round_, user_id)

    async def list_market(self, round_id: int, user_id: int) -> list[dict]:
        """Published jokes decorated with team signals and the caller's purchases."""
        context = ErrorContext(round_id=round_id, user_id=user_id)
        user = await self._require_role(
            user_id, frozenset({Role.CUSTOMER, Role.INSTRUCTOR}), context,
        )
        round_ = await get_active_round(self.db, round_id)
        if user.role == Role.CUSTOMER:
            await self.ensure_budget(round_, user_id)

        team_sales = dict((await self.db.execute(
            select(PublishedJoke.team_id, func.count(Purchase.purchase_id))
            .join(Purchase, Purchase.joke_id == PublishedJoke.joke_id)
            .where(PublishedJoke.round_id == round_id)
            .group_by(PublishedJoke.team_id),
        )).all())
        team_scores = {
            team_id: (avg, rated)
            for team_id, avg, rated in (await self.db.execute(
                select(Batch.team_id, func.avg(Batch.avg_score), func.count(Batch.batch_id))
                .where(Batch.round_id == round_id, Batch.status == BatchStatus.RATED)
                .group_by(Batch.team_id),
            )).all()
        }
        accepted = dict((await self.db.execute(
            select(TeamRoundState.team_id, TeamRoundState.accepted_jokes)
            .where(TeamRoundState.round_id == round_id),
        )).all())
        joke_sales = dict((await self.db.execute(
            select(Purchase.joke_id, func.count(Purchase.purchase_id))
            .where(Purchase.round_id == round_id)
            .group_by(Purchase.joke_id),
        )).all())
        mine = set((await self.db.execute(
            select(Purchase.joke_id).where(
                Purchase.round_id == round_id, Purchase.customer_user_id == user_id,
            ),
        )).scalars().all())

        rows = await self.db.execute(
            select(PublishedJoke, Joke, Team)
            .join(Joke, Joke.joke_id == PublishedJoke.joke_id)
            .join(Team, Team.id == PublishedJoke.team_id)
            .where(PublishedJoke.round_id == round_id)
            .order_by(PublishedJoke.joke_id),
        )
        items = []
        for published, joke, team in rows.all():
            avg, rated = team_scores.get(team.id, (None, 0))
            avg = round(float(avg), 2) if avg is not None else None
            sold = team_sales.get(team.id, 0)
            accepted_count = accepted.get(team.id, 0)
            items.append({
                "joke_id": joke.joke_id,
                "joke_text": joke.joke_text,
                "joke_title": joke.joke_title,
                "team": {"id": team.id, "name": team.name},
                "performance_label": performance_label(avg, rated),
                "avg_score": avg,
                "accepted_count": accepted_count,
                "sold_count": sold,
                "profit": team_profit(
                    sold, accepted_count, round_.market_price, round_.cost_of_publishing,
                ),
                "total_bought_count": joke_sales.get(joke.joke_id, 0),
                "is_bought_by_me": joke.joke_id in mine,
            })
        return items

    async def _published_joke(
        self, round_id: int, joke_id: int, context: ErrorContext,
    ) -> PublishedJoke:
        result = await self.db.execute(
            select(PublishedJoke).where(
                PublishedJoke.joke_id == joke_id, PublishedJoke.round_id == round_id,
            ),
        )
        published = result.scalar_one_or_none()
        if published is None:
            raise ResourceNotFoundError("published joke", joke_id, context)
        return published

    async def buy(self, round_id: int, user_id: int, joke_id: int) -> TradeResult:
        context = ErrorContext(round_id=round_id, user_id=user_id, joke_id=joke_id)
        await self._require_role(user_id, frozenset({Role.CUSTOMER}), context)
        round_ = await get_active_round(self.db, round_id)

        budget = await self.ensure_budget(round_, user_id, for_update=True)
        require_budget(budget.remaining_budget, context)
        published = await self._published_joke(round_id, joke_id, context)
        context.team_id = published.team_id

        existing = await self.db.execute(
            select(Purchase.purchase_id).where(
                Purchase.round_id == round_id,
                Purchase.customer_user_id == user_id,
                Purchase.joke_id == joke_id,
            ),
        )
        if existing.scalar_one_or_none() is not None:
            raise ConflictError("already bought", context)

        self.db.add(Purchase(
            round_id=round_id, customer_user_id=user_id, joke_id=joke_id,
        ))
        try:
            await self.db.flush()
        except IntegrityError:
            raise ConflictError("already bought", context) from None

        budget.remaining_budget = spend(budget.remaining_budget)
        state = await lock_team_state(self.db, round_id, published.team_id)
        state.points_earned = apply_points(state.points_earned, POINTS_PER_SALE)
        self.db.add(PurchaseEvent(
            round_id=round_id, team_id=published.team_id,
            customer_user_id=user_id, joke_id=joke_id, delta=1,
        ))
        await self.db.flush()

        logger.info(
            f"Joke bought, {budget.remaining_budget} budget left",
            extra={
                "round_id": round_id, "user_id": user_id,
                "joke_id": joke_id, "team_id": published.team_id,
            },
        )
        return TradeResult(joke_id=joke_id, team_id=published.team_id, budget=budget)

    async def return_joke(self, round_id: int, user_id: int, joke_id: int) -> TradeResult:
        context = ErrorContext(round_id=round_id, user_id=user_id, joke_id=joke_id)
        await self._require_role(user_id, frozenset({Role.CUSTOMER}), context)
        round_ = await get_active_round(self.db, round_id)

        budget = await self.ensure_budget(round_, user_id, for_update=True)
        result = await self.db.execute(
            select(Purchase)
            .where(
                Purchase.round_id == round_id,
                Purchase.customer_user_id == user_id,
                Purchase.joke_id == joke_id,
            )
            .with_for_update(),
        )
        purchase = result.scalar_one_or_none()
        if purchase is None:
            raise ConflictError("not bought yet", context)
        published = await self._published_joke(round_id, joke_id, context)

        await self.db.delete(purchase)
        budget.remaining_budget = refund(budget.remaining_budget, budget.starting_budget)
        state = await lock_team_state(self.db, round_id, published.team_id)
        state.points_earned = apply_points(state.points_earned, -POINTS_PER_SALE)
        self.db.add(PurchaseEvent(
            round_id=round_id, team_id=published.team_id,
            customer_user_id=user_id, joke_id=joke_id, delta=-1,
        ))
        await self.db.flush()

        logger.info(
            f"Joke returned, {budget.remaining_budget} budget left",
            extra={
                "round_id": round_id, "user_id": user_id,
                "joke_id": joke_id, "team_id": published.team_id,
            },
        )
        return TradeResult(joke_id=joke_id, team_id=published.team_id, budget=budget)

    async def revoke_customer_purchases(self, user_id: int) -> int:
        """Undo every purchase and budget of a customer about to be deleted.

        Each purchase is reversed like a return (team points - 1, event - 1),
        so team points keep matching the purchases that remain.
        """
        result = await self.db.execute(
            select(Purchase, PublishedJoke.team_id)
            .join(PublishedJoke, PublishedJoke.joke_id == Purchase.joke_id)
            .where(Purchase.customer_user_id == user_id)
            .order_by(Purchase.purchase_id)
            .with_for_update(of=Purchase),
        )
        purchases = result.all()
        for purchase, team_id in purchases:
            state = await lock_team_state(self.db, purchase.round_id, team_id)
            state.points_earned = apply_points(state.points_earned, -POINTS_PER_SALE)
            self.db.add(PurchaseEvent(
                round_id=purchase.round_id, team_id=team_id,
                customer_user_id=None, joke_id=purchase.joke_id, delta=-1,
            ))
            await self.db.delete(purchase)
        await self.db.execute(
            delete(CustomerRoundBudget)
            .where(CustomerRoundBudget.customer_user_id == user_id)
            .execution_options(synchronize_session="fetch"),
        )
        await self.db.flush()
        return len(purchases)
