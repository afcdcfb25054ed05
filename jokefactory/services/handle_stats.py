"""Stats Handlers: leaderboard, team summary and instructor analytics.

Invariants:
    - Read-only: nothing here writes or locks
    - Ranks are DENSE_RANK over points_earned DESC (ties share a rank, no gaps)
    - Every series is recomputed from committed rows on each call
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from jokefactory.core.domain_types import BatchStatus
from jokefactory.core.errors import ErrorContext, ResourceNotFoundError
from jokefactory.core.market_rules import team_profit
from jokefactory.core.round_analytics import acceptance_rate, rejection_rate
from jokefactory.models.batch import Batch
from jokefactory.models.joke import Joke
from jokefactory.models.joke_rating import JokeRating
from jokefactory.models.published_joke import PublishedJoke
from jokefactory.models.purchase import Purchase
from jokefactory.models.purchase_event import PurchaseEvent
from jokefactory.models.team import Team
from jokefactory.models.team_round_state import TeamRoundState
from jokefactory.services.store_helpers import get_round_or_404, get_team_or_404

logger = logging.getLogger(__name__)


def _avg(value) -> float:
    return round(float(value), 2) if value is not None else 0.0


class StatsHandlers:
    """Stats Aggregator."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _team_sales(self, round_id: int) -> dict[int, int]:
        result = await self.db.execute(
            select(PublishedJoke.team_id, func.count(Purchase.purchase_id))
            .join(Purchase, Purchase.joke_id == PublishedJoke.joke_id)
            .where(Purchase.round_id == round_id)
            .group_by(PublishedJoke.team_id),
        )
        return dict(result.all())

    async def _team_scores(self, round_id: int) -> dict[int, float]:
        result = await self.db.execute(
            select(Batch.team_id, func.avg(Batch.avg_score))
            .where(Batch.round_id == round_id, Batch.status == BatchStatus.RATED)
            .group_by(Batch.team_id),
        )
        return {team_id: _avg(avg) for team_id, avg in result.all()}

    async def leaderboard(self, round_id: int) -> list[dict]:
        await get_round_or_404(self.db, round_id)
        rank = func.dense_rank().over(
            order_by=TeamRoundState.points_earned.desc(),
        ).label("rank")
        result = await self.db.execute(
            select(TeamRoundState, Team, rank)
            .join(Team, Team.id == TeamRoundState.team_id)
            .where(TeamRoundState.round_id == round_id)
            .order_by(rank, Team.id),
        )
        sales = await self._team_sales(round_id)
        scores = await self._team_scores(round_id)
        return [
            {
                "rank": int(team_rank),
                "team": {"id": team.id, "name": team.name},
                "points": state.points_earned,
                "total_sales": sales.get(team.id, 0),
                "batches_created": state.batches_created,
                "batches_rated": state.batches_rated,
                "accepted_jokes": state.accepted_jokes,
                "avg_score": scores.get(team.id, 0.0),
            }
            for state, team, team_rank in result.all()
        ]

    async def team_summary(self, round_id: int, team_id: int) -> dict:
        team = await get_team_or_404(self.db, team_id)
        board = await self.leaderboard(round_id)
        row = next((r for r in board if r["team"]["id"] == team_id), None)
        if row is None:
            raise ResourceNotFoundError(
                "team summary", team_id,
                ErrorContext(round_id=round_id, team_id=team_id),
            )
        unrated = await self.db.execute(
            select(func.count(Batch.batch_id)).where(
                Batch.round_id == round_id,
                Batch.team_id == team.id,
                Batch.status == BatchStatus.SUBMITTED,
            ),
        )
        return {
            **row,
            "round_id": round_id,
            "unrated_batches": int(unrated.scalar_one()),
        }

    async def round_stats(self, round_id: int) -> dict:
        """Leaderboard plus the instructor dashboard series."""
        round_ = await get_round_or_404(self.db, round_id)
        board = await self.leaderboard(round_id)
        return {
            "round_id": round_id,
            "leaderboard": board,
            "sales_over_time": await self._sales_over_time(round_id),
            "batch_quality_by_size": await self._batch_quality_by_size(round_id),
            "learning_curve": await self._learning_curve(round_id),
            "output_vs_rejection": await self._output_vs_rejection(round_id, board),
            "revenue_vs_acceptance": await self._revenue_vs_acceptance(
                round_id, board, round_.market_price, round_.cost_of_publishing,
            ),
        }

    async def _sales_over_time(self, round_id: int) -> list[dict]:
        order = [PurchaseEvent.created_at, PurchaseEvent.event_id]
        result = await self.db.execute(
            select(
                PurchaseEvent.created_at,
                PurchaseEvent.team_id,
                PurchaseEvent.delta,
                func.sum(PurchaseEvent.delta).over(order_by=order).label("total"),
                func.sum(PurchaseEvent.delta).over(
                    partition_by=PurchaseEvent.team_id, order_by=order,
                ).label("team_total"),
            )
            .where(PurchaseEvent.round_id == round_id)
            .order_by(*order),
        )
        return [
            {
                "timestamp": created_at,
                "team_id": team_id,
                "delta": delta,
                "total_sales": int(total),
                "team_sales": int(team_total),
            }
            for created_at, team_id, delta, total, team_total in result.all()
        ]

    async def _batch_quality_by_size(self, round_id: int) -> list[dict]:
        sizes = (
            select(Batch.batch_id, Batch.avg_score, func.count(Joke.joke_id).label("size"))
            .join(Joke, Joke.batch_id == Batch.batch_id)
            .where(Batch.round_id == round_id, Batch.status == BatchStatus.RATED)
            .group_by(Batch.batch_id, Batch.avg_score)
            .subquery()
        )
        result = await self.db.execute(
            select(sizes.c.size, func.avg(sizes.c.avg_score), func.count())
            .group_by(sizes.c.size)
            .order_by(sizes.c.size),
        )
        return [
            {"batch_size": int(size), "avg_score": _avg(avg), "batches": int(count)}
            for size, avg, count in result.all()
        ]

    async def _learning_curve(self, round_id: int) -> list[dict]:
        order = func.row_number().over(
            partition_by=Batch.team_id,
            order_by=[Batch.submitted_at, Batch.batch_id],
        ).label("submission_order")
        result = await self.db.execute(
            select(Batch.team_id, Batch.batch_id, Batch.avg_score, order)
            .where(Batch.round_id == round_id, Batch.status == BatchStatus.RATED)
            .order_by(Batch.team_id, order),
        )
        return [
            {
                "team_id": team_id,
                "batch_id": batch_id,
                "submission_order": int(position),
                "avg_score": _avg(avg),
            }
            for team_id, batch_id, avg, position in result.all()
        ]

    async def _rated_jokes(self, round_id: int) -> dict[int, int]:
        result = await self.db.execute(
            select(Batch.team_id, func.count(JokeRating.id))
            .join(Joke, Joke.batch_id == Batch.batch_id)
            .join(JokeRating, JokeRating.joke_id == Joke.joke_id)
            .where(Batch.round_id == round_id, Batch.status == BatchStatus.RATED)
            .group_by(Batch.team_id),
        )
        return dict(result.all())

    async def _output_vs_rejection(self, round_id: int, board: list[dict]) -> list[dict]:
        rated = await self._rated_jokes(round_id)
        series = []
        for row in board:
            team_id = row["team"]["id"]
            rated_jokes = rated.get(team_id, 0)
            series.append({
                "team_id": team_id,
                "batches_rated": row["batches_rated"],
                "rated_jokes": rated_jokes,
                "accepted_jokes": row["accepted_jokes"],
                "rejection_rate": rejection_rate(rated_jokes, row["accepted_jokes"]),
            })
        return series

    async def _revenue_vs_acceptance(
        self, round_id: int, board: list[dict],
        market_price: float, cost_of_publishing: float,
    ) -> list[dict]:
        rated = await self._rated_jokes(round_id)
        series = []
        for row in board:
            team_id = row["team"]["id"]
            sales = row["total_sales"]
            series.append({
                "team_id": team_id,
                "total_sales": sales,
                "revenue": round(sales * market_price, 2),
                "profit": team_profit(
                    sales, row["accepted_jokes"], market_price, cost_of_publishing,
                ),
                "acceptance_rate": acceptance_rate(
                    rated.get(team_id, 0), row["accepted_jokes"],
                ),
            })
        return series
