"""Market Handlers: budgets, listing, buy and return.

Invariants:
    - remaining_budget stays within [0, starting_budget]
    - One purchase per (round, customer, joke)
    - Every buy/return writes one purchase event and moves team points by one
"""

import pytest
from sqlalchemy import select

from jokefactory.core.errors import (
    ConflictError, ForbiddenError, ResourceNotFoundError,
)
from jokefactory.models import PurchaseEvent, TeamRoundState
from jokefactory.services.handle_market import MarketHandlers
from jokefactory.services.handle_round import RoundHandlers
from tests.services.seed_data import rate_batch, submit_batch


@pytest.fixture
async def market(test_db, game):
    """Two rated batches of all 5s: six published jokes from Team 1."""
    joke_ids = []
    for _ in range(2):
        batch = await submit_batch(test_db, game)
        rated = await rate_batch(test_db, game, batch, [5, 5, 5])
        joke_ids.extend(rated.published_joke_ids)
    return {**game, "joke_ids": joke_ids}


async def _points(db) -> int:
    result = await db.execute(
        select(TeamRoundState).execution_options(populate_existing=True),
    )
    return result.scalar_one().points_earned


async def test_budget_created_from_round_budget(test_db, game):
    budget = await MarketHandlers(test_db).get_budget(1, game["customer"].user_id)
    await test_db.commit()

    assert budget.starting_budget == 5
    assert budget.remaining_budget == 5


async def test_budget_does_not_follow_reconfiguration(test_db, game):
    customer_id = game["customer"].user_id
    await MarketHandlers(test_db).get_budget(1, customer_id)
    await test_db.commit()
    await RoundHandlers(test_db).start(1, customer_budget=9)
    await test_db.commit()

    budget = await MarketHandlers(test_db).get_budget(1, customer_id)
    assert budget.starting_budget == 5


async def test_budget_requires_customer(test_db, game):
    with pytest.raises(ForbiddenError):
        await MarketHandlers(test_db).get_budget(1, game["jm"].user_id)


async def test_buy_spends_budget_and_scores_team(test_db, market):
    joke_id = market["joke_ids"][0]

    trade = await MarketHandlers(test_db).buy(1, market["customer"].user_id, joke_id)
    await test_db.commit()

    assert trade.joke_id == joke_id
    assert trade.team_id == market["team"].id
    assert trade.budget.remaining_budget == 4
    assert await _points(test_db) == 1


async def test_budget_exhausts_after_five_buys(test_db, market):
    handlers = MarketHandlers(test_db)
    customer_id = market["customer"].user_id
    for joke_id in market["joke_ids"][:5]:
        trade = await handlers.buy(1, customer_id, joke_id)
        await test_db.commit()
    assert trade.budget.remaining_budget == 0

    with pytest.raises(ConflictError, match="insufficient budget"):
        await handlers.buy(1, customer_id, market["joke_ids"][5])
    assert await _points(test_db) == 5


async def test_duplicate_buy_conflicts(test_db, market):
    handlers = MarketHandlers(test_db)
    customer_id = market["customer"].user_id
    joke_id = market["joke_ids"][0]
    await handlers.buy(1, customer_id, joke_id)
    await test_db.commit()

    with pytest.raises(ConflictError, match="already bought"):
        await handlers.buy(1, customer_id, joke_id)

    budget = await handlers.get_budget(1, customer_id)
    assert budget.remaining_budget == 4


async def test_buy_then_return_restores_state(test_db, market):
    handlers = MarketHandlers(test_db)
    customer_id = market["customer"].user_id
    joke_id = market["joke_ids"][0]

    await handlers.buy(1, customer_id, joke_id)
    await test_db.commit()
    trade = await handlers.return_joke(1, customer_id, joke_id)
    await test_db.commit()

    assert trade.budget.remaining_budget == 5
    assert await _points(test_db) == 0
    events = (await test_db.execute(
        select(PurchaseEvent).order_by(PurchaseEvent.event_id),
    )).scalars().all()
    assert [e.delta for e in events] == [1, -1]


async def test_rebuy_after_return_allowed(test_db, market):
    handlers = MarketHandlers(test_db)
    customer_id = market["customer"].user_id
    joke_id = market["joke_ids"][0]
    for action in (handlers.buy, handlers.return_joke, handlers.buy):
        trade = await action(1, customer_id, joke_id)
        await test_db.commit()
    assert trade.budget.remaining_budget == 4


async def test_return_without_purchase_conflicts(test_db, market):
    with pytest.raises(ConflictError, match="not bought yet"):
        await MarketHandlers(test_db).return_joke(
            1, market["customer"].user_id, market["joke_ids"][0],
        )


async def test_buy_unpublished_joke_not_found(test_db, game):
    batch = await submit_batch(test_db, game)
    with pytest.raises(ResourceNotFoundError):
        await MarketHandlers(test_db).buy(
            1, game["customer"].user_id, batch.jokes[0].joke_id,
        )


async def test_jm_cannot_buy(test_db, market):
    with pytest.raises(ForbiddenError):
        await MarketHandlers(test_db).buy(1, market["jm"].user_id, market["joke_ids"][0])


async def test_buy_after_round_end_conflicts(test_db, market):
    await RoundHandlers(test_db).end(1)
    await test_db.commit()

    with pytest.raises(ConflictError, match="round not active"):
        await MarketHandlers(test_db).buy(
            1, market["customer"].user_id, market["joke_ids"][0],
        )


async def test_return_after_round_end_conflicts(test_db, market):
    customer_id = market["customer"].user_id
    joke_id = market["joke_ids"][0]
    await MarketHandlers(test_db).buy(1, customer_id, joke_id)
    await RoundHandlers(test_db).end(1)
    await test_db.commit()

    with pytest.raises(ConflictError, match="round not active"):
        await MarketHandlers(test_db).return_joke(1, customer_id, joke_id)
    assert await _points(test_db) == 1


async def test_market_listing_decorates_items(test_db, market):
    handlers = MarketHandlers(test_db)
    customer_id = market["customer"].user_id
    bought = market["joke_ids"][0]
    await handlers.buy(1, customer_id, bought)
    await test_db.commit()

    items = await handlers.list_market(1, customer_id)

    assert [i["joke_id"] for i in items] == market["joke_ids"]
    first = items[0]
    assert first["is_bought_by_me"] is True
    assert first["total_bought_count"] == 1
    assert first["team"] == {"id": market["team"].id, "name": "Team 1"}
    assert first["performance_label"] == "HIGH_QUALITY"
    assert first["avg_score"] == 5.0
    assert first["accepted_count"] == 6
    assert first["sold_count"] == 1
    assert first["profit"] == 0.4
    assert items[1]["is_bought_by_me"] is False


async def test_instructor_can_view_market(test_db, market):
    items = await MarketHandlers(test_db).list_market(1, market["instructor"].user_id)
    assert len(items) == 6


async def test_qc_cannot_view_market(test_db, market):
    with pytest.raises(ForbiddenError):
        await MarketHandlers(test_db).list_market(1, market["qc"].user_id)
