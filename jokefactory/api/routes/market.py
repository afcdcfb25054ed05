"""Market Routes: listing, budget, buy and return for customers.

Invariants:
    - Listing and budget may create the caller's budget row, so they commit too
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from jokefactory.api.dependencies import get_current_user
from jokefactory.infrastructure.database import get_db
from jokefactory.models.user import User
from jokefactory.schemas.market import BudgetResponse, TradeResponse
from jokefactory.services.handle_market import MarketHandlers

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/rounds/{round_id}", tags=["market"])


@router.get("/market")
async def list_market(
    round_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    items = await MarketHandlers(db).list_market(round_id, user.user_id)
    await db.commit()
    return {"round_id": round_id, "items": items}


@router.get("/customers/budget", response_model=BudgetResponse)
async def customer_budget(
    round_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    budget = await MarketHandlers(db).get_budget(round_id, user.user_id)
    await db.commit()
    return budget


@router.post("/market/{joke_id}/buy", response_model=TradeResponse)
async def buy_joke(
    round_id: int,
    joke_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    trade = await MarketHandlers(db).buy(round_id, user.user_id, joke_id)
    await db.commit()
    return {"joke_id": trade.joke_id, "team_id": trade.team_id, "budget": trade.budget}


@router.post("/market/{joke_id}/return", response_model=TradeResponse)
async def return_joke(
    round_id: int,
    joke_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    trade = await MarketHandlers(db).return_joke(round_id, user.user_id, joke_id)
    await db.commit()
    return {"joke_id": trade.joke_id, "team_id": trade.team_id, "budget": trade.budget}
