"""Instructor Routes: round configuration, lifecycle, assignment and analytics.

Invariants:
    - Every route requires an INSTRUCTOR caller (get_instructor)
    - Mutations commit once after the handler returns
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from jokefactory.api.dependencies import get_instructor
from jokefactory.infrastructure.database import get_db
from jokefactory.models.user import User
from jokefactory.schemas.instructor import (
    AssignRequest, PatchUserRequest, PopupRequest, RoundConfigRequest,
    StartRoundRequest,
)
from jokefactory.schemas.session import RoundResponse
from jokefactory.services.handle_assignment import AssignmentHandlers
from jokefactory.services.handle_round import RoundHandlers
from jokefactory.services.handle_stats import StatsHandlers

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/instructor/rounds", tags=["instructor"])


@router.get("/{round_id}/lobby")
async def lobby(
    round_id: int,
    instructor: User = Depends(get_instructor),
    db: AsyncSession = Depends(get_db),
):
    return await AssignmentHandlers(db).lobby(round_id)


@router.post("/{round_id}/config", response_model=RoundResponse)
async def configure_round(
    round_id: int,
    body: RoundConfigRequest,
    instructor: User = Depends(get_instructor),
    db: AsyncSession = Depends(get_db),
):
    round_ = await RoundHandlers(db).configure(
        round_id, body.customer_budget, body.batch_size,
        body.market_price, body.cost_of_publishing,
    )
    await db.commit()
    return round_


@router.post("/{round_id}/assign")
async def assign(
    round_id: int,
    body: AssignRequest,
    instructor: User = Depends(get_instructor),
    db: AsyncSession = Depends(get_db),
):
    snapshot = await AssignmentHandlers(db).assign(
        round_id, body.customer_count, body.team_count,
    )
    await db.commit()
    return snapshot


@router.patch("/{round_id}/users/{user_id}")
async def patch_user(
    round_id: int,
    user_id: int,
    body: PatchUserRequest,
    instructor: User = Depends(get_instructor),
    db: AsyncSession = Depends(get_db),
):
    snapshot = await AssignmentHandlers(db).patch_user(
        round_id, user_id, body.status, body.role, body.team_id,
    )
    await db.commit()
    return snapshot


@router.delete(
    "/{round_id}/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_user(
    round_id: int,
    user_id: int,
    instructor: User = Depends(get_instructor),
    db: AsyncSession = Depends(get_db),
):
    await AssignmentHandlers(db).delete_user(user_id)
    await db.commit()


@router.post("/{round_id}/start", response_model=RoundResponse)
async def start_round(
    round_id: int,
    body: StartRoundRequest | None = None,
    instructor: User = Depends(get_instructor),
    db: AsyncSession = Depends(get_db),
):
    body = body or StartRoundRequest()
    round_ = await RoundHandlers(db).start(
        round_id, body.customer_budget, body.batch_size,
        body.market_price, body.cost_of_publishing,
    )
    await db.commit()
    return round_


@router.post("/{round_id}/end", response_model=RoundResponse)
async def end_round(
    round_id: int,
    instructor: User = Depends(get_instructor),
    db: AsyncSession = Depends(get_db),
):
    round_ = await RoundHandlers(db).end(round_id)
    await db.commit()
    return round_


@router.post("/{round_id}/popup", response_model=RoundResponse)
async def set_popup(
    round_id: int,
    body: PopupRequest,
    instructor: User = Depends(get_instructor),
    db: AsyncSession = Depends(get_db),
):
    round_ = await RoundHandlers(db).set_popup_state(round_id, body.is_active)
    await db.commit()
    return round_


@router.get("/{round_id}/stats")
async def round_stats(
    round_id: int,
    instructor: User = Depends(get_instructor),
    db: AsyncSession = Depends(get_db),
):
    return await StatsHandlers(db).round_stats(round_id)
