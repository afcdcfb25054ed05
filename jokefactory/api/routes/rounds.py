"""Round Routes: active round lookup, JM batch submission, team views.

Invariants:
    - Every write goes through one handler call and one commit
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from jokefactory.api.dependencies import get_current_user
from jokefactory.infrastructure.database import get_db
from jokefactory.models.user import User
from jokefactory.schemas.batch import BatchResponse, BatchSubmit
from jokefactory.schemas.session import RoundResponse
from jokefactory.services.handle_batch import BatchHandlers
from jokefactory.services.handle_round import RoundHandlers
from jokefactory.services.handle_stats import StatsHandlers

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/rounds", tags=["rounds"])


@router.get("/active")
async def active_round(db: AsyncSession = Depends(get_db)):
    """The ACTIVE round, or null when none is running."""
    round_ = await RoundHandlers(db).active()
    return {
        "round": RoundResponse.model_validate(round_) if round_ else None,
    }


@router.get("/{round_id}/teams/{team_id}/summary")
async def team_summary(
    round_id: int,
    team_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await StatsHandlers(db).team_summary(round_id, team_id)


@router.post(
    "/{round_id}/batches",
    response_model=BatchResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_batch(
    round_id: int,
    body: BatchSubmit,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    batch = await BatchHandlers(db).submit(
        user.user_id, round_id, body.team_id, body.jokes,
    )
    await db.commit()
    return batch


@router.get("/{round_id}/teams/{team_id}/batches")
async def team_batches(
    round_id: int,
    team_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    batches = await BatchHandlers(db).list_team_batches(
        user.user_id, round_id, team_id,
    )
    return {"round_id": round_id, "team_id": team_id, "batches": batches}
