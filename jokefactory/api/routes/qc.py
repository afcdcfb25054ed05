"""QC Routes: claim the next batch, rate it, poll queue depth.

Invariants:
    - next and rate each commit exactly once; a failed rating commits nothing
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from jokefactory.api.dependencies import get_current_user
from jokefactory.infrastructure.database import get_db
from jokefactory.models.user import User
from jokefactory.schemas.qc import (
    QueueCountResponse, QueueNextResponse, RateRequest, RateResponse,
)
from jokefactory.services.handle_qc import QCHandlers

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/qc", tags=["qc"])


@router.get("/queue/next", response_model=QueueNextResponse)
async def next_batch(
    round_id: int = Query(...),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    queued = await QCHandlers(db).next_batch(user.user_id, round_id)
    await db.commit()
    return {
        "batch": queued.batch,
        "jokes": queued.jokes,
        "queue_count": queued.queue_count,
    }


@router.post("/batches/{batch_id}/ratings", response_model=RateResponse)
async def rate_batch(
    batch_id: int,
    body: RateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    rated = await QCHandlers(db).rate(
        user.user_id, batch_id,
        [r.to_input() for r in body.ratings], body.feedback,
    )
    await db.commit()
    return {"batch": rated.batch, "published_joke_ids": rated.published_joke_ids}


@router.get("/queue/count", response_model=QueueCountResponse)
async def queue_count(
    round_id: int = Query(...),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    count = await QCHandlers(db).queue_count(round_id)
    return {"round_id": round_id, "queue_count": count}
