"""Session Routes: lobby join and the caller's own view.

Invariants:
    - join needs no identity header; it returns the user_id the client sends afterwards
    - me reflects the latest round, never a cached one
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from jokefactory.api.dependencies import get_current_user
from jokefactory.config import Settings, get_settings
from jokefactory.infrastructure.database import get_db
from jokefactory.models.user import User
from jokefactory.schemas.session import JoinRequest, MeResponse, SessionResponse
from jokefactory.services.handle_session import SessionHandlers

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/session", tags=["session"])


@router.post(
    "/join", response_model=SessionResponse, status_code=status.HTTP_201_CREATED,
)
async def join(
    body: JoinRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Join the lobby, reusing the user if the display name exists."""
    user, round_ = await SessionHandlers(db, settings).join(body.display_name)
    await db.commit()
    return {"user": user, "round": round_}


@router.get("/me", response_model=MeResponse)
async def me(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return await SessionHandlers(db, settings).me(user.user_id)
