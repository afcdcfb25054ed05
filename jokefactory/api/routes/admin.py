"""Admin Routes: instructor login with the shared admin password, and game reset.

Invariants:
    - login is the only instructor route that needs no X-User-Id header
    - reset requires an INSTRUCTOR caller
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from jokefactory.api.dependencies import get_instructor
from jokefactory.config import Settings, get_settings
from jokefactory.infrastructure.database import get_db
from jokefactory.models.user import User
from jokefactory.schemas.session import AdminLoginRequest, SessionResponse
from jokefactory.services.handle_session import SessionHandlers

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/instructor", tags=["admin"])


@router.post("/login", response_model=SessionResponse)
async def login(
    body: AdminLoginRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user, round_ = await SessionHandlers(db, settings).admin_login(
        body.display_name, body.password,
    )
    await db.commit()
    return {"user": user, "round": round_}


@router.post("/reset")
async def reset_game(
    instructor: User = Depends(get_instructor),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    await SessionHandlers(db, settings).reset_game()
    await db.commit()
    logger.warning("Game reset by instructor", extra={"user_id": instructor.user_id})
    return {"status": "reset"}
