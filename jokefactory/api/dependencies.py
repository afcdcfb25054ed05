"""Request Dependencies: caller identity from the X-User-Id header.

Invariants:
    - Missing or unknown X-User-Id -> UnauthorizedError (401)
    - Instructor routes additionally require role INSTRUCTOR -> ForbiddenError (403)

Design Decisions:
    - Identity is trusted as sent; there is no session token
"""

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from jokefactory.core.domain_types import Role
from jokefactory.core.errors import ErrorContext, ForbiddenError, UnauthorizedError
from jokefactory.infrastructure.database import get_db
from jokefactory.models.user import User


async def get_current_user(
    x_user_id: int | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> User:
    if x_user_id is None:
        raise UnauthorizedError("missing X-User-Id header")
    user = await db.get(User, x_user_id)
    if user is None:
        raise UnauthorizedError("unknown user", ErrorContext(user_id=x_user_id))
    return user


async def get_instructor(user: User = Depends(get_current_user)) -> User:
    if user.role != Role.INSTRUCTOR:
        raise ForbiddenError(
            "instructor role required", ErrorContext(user_id=user.user_id),
        )
    return user
