"""Store Helpers: shared loaders, row locks and dialect-aware upserts.

Invariants:
    - *_or_404 loaders raise ResourceNotFoundError, never return None
    - lock_* helpers issue SELECT ... FOR UPDATE and refresh the identity map
    - insert_for() returns the PostgreSQL or SQLite INSERT construct so
      ON CONFLICT clauses work on both

Design Decisions:
    - FOR UPDATE is a no-op on SQLite; the tests run serialized on one connection
"""

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from jokefactory.core.enforce_round import require_active
from jokefactory.core.errors import ErrorContext, ResourceNotFoundError
from jokefactory.models.round import Round
from jokefactory.models.team import Team
from jokefactory.models.team_round_state import TeamRoundState
from jokefactory.models.user import User


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def insert_for(db: AsyncSession, model):
    """Dialect-specific INSERT supporting on_conflict_do_nothing/do_update."""
    if db.get_bind().dialect.name == "postgresql":
        return pg_insert(model)
    return sqlite_insert(model)


async def get_round_or_404(
    db: AsyncSession, round_id: int, for_update: bool = False,
) -> Round:
    stmt = select(Round).where(Round.round_id == round_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(stmt)
    round_ = result.scalar_one_or_none()
    if round_ is None:
        raise ResourceNotFoundError(
            "round", round_id, ErrorContext(round_id=round_id),
        )
    return round_


async def get_active_round(db: AsyncSession, round_id: int) -> Round:
    """Load the round and fail with ConflictError unless it is ACTIVE."""
    round_ = await get_round_or_404(db, round_id)
    require_active(round_.round_id, round_.status)
    return round_


async def get_user_or_404(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise ResourceNotFoundError(
            "user", user_id, ErrorContext(user_id=user_id),
        )
    return user


async def get_team_or_404(db: AsyncSession, team_id: int) -> Team:
    team = await db.get(Team, team_id)
    if team is None:
        raise ResourceNotFoundError(
            "team", team_id, ErrorContext(team_id=team_id),
        )
    return team


async def latest_round(db: AsyncSession) -> Round | None:
    result = await db.execute(
        select(Round).order_by(Round.round_id.desc()).limit(1),
    )
    return result.scalar_one_or_none()


async def ensure_team_state(db: AsyncSession, round_id: int, team_id: int) -> None:
    stmt = insert_for(db, TeamRoundState).values(
        round_id=round_id, team_id=team_id,
        points_earned=0, batches_created=0, batches_rated=0, accepted_jokes=0,
    ).on_conflict_do_nothing(index_elements=["round_id", "team_id"])
    await db.execute(stmt)


async def lock_team_state(
    db: AsyncSession, round_id: int, team_id: int,
) -> TeamRoundState:
    """Ensure the (round, team) counters row exists and lock it."""
    await ensure_team_state(db, round_id, team_id)
    result = await db.execute(
        select(TeamRoundState)
        .where(
            TeamRoundState.round_id == round_id,
            TeamRoundState.team_id == team_id,
        )
        .with_for_update()
        .execution_options(populate_existing=True),
    )
    return result.scalar_one()


