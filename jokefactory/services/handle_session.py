"""Session Handlers: lobby join, "who am I", instructor login and game reset.

Invariants:
    - Display names are trimmed; joining with an existing name reuses that user
    - A round always exists after join (round 1) or admin login (rounds 1 and 2)
    - Admin login fails with UnauthorizedError when no password is configured
    - reset_game() keeps instructor accounts and removes everything else

Design Decisions:
    - Seeded rounds take their configuration from Settings (game defaults)
    - Password comparison uses hmac.compare_digest
"""

import hmac
import logging

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from jokefactory.config import Settings
from jokefactory.core.assignment import Instructor, TeamMember
from jokefactory.core.domain_types import Role, RoundStatus
from jokefactory.core.errors import (
    ErrorContext, ResourceNotFoundError, UnauthorizedError, ValidationError,
)
from jokefactory.models import (
    Batch, CustomerRoundBudget, Joke, JokeRating, PublishedJoke, Purchase,
    PurchaseEvent, Round, Team, TeamRoundState, User,
)
from jokefactory.services.store_helpers import (
    get_user_or_404, insert_for, latest_round, utcnow,
)

logger = logging.getLogger(__name__)

DISPLAY_NAME_MAX_LENGTH = 100
SEEDED_ROUND_IDS = (1, 2)


class SessionHandlers:
    """Participant identity and instructor administration."""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings

    async def seed_round(self, round_id: int) -> None:
        """Insert a CONFIGURED round with default settings if it does not exist."""
        stmt = insert_for(self.db, Round).values(
            round_id=round_id,
            round_number=round_id,
            status=RoundStatus.CONFIGURED,
            customer_budget=self.settings.default_customer_budget,
            batch_size=self.settings.default_batch_size,
            market_price=self.settings.default_market_price,
            cost_of_publishing=self.settings.default_cost_of_publishing,
            is_popped_active=False,
        ).on_conflict_do_nothing(index_elements=["round_id"])
        await self.db.execute(stmt)

    async def _get_or_create_user(self, display_name: str) -> User:
        name = display_name.strip()
        if not name:
            raise ValidationError("display_name is required", field="display_name")
        if len(name) > DISPLAY_NAME_MAX_LENGTH:
            raise ValidationError(
                f"display_name longer than {DISPLAY_NAME_MAX_LENGTH} characters",
                field="display_name",
            )
        result = await self.db.execute(
            select(User).where(User.display_name == name),
        )
        user = result.scalar_one_or_none()
        if user is None:
            user = User(display_name=name)
            self.db.add(user)
            await self.db.flush()
        return user

    async def join(self, display_name: str) -> tuple[User, Round]:
        round_ = await latest_round(self.db)
        if round_ is None:
            await self.seed_round(SEEDED_ROUND_IDS[0])
            round_ = await latest_round(self.db)
        user = await self._get_or_create_user(display_name)
        logger.info(
            "Participant joined",
            extra={"user_id": user.user_id, "round_id": round_.round_id},
        )
        return user, round_

    async def me(self, user_id: int) -> dict:
        user = await get_user_or_404(self.db, user_id)
        round_ = await latest_round(self.db)
        if round_ is None:
            raise ResourceNotFoundError("round", context=ErrorContext(user_id=user_id))

        team = None
        teammates: list[dict] = []
        assignment = user.assignment
        if isinstance(assignment, TeamMember):
            team = await self.db.get(Team, assignment.team_id)
            result = await self.db.execute(
                select(User)
                .where(User.team_id == assignment.team_id, User.user_id != user_id)
                .order_by(User.user_id),
            )
            teammates = [
                {
                    "user_id": u.user_id,
                    "display_name": u.display_name,
                    "role": u.role.value,
                }
                for u in result.scalars().all()
            ]
        return {
            "user": user,
            "team": team,
            "teammates": teammates,
            "round": round_,
        }

    async def admin_login(self, display_name: str, password: str) -> tuple[User, Round]:
        expected = self.settings.admin_password
        if not expected:
            raise UnauthorizedError("admin password not configured")
        if not hmac.compare_digest(password.encode(), expected.encode()):
            raise UnauthorizedError("invalid admin password")

        user = await self._get_or_create_user(display_name)
        user.apply_assignment(Instructor(), utcnow())
        for round_id in SEEDED_ROUND_IDS:
            await self.seed_round(round_id)
        await self.db.flush()
        round_ = await latest_round(self.db)

        logger.info("Instructor logged in", extra={"user_id": user.user_id})
        return user, round_

    async def reset_game(self) -> None:
        """Delete all game data and non-instructor users, then reseed rounds."""
        for model in (
            PurchaseEvent, Purchase, CustomerRoundBudget, PublishedJoke,
            JokeRating, Joke, Batch, TeamRoundState,
        ):
            await self.db.execute(delete(model))
        await self.db.execute(
            delete(User).where(
                or_(User.role.is_(None), User.role != Role.INSTRUCTOR),
            ),
        )
        await self.db.execute(delete(Team))
        await self.db.execute(delete(Round))
        for round_id in SEEDED_ROUND_IDS:
            await self.seed_round(round_id)
        self.db.expunge_all()
        logger.info("Game reset")
