"""Assignment Handlers: team/role distribution, single-user corrections, lobby view.

Invariants:
    - assign() is not additive: every call reshuffles all non-instructor users
    - Every JM/QC placement ensures a TeamRoundState row for (round, team)
    - role/team columns are only written via User.apply_assignment()
    - Instructors are never shuffled, patched into teams by assign(), or deleted
    - A QC with ratings on record cannot be deleted; a customer's purchases
      are reversed before the user row goes

Design Decisions:
    - Randomness injected (random.Random) so tests can pin the shuffle
    - Planning is pure (core.assignment.plan_assignment); this class only loads and writes
"""

import logging
import random

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from jokefactory.core.assignment import (
    TeamMember, plan_assignment, resolve_patch, status_of,
)
from jokefactory.core.domain_types import ParticipantStatus, Role, TeamId, UserId
from jokefactory.core.errors import (
    ConflictError, ErrorContext, ForbiddenError, ValidationError,
)
from jokefactory.models.joke_rating import JokeRating
from jokefactory.models.team import Team
from jokefactory.models.user import User
from jokefactory.services.handle_market import MarketHandlers
from jokefactory.services.store_helpers import (
    ensure_team_state, get_round_or_404, get_team_or_404, get_user_or_404, utcnow,
)

logger = logging.getLogger(__name__)


def _not_instructor():
    return or_(User.role.is_(None), User.role != Role.INSTRUCTOR)


class AssignmentHandlers:
    """Assignment Engine."""

    def __init__(self, db: AsyncSession, rng: random.Random | None = None):
        self.db = db
        self.rng = rng or random.Random()

    async def ensure_teams(self, team_count: int) -> list[Team]:
        """Create "Team N" rows until team_count exist; return the first team_count."""
        result = await self.db.execute(select(Team).order_by(Team.id))
        teams = list(result.scalars().all())
        for index in range(len(teams) + 1, team_count + 1):
            team = Team(name=f"Team {index}")
            self.db.add(team)
            teams.append(team)
        await self.db.flush()
        return teams[:team_count]

    async def assign(
        self, round_id: int, customer_count: int, team_count: int,
    ) -> dict:
        if customer_count < 0:
            raise ValidationError("customer_count must be >= 0", field="customer_count")
        if team_count < 0:
            raise ValidationError("team_count must be >= 0", field="team_count")
        await get_round_or_404(self.db, round_id)

        teams = await self.ensure_teams(team_count)
        result = await self.db.execute(
            select(User)
            .where(_not_instructor())
            .order_by(User.joined_at, User.user_id),
        )
        users = {u.user_id: u for u in result.scalars().all()}

        plan = plan_assignment(
            [UserId(uid) for uid in users],
            [TeamId(t.id) for t in teams],
            customer_count,
            self.rng,
        )
        now = utcnow()
        for user_id, assignment in plan:
            users[user_id].apply_assignment(assignment, now)
            if isinstance(assignment, TeamMember):
                await ensure_team_state(self.db, round_id, assignment.team_id)
        await self.db.flush()

        placed = sum(
            1 for _, a in plan if status_of(a) == ParticipantStatus.ASSIGNED
        )
        logger.info(
            f"Assigned {placed} of {len(plan)} participants "
            f"({team_count} teams, {customer_count} customers)",
            extra={"round_id": round_id},
        )
        return await self.lobby(round_id)

    async def patch_user(
        self,
        round_id: int,
        user_id: int,
        status: ParticipantStatus,
        role: Role | None = None,
        team_id: int | None = None,
    ) -> dict:
        """Correct one participant without reshuffling everyone."""
        await get_round_or_404(self.db, round_id)
        user = await get_user_or_404(self.db, user_id)
        if team_id is not None and status != ParticipantStatus.WAITING:
            await get_team_or_404(self.db, team_id)

        assignment = resolve_patch(user.assignment, status, role, team_id)
        user.apply_assignment(assignment, utcnow())
        if isinstance(assignment, TeamMember):
            await ensure_team_state(self.db, round_id, assignment.team_id)
        await self.db.flush()

        logger.info(
            f"Participant patched to {status.value}",
            extra={"round_id": round_id, "user_id": user_id},
        )
        return await self.lobby(round_id)

    async def delete_user(self, user_id: int) -> None:
        context = ErrorContext(user_id=user_id)
        user = await get_user_or_404(self.db, user_id)
        if user.role == Role.INSTRUCTOR:
            raise ForbiddenError("instructors cannot be deleted", context)

        rated = await self.db.execute(
            select(JokeRating.id).where(JokeRating.qc_user_id == user_id).limit(1),
        )
        if rated.scalar_one_or_none() is not None:
            raise ConflictError("user has rated jokes and cannot be deleted", context)

        revoked = await MarketHandlers(self.db).revoke_customer_purchases(user_id)
        await self.db.delete(user)
        try:
            await self.db.flush()
        except IntegrityError:
            raise ConflictError(
                "user has game activity and cannot be deleted", context,
            ) from None
        logger.info(
            f"Participant deleted, {revoked} purchases reversed",
            extra={"user_id": user_id},
        )

    async def lobby(self, round_id: int) -> dict:
        """Snapshot of teams, customers and waiting participants."""
        await get_round_or_404(self.db, round_id)
        result = await self.db.execute(
            select(User)
            .where(_not_instructor())
            .order_by(User.joined_at, User.user_id),
        )
        users = list(result.scalars().all())
        teams_result = await self.db.execute(select(Team).order_by(Team.id))

        teams = []
        for team in teams_result.scalars().all():
            members = [
                {
                    "user_id": u.user_id,
                    "display_name": u.display_name,
                    "role": u.role.value,
                }
                for u in users if u.team_id == team.id
            ]
            if members:
                teams.append({
                    "team": {"id": team.id, "name": team.name},
                    "members": members,
                })
        customers = [
            {"user_id": u.user_id, "display_name": u.display_name}
            for u in users if u.role == Role.CUSTOMER
        ]
        unassigned = [
            {
                "user_id": u.user_id,
                "display_name": u.display_name,
                "status": u.status.value,
            }
            for u in users if u.status == ParticipantStatus.WAITING
        ]
        assigned = sum(1 for u in users if u.status == ParticipantStatus.ASSIGNED)
        return {
            "round_id": round_id,
            "summary": {
                "waiting": len(unassigned),
                "assigned": assigned,
                "team_count": len(teams),
                "customer_count": len(customers),
            },
            "teams": teams,
            "customers": customers,
            "unassigned": unassigned,
        }
