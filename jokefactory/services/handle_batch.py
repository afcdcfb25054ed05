"""Batch Handlers: JM submission and team batch history.

Invariants:
    - Only the JM of a team submits for that team; the round must be ACTIVE
    - len(jokes) == round.batch_size exactly, checked before anything is written
    - The batch, its jokes and batches_created + 1 land in one transaction

Design Decisions:
    - Team history gathers ratings, publication and sales with set-based
      queries keyed by batch/joke ids instead of per-row lookups
"""

import logging
from collections import Counter

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from jokefactory.core.assignment import Instructor, TeamMember
from jokefactory.core.domain_types import BatchStatus, Role
from jokefactory.core.errors import ErrorContext, ForbiddenError, ValidationError
from jokefactory.models.batch import Batch
from jokefactory.models.joke import Joke
from jokefactory.models.joke_rating import JokeRating
from jokefactory.models.published_joke import PublishedJoke
from jokefactory.models.purchase import Purchase
from jokefactory.services.store_helpers import (
    get_active_round, get_round_or_404, get_user_or_404, lock_team_state, utcnow,
)

logger = logging.getLogger(__name__)


class BatchHandlers:
    """Batch Workflow: the JM side."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def submit(
        self, user_id: int, round_id: int, team_id: int, jokes: list[str],
    ) -> Batch:
        context = ErrorContext(round_id=round_id, user_id=user_id, team_id=team_id)
        user = await get_user_or_404(self.db, user_id)
        if user.assignment != TeamMember(team_id=team_id, role=Role.JM):
            raise ForbiddenError("user must be JM of this team", context)

        round_ = await get_active_round(self.db, round_id)
        texts = [j.strip() for j in jokes]
        if len(texts) != round_.batch_size:
            raise ValidationError(
                f"batch must contain exactly {round_.batch_size} jokes",
                field="jokes", context=context,
            )
        if any(not t for t in texts):
            raise ValidationError("jokes must not be empty", field="jokes", context=context)

        batch = Batch(
            round_id=round_id,
            team_id=team_id,
            status=BatchStatus.SUBMITTED,
            submitted_at=utcnow(),
            jokes=[Joke(joke_text=t) for t in texts],
        )
        self.db.add(batch)
        await self.db.flush()

        state = await lock_team_state(self.db, round_id, team_id)
        state.batches_created += 1
        await self.db.flush()

        logger.info(
            f"Batch submitted with {len(texts)} jokes",
            extra={"round_id": round_id, "team_id": team_id, "batch_id": batch.batch_id},
        )
        return batch

    async def list_team_batches(
        self, user_id: int, round_id: int, team_id: int,
    ) -> list[dict]:
        """Newest-first batch history for a team member (or the instructor)."""
        user = await get_user_or_404(self.db, user_id)
        assignment = user.assignment
        is_member = isinstance(assignment, TeamMember) and assignment.team_id == team_id
        if not (is_member or isinstance(assignment, Instructor)):
            raise ForbiddenError(
                "user is not a member of this team",
                ErrorContext(round_id=round_id, user_id=user_id, team_id=team_id),
            )
        await get_round_or_404(self.db, round_id)

        result = await self.db.execute(
            select(Batch)
            .where(Batch.round_id == round_id, Batch.team_id == team_id)
            .order_by(Batch.submitted_at.desc(), Batch.batch_id.desc()),
        )
        batches = list(result.scalars().all())
        joke_ids = [j.joke_id for b in batches for j in b.jokes]

        ratings: dict[int, JokeRating] = {}
        published: set[int] = set()
        sold: dict[int, int] = {}
        if joke_ids:
            rating_rows = await self.db.execute(
                select(JokeRating).where(JokeRating.joke_id.in_(joke_ids)),
            )
            ratings = {r.joke_id: r for r in rating_rows.scalars().all()}
            published_rows = await self.db.execute(
                select(PublishedJoke.joke_id).where(PublishedJoke.joke_id.in_(joke_ids)),
            )
            published = set(published_rows.scalars().all())
            sold_rows = await self.db.execute(
                select(Purchase.joke_id, func.count(Purchase.purchase_id))
                .where(Purchase.joke_id.in_(joke_ids))
                .group_by(Purchase.joke_id),
            )
            sold = {joke_id: count for joke_id, count in sold_rows.all()}

        return [
            _batch_view(b, ratings, published, sold) for b in batches
        ]


def _batch_view(
    batch: Batch,
    ratings: dict[int, JokeRating],
    published: set[int],
    sold: dict[int, int],
) -> dict:
    tags = Counter(
        ratings[j.joke_id].tag.value for j in batch.jokes if j.joke_id in ratings
    )
    return {
        "batch_id": batch.batch_id,
        "round_id": batch.round_id,
        "team_id": batch.team_id,
        "status": batch.status.value,
        "submitted_at": batch.submitted_at,
        "rated_at": batch.rated_at,
        "avg_score": batch.avg_score,
        "passes_count": batch.passes_count,
        "feedback": batch.feedback,
        "tag_summary": [
            {"tag": tag, "count": count} for tag, count in sorted(tags.items())
        ],
        "jokes": [
            {
                "joke_id": j.joke_id,
                "joke_text": j.joke_text,
                "joke_title": j.joke_title,
                "rating": ratings[j.joke_id].rating if j.joke_id in ratings else None,
                "tag": ratings[j.joke_id].tag.value if j.joke_id in ratings else None,
                "is_published": j.joke_id in published,
                "sold_count": sold.get(j.joke_id, 0),
            }
            for j in batch.jokes
        ],
    }
