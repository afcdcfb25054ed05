"""QC Handlers: lock-skipping dispatch of submitted batches and batch rating.

Invariants:
    - next_batch() only returns a batch that is SUBMITTED and unlocked or
      already locked by the caller, read with FOR UPDATE SKIP LOCKED
    - Oldest submitted first (submitted_at, batch_id)
    - rate() re-reads the batch FOR UPDATE: RATED or locked by another QC
      -> ConflictError
    - Rating upserts, RATED transition, publication and team counters
      happen in one transaction; any failure rolls back all of them
    - Only ratings equal to PASS_RATING publish; publication is idempotent

Design Decisions:
    - The store is the work queue: no in-process dispatcher, so any number
      of QC workers across processes share it safely
    - Pure validation (core.scoring) runs before any row is locked
"""

import logging
from dataclasses import dataclass
from typing import Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from jokefactory.core.assignment import TeamMember
from jokefactory.core.domain_types import BatchStatus, Role
from jokefactory.core.enforce_round import require_active
from jokefactory.core.errors import (
    ConflictError, ErrorContext, ForbiddenError, ResourceNotFoundError,
)
from jokefactory.core.scoring import (
    RatingInput, normalize_title, parse_tag, summarize_ratings,
    validate_rating_coverage, validate_ratings,
)
from jokefactory.models.batch import Batch
from jokefactory.models.joke import Joke
from jokefactory.models.joke_rating import JokeRating
from jokefactory.models.published_joke import PublishedJoke
from jokefactory.models.user import User
from jokefactory.services.store_helpers import (
    get_active_round, get_round_or_404, get_user_or_404, insert_for,
    lock_team_state, utcnow,
)

logger = logging.getLogger(__name__)


@dataclass
class QueuedBatch:
    batch: Batch
    jokes: list[Joke]
    queue_count: int


@dataclass
class RatedBatch:
    batch: Batch
    published_joke_ids: list[int]


class QCHandlers:
    """Batch Workflow: the QC side."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _require_qc(self, user_id: int, context: ErrorContext) -> User:
        user = await get_user_or_404(self.db, user_id)
        if user.role != Role.QC:
            raise ForbiddenError("user must be QC", context)
        if not isinstance(user.assignment, TeamMember):
            raise ConflictError("qc user missing team assignment", context)
        return user

    async def next_batch(self, qc_user_id: int, round_id: int) -> QueuedBatch:
        context = ErrorContext(round_id=round_id, user_id=qc_user_id)
        await self._require_qc(qc_user_id, context)
        await get_active_round(self.db, round_id)

        result = await self.db.execute(
            select(Batch)
            .where(
                Batch.round_id == round_id,
                Batch.status == BatchStatus.SUBMITTED,
                or_(Batch.locked_by_qc.is_(None), Batch.locked_by_qc == qc_user_id),
            )
            .order_by(Batch.submitted_at, Batch.batch_id)
            .limit(1)
            .with_for_update(skip_locked=True)
            .execution_options(populate_existing=True),
        )
        batch = result.scalar_one_or_none()
        if batch is None:
            raise ResourceNotFoundError("batch", context=context)

        batch.locked_by_qc = qc_user_id
        batch.locked_at = utcnow()
        await self.db.flush()

        count = await self.db.execute(
            select(func.count(Batch.batch_id)).where(
                Batch.round_id == round_id, Batch.status == BatchStatus.SUBMITTED,
            ),
        )
        logger.info(
            "Batch claimed by QC",
            extra={"round_id": round_id, "user_id": qc_user_id, "batch_id": batch.batch_id},
        )
        return QueuedBatch(
            batch=batch, jokes=list(batch.jokes), queue_count=int(count.scalar_one()),
        )

    async def rate(
        self,
        qc_user_id: int,
        batch_id: int,
        ratings: Sequence[RatingInput],
        feedback: str | None = None,
    ) -> RatedBatch:
        context = ErrorContext(user_id=qc_user_id, batch_id=batch_id)
        validate_ratings(ratings, feedback)
        await self._require_qc(qc_user_id, context)

        result = await self.db.execute(
            select(Batch)
            .where(Batch.batch_id == batch_id)
            .with_for_update()
            .execution_options(populate_existing=True),
        )
        batch = result.scalar_one_or_none()
        if batch is None:
            raise ResourceNotFoundError("batch", batch_id, context)
        context.round_id = batch.round_id
        context.team_id = batch.team_id
        if batch.status == BatchStatus.RATED:
            raise ConflictError("batch already rated", context)
        if batch.locked_by_qc is not None and batch.locked_by_qc != qc_user_id:
            raise ConflictError("not assigned to this qc", context)

        round_ = await get_round_or_404(self.db, batch.round_id)
        require_active(round_.round_id, round_.status)
        jokes = {j.joke_id: j for j in batch.jokes}
        validate_rating_coverage(ratings, list(jokes))

        now = utcnow()
        for r in ratings:
            tag = parse_tag(r.tag)
            stmt = insert_for(self.db, JokeRating).values(
                joke_id=r.joke_id, qc_user_id=qc_user_id,
                rating=r.rating, tag=tag, rated_at=now,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["joke_id"],
                set_={
                    "qc_user_id": qc_user_id, "rating": r.rating,
                    "tag": stmt.excluded.tag, "rated_at": now,
                },
            )
            await self.db.execute(stmt)
            title = normalize_title(r.title)
            if title is not None:
                jokes[r.joke_id].joke_title = title

        summary = summarize_ratings(ratings)
        batch.status = BatchStatus.RATED
        batch.rated_at = now
        batch.avg_score = summary.avg_score
        batch.passes_count = summary.passes_count
        batch.feedback = feedback.strip() if feedback and feedback.strip() else None
        batch.locked_by_qc = None
        batch.locked_at = None
        await self.db.flush()

        published: list[int] = []
        for joke_id in summary.published_joke_ids:
            stmt = insert_for(self.db, PublishedJoke).values(
                joke_id=joke_id, round_id=batch.round_id,
                team_id=batch.team_id, published_at=now,
            ).on_conflict_do_nothing(index_elements=["joke_id"])
            outcome = await self.db.execute(stmt)
            if outcome.rowcount:
                published.append(joke_id)

        state = await lock_team_state(self.db, batch.round_id, batch.team_id)
        state.batches_rated += 1
        state.accepted_jokes += summary.passes_count
        await self.db.flush()

        logger.info(
            f"Batch rated: avg {summary.avg_score}, {summary.passes_count} published",
            extra={
                "round_id": batch.round_id, "team_id": batch.team_id,
                "user_id": qc_user_id, "batch_id": batch_id,
            },
        )
        return RatedBatch(batch=batch, published_joke_ids=published)

    async def queue_count(self, round_id: int) -> int:
        await get_round_or_404(self.db, round_id)
        result = await self.db.execute(
            select(func.count(Batch.batch_id)).where(
                Batch.round_id == round_id, Batch.status == BatchStatus.SUBMITTED,
            ),
        )
        return int(result.scalar_one())
