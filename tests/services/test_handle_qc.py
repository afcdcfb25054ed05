"""QC Handlers: queue dispatch and batch rating.

Invariants:
    - Oldest SUBMITTED batch first; a batch locked by one QC is skipped for others
    - Only 5s publish; avg_score rounded to two decimals
    - A RATED batch cannot be rated again
"""

import pytest
from sqlalchemy import select

from jokefactory.core.domain_types import BatchStatus, Role
from jokefactory.core.errors import (
    ConflictError, ForbiddenError, ResourceNotFoundError, ValidationError,
)
from jokefactory.core.scoring import RatingInput
from jokefactory.models import Joke, JokeRating, PublishedJoke, TeamRoundState
from jokefactory.services.handle_qc import QCHandlers
from jokefactory.services.handle_round import RoundHandlers
from tests.services.seed_data import rate_batch, seed_user, submit_batch


def _ratings(batch, scores, tag="MADE_ME_SMILE", titles=None):
    titles = titles or [None] * len(scores)
    return [
        RatingInput(joke_id=j.joke_id, rating=s, tag=tag, title=t)
        for j, s, t in zip(batch.jokes, scores, titles)
    ]


async def _state(db) -> TeamRoundState:
    result = await db.execute(
        select(TeamRoundState).execution_options(populate_existing=True),
    )
    return result.scalar_one()


# ─── next_batch ──────────────────────────────────────────────────

async def test_next_returns_oldest_and_locks_it(test_db, game):
    first = await submit_batch(test_db, game)
    await submit_batch(test_db, game)

    queued = await QCHandlers(test_db).next_batch(game["qc"].user_id, 1)
    await test_db.commit()

    assert queued.batch.batch_id == first.batch_id
    assert queued.batch.locked_by_qc == game["qc"].user_id
    assert queued.batch.locked_at is not None
    assert len(queued.jokes) == 3
    assert queued.queue_count == 2


async def test_next_twice_returns_same_batch_to_same_qc(test_db, game):
    await submit_batch(test_db, game)
    handlers = QCHandlers(test_db)

    first = await handlers.next_batch(game["qc"].user_id, 1)
    await test_db.commit()
    again = await handlers.next_batch(game["qc"].user_id, 1)

    assert again.batch.batch_id == first.batch.batch_id


async def test_second_qc_skips_locked_batch(test_db, game):
    first = await submit_batch(test_db, game)
    second = await submit_batch(test_db, game)
    other_qc = await seed_user(test_db, "qc-dee", Role.QC, game["team"])
    handlers = QCHandlers(test_db)

    mine = await handlers.next_batch(game["qc"].user_id, 1)
    await test_db.commit()
    theirs = await handlers.next_batch(other_qc.user_id, 1)
    await test_db.commit()

    assert mine.batch.batch_id == first.batch_id
    assert theirs.batch.batch_id == second.batch_id


async def test_next_on_empty_queue_not_found(test_db, game):
    with pytest.raises(ResourceNotFoundError):
        await QCHandlers(test_db).next_batch(game["qc"].user_id, 1)


async def test_jm_cannot_pull_from_queue(test_db, game):
    with pytest.raises(ForbiddenError, match="must be QC"):
        await QCHandlers(test_db).next_batch(game["jm"].user_id, 1)


async def test_next_after_round_end_conflicts(test_db, game):
    await submit_batch(test_db, game)
    await RoundHandlers(test_db).end(1)
    await test_db.commit()

    with pytest.raises(ConflictError, match="round not active"):
        await QCHandlers(test_db).next_batch(game["qc"].user_id, 1)


async def test_queue_count(test_db, game):
    await submit_batch(test_db, game)
    await submit_batch(test_db, game)
    assert await QCHandlers(test_db).queue_count(1) == 2


# ─── rate ────────────────────────────────────────────────────────

async def test_rate_publishes_only_fives(test_db, game):
    batch = await submit_batch(test_db, game)

    rated = await rate_batch(test_db, game, batch, [5, 5, 3])

    assert rated.batch.status == BatchStatus.RATED
    assert rated.batch.avg_score == 4.33
    assert rated.batch.passes_count == 2
    assert rated.batch.locked_by_qc is None
    assert rated.published_joke_ids == [batch.jokes[0].joke_id, batch.jokes[1].joke_id]

    published = (await test_db.execute(select(PublishedJoke))).scalars().all()
    assert sorted(p.joke_id for p in published) == rated.published_joke_ids
    state = await _state(test_db)
    assert state.batches_rated == 1
    assert state.accepted_jokes == 2


async def test_rate_without_fives_publishes_nothing(test_db, game):
    batch = await submit_batch(test_db, game)

    rated = await rate_batch(test_db, game, batch, [4, 4, 1])

    assert rated.published_joke_ids == []
    assert rated.batch.passes_count == 0
    assert (await test_db.execute(select(PublishedJoke))).first() is None
    assert (await _state(test_db)).accepted_jokes == 0


async def test_rate_stores_ratings_titles_and_feedback(test_db, game):
    batch = await submit_batch(test_db, game)

    await QCHandlers(test_db).rate(
        game["qc"].user_id, batch.batch_id,
        _ratings(batch, [5, 3, 2], tag="OTHER", titles=[" Headliner ", "", None]),
        feedback="  tighten the setups  ",
    )
    await test_db.commit()

    ratings = (await test_db.execute(
        select(JokeRating).order_by(JokeRating.joke_id),
    )).scalars().all()
    assert [r.rating for r in ratings] == [5, 3, 2]
    assert {r.tag.value for r in ratings} == {"OTHER"}
    jokes = (await test_db.execute(select(Joke).order_by(Joke.joke_id))).scalars().all()
    assert [j.joke_title for j in jokes] == ["Headliner", None, None]
    assert batch.feedback == "tighten the setups"


async def test_rate_twice_conflicts(test_db, game):
    batch = await submit_batch(test_db, game)
    await rate_batch(test_db, game, batch, [5, 5, 5])

    with pytest.raises(ConflictError, match="already rated"):
        await QCHandlers(test_db).rate(
            game["qc"].user_id, batch.batch_id, _ratings(batch, [1, 1, 1]),
        )


async def test_rate_batch_locked_by_other_qc_conflicts(test_db, game):
    batch = await submit_batch(test_db, game)
    other_qc = await seed_user(test_db, "qc-dee", Role.QC, game["team"])
    await QCHandlers(test_db).next_batch(game["qc"].user_id, 1)
    await test_db.commit()

    with pytest.raises(ConflictError, match="not assigned to this qc"):
        await QCHandlers(test_db).rate(
            other_qc.user_id, batch.batch_id, _ratings(batch, [5, 5, 5]),
        )


async def test_rate_after_round_end_conflicts(test_db, game):
    batch = await submit_batch(test_db, game)
    await QCHandlers(test_db).next_batch(game["qc"].user_id, 1)
    await RoundHandlers(test_db).end(1)
    await test_db.commit()

    with pytest.raises(ConflictError, match="round not active"):
        await QCHandlers(test_db).rate(
            game["qc"].user_id, batch.batch_id, _ratings(batch, [5, 5, 5]),
        )
    ratings = (await test_db.execute(select(JokeRating))).scalars().all()
    assert ratings == []


async def test_rate_must_cover_every_joke(test_db, game):
    batch = await submit_batch(test_db, game)

    with pytest.raises(ValidationError, match="expected 3 ratings"):
        await QCHandlers(test_db).rate(
            game["qc"].user_id, batch.batch_id, _ratings(batch, [5, 5]),
        )


async def test_rate_other_tag_requires_feedback(test_db, game):
    batch = await submit_batch(test_db, game)

    with pytest.raises(ValidationError) as exc:
        await QCHandlers(test_db).rate(
            game["qc"].user_id, batch.batch_id, _ratings(batch, [3, 3, 3], tag="OTHER"),
        )
    assert exc.value.field == "feedback"


async def test_rate_unknown_batch_not_found(test_db, game):
    with pytest.raises(ResourceNotFoundError):
        await QCHandlers(test_db).rate(
            game["qc"].user_id, 999, [RatingInput(joke_id=1, rating=5, tag="OTHER")],
            feedback="n/a",
        )
