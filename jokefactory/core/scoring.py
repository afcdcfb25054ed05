"""QC Rating Rules: pure validation and aggregation of a batch rating.

Invariants:
    - validate_ratings / validate_rating_coverage raise ValidationError, never return errors
    - summarize_ratings is PURE: avg_score rounded to 2 decimals, passes == ratings at PASS_RATING
    - Only jokes rated exactly PASS_RATING are published

Design Decisions:
    - Checks that need no IO run before the batch row is locked;
      coverage against the batch's jokes runs after it is loaded
"""

from dataclasses import dataclass
from typing import Sequence

from jokefactory.core.domain_types import (
    FEEDBACK_MAX_LENGTH, JOKE_TITLE_MAX_LENGTH, MAX_RATING, MIN_RATING,
    PASS_RATING, JokeId, QCTag,
)
from jokefactory.core.errors import ValidationError


@dataclass(frozen=True)
class RatingInput:
    """One QC verdict for one joke, as received from the boundary."""
    joke_id: JokeId
    rating: int
    tag: str
    title: str | None = None


@dataclass(frozen=True)
class RatingSummary:
    avg_score: float
    passes_count: int
    published_joke_ids: list[JokeId]


def parse_tag(raw: str) -> QCTag:
    try:
        return QCTag(raw)
    except ValueError:
        raise ValidationError(f"invalid tag value '{raw}'", field="tag") from None


def validate_ratings(ratings: Sequence[RatingInput], feedback: str | None) -> None:
    """Reject malformed ratings before touching the store."""
    if not ratings:
        raise ValidationError("at least one rating required", field="ratings")

    seen: set[JokeId] = set()
    requires_feedback = False
    for r in ratings:
        if r.joke_id in seen:
            raise ValidationError(
                f"joke {r.joke_id} rated more than once", field="ratings",
            )
        seen.add(r.joke_id)
        if not MIN_RATING <= r.rating <= MAX_RATING:
            raise ValidationError(
                f"rating must be between {MIN_RATING} and {MAX_RATING}",
                field="rating",
            )
        if parse_tag(r.tag) == QCTag.OTHER:
            requires_feedback = True
        if r.title is not None and len(r.title) > JOKE_TITLE_MAX_LENGTH:
            raise ValidationError(
                f"joke title longer than {JOKE_TITLE_MAX_LENGTH} characters",
                field="joke_title",
            )

    if requires_feedback and not (feedback and feedback.strip()):
        raise ValidationError(
            "feedback required when tag is OTHER", field="feedback",
        )
    if feedback is not None and len(feedback) > FEEDBACK_MAX_LENGTH:
        raise ValidationError(
            f"feedback longer than {FEEDBACK_MAX_LENGTH} characters",
            field="feedback",
        )


def validate_rating_coverage(
    ratings: Sequence[RatingInput], joke_ids: Sequence[JokeId],
) -> None:
    """Ratings must cover exactly the jokes of the batch."""
    if len(ratings) != len(joke_ids):
        raise ValidationError(
            f"expected {len(joke_ids)} ratings", field="ratings",
        )
    unknown = {r.joke_id for r in ratings} - set(joke_ids)
    if unknown:
        raise ValidationError(
            f"jokes {sorted(unknown)} do not belong to this batch",
            field="ratings",
        )


def summarize_ratings(ratings: Sequence[RatingInput]) -> RatingSummary:
    total = sum(r.rating for r in ratings)
    passed = [r.joke_id for r in ratings if r.rating == PASS_RATING]
    return RatingSummary(
        avg_score=round(total / len(ratings), 2),
        passes_count=len(passed),
        published_joke_ids=passed,
    )


def normalize_title(title: str | None) -> str | None:
    """Blank titles are treated as absent."""
    if title is None:
        return None
    title = title.strip()
    return title or None
