"""QC Rating Rules: tests for rating validation, coverage and summary.

Tests cover:
    - Empty, duplicate and out-of-range ratings rejected
    - Unknown tag rejected with field "tag"
    - OTHER tag requires non-blank feedback; feedback length capped
    - Coverage must match the batch's jokes exactly
    - [5, 5, 3] summarizes to avg 4.33 with two passes
    - Only a 5 publishes
"""

import pytest

from jokefactory.core.errors import ValidationError
from jokefactory.core.scoring import (
    RatingInput, normalize_title, parse_tag, summarize_ratings,
    validate_rating_coverage, validate_ratings,
)
from jokefactory.core.domain_types import QCTag


def _r(joke_id, rating, tag="GENUINELY_FUNNY", title=None):
    return RatingInput(joke_id=joke_id, rating=rating, tag=tag, title=title)


# ─── validate_ratings ────────────────────────────────────────────

def test_valid_ratings_pass():
    validate_ratings([_r(1, 5), _r(2, 1, "DIDNT_LAND")], None)


def test_empty_ratings_rejected():
    with pytest.raises(ValidationError) as exc:
        validate_ratings([], None)
    assert exc.value.field == "ratings"


def test_duplicate_joke_rejected():
    with pytest.raises(ValidationError, match="more than once"):
        validate_ratings([_r(1, 5), _r(1, 4)], None)


@pytest.mark.parametrize("rating", [0, 6, -1])
def test_out_of_range_rating_rejected(rating):
    with pytest.raises(ValidationError) as exc:
        validate_ratings([_r(1, rating)], None)
    assert exc.value.field == "rating"


def test_unknown_tag_rejected():
    with pytest.raises(ValidationError) as exc:
        validate_ratings([_r(1, 3, "HILARIOUS")], None)
    assert exc.value.field == "tag"


def test_other_tag_without_feedback_rejected():
    with pytest.raises(ValidationError) as exc:
        validate_ratings([_r(1, 3, "OTHER")], "   ")
    assert exc.value.field == "feedback"


def test_other_tag_with_feedback_passes():
    validate_ratings([_r(1, 3, "OTHER")], "too long for a pun")


def test_feedback_too_long_rejected():
    with pytest.raises(ValidationError) as exc:
        validate_ratings([_r(1, 3)], "x" * 201)
    assert exc.value.field == "feedback"


def test_title_too_long_rejected():
    with pytest.raises(ValidationError) as exc:
        validate_ratings([_r(1, 5, title="t" * 121)], None)
    assert exc.value.field == "joke_title"


def test_parse_tag_returns_enum():
    assert parse_tag("OTHER") is QCTag.OTHER


# ─── validate_rating_coverage ────────────────────────────────────

def test_coverage_matches_batch():
    validate_rating_coverage([_r(1, 5), _r(2, 3)], [1, 2])


def test_coverage_missing_joke_rejected():
    with pytest.raises(ValidationError, match="expected 3 ratings"):
        validate_rating_coverage([_r(1, 5), _r(2, 3)], [1, 2, 3])


def test_coverage_foreign_joke_rejected():
    with pytest.raises(ValidationError, match="do not belong"):
        validate_rating_coverage([_r(1, 5), _r(9, 3)], [1, 2])


# ─── summarize_ratings ───────────────────────────────────────────

def test_summary_rounds_average_and_counts_passes():
    summary = summarize_ratings([_r(10, 5), _r(11, 5), _r(12, 3)])
    assert summary.avg_score == 4.33
    assert summary.passes_count == 2
    assert summary.published_joke_ids == [10, 11]


def test_four_does_not_publish():
    summary = summarize_ratings([_r(1, 4), _r(2, 4)])
    assert summary.avg_score == 4.0
    assert summary.passes_count == 0
    assert summary.published_joke_ids == []


# ─── normalize_title ─────────────────────────────────────────────

@pytest.mark.parametrize("raw,expected", [
    (None, None),
    ("   ", None),
    ("  Knock Knock ", "Knock Knock"),
])
def test_normalize_title(raw, expected):
    assert normalize_title(raw) == expected
