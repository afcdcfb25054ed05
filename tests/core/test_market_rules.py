"""Market Rules: tests for budget gating, points and team signals."""

import pytest

from jokefactory.core.errors import ConflictError
from jokefactory.core.market_rules import (
    apply_points, performance_label, refund, require_budget, spend, team_profit,
)
from jokefactory.core.round_analytics import (
    acceptance_rate, rejection_rate, safe_ratio,
)


def test_require_budget_allows_positive():
    require_budget(1)


@pytest.mark.parametrize("remaining", [0, -1])
def test_require_budget_rejects_empty(remaining):
    with pytest.raises(ConflictError, match="insufficient budget"):
        require_budget(remaining)


def test_spend_and_refund():
    assert spend(5) == 4
    assert refund(4, starting=5) == 5


def test_refund_never_exceeds_starting_budget():
    assert refund(5, starting=5) == 5


def test_points_never_negative():
    assert apply_points(2, 1) == 3
    assert apply_points(0, -1) == 0


def test_team_profit():
    assert team_profit(4, 10, 1.0, 0.1) == 3.0
    assert team_profit(0, 0, 1.0, 0.1) == 0.0


@pytest.mark.parametrize("avg,rated,label", [
    (None, 0, "NEW"),
    (4.5, 0, "NEW"),
    (4.0, 2, "HIGH_QUALITY"),
    (3.2, 1, "STEADY"),
    (2.9, 3, "NEEDS_WORK"),
])
def test_performance_label(avg, rated, label):
    assert performance_label(avg, rated) == label


# ─── round analytics ratios ──────────────────────────────────────

def test_safe_ratio_zero_denominator():
    assert safe_ratio(3, 0) == 0.0


def test_rates_are_complementary():
    assert rejection_rate(10, 4) == 0.6
    assert acceptance_rate(10, 4) == 0.4
    assert safe_ratio(1, 3) == 0.3333
