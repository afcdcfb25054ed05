"""Market Rules: budget gate and team signals shown next to market items.

Invariants:
    - A purchase needs remaining budget strictly above zero
    - Returns never push remaining budget above the starting budget
    - Team points never go below zero

Design Decisions:
    - performance_label thresholds use the team's mean batch score, so the
      label reflects QC quality rather than sales momentum
"""

from jokefactory.core.errors import ConflictError, ErrorContext


PURCHASE_COST: int = 1
POINTS_PER_SALE: int = 1

HIGH_QUALITY_THRESHOLD: float = 4.0
STEADY_THRESHOLD: float = 3.0


def require_budget(remaining: int, context: ErrorContext | None = None) -> None:
    if remaining <= 0:
        raise ConflictError("insufficient budget", context)


def spend(remaining: int) -> int:
    return remaining - PURCHASE_COST


def refund(remaining: int, starting: int) -> int:
    return min(starting, remaining + PURCHASE_COST)


def apply_points(points: int, delta: int) -> int:
    return max(0, points + delta)


def team_profit(
    sold_count: int, accepted_count: int,
    market_price: float, cost_of_publishing: float,
) -> float:
    """Revenue from sales minus the cost of every published joke."""
    return round(sold_count * market_price - accepted_count * cost_of_publishing, 2)


def performance_label(avg_score: float | None, rated_batches: int) -> str:
    if not rated_batches or avg_score is None:
        return "NEW"
    if avg_score >= HIGH_QUALITY_THRESHOLD:
        return "HIGH_QUALITY"
    if avg_score >= STEADY_THRESHOLD:
        return "STEADY"
    return "NEEDS_WORK"
