"""Round Lifecycle Enforcement: allowed transitions and the ACTIVE gate.

Invariants:
    - CONFIGURED -> ACTIVE -> ENDED, and ENDED -> ACTIVE for restarts
    - Starting an ACTIVE round again only reapplies configuration
    - Submit, rate, buy and return all pass through require_active()

Design Decisions:
    - Pure checks raising ConflictError; the shell loads and locks the row
"""

from jokefactory.core.domain_types import RoundStatus
from jokefactory.core.errors import ConflictError, ErrorContext, ValidationError


ALLOWED_TRANSITIONS: dict[RoundStatus, frozenset[RoundStatus]] = {
    RoundStatus.CONFIGURED: frozenset({RoundStatus.ACTIVE}),
    RoundStatus.ACTIVE: frozenset({RoundStatus.ACTIVE, RoundStatus.ENDED}),
    RoundStatus.ENDED: frozenset({RoundStatus.ACTIVE}),
}


def check_transition(
    round_id: int, current: RoundStatus, target: RoundStatus,
) -> None:
    if target not in ALLOWED_TRANSITIONS[current]:
        raise ConflictError(
            f"round {round_id} cannot go from {current.value} to {target.value}",
            ErrorContext(round_id=round_id),
        )


def require_active(round_id: int, status: RoundStatus) -> None:
    if status != RoundStatus.ACTIVE:
        raise ConflictError(
            "round not active", ErrorContext(round_id=round_id),
        )


def validate_round_config(
    customer_budget: int, batch_size: int,
    market_price: float, cost_of_publishing: float,
) -> None:
    """Mirrors the CHECK constraints on the rounds table."""
    if customer_budget < 0:
        raise ValidationError("customer_budget must be >= 0", field="customer_budget")
    if batch_size < 1:
        raise ValidationError("batch_size must be >= 1", field="batch_size")
    if market_price < 0:
        raise ValidationError("market_price must be >= 0", field="market_price")
    if cost_of_publishing < 0:
        raise ValidationError(
            "cost_of_publishing must be >= 0", field="cost_of_publishing",
        )
