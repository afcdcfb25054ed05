"""Round Analytics: pure ratio helpers for the instructor dashboard series."""


def safe_ratio(numerator: int, denominator: int) -> float:
    """Ratio rounded to 4 places; 0.0 when nothing was counted."""
    if denominator <= 0:
        return 0.0
    return round(numerator / denominator, 4)


def rejection_rate(rated_jokes: int, accepted_jokes: int) -> float:
    return safe_ratio(rated_jokes - accepted_jokes, rated_jokes)


def acceptance_rate(rated_jokes: int, accepted_jokes: int) -> float:
    return safe_ratio(accepted_jokes, rated_jokes)
