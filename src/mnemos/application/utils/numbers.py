import math
from collections.abc import Sequence

# ---------- Rounding ----------


def round_half_up(value: float, ndigits: int = 0) -> float:
    """
    Round halves away from negative infinity, like JavaScript's Math.round.

    Python's round() uses banker's rounding (round(2.5) == 2), which would
    shift recorded breakdowns by one point.
    """
    factor = 10**ndigits
    return math.floor(value * factor + 0.5) / factor


def round_int(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


# ---------- Descriptive statistics ----------


def mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def variance(values: Sequence[float]) -> float:
    """Population variance (divides by n)."""
    if not values:
        return 0.0
    mu = mean(values)
    return sum((v - mu) ** 2 for v in values) / len(values)


def population_std(values: Sequence[float]) -> float:
    return math.sqrt(variance(values))


def safe_ratio(numerator: float, denominator: float, default: float = 0.0) -> float:
    if denominator == 0:
        return default
    return numerator / denominator
