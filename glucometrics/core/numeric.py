"""Numeric primitives shared by every calculator.

All rounding in the package goes through :func:`round_half_up` so that
percentiles, percentages and clinical indices agree between callers.
Python's built-in ``round`` uses banker's rounding and is not used for
reported values.
"""

import math
from collections.abc import Sequence


def round_half_up(value: float, digits: int = 0) -> float:
    """Round to ``digits`` decimals with ties going towards +infinity.

    ``round_half_up(2.5) == 3.0`` and ``round_half_up(-2.5) == -2.0``.
    """
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean; 0 for an empty sequence."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def median(values: Sequence[float]) -> float:
    """Median; the average of the two middle values for even counts."""
    if not values:
        return 0.0
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2
    return ordered[mid]


def std_dev(values: Sequence[float]) -> float:
    """Population standard deviation; 0 for an empty sequence."""
    if not values:
        return 0.0
    avg = mean(values)
    return math.sqrt(mean([(v - avg) ** 2 for v in values]))


def percentile(sorted_values: Sequence[float], p: float) -> float:
    """Linear-interpolated percentile, rounded to a whole mg/dL.

    Args:
        sorted_values: Values in ascending order.
        p: Percentile in [0, 100].

    Returns:
        ``v[lo] * (1 - w) + v[hi] * w`` rounded, where
        ``index = p/100 * (n - 1)``, ``lo = floor(index)``,
        ``hi = ceil(index)`` and ``w = index - lo``. 0 for empty input.
    """
    if not sorted_values:
        return 0.0
    if len(sorted_values) == 1:
        return float(sorted_values[0])
    index = (p / 100) * (len(sorted_values) - 1)
    lower = math.floor(index)
    upper = math.ceil(index)
    weight = index - lower
    return round_half_up(
        sorted_values[lower] * (1 - weight) + sorted_values[upper] * weight
    )


def percent(part: int, total: int) -> float:
    """``part / total`` as a percentage with one decimal; 0 when total is 0."""
    if total <= 0:
        return 0.0
    return round_half_up(part / total * 100, 1)
