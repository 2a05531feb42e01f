"""Small statistics helpers shared by the analysis components.

All helpers are total: empty input or a zero mean yields 0 instead of
raising, so callers never see NaN or ZeroDivisionError.
"""

import statistics
from decimal import Decimal, ROUND_HALF_UP
from typing import Sequence, Union

Number = Union[int, float, Decimal]

CENT = Decimal("0.01")


def to_money(value: Number) -> Decimal:
    """Quantize a value to cents."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def mean(values: Sequence[Number]) -> Number:
    """Arithmetic mean, 0 for an empty sequence."""
    if not values:
        return 0
    return statistics.mean(values)


def decimal_mean(values: Sequence[Decimal]) -> Decimal:
    """Arithmetic mean of decimals, Decimal('0') for an empty sequence."""
    if not values:
        return Decimal("0")
    return sum(values, Decimal("0")) / len(values)


def pstdev(values: Sequence[Number]) -> Number:
    """Population standard deviation, 0 for fewer than two values."""
    if len(values) < 2:
        return 0
    return statistics.pstdev(values)


def coefficient_of_variation(values: Sequence[Number]) -> float:
    """Standard deviation over mean as a percentage, 0 when the mean is 0."""
    avg = mean(values)
    if not avg:
        return 0.0
    return float(pstdev(values)) / float(avg) * 100


def regularity(values: Sequence[Number]) -> float:
    """100 minus the coefficient of variation, floored at 0."""
    return max(0.0, 100.0 - coefficient_of_variation(values))


def percent_change(current: Number, baseline: Number) -> float:
    """Relative change of current over baseline in percent, 0 for a zero baseline."""
    if not baseline:
        return 0.0
    return (float(current) - float(baseline)) / float(baseline) * 100


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def linear_slope(values: Sequence[Number]) -> Number:
    """Least-squares slope of ``values`` against their index, 0 for fewer than two."""
    n = len(values)
    if n < 2:
        return 0
    sum_x = n * (n - 1) // 2
    sum_x2 = (n - 1) * n * (2 * n - 1) // 6
    sum_y = sum(values)
    sum_xy = sum(x * y for x, y in enumerate(values))
    return (n * sum_xy - sum_x * sum_y) / (n * sum_x2 - sum_x * sum_x)
