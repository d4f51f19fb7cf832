"""Statistics kernel - pure numeric primitives with no money semantics"""

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence, Tuple

from spendcast.domain.exceptions import InsufficientDataError, InvalidInputError

# z-score reported when history has zero spread and the value differs from it
ZERO_VARIANCE_SENTINEL = 4.0

# Lowest confidence claimed once any data exists; recalibrate here, nowhere else
CONFIDENCE_FLOOR = 0.7

# Two-sided normal quantiles for the supported interval levels
INTERVAL_Z = {
    0.90: 1.645,
    0.95: 1.960,
    0.99: 2.576,
}

SECONDS_PER_DAY = 86_400


@dataclass(frozen=True)
class RegressionResult:
    slope: float
    intercept: float
    r_squared: float

    def predict(self, x: float) -> float:
        return self.slope * x + self.intercept


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean; empty input has no mean"""
    if not values:
        raise InsufficientDataError("Cannot take the mean of an empty sequence")
    return sum(values) / len(values)


def stddev(values: Sequence[float]) -> float:
    """
    Sample standard deviation (Bessel's correction).

    Inputs are partial observations of behaviour, never a full population.
    A single point has no spread, so anything shorter than two values is 0.0.
    """
    n = len(values)
    if n <= 1:
        return 0.0
    avg = mean(values)
    variance = sum((v - avg) ** 2 for v in values) / (n - 1)
    return math.sqrt(variance)


def z_score(x: float, values: Sequence[float], sentinel: float = ZERO_VARIANCE_SENTINEL) -> float:
    """
    Standard deviations between `x` and the mean of `values`.

    With zero spread the ratio is undefined: the result is 0.0 when `x`
    equals the constant history and a signed `sentinel` otherwise.
    """
    avg = mean(values)
    spread = stddev(values)
    if spread == 0:
        if x == avg:
            return 0.0
        return sentinel if x > avg else -sentinel
    return (x - avg) / spread


def weighted_moving_average(
    points: Sequence[Tuple[datetime, float]],
    half_life_days: float,
    as_of: Optional[datetime] = None,
) -> float:
    """
    Exponentially decayed average: weight(age) = 0.5 ** (age_days / half_life_days).

    Age is measured from `as_of`, or from the newest point when omitted.
    Points dated after `as_of` count as age zero.
    """
    if half_life_days <= 0:
        raise InvalidInputError(f"half_life_days must be positive, got {half_life_days}")
    if not points:
        raise InsufficientDataError("Cannot average an empty series")

    reference = as_of if as_of is not None else max(ts for ts, _ in points)

    weighted_sum = 0.0
    total_weight = 0.0
    for ts, value in points:
        age_days = max((reference - ts).total_seconds() / SECONDS_PER_DAY, 0.0)
        weight = 0.5 ** (age_days / half_life_days)
        weighted_sum += weight * value
        total_weight += weight

    return weighted_sum / total_weight


def linear_regression(points: Sequence[Tuple[float, float]]) -> RegressionResult:
    """Ordinary least squares fit of y = slope * x + intercept"""
    if len({x for x, _ in points}) < 2:
        raise InsufficientDataError("Regression needs at least 2 distinct x values")

    n = len(points)
    x_mean = sum(x for x, _ in points) / n
    y_mean = sum(y for _, y in points) / n

    numerator = sum((x - x_mean) * (y - y_mean) for x, y in points)
    denominator = sum((x - x_mean) ** 2 for x, _ in points)
    slope = numerator / denominator
    intercept = y_mean - slope * x_mean

    ss_total = sum((y - y_mean) ** 2 for _, y in points)
    ss_residual = sum((y - (slope * x + intercept)) ** 2 for x, y in points)
    r_squared = 1 - ss_residual / ss_total if ss_total else 0.0

    return RegressionResult(slope=slope, intercept=intercept, r_squared=max(r_squared, 0.0))


def confidence_from_progress(elapsed_fraction: float, floor: float = CONFIDENCE_FLOOR) -> float:
    """
    Confidence of an in-period projection.

    Rises linearly from `floor` at the start of the period to 1.0 at its end;
    the fraction is clamped to [0, 1] so the result never leaves [0, 1].
    """
    fraction = min(max(elapsed_fraction, 0.0), 1.0)
    return min(max(floor + (1.0 - floor) * fraction, 0.0), 1.0)


def volatility(values: Sequence[float]) -> float:
    """Coefficient of variation (stddev / mean); 0.0 when undefined"""
    if len(values) < 2:
        return 0.0
    avg = mean(values)
    if avg == 0:
        return 0.0
    return abs(stddev(values) / avg)


def confidence_interval(prediction: float, spread: float, level: float = 0.95) -> Tuple[float, float]:
    """Symmetric interval around `prediction` scaled by its relative spread, floored at zero"""
    z = INTERVAL_Z.get(level, INTERVAL_Z[0.95])
    margin = abs(prediction) * spread * z
    return max(prediction - margin, 0.0), prediction + margin


def day_of_week_multipliers(points: Sequence[Tuple[date, float]]) -> Dict[int, float]:
    """
    Per-weekday spend relative to the overall per-observation mean.

    Keys follow date.weekday() (Monday == 0). Weekdays without observations,
    or a series whose mean is zero, get a neutral 1.0.
    """
    by_day: Dict[int, List[float]] = {day: [] for day in range(7)}
    for day, value in points:
        by_day[day.weekday()].append(value)

    observed = [value for _, value in points]
    overall = mean(observed) if observed else 0.0

    multipliers: Dict[int, float] = {}
    for day, values in by_day.items():
        if not values or overall == 0:
            multipliers[day] = 1.0
        else:
            multipliers[day] = mean(values) / overall
    return multipliers
