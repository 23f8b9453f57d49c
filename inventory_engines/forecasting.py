"""
Module: inventory_engines.forecasting
Responsibility:
    Ensemble demand estimation from a product's daily sales series: a short
    moving average, a long moving average and a least-squares linear trend,
    combined with fixed weights.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  No clock access; the
    caller supplies the already-aggregated series.

Invariants enforced:
    - Each estimator is None when it cannot be computed; it never falls
      back to a partial window.
    - Weights are normalized over the estimators that are available.
    - predicted_demand is a non-negative int (half-up rounding).
    - confidence grows by a fixed step per available estimator.

Failure modes:
    - ValueError from ForecastWeights when a weight is negative or all are
      zero.
    - ValueError from estimate_demand on an empty series; callers check for
      "no history" first.

Usage:
    from inventory_engines.forecasting import estimate_demand

    estimate = estimate_demand(daily_sales=[2, 3, 2, 4, 3, 2, 3], window_days=30)
    estimate.predicted_demand   # 3
    estimate.confidence_level   # 0.66
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from inventory_engines.tracer import traced_engine

SHORT_PERIOD = 7
LONG_PERIOD = 30
CONFIDENCE_STEP = 0.33


@dataclass(frozen=True)
class ForecastWeights:
    """
    Relative weight of each estimator.

    Guarantees:
        - Every weight is >= 0 and at least one is > 0.
    """

    moving_average_short: float = 0.3
    moving_average_long: float = 0.5
    linear_trend: float = 0.2

    def __post_init__(self) -> None:
        values = (self.moving_average_short, self.moving_average_long, self.linear_trend)
        if any(w < 0 for w in values):
            raise ValueError("Forecast weights must be non-negative")
        if not any(w > 0 for w in values):
            raise ValueError("At least one forecast weight must be positive")


@dataclass(frozen=True)
class DemandEstimate:
    """Estimator values and their weighted combination."""

    moving_average_short: float | None
    moving_average_long: float | None
    linear_trend: float | None
    predicted_demand: int
    confidence_level: float
    observed_days: int

    @property
    def available_estimators(self) -> int:
        return sum(
            v is not None
            for v in (self.moving_average_short, self.moving_average_long, self.linear_trend)
        )

    def features(self) -> dict[str, float | int | None]:
        """JSON-ready estimator values, stored with the prediction."""
        return {
            "moving_average_7": self.moving_average_short,
            "moving_average_30": self.moving_average_long,
            "linear_trend": self.linear_trend,
            "observed_days": self.observed_days,
        }


def moving_average(series: Sequence[float], period: int) -> float | None:
    """
    Mean of the last ``period`` observations.

    Returns None when fewer than ``period`` observations exist or
    ``period`` is not positive.
    """
    if period <= 0 or len(series) < period:
        return None
    recent = series[-period:]
    return sum(recent) / period


def linear_trend(series: Sequence[float]) -> float | None:
    """
    Least-squares line through (index, value), evaluated one step past the
    last observation and clamped at zero.

    Returns None for fewer than two observations.
    """
    n = len(series)
    if n < 2:
        return None

    sum_x = sum_y = sum_xy = sum_x2 = 0.0
    for x, y in enumerate(series):
        sum_x += x
        sum_y += y
        sum_xy += x * y
        sum_x2 += x * x

    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_x2 - sum_x * sum_x)
    intercept = (sum_y - slope * sum_x) / n
    return max(0.0, slope * n + intercept)


def round_half_up(value: float) -> int:
    """Round to the nearest int, halves away from zero."""
    return int(Decimal(repr(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def combine_estimates(
    estimates: Sequence[tuple[float | None, float]],
) -> float | None:
    """
    Weighted mean of (value, weight) pairs, normalized over the pairs whose
    value is not None.  None when nothing is available.
    """
    total_weight = 0.0
    weighted = 0.0
    for value, weight in estimates:
        if value is None:
            continue
        weighted += value * weight
        total_weight += weight
    if total_weight <= 0:
        return None
    return weighted / total_weight


@traced_engine("forecasting", "1.0", fingerprint_fields=("daily_sales", "window_days"))
def estimate_demand(
    *,
    daily_sales: Sequence[float],
    window_days: int = LONG_PERIOD,
    weights: ForecastWeights | None = None,
    short_period: int = SHORT_PERIOD,
    long_period: int = LONG_PERIOD,
    confidence_step: float = CONFIDENCE_STEP,
) -> DemandEstimate:
    """
    Produce the ensemble estimate for one product.

    Args:
        daily_sales: Units sold per calendar day that had sales, oldest
            first.  Days without sales are absent, not zero.
        window_days: Length of the trailing window the series was drawn
            from; caps the long moving-average period.

    Raises:
        ValueError: If daily_sales is empty or window_days < 1.
    """
    if not daily_sales:
        raise ValueError("daily_sales must contain at least one observation")
    if window_days < 1:
        raise ValueError("window_days must be >= 1")

    weights = weights or ForecastWeights()
    series = [float(v) for v in daily_sales]

    ma_short = moving_average(series, short_period)
    ma_long = moving_average(series, min(long_period, window_days))
    trend = linear_trend(series)

    combined = combine_estimates(
        (
            (ma_short, weights.moving_average_short),
            (ma_long, weights.moving_average_long),
            (trend, weights.linear_trend),
        )
    )
    predicted = max(0, round_half_up(combined)) if combined is not None else 0

    available = sum(v is not None for v in (ma_short, ma_long, trend))
    confidence = min(1.0, round(available * confidence_step, 4))

    return DemandEstimate(
        moving_average_short=ma_short,
        moving_average_long=ma_long,
        linear_trend=trend,
        predicted_demand=predicted,
        confidence_level=confidence,
        observed_days=len(series),
    )


def accuracy_score(predicted: int, actual: int) -> float:
    """
    1 minus the relative error, floored at zero.

    The denominator is max(actual, 1) so that a zero actual does not divide
    by zero.
    """
    if actual < 0:
        raise ValueError("actual demand must be >= 0")
    return max(0.0, 1.0 - abs(predicted - actual) / max(actual, 1))
