# ShopBook - Retail sales bookkeeping & projection application for small shops
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Sales projection engine for ShopBook.

This module turns an ordered numeric series (typically the revenue of
consecutive period buckets) into a next-period estimate. Four methods are
available:

1. Moving average
   ---------------
   Average of the last `window_size` values, adjusted by the average step
   across the window:

       prediction = mean(window) + (window[-1] - window[0]) / window_size

   Confidence is the normalized inverse variance of the window,
   1 - variance / mean, clamped to [0, 1]. The trend label compares the
   first and last value of the window (more than +/-5% change).

2. Linear regression
   ------------------
   Least squares fit of value against the position of each point
   (x = 0 for the first observation). The next value is the fitted line at
   x = n, clamped to be non-negative. Confidence is R^2 clamped to [0, 1];
   a constant series is a perfect fit (confidence 1). The trend label
   follows the sign of the slope.

3. Seasonal (weekly ratio)
   ------------------------
   Needs at least 14 points. Week-over-week ratios value[i] / value[i-7]
   are averaged and applied to the value one week before the next point:

       prediction = value[n-7] * mean(ratios)

   Ratios with a zero denominator are skipped; without any usable ratio
   the average ratio is 1.

4. Blended
   --------
   Fixed weighted sum of the three methods above (BLEND_WEIGHTS). A method
   that cannot produce a forecast for the series is left out and the
   remaining weights are renormalized.

Every method returns a ForecastResult. A series that is too short for the
requested method gives the neutral result (prediction 0, confidence 0,
trend "stable", sample_size 0); no exception is raised.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Optional

logger = logging.getLogger(__name__)

# Policy weights of the blended forecast.
BLEND_WEIGHTS: dict[str, float] = {
    "moving_average": 0.4,
    "linear_regression": 0.4,
    "seasonal": 0.2,
}

DEFAULT_WINDOW_SIZE = 3
BLEND_WINDOW_SIZE = 7
SEASON_LENGTH = 7
MIN_SEASONAL_POINTS = 2 * SEASON_LENGTH

# Relative change (in percent) above which a moving-average window is
# labelled "up" or "down".
TREND_THRESHOLD_PCT = 5.0

_EPSILON = 1e-9


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class ProjectionMethod(str, Enum):
    """Forecasting method selector."""

    MOVING_AVERAGE = "moving_average"
    LINEAR_REGRESSION = "linear_regression"
    SEASONAL = "seasonal"
    BLENDED = "blended"

    @classmethod
    def resolve(cls, value: "ProjectionMethod | str | None") -> "ProjectionMethod":
        """
        Return the method matching `value`.

        None or an empty value selects linear regression. An unrecognized
        value also falls back to linear regression, with a warning.
        """
        if isinstance(value, cls):
            return value
        if value is None or str(value).strip() == "":
            return cls.LINEAR_REGRESSION

        normalized = str(value).strip().lower().replace("-", "_")
        try:
            return cls(normalized)
        except ValueError:
            logger.warning(
                "Unknown projection method %r, falling back to linear regression",
                value,
            )
            return cls.LINEAR_REGRESSION


@dataclass(frozen=True)
class ForecastResult:
    """
    Next-period estimate produced by one projection method.

    Attributes
    ----------
    predicted_value :
        Estimated value for the next period (never negative).
    confidence :
        Reliability score in [0, 1].
    trend :
        "up", "down" or "stable".
    method :
        Method that produced the estimate.
    sample_size :
        Number of observations used. 0 marks the neutral result returned
        when the series is too short.
    slope, intercept :
        Fitted line (linear regression and blended results only).
    baseline :
        Window average before trend adjustment (moving average only).
    """

    predicted_value: float
    confidence: float
    trend: Trend
    method: ProjectionMethod
    sample_size: int = 0
    slope: Optional[float] = None
    intercept: Optional[float] = None
    baseline: Optional[float] = None

    @property
    def available(self) -> bool:
        """False for the neutral result of a too-short series."""
        return self.sample_size > 0

    @classmethod
    def neutral(cls, method: ProjectionMethod) -> ForecastResult:
        return cls(
            predicted_value=0.0,
            confidence=0.0,
            trend=Trend.STABLE,
            method=method,
            sample_size=0,
        )

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["trend"] = self.trend.value
        data["method"] = self.method.value
        return data


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    if math.isnan(value):
        return low
    return max(low, min(high, value))


def _as_floats(series: Sequence[Any]) -> list[float]:
    """Convert the series to floats; None / NaN count as 0."""
    values: list[float] = []
    for v in series:
        if v is None:
            values.append(0.0)
            continue
        f = float(v)
        values.append(0.0 if math.isnan(f) else f)
    return values


def _percent_change_trend(first: float, last: float) -> Trend:
    """Label the change from `first` to `last` using TREND_THRESHOLD_PCT."""
    if abs(first) < _EPSILON:
        if last > _EPSILON:
            return Trend.UP
        if last < -_EPSILON:
            return Trend.DOWN
        return Trend.STABLE

    change = (last - first) / abs(first) * 100.0
    if change > TREND_THRESHOLD_PCT:
        return Trend.UP
    if change < -TREND_THRESHOLD_PCT:
        return Trend.DOWN
    return Trend.STABLE


def moving_average(
    series: Sequence[Any],
    window_size: int = DEFAULT_WINDOW_SIZE,
) -> ForecastResult:
    """
    Forecast the next value from the average of the last `window_size` values.

    Returns the neutral result when the series has fewer than
    max(2, window_size) points.

    Raises:
        ValueError: if window_size is not a positive integer.
    """
    if window_size < 1:
        raise ValueError(f"window_size must be >= 1, got {window_size}")

    method = ProjectionMethod.MOVING_AVERAGE
    values = _as_floats(series)
    if len(values) < max(2, window_size):
        return ForecastResult.neutral(method)

    window = values[-window_size:]
    average = sum(window) / window_size
    adjustment = (window[-1] - window[0]) / window_size
    variance = sum((v - average) ** 2 for v in window) / window_size

    if abs(average) < _EPSILON:
        confidence = 0.0
    else:
        confidence = _clamp(1.0 - variance / average)

    return ForecastResult(
        predicted_value=max(0.0, average + adjustment),
        confidence=confidence,
        trend=_percent_change_trend(window[0], window[-1]),
        method=method,
        sample_size=window_size,
        baseline=average,
    )


def linear_regression(series: Sequence[Any]) -> ForecastResult:
    """
    Forecast the next value with an ordinary least squares line.

    The line is fitted on (x, value) pairs with x = 0 .. n-1 and evaluated
    at x = n. Returns the neutral result for fewer than 2 points.
    """
    method = ProjectionMethod.LINEAR_REGRESSION
    ys = _as_floats(series)
    n = len(ys)
    if n < 2:
        return ForecastResult.neutral(method)

    xs = range(n)
    sum_x = float(sum(xs))
    sum_y = sum(ys)
    sum_xy = sum(x * y for x, y in zip(xs, ys))
    sum_x2 = float(sum(x * x for x in xs))

    # Strictly positive for n >= 2 and distinct x values.
    denominator = n * sum_x2 - sum_x * sum_x
    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n

    mean_y = sum_y / n
    ss_total = sum((y - mean_y) ** 2 for y in ys)
    ss_residual = sum((y - (slope * x + intercept)) ** 2 for x, y in zip(xs, ys))

    scale = max(1.0, sum(y * y for y in ys))
    if ss_total <= _EPSILON * scale:
        confidence = 1.0
    else:
        confidence = _clamp(1.0 - ss_residual / ss_total)

    if abs(slope) <= _EPSILON * max(1.0, abs(mean_y)):
        trend = Trend.STABLE
    elif slope > 0:
        trend = Trend.UP
    else:
        trend = Trend.DOWN

    return ForecastResult(
        predicted_value=max(0.0, slope * n + intercept),
        confidence=confidence,
        trend=trend,
        method=method,
        sample_size=n,
        slope=slope,
        intercept=intercept,
    )


def seasonal(series: Sequence[Any]) -> ForecastResult:
    """
    Forecast the next value from the average week-over-week ratio.

    Returns the neutral result for fewer than MIN_SEASONAL_POINTS points.
    """
    method = ProjectionMethod.SEASONAL
    values = _as_floats(series)
    n = len(values)
    if n < MIN_SEASONAL_POINTS:
        return ForecastResult.neutral(method)

    ratios = [
        values[i] / values[i - SEASON_LENGTH]
        for i in range(SEASON_LENGTH, n)
        if values[i - SEASON_LENGTH] != 0
    ]
    skipped = (n - SEASON_LENGTH) - len(ratios)
    if skipped:
        logger.debug("Seasonal projection skipped %d zero-base ratios", skipped)

    if ratios:
        average_ratio = sum(ratios) / len(ratios)
        if abs(average_ratio) < _EPSILON:
            confidence = 0.0
        else:
            spread = math.sqrt(
                sum((r - average_ratio) ** 2 for r in ratios) / len(ratios)
            )
            confidence = _clamp(1.0 - spread / abs(average_ratio))
    else:
        average_ratio = 1.0
        confidence = 0.0

    if average_ratio > 1.0 + _EPSILON:
        trend = Trend.UP
    elif average_ratio < 1.0 - _EPSILON:
        trend = Trend.DOWN
    else:
        trend = Trend.STABLE

    return ForecastResult(
        predicted_value=max(0.0, values[n - SEASON_LENGTH] * average_ratio),
        confidence=confidence,
        trend=trend,
        method=method,
        sample_size=n,
        baseline=average_ratio,
    )


def blended(
    series: Sequence[Any],
    window_size: int = BLEND_WINDOW_SIZE,
) -> ForecastResult:
    """
    Weighted combination of moving average, linear regression and seasonal
    forecasts (see BLEND_WEIGHTS).

    Components returning the neutral result are excluded and the remaining
    weights renormalized. Trend, slope and intercept come from the linear
    regression component.
    """
    method = ProjectionMethod.BLENDED
    components = {
        "moving_average": moving_average(series, window_size=window_size),
        "linear_regression": linear_regression(series),
        "seasonal": seasonal(series),
    }

    used = {name: res for name, res in components.items() if res.available}
    if not used:
        return ForecastResult.neutral(method)

    total_weight = sum(BLEND_WEIGHTS[name] for name in used)
    predicted = sum(BLEND_WEIGHTS[n] * r.predicted_value for n, r in used.items())
    confidence = sum(BLEND_WEIGHTS[n] * r.confidence for n, r in used.items())

    regression = components["linear_regression"]
    return ForecastResult(
        predicted_value=max(0.0, predicted / total_weight),
        confidence=_clamp(confidence / total_weight),
        trend=regression.trend,
        method=method,
        sample_size=len(series),
        slope=regression.slope,
        intercept=regression.intercept,
    )


def project(
    series: Sequence[Any],
    method: "ProjectionMethod | str | None" = None,
    window_size: int = DEFAULT_WINDOW_SIZE,
    blend_window_size: int = BLEND_WINDOW_SIZE,
) -> ForecastResult:
    """
    Forecast the next value of an ordered series with the selected method.

    Args:
        series: Ordered numeric values (oldest first).
        method: ProjectionMethod or its name. None or an unknown name uses
            linear regression.
        window_size: Window of the moving-average method.
        blend_window_size: Window of the moving-average component of the
            blended method.

    Returns:
        A ForecastResult; the neutral result when the series is too short.
    """
    selected = ProjectionMethod.resolve(method)

    if selected is ProjectionMethod.MOVING_AVERAGE:
        return moving_average(series, window_size=window_size)
    if selected is ProjectionMethod.SEASONAL:
        return seasonal(series)
    if selected is ProjectionMethod.BLENDED:
        return blended(series, window_size=blend_window_size)
    return linear_regression(series)
