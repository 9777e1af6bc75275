import logging
import math
import random

import pytest

from shopbook.projection import (
    BLEND_WEIGHTS,
    ForecastResult,
    ProjectionMethod,
    Trend,
    blended,
    linear_regression,
    moving_average,
    project,
    seasonal,
)


def test_linear_regression_on_linear_series() -> None:
    """A perfectly linear series is fitted exactly."""
    res = linear_regression([10, 20, 30, 40, 50])

    assert res.slope == pytest.approx(10)
    assert res.intercept == pytest.approx(10)
    assert res.predicted_value == pytest.approx(60)
    assert res.confidence == pytest.approx(1.0)
    assert res.trend is Trend.UP
    assert res.sample_size == 5


def test_linear_regression_on_constant_series() -> None:
    """A constant series is a perfect fit: confidence 1, not NaN."""
    res = linear_regression([5, 5, 5, 5])

    assert res.confidence == 1.0
    assert res.trend is Trend.STABLE
    assert res.predicted_value == pytest.approx(5)
    assert res.slope == pytest.approx(0)


def test_linear_regression_prediction_is_never_negative() -> None:
    res = linear_regression([30, 20, 10, 0])

    assert res.slope == pytest.approx(-10)
    assert res.trend is Trend.DOWN
    assert res.predicted_value == 0.0


def test_linear_regression_noisy_series_has_partial_confidence() -> None:
    res = linear_regression([10, 30, 15, 40, 20, 45])

    assert 0.0 < res.confidence < 1.0
    assert res.trend is Trend.UP


@pytest.mark.parametrize("series", [[], [42]])
def test_linear_regression_short_series_is_neutral(series: list) -> None:
    res = linear_regression(series)

    assert res == ForecastResult.neutral(ProjectionMethod.LINEAR_REGRESSION)
    assert not res.available


def test_moving_average_window_of_three() -> None:
    """The baseline is the window average; the prediction adds the average step."""
    res = moving_average([10, 20, 30], window_size=3)

    assert res.baseline == pytest.approx(20)
    assert res.predicted_value == pytest.approx(20 + 20 / 3)
    assert res.trend is Trend.UP
    assert 0.0 <= res.confidence <= 1.0


def test_moving_average_uses_last_window_only() -> None:
    res = moving_average([1000, 5, 100, 100, 100], window_size=3)

    assert res.baseline == pytest.approx(100)
    assert res.predicted_value == pytest.approx(100)
    assert res.confidence == pytest.approx(1.0)
    assert res.trend is Trend.STABLE


def test_moving_average_small_change_is_stable() -> None:
    """A change within +/-5% of the first window value is labelled stable."""
    res = moving_average([100, 101, 104], window_size=3)
    assert res.trend is Trend.STABLE

    res = moving_average([100, 98, 90], window_size=3)
    assert res.trend is Trend.DOWN


def test_moving_average_zero_first_value() -> None:
    res = moving_average([0, 0, 10], window_size=3)
    assert res.trend is Trend.UP

    res = moving_average([0, 0, 0], window_size=3)
    assert res.trend is Trend.STABLE
    assert res.confidence == 0.0
    assert res.predicted_value == 0.0


def test_moving_average_window_larger_than_series_is_neutral() -> None:
    res = moving_average([10, 20, 30], window_size=5)

    assert res.predicted_value == 0.0
    assert res.confidence == 0.0
    assert res.trend is Trend.STABLE
    assert res.sample_size == 0


def test_moving_average_rejects_invalid_window() -> None:
    with pytest.raises(ValueError):
        moving_average([1, 2, 3], window_size=0)


def test_seasonal_needs_two_weeks() -> None:
    """Fewer than 14 points always give the neutral result."""
    res = seasonal(list(range(1, 14)))

    assert res.predicted_value == 0.0
    assert not res.available


def test_seasonal_week_over_week_ratio() -> None:
    week = [10, 20, 30, 40, 50, 60, 70]
    res = seasonal(week + [2 * v for v in week])

    assert res.baseline == pytest.approx(2.0)
    # value one week before the next point (20) times the average ratio
    assert res.predicted_value == pytest.approx(40)
    assert res.confidence == pytest.approx(1.0)
    assert res.trend is Trend.UP


def test_seasonal_skips_zero_denominators() -> None:
    """Zero bases are skipped; the result stays finite."""
    series = [0, 10, 10, 10, 10, 10, 10, 5, 10, 10, 10, 10, 10, 10]
    res = seasonal(series)

    assert math.isfinite(res.predicted_value)
    assert math.isfinite(res.confidence)
    assert res.baseline == pytest.approx(1.0)
    assert res.predicted_value == pytest.approx(5)
    assert res.trend is Trend.STABLE


def test_seasonal_without_usable_ratio() -> None:
    res = seasonal([0] * 14)

    assert res.available
    assert res.baseline == 1.0
    assert res.predicted_value == 0.0
    assert res.confidence == 0.0


def test_blend_weights_sum_to_one() -> None:
    assert sum(BLEND_WEIGHTS.values()) == pytest.approx(1.0)


def test_blended_renormalizes_without_seasonal_component() -> None:
    """With 10 points the seasonal component is dropped."""
    series = [10 * i for i in range(1, 11)]

    ma = moving_average(series, window_size=7)
    lr = linear_regression(series)
    res = blended(series)

    assert not seasonal(series).available
    assert res.predicted_value == pytest.approx(
        (ma.predicted_value + lr.predicted_value) / 2
    )
    assert res.confidence == pytest.approx((ma.confidence + lr.confidence) / 2)
    assert res.trend is lr.trend
    assert res.slope == pytest.approx(10)
    assert res.method is ProjectionMethod.BLENDED


def test_blended_uses_all_components_with_two_weeks() -> None:
    series = [float(v) for v in range(10, 24)]

    parts = {
        "moving_average": moving_average(series, window_size=7),
        "linear_regression": linear_regression(series),
        "seasonal": seasonal(series),
    }
    expected = sum(BLEND_WEIGHTS[k] * r.predicted_value for k, r in parts.items())

    assert blended(series).predicted_value == pytest.approx(expected)


def test_blended_short_series_is_neutral() -> None:
    res = blended([3])

    assert res.predicted_value == 0.0
    assert res.method is ProjectionMethod.BLENDED
    assert not res.available


def test_project_dispatches_methods() -> None:
    series = [10, 20, 30, 40, 50]

    assert project(series).method is ProjectionMethod.LINEAR_REGRESSION
    assert project(series, "moving-average").method is ProjectionMethod.MOVING_AVERAGE
    seasonal_method = ProjectionMethod.SEASONAL
    assert project(series, seasonal_method).method is seasonal_method
    assert project(series, "blended").method is ProjectionMethod.BLENDED


def test_project_unknown_method_falls_back_to_regression(
    caplog: pytest.LogCaptureFixture,
) -> None:
    with caplog.at_level(logging.WARNING, logger="shopbook.projection"):
        res = project([10, 20, 30, 40, 50], method="crystal_ball")

    assert res.method is ProjectionMethod.LINEAR_REGRESSION
    assert res.predicted_value == pytest.approx(60)
    assert "crystal_ball" in caplog.text


@pytest.mark.parametrize("seed", range(5))
def test_confidence_is_always_within_bounds(seed: int) -> None:
    rng = random.Random(seed)
    series = [rng.uniform(0, 1000) for _ in range(21)]

    for method in ProjectionMethod:
        res = project(series, method)
        assert 0.0 <= res.confidence <= 1.0
        assert res.predicted_value >= 0.0


def test_forecast_as_dict_uses_plain_values() -> None:
    data = linear_regression([1, 2, 3]).as_dict()

    assert data["method"] == "linear_regression"
    assert data["trend"] == "up"
    assert data["sample_size"] == 3
