from __future__ import annotations

import pytest

from forecast.config import ForecastSettings, forecast_settings_from_mapping
from forecast.engine import run_forecast_engine
from forecast.series import DailySeries

pytestmark = pytest.mark.unit


def _series(n: int = 15) -> DailySeries:
    values = tuple(5.0 + 0.1 * i + (0.3 if i % 3 == 0 else -0.2) for i in range(n))
    dates = tuple(f"2024-05-{i + 1:02d}" for i in range(n))
    return DailySeries(key="index", dates=dates, values=values)


def test_engine_produces_ordered_band_and_backtest() -> None:
    settings = ForecastSettings(horizon=4, simulations=200, backtest_window=5)
    result = run_forecast_engine(_series(), settings)
    outcome = result.outcome
    assert result.trained_on_days == 15
    assert len(outcome.point) == 4
    assert all(lo <= mid <= hi for lo, mid, hi in zip(outcome.p10, outcome.p50, outcome.p90))
    assert len(outcome.backtest.rows) == 5
    payload = result.to_dict()
    assert payload["horizon"] == 4
    assert payload["outcome"]["model_type"] in ("simple", "trend")


def test_engine_is_deterministic_apart_from_timestamp() -> None:
    settings = ForecastSettings(horizon=3, simulations=100, backtest_window="all")
    first = run_forecast_engine(_series(8), settings)
    second = run_forecast_engine(_series(8), settings)
    assert first.outcome == second.outcome


def test_empty_series_is_insufficient() -> None:
    with pytest.raises(ValueError, match="Insufficient data"):
        run_forecast_engine(DailySeries(key="index", dates=(), values=()))


def test_settings_validation_and_mapping() -> None:
    assert ForecastSettings(simulations=5000).backtest_simulations == 1000
    assert ForecastSettings(backtest_window="all").resolve_window(12) == 12
    with pytest.raises(ValueError):
        ForecastSettings(horizon=0)
    with pytest.raises(ValueError):
        ForecastSettings(backtest_window="most")
    parsed = forecast_settings_from_mapping({"horizon": "10", "backtest_window": "ALL"})
    assert parsed.horizon == 10
    assert parsed.backtest_window == "all"
    with pytest.raises(ValueError):
        forecast_settings_from_mapping({"horizn": 3})
