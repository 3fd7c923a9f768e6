from __future__ import annotations

from .backtest import BacktestRow, BacktestSummary, run_rolling_backtest
from .bootstrap import BootstrapResult, bootstrap_intervals
from .config import ForecastSettings, forecast_settings_from_mapping
from .engine import ForecastOutcome, ForecastRunResult, run_forecast_engine, run_forecast_from_records
from .ets import ALPHA_GRID, BETA_GRID, EtsFit, fit_best_ets, forecast_from_fit
from .series import SERIES_KEYS, DailySeries, build_daily_series, build_forecast_input

__all__ = [
    "BacktestRow",
    "BacktestSummary",
    "run_rolling_backtest",
    "BootstrapResult",
    "bootstrap_intervals",
    "ForecastSettings",
    "forecast_settings_from_mapping",
    "ForecastOutcome",
    "ForecastRunResult",
    "run_forecast_engine",
    "run_forecast_from_records",
    "ALPHA_GRID",
    "BETA_GRID",
    "EtsFit",
    "fit_best_ets",
    "forecast_from_fit",
    "SERIES_KEYS",
    "DailySeries",
    "build_daily_series",
    "build_forecast_input",
]
