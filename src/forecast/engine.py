from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Sequence

from metrics.records import CheckinRecord, StateSnapshot
from sampling.stats import std

from .backtest import BacktestSummary, run_rolling_backtest
from .bootstrap import bootstrap_intervals
from .config import ForecastSettings
from .ets import fit_best_ets, forecast_from_fit
from .series import DailySeries, build_daily_series

__all__ = ["ForecastOutcome", "ForecastRunResult", "run_forecast_engine", "run_forecast_from_records"]

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ForecastOutcome:
    key: str
    dates: tuple[str, ...]
    point: tuple[float, ...]
    p10: tuple[float, ...]
    p50: tuple[float, ...]
    p90: tuple[float, ...]
    model_type: str
    residual_std: float
    residuals: tuple[float, ...]
    backtest: BacktestSummary

    def to_dict(self) -> dict[str, object]:
        return {
            "key": self.key,
            "dates": list(self.dates),
            "point": list(self.point),
            "p10": list(self.p10),
            "p50": list(self.p50),
            "p90": list(self.p90),
            "model_type": self.model_type,
            "residual_std": self.residual_std,
            "residuals": list(self.residuals),
            "backtest": self.backtest.to_dict(),
        }


@dataclass(frozen=True)
class ForecastRunResult:
    trained_on_days: int
    settings: ForecastSettings
    generated_at: datetime
    outcome: ForecastOutcome

    def to_dict(self) -> dict[str, object]:
        return {
            "trained_on_days": self.trained_on_days,
            "generated_at": self.generated_at.isoformat(),
            "horizon": self.settings.horizon,
            "simulations": self.settings.simulations,
            "backtest_window": self.settings.backtest_window,
            "seed": self.settings.seed,
            "outcome": self.outcome.to_dict(),
        }


def run_forecast_engine(series: DailySeries, settings: ForecastSettings | None = None) -> ForecastRunResult:
    """Fit, extrapolate, bootstrap and backtest one daily series."""

    cfg = settings or ForecastSettings()
    if len(series) == 0:
        raise ValueError(f"Insufficient data: series {series.key!r} is empty.")

    values = list(series.values)
    fit = fit_best_ets(values, alpha_grid=cfg.alpha_grid, beta_grid=cfg.beta_grid)
    point = forecast_from_fit(fit, cfg.horizon)
    band = bootstrap_intervals(fit, cfg.horizon, cfg.simulations, cfg.seed)
    backtest = run_rolling_backtest(
        series.dates,
        values,
        cfg.resolve_window(len(values)),
        cfg.backtest_simulations,
        cfg.seed,
    )
    _LOGGER.info(
        "Forecast %s: %s model (alpha=%.2f) on %d days, backtest coverage %.2f%%",
        series.key,
        fit.model_type,
        fit.alpha,
        len(values),
        backtest.coverage,
    )

    return ForecastRunResult(
        trained_on_days=len(values),
        settings=cfg,
        generated_at=datetime.now(timezone.utc),
        outcome=ForecastOutcome(
            key=series.key,
            dates=series.dates,
            point=tuple(point),
            p10=band.p10,
            p50=band.p50,
            p90=band.p90,
            model_type=fit.model_type,
            residual_std=round(std(fit.residuals), 3),
            residuals=fit.residuals,
            backtest=backtest,
        ),
    )


def run_forecast_from_records(
    snapshots: Sequence[StateSnapshot],
    checkins: Sequence[CheckinRecord],
    settings: ForecastSettings | None = None,
    *,
    key: str = "index",
) -> ForecastRunResult:
    return run_forecast_engine(build_daily_series(snapshots, checkins, key), settings)
