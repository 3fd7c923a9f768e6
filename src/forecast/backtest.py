"""
Rolling-origin evaluation of the ETS + bootstrap pipeline.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Sequence

from sampling.stats import as_finite_array

from .bootstrap import bootstrap_intervals
from .ets import fit_best_ets, forecast_from_fit

__all__ = ["BacktestRow", "BacktestSummary", "run_rolling_backtest"]

_LOGGER = logging.getLogger(__name__)

MIN_BACKTEST_POINTS = 5


@dataclass(frozen=True)
class BacktestRow:
    date: str
    actual: float
    point: float
    p10: float
    p50: float
    p90: float
    inside_band: bool
    abs_error: float
    squared_error: float

    def to_dict(self) -> dict[str, object]:
        return {
            "date": self.date,
            "actual": self.actual,
            "point": self.point,
            "p10": self.p10,
            "p50": self.p50,
            "p90": self.p90,
            "inside_band": self.inside_band,
            "abs_error": self.abs_error,
            "squared_error": self.squared_error,
        }


@dataclass(frozen=True)
class BacktestSummary:
    mae: float = 0.0
    rmse: float = 0.0
    coverage: float = 0.0
    average_interval_width: float = 0.0
    rows: tuple[BacktestRow, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, object]:
        return {
            "mae": self.mae,
            "rmse": self.rmse,
            "coverage": self.coverage,
            "average_interval_width": self.average_interval_width,
            "rows": [row.to_dict() for row in self.rows],
        }


def run_rolling_backtest(
    dates: Sequence[str],
    values: Sequence[float],
    window: int,
    simulations: int = 500,
    seed: int = 42,
) -> BacktestSummary:
    """Refit on each prefix and score the one-step forecast at the cut.

    Cut points run from ``max(3, n - window)`` to ``n - 1``. Fewer than five
    values yields the empty summary. ``coverage`` is a percentage.
    """

    series = as_finite_array(values, "values")
    if series.size < MIN_BACKTEST_POINTS:
        _LOGGER.debug("Backtest skipped: %d values (< %d)", series.size, MIN_BACKTEST_POINTS)
        return BacktestSummary()

    end = int(series.size)
    start = max(3, end - int(window))
    rows: list[BacktestRow] = []
    for t in range(start, end):
        fit = fit_best_ets(series[:t])
        point = forecast_from_fit(fit, 1)[0]
        band = bootstrap_intervals(fit, 1, simulations, seed + t)
        actual = float(series[t])
        p10 = band.p10[0]
        p90 = band.p90[0]
        abs_error = abs(actual - point)
        rows.append(
            BacktestRow(
                date=str(dates[t]) if t < len(dates) else f"t{t}",
                actual=actual,
                point=point,
                p10=p10,
                p50=band.p50[0],
                p90=p90,
                inside_band=p10 <= actual <= p90,
                abs_error=abs_error,
                squared_error=abs_error * abs_error,
            )
        )

    if not rows:
        return BacktestSummary()

    n = len(rows)
    mae = sum(row.abs_error for row in rows) / n
    rmse = math.sqrt(sum(row.squared_error for row in rows) / n)
    coverage = sum(1 for row in rows if row.inside_band) / n
    width = sum(row.p90 - row.p10 for row in rows) / n
    return BacktestSummary(
        mae=round(mae, 3),
        rmse=round(rmse, 3),
        coverage=round(coverage * 100.0, 2),
        average_interval_width=round(width, 3),
        rows=tuple(rows),
    )
