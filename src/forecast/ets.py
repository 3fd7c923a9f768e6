"""
Exponential smoothing (simple and Holt trend) fitted by grid search.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Literal, Sequence

import numpy as np
from numpy.typing import NDArray

from sampling.stats import as_finite_array

__all__ = [
    "ALPHA_GRID",
    "BETA_GRID",
    "EtsFit",
    "fit_simple",
    "fit_trend",
    "fit_best_ets",
    "forecast_from_fit",
]

_LOGGER = logging.getLogger(__name__)

ModelKind = Literal["simple", "trend"]

ALPHA_GRID: tuple[float, ...] = (0.2, 0.35, 0.5, 0.65, 0.8)
BETA_GRID: tuple[float, ...] = (0.1, 0.25, 0.4, 0.55)


@dataclass(frozen=True)
class EtsFit:
    """Result of one smoothing fit; refitting yields a new instance."""

    model_type: ModelKind
    alpha: float
    beta: float | None
    fitted: tuple[float, ...]
    residuals: tuple[float, ...]
    mse: float
    level: float
    trend: float

    def to_dict(self) -> dict[str, object]:
        return {
            "model_type": self.model_type,
            "alpha": float(self.alpha),
            "beta": None if self.beta is None else float(self.beta),
            "fitted": list(self.fitted),
            "residuals": list(self.residuals),
            "mse": float(self.mse),
            "level": float(self.level),
            "trend": float(self.trend),
        }


def _mse(residuals: Sequence[float]) -> float:
    if not residuals:
        return 0.0
    arr = np.asarray(residuals, dtype=np.float64)
    return float(np.dot(arr, arr) / arr.size)


def fit_simple(series: NDArray[np.float64], alpha: float) -> EtsFit:
    if series.size < 2:
        return EtsFit("simple", alpha, None, (), (), 0.0, float(series[0]) if series.size else 0.0, 0.0)

    level = float(series[0])
    fitted: list[float] = []
    residuals: list[float] = []
    for actual in series[1:]:
        fitted.append(level)
        residuals.append(float(actual) - level)
        level = alpha * float(actual) + (1.0 - alpha) * level

    return EtsFit("simple", alpha, None, tuple(fitted), tuple(residuals), _mse(residuals), level, 0.0)


def fit_trend(series: NDArray[np.float64], alpha: float, beta: float) -> EtsFit:
    if series.size < 3:
        return EtsFit("trend", alpha, beta, (), (), 0.0, float(series[0]) if series.size else 0.0, 0.0)

    level = float(series[0])
    trend = float(series[1] - series[0])
    fitted: list[float] = []
    residuals: list[float] = []
    for actual in series[1:]:
        one_step = level + trend
        fitted.append(one_step)
        residuals.append(float(actual) - one_step)
        next_level = alpha * float(actual) + (1.0 - alpha) * (level + trend)
        trend = beta * (next_level - level) + (1.0 - beta) * trend
        level = next_level

    return EtsFit("trend", alpha, beta, tuple(fitted), tuple(residuals), _mse(residuals), level, trend)


def fit_best_ets(
    series: Iterable[float] | NDArray[np.float64],
    *,
    alpha_grid: Sequence[float] | None = None,
    beta_grid: Sequence[float] | None = None,
) -> EtsFit:
    """Fit every candidate and keep the lowest one-step MSE.

    Candidates are enumerated per ``alpha`` as the simple model followed by the
    trend model for each ``beta``; on equal error the earlier candidate wins.
    """

    values = as_finite_array(series, "series")
    if values.size == 0:
        raise ValueError("series must contain at least one observation.")
    if (alpha_grid is None) != (beta_grid is None):
        raise ValueError("alpha_grid and beta_grid must be supplied together.")
    alphas = tuple(ALPHA_GRID if alpha_grid is None else alpha_grid)
    betas = tuple(BETA_GRID if beta_grid is None else beta_grid)
    if not alphas or not betas:
        raise ValueError("Smoothing grids must not be empty.")
    for value in (*alphas, *betas):
        if not 0.0 < float(value) <= 1.0:
            raise ValueError("Smoothing parameters must lie in (0, 1].")

    if values.size < 3:
        _LOGGER.debug("ETS fit on %d observations uses degenerate candidates", values.size)

    best = fit_simple(values, float(alphas[0]))
    for alpha in alphas:
        candidates = [fit_simple(values, float(alpha))]
        candidates.extend(fit_trend(values, float(alpha), float(beta)) for beta in betas)
        for candidate in candidates:
            if candidate.mse < best.mse:
                best = candidate
    return best


def forecast_from_fit(fit: EtsFit, horizon: int) -> list[float]:
    """Linear extrapolation ``level + trend * step`` for steps ``1..horizon``."""

    if horizon < 0:
        raise ValueError("horizon must be non-negative.")
    return [round(fit.level + fit.trend * step, 3) for step in range(1, horizon + 1)]
