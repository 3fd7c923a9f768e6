"""
Residual bootstrap of forecast paths from a fitted smoothing model.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from sampling.rng import DeterministicRng
from sampling.stats import percentile_bands

from .ets import EtsFit

__all__ = ["BootstrapResult", "bootstrap_intervals"]

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class BootstrapResult:
    p10: tuple[float, ...]
    p50: tuple[float, ...]
    p90: tuple[float, ...]
    paths: tuple[tuple[float, ...], ...]

    @property
    def horizon(self) -> int:
        return len(self.p50)

    def to_dict(self, *, include_paths: bool = False) -> dict[str, object]:
        payload: dict[str, object] = {
            "p10": list(self.p10),
            "p50": list(self.p50),
            "p90": list(self.p90),
        }
        if include_paths:
            payload["paths"] = [list(path) for path in self.paths]
        return payload


def bootstrap_intervals(
    fit: EtsFit,
    horizon: int,
    simulations: int = 2000,
    seed: int = 42,
) -> BootstrapResult:
    """Simulate ``simulations`` paths by re-running the smoothing recursion.

    At each step a residual drawn uniformly with replacement from the fit is
    added to the one-step forecast and fed back into the level/trend update.
    Draws are consumed path by path, step by step, from a single stream.
    """

    if horizon < 1:
        raise ValueError("horizon must be at least 1.")
    if simulations < 1:
        raise ValueError("simulations must be at least 1.")

    pool = np.asarray(fit.residuals if fit.residuals else (0.0,), dtype=np.float64)
    if not fit.residuals:
        _LOGGER.debug("Empty residual pool; bootstrap paths collapse to the point forecast")

    rng = DeterministicRng(seed)
    draws = rng.random_array(simulations * horizon).reshape(simulations, horizon)
    picks = np.minimum((draws * pool.size).astype(np.int64), pool.size - 1)
    shocks = pool[picks]

    level = np.full(simulations, fit.level, dtype=np.float64)
    trend = np.full(simulations, fit.trend, dtype=np.float64)
    beta = fit.beta if fit.beta is not None else 0.0
    paths = np.empty((simulations, horizon), dtype=np.float64)

    for step in range(horizon):
        with_noise = level + trend + shocks[:, step]
        paths[:, step] = np.round(with_noise, 3)
        if fit.model_type == "simple":
            level = fit.alpha * with_noise + (1.0 - fit.alpha) * level
        else:
            next_level = fit.alpha * with_noise + (1.0 - fit.alpha) * (level + trend)
            trend = beta * (next_level - level) + (1.0 - beta) * trend
            level = next_level

    p10, p50, p90 = percentile_bands(paths, decimals=3)
    return BootstrapResult(
        p10=tuple(float(v) for v in p10),
        p50=tuple(float(v) for v in p50),
        p90=tuple(float(v) for v in p90),
        paths=tuple(tuple(float(v) for v in row) for row in paths),
    )
