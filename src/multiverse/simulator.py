"""
Multiverse Monte-Carlo simulator.

Each run walks the metric vector forward one day at a time: scheduled
impulses diffuse through the (optionally perturbed) influence matrix, a
bootstrapped forecast residual nudges energy, mood and stress, the regime
may switch according to the transition matrix, and the collapse probability
is reassessed with a per-regime bias.

Run ``r`` draws every random number from its own sub-stream
``substream(seed, r)``, so a run's path depends only on the configuration,
the seed and ``r``. Path values are written into preallocated
``(runs, days)`` arrays; :class:`PathPoint` objects are only built for the
handful of paths that end up in the result.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Callable

import numpy as np
from numpy.typing import NDArray

from regime.model import Regime, predict_next, validate_transition_matrix
from sampling.rng import DeterministicRng, substream
from sampling.stats import clamp01, percentile_bands

from .collapse import SIREN_LEVELS, siren_level
from .influence import DEFAULT_STABILITY, perturb_matrix, propagate
from .scoring import goal_score_of, goal_weight_vector, rank_hedges, summarize_tail
from .types import (
    MultiverseConfig,
    MultiverseQuantiles,
    MultiverseRunResult,
    PathPoint,
    QuantileBand,
    RegimeMap,
    TrajectoryExplorer,
)

__all__ = [
    "REGIME_BIAS",
    "NOISE_LOADINGS",
    "SimulationCancelled",
    "ProgressCallback",
    "CancelCheck",
    "sample_regime",
    "run_multiverse",
]

_LOGGER = logging.getLogger(__name__)

REGIME_BIAS: dict[Regime, float] = {
    Regime.STORM: 0.06,
    Regime.DECLINING: 0.03,
    Regime.ACCELERATING: -0.02,
}

# directional response of single metrics to one unit of forecast residual
NOISE_LOADINGS: tuple[tuple[str, float], ...] = (
    ("energy", 0.06),
    ("mood", 0.04),
    ("stress", -0.05),
)

_WORST_RANK = 0.05
_EXPLORER_SIZE = 3

ProgressCallback = Callable[[int, int], None]
CancelCheck = Callable[[], bool]


class SimulationCancelled(RuntimeError):
    """Cancellation arrived before any run completed."""


def sample_regime(current: int, transition: NDArray[np.float64] | None, u: float) -> int:
    """Next regime by inverse-CDF over the current row; stays put if nothing is hit."""

    if transition is None or current >= transition.shape[0]:
        return current
    cumulative = 0.0
    for candidate, probability in enumerate(transition[current]):
        cumulative += float(probability)
        if u <= cumulative:
            return candidate
    return current


def _band(matrix: NDArray[np.float64]) -> QuantileBand:
    p10, p50, p90 = percentile_bands(matrix, decimals=4)
    return QuantileBand(p10=tuple(p10.tolist()), p50=tuple(p50.tolist()), p90=tuple(p90.tolist()))


def run_multiverse(
    config: MultiverseConfig,
    *,
    on_progress: ProgressCallback | None = None,
    should_cancel: CancelCheck | None = None,
) -> MultiverseRunResult:
    """Simulate ``config.runs`` independent paths and aggregate them.

    Cancellation is checked before every run. If it arrives after at least
    one run finished, the result covers the completed runs and carries
    ``cancelled=True``; otherwise :class:`SimulationCancelled` is raised.
    """

    catalog = config.catalog
    toggles = config.toggles
    n_metrics = len(catalog)
    days = config.horizon_days
    runs = config.runs

    base = catalog.to_array(config.base_vector)
    lower, upper = catalog.lower_bounds, catalog.upper_bounds
    index_mask = catalog.index_mask
    weights = config.matrix.to_array(catalog)
    stability = None if config.stability is None else config.stability.to_array(catalog, fill=DEFAULT_STABILITY)
    transition = None if config.transition_matrix is None else validate_transition_matrix(config.transition_matrix)
    if int(config.base_regime) >= (transition.shape[0] if transition is not None else len(Regime)):
        raise ValueError(f"Base regime {int(config.base_regime)} is outside the transition matrix.")

    residuals = np.asarray(config.forecast_residuals, dtype=np.float64)
    impulses = config.plan.impulses_by_day(days, catalog)
    goal_weights = goal_weight_vector(config.goal_weights, catalog)
    noise_loadings = [(catalog.position(metric_id), loading) for metric_id, loading in NOISE_LOADINGS if metric_id in catalog]

    use_weight_noise = toggles.weights_noise
    use_forecast_noise = toggles.forecast_noise and residuals.size > 0
    use_regime = toggles.stochastic_regime and transition is not None
    if toggles.forecast_noise and residuals.size == 0:
        _LOGGER.debug("Forecast noise enabled with an empty residual pool; noise stays at zero.")
    weight_draws = n_metrics * n_metrics if use_weight_noise else 0
    draws_per_run = weight_draws + days * (int(use_forecast_noise) + int(use_regime))

    index_paths = np.zeros((runs, days), dtype=np.float64)
    collapse_paths = np.zeros((runs, days), dtype=np.float64)
    siren_paths = np.zeros((runs, days), dtype=np.int8)
    regime_paths = np.zeros((runs, days), dtype=np.int8)
    goal_paths = None if goal_weights is None else np.zeros((runs, days), dtype=np.float64)

    _LOGGER.info("Starting multiverse simulation: runs=%d horizon=%d seed=%d plan=%s", runs, days, config.seed, config.plan.name)
    completed = 0
    cancelled = False
    for run in range(runs):
        if should_cancel is not None and should_cancel():
            cancelled = True
            break
        if on_progress is not None and run % config.progress_every == 0:
            on_progress(run, runs)

        uniforms = DeterministicRng(substream(config.seed, run)).random_array(draws_per_run)
        cursor = weight_draws
        run_weights = perturb_matrix(weights, stability, uniforms[:weight_draws]) if use_weight_noise else weights

        vector = base.copy()
        regime = int(config.base_regime)
        for day in range(days):
            noise = 0.0
            if use_forecast_noise:
                pick = min(residuals.size - 1, int(uniforms[cursor] * residuals.size))
                noise = float(residuals[pick])
                cursor += 1

            vector = propagate(vector, impulses[day + 1], run_weights, lower, upper)
            if noise != 0.0:
                for position, loading in noise_loadings:
                    vector[position] = min(upper[position], max(lower[position], vector[position] + noise * loading))

            if use_regime:
                regime = sample_regime(regime, transition, float(uniforms[cursor]))
                cursor += 1

            index = float(vector[index_mask].mean()) if index_mask.any() else 0.0
            p_collapse = float(config.risk_model(index, catalog.to_mapping(vector)))
            p_collapse = clamp01(p_collapse + REGIME_BIAS.get(Regime(regime), 0.0))

            index_paths[run, day] = round(index, 4)
            collapse_paths[run, day] = round(p_collapse, 4)
            siren_paths[run, day] = SIREN_LEVELS.index(siren_level(p_collapse))
            regime_paths[run, day] = regime
            if goal_paths is not None:
                goal_paths[run, day] = goal_score_of(vector, goal_weights, catalog)
        completed += 1

    if on_progress is not None:
        on_progress(completed, runs)

    if cancelled:
        _LOGGER.warning("Multiverse simulation cancelled after %d of %d runs", completed, runs)
        if completed == 0:
            raise SimulationCancelled("Simulation cancelled before any run completed.")

    index_paths = index_paths[:completed]
    collapse_paths = collapse_paths[:completed]
    siren_paths = siren_paths[:completed]
    regime_paths = regime_paths[:completed]
    if goal_paths is not None:
        goal_paths = goal_paths[:completed]

    def path(run: int) -> tuple[PathPoint, ...]:
        return tuple(
            PathPoint(
                day=day + 1,
                index=float(index_paths[run, day]),
                p_collapse=float(collapse_paths[run, day]),
                siren=SIREN_LEVELS[int(siren_paths[run, day])],
                regime=Regime(int(regime_paths[run, day])),
                goal_score=None if goal_paths is None else float(goal_paths[run, day]),
            )
            for day in range(days)
        )

    final_index = index_paths[:, -1]
    order = np.argsort(final_index, kind="stable")
    worst_run = int(order[int(math.floor(completed * _WORST_RANK))])
    median_final = float(np.quantile(final_index, 0.5))
    probable = np.argsort(np.abs(final_index - median_final), kind="stable")[:_EXPLORER_SIZE]

    quantiles = MultiverseQuantiles(
        days=tuple(range(1, days + 1)),
        index=_band(index_paths),
        p_collapse=_band(collapse_paths),
        goal_score=None if goal_paths is None else _band(goal_paths),
    )
    tail = summarize_tail(
        index_paths,
        collapse_paths,
        siren_paths,
        goal_paths,
        base_index=config.base_index,
        base_p_collapse=config.base_p_collapse,
        base_goal=goal_score_of(base, goal_weights, catalog),
        index_floor=config.index_floor,
        alpha=config.var_alpha,
    )

    final_regimes = regime_paths[:, -1]
    horizon_share = {item.label: round(float((final_regimes == int(item)).mean()), 4) for item in Regime}
    next_1: dict[str, float] = {}
    next_3: dict[str, float] = {}
    if transition is not None:
        next_1 = {item.label: round(prob, 4) for item, prob in predict_next(config.base_regime, transition, 1)}
        next_3 = {item.label: round(prob, 4) for item, prob in predict_next(config.base_regime, transition, 3)}

    hedges = rank_hedges(
        base,
        config.matrix,
        catalog,
        index_floor=config.index_floor,
        risk_model=config.risk_model,
        collapse_constraint=config.collapse_constraint,
        collapse_penalty_weight=config.collapse_penalty_weight,
        delta=config.hedge_delta,
    )

    result = MultiverseRunResult(
        generated_at=datetime.now(timezone.utc),
        horizon_days=days,
        runs=runs,
        completed_runs=completed,
        cancelled=cancelled,
        seed=config.seed,
        plan=config.plan,
        toggles=toggles,
        quantiles=quantiles,
        end_index=tuple(final_index.tolist()),
        end_p_collapse=tuple(collapse_paths[:, -1].tolist()),
        tail=tail,
        worst_path=path(worst_run),
        sample_paths=(path(0), path(completed // 2), path(worst_run)),
        hedges=tuple(hedges),
        explorer=TrajectoryExplorer(
            probable=tuple(path(int(run)) for run in probable),
            best=tuple(path(int(run)) for run in order[::-1][:_EXPLORER_SIZE]),
            worst=tuple(path(int(run)) for run in order[:_EXPLORER_SIZE]),
        ),
        regime_map=RegimeMap(horizon_share=horizon_share, next_1=next_1, next_3=next_3),
        audit=config.audit,
    )
    _LOGGER.info(
        "Multiverse simulation finished: completed=%d expected_delta_index=%.4f red_siren_any=%.4f",
        completed,
        tail.expected_delta_index,
        tail.red_siren_any,
    )
    return result
