from __future__ import annotations

from typing import Mapping

import numpy as np
from numpy.typing import NDArray

from metrics.catalog import CASH_FLOW, MetricCatalog
from sampling.tail import compute_tail_risk

from .collapse import SIREN_LEVELS, RiskModel
from .influence import InfluenceMatrix, propagate
from .types import HedgeSuggestion, TailMetrics

__all__ = ["goal_weight_vector", "goal_score_of", "summarize_tail", "rank_hedges"]


def goal_weight_vector(weights: Mapping[str, float] | None, catalog: MetricCatalog) -> NDArray[np.float64] | None:
    """Non-negative weights in catalog order, or ``None`` when no weight is active."""

    if not weights:
        return None
    dense = np.zeros(len(catalog), dtype=np.float64)
    for metric_id, weight in weights.items():
        dense[catalog.position(metric_id)] = max(0.0, float(weight))
    if dense.sum() <= 0.0:
        return None
    return dense


def goal_score_of(
    vector: NDArray[np.float64],
    weights: NDArray[np.float64] | None,
    catalog: MetricCatalog,
) -> float | None:
    """Weighted mean of domain-normalised metrics on a 0..100 scale."""

    if weights is None:
        return None
    lower = catalog.lower_bounds
    normalised = np.clip((vector - lower) / (catalog.upper_bounds - lower), 0.0, 1.0)
    return round(float((normalised * weights).sum() / weights.sum() * 100.0), 3)


def summarize_tail(
    index_paths: NDArray[np.float64],
    collapse_paths: NDArray[np.float64],
    siren_paths: NDArray[np.int8],
    goal_paths: NDArray[np.float64] | None,
    *,
    base_index: float,
    base_p_collapse: float,
    base_goal: float | None,
    index_floor: float,
    alpha: float = 0.95,
) -> TailMetrics:
    """Tail statistics over ``(runs, days)`` path arrays.

    ``siren_paths`` holds positions in :data:`SIREN_LEVELS`, as recorded on the
    path points, so the red-siren fraction agrees with the reported sirens.
    """

    final_index = index_paths[:, -1]
    final_collapse = collapse_paths[:, -1]

    if goal_paths is not None:
        delta_goal = float(goal_paths[:, -1].mean() - (base_goal or 0.0))
    else:
        delta_goal = 0.0

    index_loss = np.maximum(0.0, base_index - final_index)
    collapse_loss = np.maximum(0.0, final_collapse)
    index_tail = compute_tail_risk(index_loss, alpha)
    collapse_tail = compute_tail_risk(collapse_loss, alpha)

    return TailMetrics(
        red_siren_any=float((siren_paths == SIREN_LEVELS.index("red")).any(axis=1).mean()),
        index_floor_breach_any=float((index_paths < index_floor).any(axis=1).mean()),
        below_floor_at_horizon=float((final_index < index_floor).mean()),
        expected_delta_index=float(final_index.mean() - base_index),
        expected_delta_goal_score=delta_goal,
        expected_delta_p_collapse=float(final_collapse.mean() - base_p_collapse),
        var_index_loss=index_tail.var,
        cvar_index_loss=index_tail.es,
        var_collapse=collapse_tail.var,
        cvar_collapse=collapse_tail.es,
        index_tail=index_tail,
        collapse_tail=collapse_tail,
    )


def rank_hedges(
    base_vector: NDArray[np.float64],
    matrix: InfluenceMatrix,
    catalog: MetricCatalog,
    *,
    index_floor: float,
    risk_model: RiskModel,
    collapse_constraint: float = 0.20,
    collapse_penalty_weight: float = 1.0,
    delta: float = 0.5,
    limit: int = 3,
) -> list[HedgeSuggestion]:
    """Rank single-metric nudges by index gain net of floor and collapse penalties.

    The collapse penalty charges only the increase of collapse probability
    above ``collapse_constraint``, scaled by ``collapse_penalty_weight``.
    """

    weights = matrix.to_array(catalog)
    lower, upper = catalog.lower_bounds, catalog.upper_bounds
    base_index = catalog.system_index(base_vector)
    base_p = float(risk_model(base_index, catalog.to_mapping(base_vector)))
    base_shortfall = max(0.0, index_floor - base_index)
    base_excess = max(0.0, base_p - collapse_constraint)

    suggestions: list[HedgeSuggestion] = []
    for position, metric_id in enumerate(catalog.ids):
        if metric_id == CASH_FLOW:
            continue
        impulse = np.zeros_like(base_vector)
        impulse[position] = delta
        improved = propagate(base_vector, impulse, weights, lower, upper)
        new_index = catalog.system_index(improved)
        new_p = float(risk_model(new_index, catalog.to_mapping(improved)))
        index_gain = new_index - base_index
        stress_penalty = max(0.0, index_floor - new_index) - base_shortfall
        collapse_penalty = collapse_penalty_weight * (max(0.0, new_p - collapse_constraint) - base_excess)
        suggestions.append(
            HedgeSuggestion(
                metric_id=metric_id,
                delta=delta,
                tail_risk_improvement=round(index_gain - stress_penalty - collapse_penalty, 4),
                index_gain=round(index_gain, 4),
                stress_penalty=round(stress_penalty, 4),
                collapse_penalty=round(collapse_penalty, 4),
            )
        )
    suggestions.sort(key=lambda item: item.tail_risk_improvement, reverse=True)
    return suggestions[:limit]
