from __future__ import annotations

import numpy as np
import pytest

from metrics.catalog import CASH_FLOW, DEFAULT_CATALOG
from multiverse.collapse import collapse_probability
from multiverse.influence import DEFAULT_INFLUENCE_MATRIX
from multiverse.scoring import goal_score_of, goal_weight_vector, rank_hedges, summarize_tail

pytestmark = pytest.mark.unit


def test_goal_score_normalises_by_domain(base_vector: dict[str, float]) -> None:
    vector = DEFAULT_CATALOG.to_array(base_vector)
    weights = goal_weight_vector({"energy": 1.0, "sleepHours": 1.0}, DEFAULT_CATALOG)
    # energy 5/10 and sleep 7/12 averaged
    assert goal_score_of(vector, weights, DEFAULT_CATALOG) == pytest.approx(round((0.5 + 7 / 12) / 2 * 100, 3))


def test_goal_score_is_absent_without_weights(base_vector: dict[str, float]) -> None:
    vector = DEFAULT_CATALOG.to_array(base_vector)
    assert goal_weight_vector(None, DEFAULT_CATALOG) is None
    assert goal_weight_vector({"energy": -2.0}, DEFAULT_CATALOG) is None
    assert goal_score_of(vector, None, DEFAULT_CATALOG) is None


def test_summarize_tail_fractions() -> None:
    index_paths = np.array([[5.0, 4.0], [5.0, 6.0]])
    collapse_paths = np.array([[0.1, 0.4], [0.1, 0.2]])
    siren_paths = np.array([[0, 2], [0, 1]], dtype=np.int8)
    tail = summarize_tail(
        index_paths,
        collapse_paths,
        siren_paths,
        None,
        base_index=5.0,
        base_p_collapse=0.1,
        base_goal=None,
        index_floor=4.5,
    )
    assert tail.red_siren_any == 0.5
    assert tail.index_floor_breach_any == 0.5
    assert tail.below_floor_at_horizon == 0.5
    assert tail.expected_delta_index == pytest.approx(0.0)
    assert tail.expected_delta_p_collapse == pytest.approx(0.2)
    assert tail.expected_delta_goal_score == 0.0
    assert tail.var_index_loss == pytest.approx(0.95)
    assert tail.cvar_index_loss == pytest.approx(1.0)
    assert tail.cvar_collapse >= tail.var_collapse


def test_rank_hedges_orders_and_excludes_cash_flow(base_vector: dict[str, float]) -> None:
    hedges = rank_hedges(
        DEFAULT_CATALOG.to_array(base_vector),
        DEFAULT_INFLUENCE_MATRIX,
        DEFAULT_CATALOG,
        index_floor=4.0,
        risk_model=collapse_probability,
    )
    assert len(hedges) == 3
    assert all(h.metric_id != CASH_FLOW for h in hedges)
    scores = [h.tail_risk_improvement for h in hedges]
    assert scores == sorted(scores, reverse=True)
    assert all(h.delta == 0.5 for h in hedges)


def test_collapse_penalty_uses_configured_constraint(base_vector: dict[str, float]) -> None:
    # only a direct energy nudge clears the cut; diffusion from focus moves energy a little
    def always_high(index: float, vector: dict[str, float]) -> float:
        return 0.9 if vector["energy"] > 5.2 else 0.1

    hedges = rank_hedges(
        DEFAULT_CATALOG.to_array(base_vector),
        DEFAULT_INFLUENCE_MATRIX,
        DEFAULT_CATALOG,
        index_floor=0.0,
        risk_model=always_high,
        collapse_constraint=0.5,
        collapse_penalty_weight=2.0,
        limit=10,
    )
    by_metric = {h.metric_id: h for h in hedges}
    assert by_metric["energy"].collapse_penalty == pytest.approx(0.8)
    assert by_metric["focus"].collapse_penalty == 0.0
