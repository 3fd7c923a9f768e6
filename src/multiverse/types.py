"""
Inputs and outputs of the multiverse simulator.

Every output type is a frozen dataclass with a ``to_dict`` that yields plain
JSON-ready values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping, Sequence

import numpy as np
from numpy.typing import NDArray

from metrics.catalog import DEFAULT_CATALOG, MetricCatalog
from regime.model import Regime
from sampling.tail import TailRiskSummary

from .collapse import RiskModel, collapse_probability
from .influence import DEFAULT_INFLUENCE_MATRIX, InfluenceMatrix

__all__ = [
    "PlannedImpulse",
    "MultiversePlan",
    "SimulationToggles",
    "AuditInfo",
    "MultiverseConfig",
    "PathPoint",
    "QuantileBand",
    "MultiverseQuantiles",
    "TailMetrics",
    "HedgeSuggestion",
    "TrajectoryExplorer",
    "RegimeMap",
    "MultiverseRunResult",
]


@dataclass(frozen=True)
class PlannedImpulse:
    day: int
    metric_id: str
    delta: float

    def to_dict(self) -> dict[str, object]:
        return {"day": self.day, "metric_id": self.metric_id, "delta": self.delta}


@dataclass(frozen=True)
class MultiversePlan:
    name: str = "baseline"
    impulses: tuple[PlannedImpulse, ...] = ()

    def impulses_by_day(self, horizon_days: int, catalog: MetricCatalog) -> NDArray[np.float64]:
        """``(horizon_days + 1, n_metrics)`` impulse table; day-0 entries land on day 1.

        Impulses on the same day and metric add up. Impulses past the horizon
        are ignored.
        """

        table = np.zeros((horizon_days + 1, len(catalog)), dtype=np.float64)
        for impulse in self.impulses:
            if impulse.day < 0:
                raise ValueError(f"Impulse day must be non-negative, got {impulse.day}.")
            if impulse.day > horizon_days:
                continue
            # a day-0 nudge is added to, not substituted for, a day-1 nudge on the same metric
            day = max(1, impulse.day)
            table[day, catalog.position(impulse.metric_id)] += float(impulse.delta)
        return table

    def to_dict(self) -> dict[str, object]:
        return {"name": self.name, "impulses": [item.to_dict() for item in self.impulses]}


@dataclass(frozen=True)
class SimulationToggles:
    forecast_noise: bool = True
    weights_noise: bool = True
    stochastic_regime: bool = True

    def to_dict(self) -> dict[str, bool]:
        return {
            "forecast_noise": self.forecast_noise,
            "weights_noise": self.weights_noise,
            "stochastic_regime": self.stochastic_regime,
        }


@dataclass(frozen=True)
class AuditInfo:
    """Provenance of the inputs, passed through to the result untouched."""

    weights_source: str = "manual"
    mix: float = 0.0
    forecast_model_type: str = "none"
    lags: int = 0
    trained_on_days: int = 0

    def to_dict(self) -> dict[str, object]:
        return {
            "weights_source": self.weights_source,
            "mix": self.mix,
            "forecast_model_type": self.forecast_model_type,
            "lags": self.lags,
            "trained_on_days": self.trained_on_days,
        }


@dataclass(frozen=True)
class MultiverseConfig:
    """Everything one simulation needs; no ambient state is consulted."""

    horizon_days: int
    runs: int
    seed: int
    index_floor: float
    base_vector: Mapping[str, float]
    base_index: float
    base_p_collapse: float
    base_regime: Regime = Regime.STABILIZING
    transition_matrix: Sequence[Sequence[float]] | NDArray[np.float64] | None = None
    matrix: InfluenceMatrix = DEFAULT_INFLUENCE_MATRIX
    stability: InfluenceMatrix | None = None
    toggles: SimulationToggles = field(default_factory=SimulationToggles)
    plan: MultiversePlan = field(default_factory=MultiversePlan)
    forecast_residuals: tuple[float, ...] = ()
    goal_weights: Mapping[str, float] | None = None
    catalog: MetricCatalog = DEFAULT_CATALOG
    risk_model: RiskModel = collapse_probability
    collapse_constraint: float = 0.20
    collapse_penalty_weight: float = 1.0
    hedge_delta: float = 0.5
    var_alpha: float = 0.95
    progress_every: int = 100
    audit: AuditInfo = field(default_factory=AuditInfo)

    def __post_init__(self) -> None:
        if self.horizon_days < 1:
            raise ValueError("horizon_days must be at least 1.")
        if self.runs < 1:
            raise ValueError("runs must be at least 1.")
        if self.progress_every < 1:
            raise ValueError("progress_every must be at least 1.")
        if not 0.0 <= self.collapse_constraint <= 1.0:
            raise ValueError("collapse_constraint must lie in [0, 1].")
        if not np.all(np.isfinite(np.asarray(self.forecast_residuals, dtype=np.float64))):
            raise ValueError("forecast_residuals must be finite.")
        # raises on unknown metric identifiers
        self.catalog.to_array(self.base_vector)


@dataclass(frozen=True)
class PathPoint:
    day: int
    index: float
    p_collapse: float
    siren: str
    regime: Regime
    goal_score: float | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "day": self.day,
            "index": self.index,
            "p_collapse": self.p_collapse,
            "siren": self.siren,
            "regime": self.regime.label,
            "goal_score": self.goal_score,
        }


@dataclass(frozen=True)
class QuantileBand:
    p10: tuple[float, ...]
    p50: tuple[float, ...]
    p90: tuple[float, ...]

    def to_dict(self) -> dict[str, list[float]]:
        return {"p10": list(self.p10), "p50": list(self.p50), "p90": list(self.p90)}


@dataclass(frozen=True)
class MultiverseQuantiles:
    days: tuple[int, ...]
    index: QuantileBand
    p_collapse: QuantileBand
    goal_score: QuantileBand | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "days": list(self.days),
            "index": self.index.to_dict(),
            "p_collapse": self.p_collapse.to_dict(),
            "goal_score": None if self.goal_score is None else self.goal_score.to_dict(),
        }


@dataclass(frozen=True)
class TailMetrics:
    red_siren_any: float
    index_floor_breach_any: float
    below_floor_at_horizon: float
    expected_delta_index: float
    expected_delta_goal_score: float
    expected_delta_p_collapse: float
    var_index_loss: float
    cvar_index_loss: float
    var_collapse: float
    cvar_collapse: float
    index_tail: TailRiskSummary
    collapse_tail: TailRiskSummary

    def to_dict(self) -> dict[str, object]:
        return {
            "red_siren_any": self.red_siren_any,
            "index_floor_breach_any": self.index_floor_breach_any,
            "below_floor_at_horizon": self.below_floor_at_horizon,
            "expected_delta_index": self.expected_delta_index,
            "expected_delta_goal_score": self.expected_delta_goal_score,
            "expected_delta_p_collapse": self.expected_delta_p_collapse,
            "var_index_loss": self.var_index_loss,
            "cvar_index_loss": self.cvar_index_loss,
            "var_collapse": self.var_collapse,
            "cvar_collapse": self.cvar_collapse,
            "index_tail": self.index_tail.to_dict(),
            "collapse_tail": self.collapse_tail.to_dict(),
        }


@dataclass(frozen=True)
class HedgeSuggestion:
    metric_id: str
    delta: float
    tail_risk_improvement: float
    index_gain: float
    stress_penalty: float
    collapse_penalty: float

    def to_dict(self) -> dict[str, object]:
        return {
            "metric_id": self.metric_id,
            "delta": self.delta,
            "tail_risk_improvement": self.tail_risk_improvement,
            "index_gain": self.index_gain,
            "stress_penalty": self.stress_penalty,
            "collapse_penalty": self.collapse_penalty,
        }


@dataclass(frozen=True)
class TrajectoryExplorer:
    probable: tuple[tuple[PathPoint, ...], ...]
    best: tuple[tuple[PathPoint, ...], ...]
    worst: tuple[tuple[PathPoint, ...], ...]

    def to_dict(self) -> dict[str, object]:
        def paths(group: tuple[tuple[PathPoint, ...], ...]) -> list[list[dict[str, object]]]:
            return [[point.to_dict() for point in path] for path in group]

        return {"probable": paths(self.probable), "best": paths(self.best), "worst": paths(self.worst)}


@dataclass(frozen=True)
class RegimeMap:
    horizon_share: Mapping[str, float]
    next_1: Mapping[str, float]
    next_3: Mapping[str, float]

    def to_dict(self) -> dict[str, object]:
        return {
            "horizon_share": dict(self.horizon_share),
            "next_1": dict(self.next_1),
            "next_3": dict(self.next_3),
        }


@dataclass(frozen=True)
class MultiverseRunResult:
    generated_at: datetime
    horizon_days: int
    runs: int
    completed_runs: int
    cancelled: bool
    seed: int
    plan: MultiversePlan
    toggles: SimulationToggles
    quantiles: MultiverseQuantiles
    end_index: tuple[float, ...]
    end_p_collapse: tuple[float, ...]
    tail: TailMetrics
    worst_path: tuple[PathPoint, ...]
    sample_paths: tuple[tuple[PathPoint, ...], ...]
    hedges: tuple[HedgeSuggestion, ...]
    explorer: TrajectoryExplorer
    regime_map: RegimeMap
    audit: AuditInfo

    def to_dict(self) -> dict[str, object]:
        return {
            "generated_at": self.generated_at.isoformat(),
            "horizon_days": self.horizon_days,
            "runs": self.runs,
            "completed_runs": self.completed_runs,
            "cancelled": self.cancelled,
            "seed": self.seed,
            "plan": self.plan.to_dict(),
            "toggles": self.toggles.to_dict(),
            "quantiles": self.quantiles.to_dict(),
            "end_index": list(self.end_index),
            "end_p_collapse": list(self.end_p_collapse),
            "tail": self.tail.to_dict(),
            "worst_path": [point.to_dict() for point in self.worst_path],
            "sample_paths": [[point.to_dict() for point in path] for path in self.sample_paths],
            "hedges": [hedge.to_dict() for hedge in self.hedges],
            "explorer": self.explorer.to_dict(),
            "regime_map": self.regime_map.to_dict(),
            "audit": self.audit.to_dict(),
        }
