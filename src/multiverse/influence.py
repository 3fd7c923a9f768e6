"""
Influence matrix and bounded impulse propagation.

An impulse moves some metrics away from a base vector; each diffusion step
pushes half of every metric's deviation along its outgoing weights, and
every metric is clamped back into its domain after each step.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

import numpy as np
from numpy.typing import NDArray

from metrics.catalog import DEFAULT_CATALOG, MetricCatalog

__all__ = [
    "DIFFUSION_STEPS",
    "InfluenceMatrix",
    "DEFAULT_INFLUENCE_MATRIX",
    "propagate",
    "apply_impulse",
    "apply_bounded_propagation",
    "perturb_matrix",
    "explain_drivers",
]

DIFFUSION_STEPS = 2
DEFAULT_STABILITY = 0.5


@dataclass(frozen=True)
class InfluenceMatrix:
    """Sparse ``from -> to -> weight`` mapping with weights in ``[-1, 1]``."""

    weights: Mapping[str, Mapping[str, float]]

    def __post_init__(self) -> None:
        for source, edges in self.weights.items():
            for target, weight in edges.items():
                if not np.isfinite(weight) or abs(float(weight)) > 1.0:
                    raise ValueError(f"Influence weight {source}->{target} must lie in [-1, 1].")

    def weight(self, source: str, target: str) -> float:
        return float(self.weights.get(source, {}).get(target, 0.0))

    def to_array(self, catalog: MetricCatalog = DEFAULT_CATALOG, *, fill: float = 0.0) -> NDArray[np.float64]:
        """Dense ``W[from, to]`` in catalog order; absent edges take ``fill``."""

        size = len(catalog)
        dense = np.full((size, size), float(fill), dtype=np.float64)
        for source, edges in self.weights.items():
            row = catalog.position(source)
            for target, weight in edges.items():
                dense[row, catalog.position(target)] = float(weight)
        return dense

    @classmethod
    def from_array(cls, dense: NDArray[np.float64], catalog: MetricCatalog = DEFAULT_CATALOG) -> "InfluenceMatrix":
        ids = catalog.ids
        return cls(
            weights={
                ids[i]: {ids[j]: float(dense[i, j]) for j in range(len(ids)) if dense[i, j] != 0.0}
                for i in range(len(ids))
            }
        )


DEFAULT_INFLUENCE_MATRIX = InfluenceMatrix(
    weights={
        "energy": {"focus": 0.4, "mood": 0.3, "productivity": 0.5},
        "focus": {"productivity": 0.6, "stress": -0.2},
        "mood": {"stress": -0.5, "social": 0.3},
        "stress": {"energy": -0.5, "sleepHours": -0.4, "mood": -0.4},
        "sleepHours": {"energy": 0.6, "focus": 0.3, "stress": -0.4},
        "social": {"mood": 0.4, "stress": -0.2},
        "productivity": {"mood": 0.2, "energy": -0.1},
        "health": {"energy": 0.4, "mood": 0.3, "stress": -0.3},
        "cashFlow": {"mood": 0.1, "stress": -0.1},
    }
)


def propagate(
    base: NDArray[np.float64],
    impulse: NDArray[np.float64],
    weights: NDArray[np.float64],
    lower: NDArray[np.float64],
    upper: NDArray[np.float64],
    steps: int = DIFFUSION_STEPS,
) -> NDArray[np.float64]:
    """Array form of :func:`apply_bounded_propagation`; returns a new array."""

    current = np.clip(base + impulse, lower, upper)
    for _ in range(steps):
        deviation = (current - base) / 2.0
        current = np.clip(current + deviation @ weights, lower, upper)
    return current


def apply_impulse(
    base: Mapping[str, float],
    impulses: Mapping[str, float],
    matrix: InfluenceMatrix,
    steps: int = DIFFUSION_STEPS,
    *,
    catalog: MetricCatalog = DEFAULT_CATALOG,
) -> dict[str, float]:
    base_arr = catalog.to_array(base)
    impulse_arr = np.zeros_like(base_arr)
    for metric_id, delta in impulses.items():
        impulse_arr[catalog.position(metric_id)] += float(delta)
    result = propagate(
        base_arr,
        impulse_arr,
        matrix.to_array(catalog),
        catalog.lower_bounds,
        catalog.upper_bounds,
        steps,
    )
    return catalog.to_mapping(result)


def apply_bounded_propagation(
    base: Mapping[str, float],
    impulses: Mapping[str, float],
    matrix: InfluenceMatrix,
    *,
    catalog: MetricCatalog = DEFAULT_CATALOG,
) -> dict[str, float]:
    propagated = apply_impulse(base, impulses, matrix, DIFFUSION_STEPS, catalog=catalog)
    return {metric_id: catalog.clamp(metric_id, value) for metric_id, value in propagated.items()}


def perturb_matrix(
    weights: NDArray[np.float64],
    stability: NDArray[np.float64] | None,
    uniforms: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Symmetric per-weight noise with scale ``max(0.01, (1 - stability) * 0.2)``."""

    st = np.full_like(weights, DEFAULT_STABILITY) if stability is None else stability
    sigma = np.maximum(0.01, (1.0 - st) * 0.2)
    noise = (uniforms.reshape(weights.shape) - 0.5) * 2.0 * sigma
    return np.clip(np.round(weights + noise, 4), -1.0, 1.0)


def explain_drivers(
    result: Mapping[str, float],
    base: Mapping[str, float],
    matrix: InfluenceMatrix,
    *,
    limit: int = 3,
) -> list[str]:
    """Strongest ``source -> target`` effects behind a propagated vector."""

    drivers: list[tuple[float, str]] = []
    for source, edges in matrix.weights.items():
        change = float(result.get(source, 0.0)) - float(base.get(source, 0.0))
        for target, weight in edges.items():
            strength = abs(change * weight)
            if strength > 0.1:
                arrow_from = "up" if change >= 0 else "down"
                arrow_to = "up" if weight >= 0 else "down"
                drivers.append((strength, f"{source} {arrow_from} -> {target} {arrow_to}"))
    drivers.sort(key=lambda item: item[0], reverse=True)
    return [text for _, text in drivers[:limit]]
