"""
Metric catalog: the valid metric identifiers and their domain bounds.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Mapping

import numpy as np
from numpy.typing import NDArray

__all__ = [
    "MetricSpec",
    "MetricCatalog",
    "DEFAULT_CATALOG",
    "CASH_FLOW",
]

CASH_FLOW = "cashFlow"


@dataclass(frozen=True)
class MetricSpec:
    id: str
    label: str
    min: float
    max: float
    default: float
    unit: str | None = None

    def __post_init__(self) -> None:
        if self.max <= self.min:
            raise ValueError(f"Metric {self.id!r} must have max > min.")

    @property
    def span(self) -> float:
        return self.max - self.min

    def clamp(self, value: float) -> float:
        return min(self.max, max(self.min, float(value)))


@dataclass(frozen=True)
class MetricCatalog:
    """Ordered, immutable set of metric specs.

    The order fixes the column layout of every dense vector built from the
    catalog, so it must not change between a simulation and its replay.
    """

    specs: tuple[MetricSpec, ...]
    excluded_from_index: tuple[str, ...] = (CASH_FLOW,)

    def __post_init__(self) -> None:
        ids = [spec.id for spec in self.specs]
        if len(set(ids)) != len(ids):
            raise ValueError("Metric identifiers must be unique.")
        if not ids:
            raise ValueError("A metric catalog needs at least one metric.")

    def __iter__(self) -> Iterator[MetricSpec]:
        return iter(self.specs)

    def __len__(self) -> int:
        return len(self.specs)

    def __contains__(self, metric_id: object) -> bool:
        return any(spec.id == metric_id for spec in self.specs)

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(spec.id for spec in self.specs)

    @property
    def index_ids(self) -> tuple[str, ...]:
        return tuple(spec.id for spec in self.specs if spec.id not in self.excluded_from_index)

    def spec(self, metric_id: str) -> MetricSpec:
        for spec in self.specs:
            if spec.id == metric_id:
                return spec
        raise ValueError(f"Unknown metric identifier {metric_id!r}.")

    def position(self, metric_id: str) -> int:
        return self.ids.index(self.spec(metric_id).id)

    def clamp(self, metric_id: str, value: float) -> float:
        return self.spec(metric_id).clamp(value)

    def defaults(self) -> dict[str, float]:
        return {spec.id: float(spec.default) for spec in self.specs}

    @property
    def lower_bounds(self) -> NDArray[np.float64]:
        return np.array([spec.min for spec in self.specs], dtype=np.float64)

    @property
    def upper_bounds(self) -> NDArray[np.float64]:
        return np.array([spec.max for spec in self.specs], dtype=np.float64)

    @property
    def index_mask(self) -> NDArray[np.bool_]:
        excluded = set(self.excluded_from_index)
        return np.array([spec.id not in excluded for spec in self.specs], dtype=bool)

    def to_array(self, vector: Mapping[str, float]) -> NDArray[np.float64]:
        """Dense array in catalog order; missing metrics take their default."""

        unknown = [key for key in vector if key not in self]
        if unknown:
            raise ValueError(f"Unknown metric identifiers: {sorted(unknown)}")
        return np.array(
            [float(vector.get(spec.id, spec.default)) for spec in self.specs],
            dtype=np.float64,
        )

    def to_mapping(self, values: Iterable[float]) -> dict[str, float]:
        return {spec.id: float(value) for spec, value in zip(self.specs, values)}

    def clamp_array(self, values: NDArray[np.float64]) -> NDArray[np.float64]:
        return np.clip(values, self.lower_bounds, self.upper_bounds)

    def system_index(self, vector: Mapping[str, float] | NDArray[np.float64]) -> float:
        """Mean of every metric that participates in the index."""

        if isinstance(vector, np.ndarray):
            arr = vector
        else:
            arr = self.to_array(vector)
        mask = self.index_mask
        if not mask.any():
            return 0.0
        return float(arr[mask].mean())


DEFAULT_CATALOG = MetricCatalog(
    specs=(
        MetricSpec("energy", "Energy", 0.0, 10.0, 5.0),
        MetricSpec("focus", "Focus", 0.0, 10.0, 5.0),
        MetricSpec("mood", "Mood", 0.0, 10.0, 5.0),
        MetricSpec("stress", "Stress", 0.0, 10.0, 5.0),
        MetricSpec("sleepHours", "Sleep", 0.0, 12.0, 8.0, unit="h"),
        MetricSpec("social", "Social", 0.0, 10.0, 5.0),
        MetricSpec("productivity", "Productivity", 0.0, 10.0, 5.0),
        MetricSpec("health", "Health", 0.0, 10.0, 5.0),
        MetricSpec(CASH_FLOW, "Cash flow", -1_000_000.0, 1_000_000.0, 0.0),
    )
)
