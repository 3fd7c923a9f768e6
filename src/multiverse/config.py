"""
Multiverse defaults and their conversion into a simulator config.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from metrics.catalog import DEFAULT_CATALOG, MetricCatalog

from .types import MultiverseConfig, SimulationToggles

__all__ = ["MultiverseSettings", "multiverse_settings_from_mapping"]

_TOGGLE_KEYS = ("forecast_noise", "weights_noise", "stochastic_regime")


@dataclass(frozen=True)
class MultiverseSettings:
    horizon_days: int = 30
    runs: int = 2000
    seed: int = 42
    index_floor: float = 4.0
    collapse_constraint: float = 0.20
    collapse_penalty_weight: float = 1.0
    hedge_delta: float = 0.5
    var_alpha: float = 0.95
    progress_every: int = 100
    toggles: SimulationToggles = field(default_factory=SimulationToggles)

    def __post_init__(self) -> None:
        if self.horizon_days < 1:
            raise ValueError("horizon_days must be at least 1.")
        if self.runs < 1:
            raise ValueError("runs must be at least 1.")
        if self.progress_every < 1:
            raise ValueError("progress_every must be at least 1.")
        if not 0.0 <= self.collapse_constraint <= 1.0:
            raise ValueError("collapse_constraint must lie in [0, 1].")
        if self.collapse_penalty_weight < 0.0:
            raise ValueError("collapse_penalty_weight must be non-negative.")
        if not 0.5 <= self.var_alpha < 1.0:
            raise ValueError("var_alpha must lie in [0.5, 1).")

    def with_overrides(self, **kwargs: Any) -> "MultiverseSettings":
        data = self.__dict__ | kwargs
        return MultiverseSettings(**data)

    def to_config(
        self,
        *,
        base_vector: Mapping[str, float],
        catalog: MetricCatalog = DEFAULT_CATALOG,
        base_index: float | None = None,
        base_p_collapse: float = 0.0,
        **kwargs: Any,
    ) -> MultiverseConfig:
        """Build a :class:`MultiverseConfig`; the base index defaults to the vector's index."""

        if base_index is None:
            base_index = catalog.system_index(base_vector)
        return MultiverseConfig(
            horizon_days=self.horizon_days,
            runs=self.runs,
            seed=self.seed,
            index_floor=self.index_floor,
            base_vector=base_vector,
            base_index=base_index,
            base_p_collapse=base_p_collapse,
            catalog=catalog,
            toggles=self.toggles,
            collapse_constraint=self.collapse_constraint,
            collapse_penalty_weight=self.collapse_penalty_weight,
            hedge_delta=self.hedge_delta,
            var_alpha=self.var_alpha,
            progress_every=self.progress_every,
            **kwargs,
        )


def multiverse_settings_from_mapping(data: Mapping[str, Any]) -> MultiverseSettings:
    defaults = MultiverseSettings()
    unknown = sorted(set(data) - set(defaults.__dict__))
    if unknown:
        raise ValueError(f"Unknown multiverse settings: {unknown}")

    toggles_raw = data.get("toggles") or {}
    if not isinstance(toggles_raw, Mapping):
        raise ValueError("multiverse.toggles must be a mapping.")
    bad_toggles = sorted(set(toggles_raw) - set(_TOGGLE_KEYS))
    if bad_toggles:
        raise ValueError(f"Unknown simulation toggles: {bad_toggles}")
    toggles = SimulationToggles(
        **{key: bool(toggles_raw.get(key, getattr(defaults.toggles, key))) for key in _TOGGLE_KEYS}
    )

    return MultiverseSettings(
        horizon_days=int(data.get("horizon_days", defaults.horizon_days)),
        runs=int(data.get("runs", defaults.runs)),
        seed=int(data.get("seed", defaults.seed)),
        index_floor=float(data.get("index_floor", defaults.index_floor)),
        collapse_constraint=float(data.get("collapse_constraint", defaults.collapse_constraint)),
        collapse_penalty_weight=float(data.get("collapse_penalty_weight", defaults.collapse_penalty_weight)),
        hedge_delta=float(data.get("hedge_delta", defaults.hedge_delta)),
        var_alpha=float(data.get("var_alpha", defaults.var_alpha)),
        progress_every=int(data.get("progress_every", defaults.progress_every)),
        toggles=toggles,
    )
