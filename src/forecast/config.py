"""
Forecast engine defaults.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence

from .ets import ALPHA_GRID, BETA_GRID

__all__ = ["ForecastSettings", "forecast_settings_from_mapping"]


@dataclass(frozen=True)
class ForecastSettings:
    """Resolved forecast run configuration."""

    horizon: int = 7
    simulations: int = 2000
    backtest_window: int | str = 30
    backtest_simulation_cap: int = 1000
    seed: int = 42
    alpha_grid: Sequence[float] = ALPHA_GRID
    beta_grid: Sequence[float] = BETA_GRID

    def __post_init__(self) -> None:
        if self.horizon < 1:
            raise ValueError("horizon must be at least 1.")
        if self.simulations < 1:
            raise ValueError("simulations must be at least 1.")
        if self.backtest_simulation_cap < 1:
            raise ValueError("backtest_simulation_cap must be at least 1.")
        if isinstance(self.backtest_window, str):
            if self.backtest_window != "all":
                raise ValueError("backtest_window must be a positive integer or 'all'.")
        elif self.backtest_window < 1:
            raise ValueError("backtest_window must be a positive integer or 'all'.")

    def with_overrides(self, **kwargs: object) -> "ForecastSettings":
        data = self.__dict__ | kwargs
        return ForecastSettings(**data)

    def resolve_window(self, length: int) -> int:
        return length if self.backtest_window == "all" else int(self.backtest_window)

    @property
    def backtest_simulations(self) -> int:
        return min(self.simulations, self.backtest_simulation_cap)


def forecast_settings_from_mapping(data: Mapping[str, object]) -> ForecastSettings:
    defaults = ForecastSettings()
    merged = defaults.__dict__ | {key: data[key] for key in defaults.__dict__ if key in data}
    unknown = sorted(set(data) - set(defaults.__dict__))
    if unknown:
        raise ValueError(f"Unknown forecast settings: {unknown}")

    window = merged["backtest_window"]
    merged["backtest_window"] = "all" if str(window).strip().lower() == "all" else int(window)  # type: ignore[arg-type]
    merged["horizon"] = int(merged["horizon"])  # type: ignore[arg-type]
    merged["simulations"] = int(merged["simulations"])  # type: ignore[arg-type]
    merged["backtest_simulation_cap"] = int(merged["backtest_simulation_cap"])  # type: ignore[arg-type]
    merged["seed"] = int(merged["seed"])  # type: ignore[arg-type]
    merged["alpha_grid"] = tuple(float(v) for v in merged["alpha_grid"])  # type: ignore[union-attr]
    merged["beta_grid"] = tuple(float(v) for v in merged["beta_grid"])  # type: ignore[union-attr]
    return ForecastSettings(**merged)  # type: ignore[arg-type]
