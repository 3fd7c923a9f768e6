"""
Engine-wide settings resolved from ``configs/engine.yaml``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from evaluation.health import HealthPolicy, health_policy_from_mapping
from forecast.config import ForecastSettings, forecast_settings_from_mapping
from multiverse.config import MultiverseSettings, multiverse_settings_from_mapping

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "EngineSettings",
    "read_yaml_mapping",
    "load_engine_settings",
]

_LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("configs/engine.yaml")
_SECTIONS = ("forecast", "multiverse", "health", "min_samples")


@dataclass(frozen=True)
class EngineSettings:
    forecast: ForecastSettings = field(default_factory=ForecastSettings)
    multiverse: MultiverseSettings = field(default_factory=MultiverseSettings)
    health: HealthPolicy = field(default_factory=HealthPolicy)
    min_samples: int = 20

    def with_overrides(self, **kwargs: object) -> "EngineSettings":
        data = self.__dict__ | kwargs
        return EngineSettings(**data)


def read_yaml_mapping(path: Path) -> dict[str, Any]:
    """Parse a YAML document that must be a mapping; a missing file is empty."""

    if not path.exists():
        _LOGGER.debug("No settings file at %s; using defaults", path)
        return {}
    with path.open("r", encoding="utf-8") as handle:
        loaded = yaml.safe_load(handle) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Engine config at {path} must be a mapping.")
    return loaded


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, Mapping):
        raise ValueError(f"Config section {name!r} must be a mapping.")
    return section


def load_engine_settings(config_path: Path | str | None = None) -> EngineSettings:
    """Merge the YAML sections over the dataclass defaults."""

    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    data = read_yaml_mapping(path)
    unknown = sorted(set(data) - set(_SECTIONS))
    if unknown:
        raise ValueError(f"Unknown config sections in {path}: {unknown}")

    min_samples = int(data.get("min_samples", EngineSettings.min_samples))
    if min_samples < 0:
        raise ValueError("min_samples must be non-negative.")

    return EngineSettings(
        forecast=forecast_settings_from_mapping(_section(data, "forecast")),
        multiverse=multiverse_settings_from_mapping(_section(data, "multiverse")),
        health=health_policy_from_mapping(_section(data, "health")),
        min_samples=min_samples,
    )
