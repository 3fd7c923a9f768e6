from __future__ import annotations

from pathlib import Path

import pytest

from meta.settings import EngineSettings, load_engine_settings, read_yaml_mapping

pytestmark = pytest.mark.unit

ROOT = Path(__file__).resolve().parents[2]


def test_repository_config_matches_defaults() -> None:
    assert load_engine_settings(ROOT / "configs" / "engine.yaml") == EngineSettings()


def test_missing_file_means_defaults(tmp_path: Path) -> None:
    assert read_yaml_mapping(tmp_path / "absent.yaml") == {}
    assert load_engine_settings(tmp_path / "absent.yaml") == EngineSettings()


def test_sections_override_defaults(tmp_path: Path) -> None:
    path = tmp_path / "engine.yaml"
    path.write_text(
        "forecast:\n  horizon: 14\n  backtest_window: all\n"
        "multiverse:\n  runs: 300\n  toggles:\n    stochastic_regime: false\n"
        "health:\n  bins: 10\n"
        "min_samples: 8\n",
        encoding="utf-8",
    )
    settings = load_engine_settings(path)
    assert settings.forecast.horizon == 14
    assert settings.forecast.backtest_window == "all"
    assert settings.multiverse.runs == 300
    assert settings.multiverse.toggles.stochastic_regime is False
    assert settings.multiverse.toggles.forecast_noise is True
    assert settings.health.bins == 10
    assert settings.min_samples == 8


@pytest.mark.parametrize(
    "text",
    [
        "- just\n- a list\n",
        "forecast: 3\n",
        "plotting:\n  dpi: 300\n",
        "health:\n  bins: 0\n",
    ],
)
def test_malformed_config_raises(tmp_path: Path, text: str) -> None:
    path = tmp_path / "engine.yaml"
    path.write_text(text, encoding="utf-8")
    with pytest.raises(ValueError):
        load_engine_settings(path)
