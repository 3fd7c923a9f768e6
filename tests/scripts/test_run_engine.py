from __future__ import annotations

import json
from pathlib import Path

import pytest

from scripts.run_engine import main

pytestmark = pytest.mark.unit


def _run(tmp_path: Path, command: str, payload: dict[str, object]) -> dict[str, object]:
    source = tmp_path / f"{command}.json"
    source.write_text(json.dumps(payload), encoding="utf-8")
    target = tmp_path / "out" / f"{command}-result.json"
    main([command, "--input", str(source), "--config", str(tmp_path / "missing.yaml"), "--output", str(target)])
    return json.loads(target.read_text(encoding="utf-8"))


def test_health_command(tmp_path: Path) -> None:
    result = _run(
        tmp_path,
        "health",
        {
            "kind": "policy",
            "calibration": [
                {"probability": 0.15, "outcome": 0},
                {"probability": 0.2, "outcome": 0},
                {"probability": 0.3, "outcome": 1},
                {"probability": 0.8, "outcome": 1},
                {"probability": 0.85, "outcome": 1},
            ],
            "drift_series": [0.01, 0.02, 0.01, 0.02, 0.03],
            "min_samples": 5,
        },
    )
    assert result["grade"] == "yellow"
    assert result["v"] == 1


def test_forecast_command(tmp_path: Path) -> None:
    values = [5.0, 5.2, 5.1, 5.6, 5.4, 5.9, 6.0, 5.8]
    result = _run(tmp_path, "forecast", {"key": "index", "values": values})
    assert result["outcome"]["key"] == "index"
    assert len(result["outcome"]["point"]) == 7


def test_multiverse_command(tmp_path: Path) -> None:
    result = _run(
        tmp_path,
        "multiverse",
        {
            "base_vector": {"energy": 6, "stress": 4, "sleepHours": 7},
            "regime_history": ["stabilizing", "declining", "stabilizing", "storm"],
            "base_regime": "stabilizing",
            "forecast_residuals": [-0.4, 0.1, 0.3],
            "plan": {"name": "rest", "impulses": [{"day": 1, "metric_id": "sleepHours", "delta": 1.0}]},
            "overrides": {"runs": 60, "horizon_days": 5, "toggles": {"weights_noise": False}},
        },
    )
    assert result["completed_runs"] == 60
    assert result["plan"]["name"] == "rest"
    assert len(result["quantiles"]["days"]) == 5
    assert result["toggles"]["weights_noise"] is False
