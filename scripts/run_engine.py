"""Run the forecast, multiverse or model-health engine on a JSON input file."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Mapping

from tqdm import tqdm

from evaluation.health import CalibrationPoint, evaluate_model_health
from forecast.engine import run_forecast_engine, run_forecast_from_records
from forecast.series import DailySeries
from meta.settings import EngineSettings, load_engine_settings
from metrics.records import CheckinRecord, StateSnapshot
from multiverse.simulator import run_multiverse
from multiverse.types import MultiversePlan, PlannedImpulse, SimulationToggles
from regime.model import Regime, get_transition_matrix

LOGGER = logging.getLogger("run_engine")


def _load_json(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"Input at {path} must be a JSON object.")
    return payload


def _regime(value: Any) -> Regime:
    if isinstance(value, str):
        return Regime[value.strip().upper()]
    return Regime(int(value))


def run_forecast(payload: Mapping[str, Any], settings: EngineSettings) -> dict[str, Any]:
    key = str(payload.get("key", "index"))
    if "values" in payload:
        values = [float(v) for v in payload["values"]]
        dates = [str(d) for d in payload.get("dates", [f"t{i}" for i in range(len(values))])]
        if len(dates) != len(values):
            raise ValueError("dates and values must have the same length.")
        result = run_forecast_engine(DailySeries(key=key, dates=tuple(dates), values=tuple(values)), settings.forecast)
    else:
        snapshots = [StateSnapshot(**item) for item in payload.get("snapshots", [])]
        checkins = [CheckinRecord(ts=item["ts"], values=item.get("values", {})) for item in payload.get("checkins", [])]
        result = run_forecast_from_records(snapshots, checkins, settings.forecast, key=key)
    return result.to_dict()


def run_simulation(payload: Mapping[str, Any], settings: EngineSettings) -> dict[str, Any]:
    overrides = dict(payload.get("overrides", {}))
    if "toggles" in overrides:
        overrides["toggles"] = SimulationToggles(**overrides["toggles"])
    mv_settings = settings.multiverse.with_overrides(**overrides)

    transition = payload.get("transition_matrix")
    if transition is None and payload.get("regime_history"):
        transition = get_transition_matrix([_regime(item) for item in payload["regime_history"]])

    plan_raw = payload.get("plan", {})
    plan = MultiversePlan(
        name=str(plan_raw.get("name", "baseline")),
        impulses=tuple(
            PlannedImpulse(day=int(item["day"]), metric_id=str(item["metric_id"]), delta=float(item["delta"]))
            for item in plan_raw.get("impulses", [])
        ),
    )
    config = mv_settings.to_config(
        base_vector=payload["base_vector"],
        base_index=payload.get("base_index"),
        base_p_collapse=float(payload.get("base_p_collapse", 0.0)),
        base_regime=_regime(payload.get("base_regime", "stabilizing")),
        transition_matrix=transition,
        forecast_residuals=tuple(float(v) for v in payload.get("forecast_residuals", [])),
        goal_weights=payload.get("goal_weights"),
        plan=plan,
    )

    with tqdm(total=config.runs, desc=f"multiverse[{plan.name}]", unit="run") as bar:

        def on_progress(done: int, total: int) -> None:
            bar.update(done - bar.n)

        result = run_multiverse(config, on_progress=on_progress)
    return result.to_dict()


def run_health(payload: Mapping[str, Any], settings: EngineSettings) -> dict[str, Any]:
    points = [
        CalibrationPoint(probability=float(item["probability"]), outcome=int(item["outcome"]))
        for item in payload.get("calibration", [])
    ]
    snapshot = evaluate_model_health(
        kind=payload.get("kind", "forecast"),
        calibration=points,
        drift_series=[float(v) for v in payload.get("drift_series", [])],
        min_samples=int(payload.get("min_samples", settings.min_samples)),
        policy=settings.health,
    )
    return snapshot.to_dict()


COMMANDS = {
    "forecast": run_forecast,
    "multiverse": run_simulation,
    "health": run_health,
}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a forecasting, simulation or model-health engine.")
    parser.add_argument("command", choices=sorted(COMMANDS), help="Engine to run.")
    parser.add_argument("--input", type=Path, required=True, help="JSON file with the engine input.")
    parser.add_argument("--config", type=Path, default=None, help="YAML settings (defaults to configs/engine.yaml).")
    parser.add_argument("--output", type=Path, default=None, help="Write the JSON result here instead of stdout.")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING, ...).")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = load_engine_settings(args.config)
    payload = _load_json(args.input)
    result = COMMANDS[args.command](payload, settings)

    text = json.dumps(result, indent=2)
    if args.output is None:
        sys.stdout.write(text + "\n")
    else:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text + "\n", encoding="utf-8")
        LOGGER.info("Wrote %s result to %s", args.command, args.output)


if __name__ == "__main__":
    main()
