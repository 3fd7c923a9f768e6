from __future__ import annotations

import threading

import pytest

from metrics.catalog import DEFAULT_CATALOG
from multiverse.config import MultiverseSettings, multiverse_settings_from_mapping
from multiverse.types import MultiverseConfig, SimulationToggles
from multiverse.worker import (
    CancelledMessage,
    DoneMessage,
    ErrorMessage,
    MultiverseWorker,
    ProgressMessage,
    WorkerMessage,
)

pytestmark = pytest.mark.unit


def _config(base_vector: dict[str, float], **overrides: object) -> MultiverseConfig:
    settings = MultiverseSettings(horizon_days=5, runs=150, seed=3)
    return settings.to_config(base_vector=base_vector, **overrides)


def test_worker_reports_progress_then_done(base_vector: dict[str, float]) -> None:
    messages: list[WorkerMessage] = []
    with MultiverseWorker(messages.append) as worker:
        terminal = worker.start(_config(base_vector)).result(timeout=60)

    assert isinstance(terminal, DoneMessage)
    assert messages[-1] is terminal
    progress = [m for m in messages if isinstance(m, ProgressMessage)]
    assert [(m.done, m.total) for m in progress] == [(0, 150), (100, 150), (150, 150)]
    assert terminal.result.completed_runs == 150
    assert terminal.to_dict()["type"] == "done"


def test_worker_cancels_at_run_boundary(base_vector: dict[str, float]) -> None:
    messages: list[WorkerMessage] = []
    worker = MultiverseWorker(messages.append)

    def sink(message: WorkerMessage) -> None:
        messages.append(message)
        if isinstance(message, ProgressMessage) and message.done == 0:
            worker.cancel()

    worker._sink = sink
    try:
        terminal = worker.start(_config(base_vector)).result(timeout=60)
    finally:
        worker.shutdown()

    assert isinstance(terminal, CancelledMessage)
    assert terminal.result is not None
    assert terminal.result.cancelled
    assert terminal.result.completed_runs == 1


def test_cancel_survives_next_start(base_vector: dict[str, float]) -> None:
    entered = threading.Event()
    gate = threading.Event()

    def gated(index: float, vector: dict[str, float]) -> float:
        entered.set()
        gate.wait(timeout=30)
        return 0.1

    messages: list[WorkerMessage] = []
    with MultiverseWorker(messages.append) as worker:
        first = worker.start(_config(base_vector, risk_model=gated))
        assert entered.wait(timeout=30)
        worker.cancel()
        second = worker.start(_config(base_vector))
        gate.set()
        first_terminal = first.result(timeout=60)
        second_terminal = second.result(timeout=60)

    assert isinstance(first_terminal, CancelledMessage)
    assert first_terminal.result is not None
    assert first_terminal.result.completed_runs == 1
    assert isinstance(second_terminal, DoneMessage)
    assert second_terminal.result.completed_runs == 150


def test_worker_turns_failures_into_error_message(base_vector: dict[str, float]) -> None:
    def broken(index: float, vector: dict[str, float]) -> float:
        raise RuntimeError("risk model unavailable")

    messages: list[WorkerMessage] = []
    with MultiverseWorker(messages.append) as worker:
        terminal = worker.start(_config(base_vector, risk_model=broken)).result(timeout=60)

    assert terminal == ErrorMessage(message="risk model unavailable")
    assert not any(isinstance(m, (DoneMessage, CancelledMessage)) for m in messages)


def test_settings_from_mapping() -> None:
    settings = multiverse_settings_from_mapping(
        {"runs": "500", "index_floor": 3, "toggles": {"weights_noise": False}}
    )
    assert settings.runs == 500
    assert settings.index_floor == 3.0
    assert settings.toggles == SimulationToggles(weights_noise=False)
    assert multiverse_settings_from_mapping({}) == MultiverseSettings()
    with pytest.raises(ValueError):
        multiverse_settings_from_mapping({"rns": 3})
    with pytest.raises(ValueError):
        multiverse_settings_from_mapping({"toggles": {"shock": True}})
    with pytest.raises(ValueError):
        MultiverseSettings(collapse_constraint=1.5)


def test_to_config_defaults_base_index(base_vector: dict[str, float]) -> None:
    config = MultiverseSettings().to_config(base_vector=base_vector)
    assert config.base_index == DEFAULT_CATALOG.system_index(base_vector)
    assert config.collapse_constraint == 0.20
