"""
Background execution of the simulator with message-style reporting.

The worker owns a single-thread executor, so simulations submitted to the
same worker run one after another. Every outcome reaches the sink as exactly
one terminal message (done, cancelled or error) after any progress messages.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Union

from .simulator import SimulationCancelled, run_multiverse
from .types import MultiverseConfig, MultiverseRunResult

__all__ = [
    "ProgressMessage",
    "DoneMessage",
    "CancelledMessage",
    "ErrorMessage",
    "WorkerMessage",
    "MultiverseWorker",
]

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressMessage:
    done: int
    total: int

    def to_dict(self) -> dict[str, object]:
        return {"type": "progress", "done": self.done, "total": self.total}


@dataclass(frozen=True)
class DoneMessage:
    result: MultiverseRunResult

    def to_dict(self) -> dict[str, object]:
        return {"type": "done", "result": self.result.to_dict()}


@dataclass(frozen=True)
class CancelledMessage:
    result: MultiverseRunResult | None = None

    def to_dict(self) -> dict[str, object]:
        return {"type": "cancelled", "result": None if self.result is None else self.result.to_dict()}


@dataclass(frozen=True)
class ErrorMessage:
    message: str

    def to_dict(self) -> dict[str, object]:
        return {"type": "error", "message": self.message}


WorkerMessage = Union[ProgressMessage, DoneMessage, CancelledMessage, ErrorMessage]


class MultiverseWorker:
    """Run simulations off the calling thread and report through ``sink``.

    :meth:`cancel` applies to every job started before the call, queued or
    running; jobs started afterwards are unaffected.
    """

    def __init__(self, sink: Callable[[WorkerMessage], None]) -> None:
        self._sink = sink
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="multiverse")
        self._lock = threading.Lock()
        self._pending: set[threading.Event] = set()

    def start(self, config: MultiverseConfig) -> Future[WorkerMessage]:
        """Queue a simulation; the future resolves to its terminal message."""

        cancel_event = threading.Event()
        with self._lock:
            self._pending.add(cancel_event)
        return self._executor.submit(self._run, config, cancel_event)

    def cancel(self) -> None:
        with self._lock:
            for cancel_event in self._pending:
                cancel_event.set()

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "MultiverseWorker":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    def _run(self, config: MultiverseConfig, cancel_event: threading.Event) -> WorkerMessage:
        message: WorkerMessage
        try:
            result = run_multiverse(
                config,
                on_progress=lambda done, total: self._sink(ProgressMessage(done=done, total=total)),
                should_cancel=cancel_event.is_set,
            )
        except SimulationCancelled:
            message = CancelledMessage()
        except Exception as exc:  # simulation boundary: report, never leak partial results
            _LOGGER.exception("Multiverse simulation failed")
            message = ErrorMessage(message=str(exc) or "Simulation failed")
        else:
            message = CancelledMessage(result) if cancel_event.is_set() or result.cancelled else DoneMessage(result)
        finally:
            with self._lock:
                self._pending.discard(cancel_event)
        self._sink(message)
        return message
