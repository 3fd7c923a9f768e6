"""
Daily regime classification and the Markov model of regime transitions.

Classification is an ordered list of ``(label, predicate)`` rules evaluated
top to bottom; the first predicate that holds decides the regime, and the
order is part of the contract.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Sequence

import numpy as np
from numpy.typing import NDArray

from metrics.records import CheckinRecord
from sampling.stats import clamp

__all__ = [
    "Regime",
    "RegimeDefinition",
    "REGIMES",
    "DaySignals",
    "DerivedSignals",
    "REGIME_RULES",
    "derive_signals",
    "regime_from_day",
    "explain_regime",
    "get_transition_matrix",
    "validate_transition_matrix",
    "predict_next",
    "build_regime_series",
]


class Regime(IntEnum):
    STABILIZING = 0
    ACCELERATING = 1
    OVERHEATING = 2
    DECLINING = 3
    STORM = 4

    @property
    def label(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class RegimeDefinition:
    regime: Regime
    label: str
    description: str


REGIMES: tuple[RegimeDefinition, ...] = (
    RegimeDefinition(Regime.STABILIZING, "stabilizing", "Even pace with recovery keeping up with load."),
    RegimeDefinition(Regime.ACCELERATING, "accelerating", "Positive momentum and steady improvement."),
    RegimeDefinition(Regime.OVERHEATING, "overheating", "Strong forward drive with a growing risk of exhaustion."),
    RegimeDefinition(Regime.DECLINING, "declining", "Shrinking capacity and a resource deficit."),
    RegimeDefinition(Regime.STORM, "storm", "Instability and elevated systemic risk."),
)

N_REGIMES = len(REGIMES)


@dataclass(frozen=True)
class DaySignals:
    day_index: float
    volatility: float
    stress: float
    sleep_hours: float
    energy: float
    mood: float
    prev_day_index: float | None = None


@dataclass(frozen=True)
class DerivedSignals:
    load: float
    recovery: float
    momentum: float


def derive_signals(signals: DaySignals) -> DerivedSignals:
    load = clamp((signals.stress - signals.energy + 10.0) * 5.0, 0.0, 100.0)
    recovery = clamp((signals.sleep_hours + signals.energy - signals.stress + 2.0) * 8.0, 0.0, 100.0)
    if signals.prev_day_index is None:
        momentum = 0.0
    else:
        momentum = clamp(signals.day_index - signals.prev_day_index, -3.0, 3.0)
    return DerivedSignals(load=load, recovery=recovery, momentum=momentum)


RegimeRule = tuple[Regime, Callable[[DaySignals, DerivedSignals], bool]]

REGIME_RULES: tuple[RegimeRule, ...] = (
    (Regime.STORM, lambda s, d: s.volatility >= 70 or (d.load >= 72 and s.mood <= 3.5)),
    (Regime.OVERHEATING, lambda s, d: d.load >= 68 and d.recovery <= 45),
    (
        Regime.DECLINING,
        lambda s, d: s.day_index <= 40 or d.recovery <= 30 or (s.energy <= 3.5 and s.mood <= 4.5),
    ),
    (
        Regime.ACCELERATING,
        lambda s, d: s.day_index >= 60 and d.momentum >= 0.6 and d.recovery >= 54 and d.load <= 56,
    ),
)


def regime_from_day(signals: DaySignals) -> Regime:
    derived = derive_signals(signals)
    for regime, predicate in REGIME_RULES:
        if predicate(signals, derived):
            return regime
    return Regime.STABILIZING


def _signed(value: float) -> str:
    return f"{'+' if value >= 0 else ''}{value:.1f}"


def explain_regime(signals: DaySignals, regime: Regime | int) -> list[str]:
    """Up to three templated reasons for ``regime`` given the day's signals."""

    d = derive_signals(signals)
    reasons = {
        Regime.STABILIZING: [
            f"Load is moderate ({d.load:.0f}/100) with no critical swings.",
            f"Recovery sits in the stable corridor ({d.recovery:.0f}/100).",
            f"Daily momentum is even ({_signed(d.momentum)} to the index).",
        ],
        Regime.ACCELERATING: [
            f"Index is high ({signals.day_index:.1f}) and still rising.",
            f"Momentum is positive ({_signed(d.momentum)}).",
            f"Recovery outpaces load ({d.recovery:.0f} vs {d.load:.0f}).",
        ],
        Regime.OVERHEATING: [
            f"Load is elevated ({d.load:.0f}/100).",
            f"Recovery is falling behind ({d.recovery:.0f}/100).",
            "Drive stays high but fatigue risk is building.",
        ],
        Regime.DECLINING: [
            f"Day index is in the decline zone ({signals.day_index:.1f}).",
            f"Recovery resource has dropped ({d.recovery:.0f}/100).",
            "Energy and mood are limiting the pace of recovery.",
        ],
        Regime.STORM: [
            f"Volatility is critical ({signals.volatility:.1f}).",
            f"Load sharply exceeds resources ({d.load:.0f} with recovery {d.recovery:.0f}).",
            "Stress combined with low mood raises the risk of a breakdown.",
        ],
    }
    return reasons[Regime(regime)][:3]


def get_transition_matrix(series: Sequence[Regime | int], add_k: float = 0.5) -> NDArray[np.float64]:
    """Row-stochastic matrix from observed ``(from, to)`` pairs with add-k smoothing."""

    if add_k <= 0.0:
        raise ValueError("add_k must be positive so every row stays normalisable.")
    counts = np.full((N_REGIMES, N_REGIMES), float(add_k), dtype=np.float64)
    labels = [int(Regime(item)) for item in series]
    for current, following in zip(labels[:-1], labels[1:]):
        counts[current, following] += 1.0
    return counts / counts.sum(axis=1, keepdims=True)


def validate_transition_matrix(matrix: Sequence[Sequence[float]] | NDArray[np.float64], *, tol: float = 1e-6) -> NDArray[np.float64]:
    arr = np.asarray(matrix, dtype=np.float64)
    if arr.ndim != 2 or arr.shape[0] != arr.shape[1] or arr.shape[0] == 0:
        raise ValueError("Transition matrix must be a non-empty square matrix.")
    if arr.shape[0] > N_REGIMES:
        raise ValueError(f"Transition matrix cannot exceed {N_REGIMES} regimes.")
    if not np.all(np.isfinite(arr)) or np.any(arr < 0.0):
        raise ValueError("Transition probabilities must be finite and non-negative.")
    if not np.allclose(arr.sum(axis=1), 1.0, atol=tol):
        raise ValueError("Every transition matrix row must sum to 1.")
    return arr


def predict_next(regime: Regime | int, matrix: Sequence[Sequence[float]] | NDArray[np.float64], steps: int = 1) -> list[tuple[Regime, float]]:
    """Distribution over regimes ``steps`` transitions after ``regime``."""

    arr = validate_transition_matrix(matrix)
    if steps < 1:
        raise ValueError("steps must be at least 1.")
    start = int(Regime(regime))
    if start >= arr.shape[0]:
        raise ValueError(f"Regime {start} is outside the transition matrix.")
    vector = np.zeros(arr.shape[0], dtype=np.float64)
    vector[start] = 1.0
    for _ in range(steps):
        vector = vector @ arr
    return [(Regime(idx), float(prob)) for idx, prob in enumerate(vector)]


def build_regime_series(
    checkins_asc: Sequence[CheckinRecord],
    day_indexes: Sequence[float],
    volatility: float,
) -> list[Regime]:
    """Classify each check-in, pairing it with the index of the same position."""

    series: list[Regime] = []
    for position, checkin in enumerate(checkins_asc):
        if position < len(day_indexes):
            day_index = float(day_indexes[position])
        else:
            day_index = float(day_indexes[-1]) if day_indexes else 50.0
        prev = float(day_indexes[position - 1]) if 0 < position <= len(day_indexes) else None
        series.append(
            regime_from_day(
                DaySignals(
                    day_index=day_index,
                    prev_day_index=prev,
                    volatility=volatility,
                    stress=checkin.get("stress"),
                    sleep_hours=checkin.get("sleepHours"),
                    energy=checkin.get("energy"),
                    mood=checkin.get("mood"),
                )
            )
        )
    return series
