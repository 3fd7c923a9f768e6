"""
Model trust grading from calibration and drift statistics.

Everything here is a pure function of its arguments: the same calibration
points, drift series and policy always give an identical snapshot, reasons
included.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Iterable, Literal, Mapping, Sequence

import numpy as np

from sampling.stats import as_finite_array, clamp01

__all__ = [
    "HEALTH_SNAPSHOT_VERSION",
    "ModelKind",
    "HealthGrade",
    "CalibrationPoint",
    "ReliabilityBin",
    "DriftSummary",
    "HealthPolicy",
    "ModelHealthSnapshot",
    "compute_brier_score",
    "compute_reliability_bins",
    "page_hinkley_detect",
    "evaluate_model_health",
    "health_policy_from_mapping",
]

HEALTH_SNAPSHOT_VERSION = 1

ModelKind = Literal["learned", "forecast", "policy"]
HealthGrade = Literal["green", "yellow", "red"]
_KINDS = ("learned", "forecast", "policy")


@dataclass(frozen=True)
class CalibrationPoint:
    probability: float
    outcome: int

    def __post_init__(self) -> None:
        if self.outcome not in (0, 1):
            raise ValueError(f"Calibration outcome must be 0 or 1, got {self.outcome!r}.")
        if not math.isfinite(self.probability):
            raise ValueError("Calibration probability must be finite.")


@dataclass(frozen=True)
class ReliabilityBin:
    index: int
    left: float
    right: float
    count: int
    mean_probability: float
    observed_rate: float
    gap: float


@dataclass(frozen=True)
class DriftSummary:
    triggered: bool
    trigger_index: int | None
    score: float


@dataclass(frozen=True)
class HealthPolicy:
    """Thresholds of the grading cascade."""

    bins: int = 5
    drift_delta: float = 0.01
    drift_lambda: float = 0.2
    red_brier: float = 0.3
    red_gap: float = 0.25
    yellow_brier: float = 0.2
    yellow_gap: float = 0.15
    early_drift_score: float = 0.1

    def __post_init__(self) -> None:
        if self.bins < 1:
            raise ValueError("bins must be at least 1.")
        if self.drift_lambda <= 0.0:
            raise ValueError("drift_lambda must be positive.")
        if self.yellow_brier > self.red_brier or self.yellow_gap > self.red_gap:
            raise ValueError("Yellow thresholds must not exceed red thresholds.")

    def with_overrides(self, **kwargs: object) -> "HealthPolicy":
        data = self.__dict__ | kwargs
        return HealthPolicy(**data)


@dataclass(frozen=True)
class ModelHealthSnapshot:
    kind: str
    grade: str
    reasons: tuple[str, ...]
    samples: int
    min_samples: int
    sufficient: bool
    brier: float
    worst_gap: float
    bins: tuple[ReliabilityBin, ...]
    drift: DriftSummary
    v: int = HEALTH_SNAPSHOT_VERSION

    def to_dict(self) -> dict[str, Any]:
        return {
            "v": self.v,
            "kind": self.kind,
            "grade": self.grade,
            "reasons": list(self.reasons),
            "data": {"samples": self.samples, "min_samples": self.min_samples, "sufficient": self.sufficient},
            "calibration": {
                "brier": self.brier,
                "worst_gap": self.worst_gap,
                "bins": [asdict(item) for item in self.bins],
            },
            "drift": asdict(self.drift),
        }


def compute_brier_score(points: Sequence[CalibrationPoint]) -> float:
    """Mean squared gap between clamped probability and outcome; 1.0 when empty."""

    if not points:
        return 1.0
    total = sum((clamp01(point.probability) - point.outcome) ** 2 for point in points)
    return round(total / len(points), 6)


def compute_reliability_bins(points: Iterable[CalibrationPoint], bins: int = 5) -> list[ReliabilityBin]:
    safe_bins = max(1, int(bins))
    counts = np.zeros(safe_bins, dtype=np.int64)
    sum_prob = np.zeros(safe_bins, dtype=np.float64)
    sum_outcome = np.zeros(safe_bins, dtype=np.float64)
    for point in points:
        p = clamp01(point.probability)
        slot = min(safe_bins - 1, int(math.floor(p * safe_bins)))
        counts[slot] += 1
        sum_prob[slot] += p
        sum_outcome[slot] += point.outcome

    rows: list[ReliabilityBin] = []
    for slot in range(safe_bins):
        count = int(counts[slot])
        mean_probability = float(sum_prob[slot] / count) if count else 0.0
        observed_rate = float(sum_outcome[slot] / count) if count else 0.0
        rows.append(
            ReliabilityBin(
                index=slot,
                left=round(slot / safe_bins, 3),
                right=round((slot + 1) / safe_bins, 3),
                count=count,
                mean_probability=round(mean_probability, 4),
                observed_rate=round(observed_rate, 4),
                gap=round(abs(mean_probability - observed_rate), 4),
            )
        )
    return rows


def page_hinkley_detect(series: Sequence[float], delta: float = 0.01, lambda_: float = 0.2) -> DriftSummary:
    """Page-Hinkley test for an upward shift in the mean of ``series``.

    Stops at the first index where the cumulative deviation rises more than
    ``lambda_`` above its running minimum. Raises ``ValueError`` on NaN or
    infinite values.
    """

    values = as_finite_array(series, "drift_series")
    if values.size == 0:
        return DriftSummary(triggered=False, trigger_index=None, score=0.0)

    running_mean = float(values[0])
    cumulative = 0.0
    minimum = 0.0
    score = 0.0
    for position, raw in enumerate(values):
        value = float(raw)
        running_mean += (value - running_mean) / (position + 1)
        cumulative += value - running_mean - delta
        minimum = min(minimum, cumulative)
        score = cumulative - minimum
        if score > lambda_:
            return DriftSummary(triggered=True, trigger_index=position, score=round(score, 4))
    return DriftSummary(triggered=False, trigger_index=None, score=round(max(0.0, score), 4))


def evaluate_model_health(
    kind: ModelKind,
    calibration: Sequence[CalibrationPoint],
    drift_series: Sequence[float],
    min_samples: int,
    policy: HealthPolicy | None = None,
) -> ModelHealthSnapshot:
    """Grade a model green/yellow/red; later checks only ever worsen the grade."""

    if kind not in _KINDS:
        raise ValueError(f"Unknown model kind {kind!r}; expected one of {_KINDS}.")
    if min_samples < 0:
        raise ValueError("min_samples must be non-negative.")
    policy = policy or HealthPolicy()

    bins = compute_reliability_bins(calibration, policy.bins)
    brier = compute_brier_score(calibration)
    worst_gap = round(max([item.gap for item in bins] + [0.0]), 4)
    drift = page_hinkley_detect(drift_series, policy.drift_delta, policy.drift_lambda)
    samples = len(calibration)
    sufficient = samples >= min_samples

    reasons: list[str] = []
    grade: HealthGrade = "green"

    if not sufficient:
        reasons.append(f"Insufficient data: {samples} of {min_samples} samples.")
        grade = "red"
    else:
        reasons.append(f"Enough data: {samples} samples.")

    if brier > policy.red_brier or worst_gap > policy.red_gap:
        grade = "red"
        reasons.append(f"Weak calibration: Brier {brier:.3f}, worst gap {worst_gap:.3f}.")
    elif brier > policy.yellow_brier or worst_gap > policy.yellow_gap:
        if grade != "red":
            grade = "yellow"
        reasons.append(f"Moderate calibration: Brier {brier:.3f}, worst gap {worst_gap:.3f}.")
    else:
        reasons.append(f"Stable calibration: Brier {brier:.3f}.")

    if drift.triggered:
        grade = "red"
        reasons.append(f"Distribution drift detected at index {drift.trigger_index}.")
    elif drift.score > policy.early_drift_score:
        if grade == "green":
            grade = "yellow"
        reasons.append("Early signs of drift.")
    else:
        reasons.append("No drift detected.")

    return ModelHealthSnapshot(
        kind=kind,
        grade=grade,
        reasons=tuple(reasons),
        samples=samples,
        min_samples=min_samples,
        sufficient=sufficient,
        brier=brier,
        worst_gap=worst_gap,
        bins=tuple(bins),
        drift=drift,
    )


def health_policy_from_mapping(data: Mapping[str, object]) -> HealthPolicy:
    defaults = HealthPolicy()
    unknown = sorted(set(data) - set(defaults.__dict__))
    if unknown:
        raise ValueError(f"Unknown health settings: {unknown}")
    merged = defaults.__dict__ | {key: data[key] for key in defaults.__dict__ if key in data}
    merged["bins"] = int(merged["bins"])  # type: ignore[call-overload]
    for key in merged:
        if key != "bins":
            merged[key] = float(merged[key])  # type: ignore[arg-type]
    return HealthPolicy(**merged)
