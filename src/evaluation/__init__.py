from __future__ import annotations

from .health import (
    CalibrationPoint,
    DriftSummary,
    HealthPolicy,
    ModelHealthSnapshot,
    ReliabilityBin,
    compute_brier_score,
    compute_reliability_bins,
    evaluate_model_health,
    health_policy_from_mapping,
    page_hinkley_detect,
)

__all__ = [
    "CalibrationPoint",
    "DriftSummary",
    "HealthPolicy",
    "ModelHealthSnapshot",
    "ReliabilityBin",
    "compute_brier_score",
    "compute_reliability_bins",
    "evaluate_model_health",
    "health_policy_from_mapping",
    "page_hinkley_detect",
]
