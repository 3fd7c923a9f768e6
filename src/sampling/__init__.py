from __future__ import annotations

from .rng import DeterministicRng, substream, uniform_block
from .stats import (
    as_finite_array,
    clamp,
    clamp01,
    mean,
    percentile_bands,
    quantile,
    std,
    variance,
)
from .tail import TailRiskSummary, compute_tail_risk, conditional_var, value_at_risk

__all__ = [
    "DeterministicRng",
    "substream",
    "uniform_block",
    "as_finite_array",
    "clamp",
    "clamp01",
    "mean",
    "percentile_bands",
    "quantile",
    "std",
    "variance",
    "TailRiskSummary",
    "compute_tail_risk",
    "conditional_var",
    "value_at_risk",
]
