"""
Value-at-Risk and Expected Shortfall over simulated loss samples.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable

import numpy as np

from .stats import quantile

__all__ = [
    "TailRiskSummary",
    "value_at_risk",
    "conditional_var",
    "compute_tail_risk",
]

TAIL_METHOD = "linear-interpolated"


@dataclass(frozen=True)
class TailRiskSummary:
    """Tail statistics of a loss sample at confidence ``alpha``."""

    alpha: float
    var: float
    es: float
    tail_mean: float
    tail_mass: float
    n: int
    method: str = TAIL_METHOD
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, object]:
        return {
            "alpha": round(float(self.alpha), 6),
            "var": round(float(self.var), 6),
            "es": round(float(self.es), 6),
            "tail_mean": round(float(self.tail_mean), 6),
            "tail_mass": round(float(self.tail_mass), 6),
            "n": int(self.n),
            "method": self.method,
            "warnings": list(self.warnings),
        }


def value_at_risk(losses: Iterable[float], alpha: float) -> float:
    values = list(losses)
    if not values:
        return 0.0
    safe_alpha = max(0.0001, min(0.9999, alpha))
    return quantile(values, safe_alpha)


def conditional_var(losses: Iterable[float], alpha: float) -> float:
    """Mean of the losses at or beyond the VaR cut."""

    values = list(losses)
    if not values:
        return 0.0
    cut = value_at_risk(values, alpha)
    tail = [loss for loss in values if loss >= cut]
    if not tail:
        return cut
    return float(sum(tail) / len(tail))


def _sanitize_alpha(alpha: float, warnings: list[str]) -> float:
    if not math.isfinite(alpha):
        warnings.append("alpha-not-finite")
        return 0.975
    if alpha < 0.5:
        warnings.append("alpha-clamped-low")
        return 0.5
    if alpha > 0.9999:
        warnings.append("alpha-clamped-high")
        return 0.9999
    return float(alpha)


def compute_tail_risk(samples: Iterable[float], alpha: float = 0.975) -> TailRiskSummary:
    warnings: list[str] = []
    raw = np.asarray(list(samples), dtype=np.float64).ravel()
    finite = raw[np.isfinite(raw)]
    if finite.size != raw.size:
        warnings.append("dropped-non-finite")
    safe_alpha = _sanitize_alpha(alpha, warnings)

    if finite.size == 0:
        warnings.append("empty-sample")
        return TailRiskSummary(
            alpha=safe_alpha,
            var=0.0,
            es=0.0,
            tail_mean=0.0,
            tail_mass=0.0,
            n=0,
            warnings=tuple(warnings),
        )

    ordered = np.sort(finite, kind="stable")
    var_value = quantile(ordered, safe_alpha)
    tail = ordered[ordered >= var_value]
    if tail.size == 1:
        warnings.append("single-tail-point")
    tail_mean = float(tail.mean()) if tail.size else var_value
    return TailRiskSummary(
        alpha=safe_alpha,
        var=var_value,
        es=tail_mean,
        tail_mean=tail_mean,
        tail_mass=float(tail.size / ordered.size),
        n=int(ordered.size),
        warnings=tuple(warnings),
    )
