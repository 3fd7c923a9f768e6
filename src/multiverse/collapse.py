"""
Default collapse-risk model.

Four domain reliabilities (financial, physical, mental, execution) are
combined multiplicatively; the collapse probability is one minus the
system reliability. The simulator accepts any callable with the signature
of :func:`collapse_probability`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Mapping

from sampling.stats import clamp01

__all__ = [
    "SIREN_LEVELS",
    "RED_THRESHOLD",
    "AMBER_THRESHOLD",
    "CollapseAssessment",
    "RiskModel",
    "siren_level",
    "assess_collapse_risk",
    "collapse_probability",
]

RED_THRESHOLD = 0.35
AMBER_THRESHOLD = 0.20

# Siren codes stored in path arrays index into this tuple.
SIREN_LEVELS = ("green", "amber", "red")

RiskModel = Callable[[float, Mapping[str, float]], float]


def siren_level(p_collapse: float) -> str:
    if p_collapse > RED_THRESHOLD:
        return "red"
    if p_collapse >= AMBER_THRESHOLD:
        return "amber"
    return "green"


@dataclass(frozen=True)
class CollapseAssessment:
    domain_reliability: Mapping[str, float]
    system_reliability: float
    p_collapse: float
    siren: str
    weakest_domains: tuple[tuple[str, float], ...]


def _score10(value: float) -> float:
    return clamp01(value / 10.0)


def assess_collapse_risk(index: float, vector: Mapping[str, float]) -> CollapseAssessment:
    def get(metric_id: str, default: float) -> float:
        return float(vector.get(metric_id, default))

    stress_relief = 1.0 - _score10(get("stress", 5.0))
    mood = _score10(get("mood", 5.0))
    energy = _score10(get("energy", 5.0))
    focus = _score10(get("focus", 5.0))
    productivity = _score10(get("productivity", 5.0))
    sleep = clamp01(get("sleepHours", 7.0) / 8.0)
    cash = clamp01((get("cashFlow", 0.0) + 20000.0) / 40000.0)

    # attribute stats on a 0..100 scale derived from the metric vector
    strength = get("health", 5.0) * 10.0
    intelligence = get("focus", 5.0) * 10.0
    wisdom = get("mood", 5.0) * 10.0

    domains = {
        "fin": clamp01(0.65 * cash + 0.35 * clamp01(index / 10.0)),
        "phys": clamp01(0.45 * sleep + 0.35 * energy + 0.2 * clamp01(strength / 100.0)),
        "ment": clamp01(0.45 * stress_relief + 0.35 * mood + 0.2 * clamp01(wisdom / 100.0)),
        "exec": clamp01(0.4 * focus + 0.35 * productivity + 0.25 * clamp01(intelligence / 100.0)),
    }
    system = domains["fin"] * domains["phys"] * domains["ment"] * domains["exec"]
    p_collapse = clamp01(1.0 - system)
    weakest = tuple(sorted(domains.items(), key=lambda item: item[1]))
    return CollapseAssessment(
        domain_reliability=domains,
        system_reliability=system,
        p_collapse=p_collapse,
        siren=siren_level(p_collapse),
        weakest_domains=weakest,
    )


def collapse_probability(index: float, vector: Mapping[str, float]) -> float:
    return assess_collapse_risk(index, vector).p_collapse
