from __future__ import annotations

from .collapse import CollapseAssessment, assess_collapse_risk, collapse_probability, siren_level
from .config import MultiverseSettings, multiverse_settings_from_mapping
from .influence import (
    DEFAULT_INFLUENCE_MATRIX,
    InfluenceMatrix,
    apply_bounded_propagation,
    apply_impulse,
    explain_drivers,
    perturb_matrix,
)
from .scoring import goal_score_of, rank_hedges, summarize_tail
from .simulator import SimulationCancelled, run_multiverse
from .types import (
    AuditInfo,
    HedgeSuggestion,
    MultiverseConfig,
    MultiversePlan,
    MultiverseRunResult,
    PathPoint,
    PlannedImpulse,
    SimulationToggles,
    TailMetrics,
)
from .worker import (
    CancelledMessage,
    DoneMessage,
    ErrorMessage,
    MultiverseWorker,
    ProgressMessage,
)

__all__ = [
    "CollapseAssessment",
    "assess_collapse_risk",
    "collapse_probability",
    "siren_level",
    "MultiverseSettings",
    "multiverse_settings_from_mapping",
    "DEFAULT_INFLUENCE_MATRIX",
    "InfluenceMatrix",
    "apply_bounded_propagation",
    "apply_impulse",
    "explain_drivers",
    "perturb_matrix",
    "goal_score_of",
    "rank_hedges",
    "summarize_tail",
    "SimulationCancelled",
    "run_multiverse",
    "AuditInfo",
    "HedgeSuggestion",
    "MultiverseConfig",
    "MultiversePlan",
    "MultiverseRunResult",
    "PathPoint",
    "PlannedImpulse",
    "SimulationToggles",
    "TailMetrics",
    "CancelledMessage",
    "DoneMessage",
    "ErrorMessage",
    "MultiverseWorker",
    "ProgressMessage",
]
