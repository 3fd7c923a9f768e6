from __future__ import annotations

from .model import (
    REGIME_RULES,
    REGIMES,
    DaySignals,
    DerivedSignals,
    Regime,
    RegimeDefinition,
    build_regime_series,
    derive_signals,
    explain_regime,
    get_transition_matrix,
    predict_next,
    regime_from_day,
    validate_transition_matrix,
)

__all__ = [
    "REGIME_RULES",
    "REGIMES",
    "DaySignals",
    "DerivedSignals",
    "Regime",
    "RegimeDefinition",
    "build_regime_series",
    "derive_signals",
    "explain_regime",
    "get_transition_matrix",
    "predict_next",
    "regime_from_day",
    "validate_transition_matrix",
]
