from __future__ import annotations

from .catalog import CASH_FLOW, DEFAULT_CATALOG, MetricCatalog, MetricSpec
from .records import CheckinRecord, StateSnapshot, day_of

__all__ = [
    "CASH_FLOW",
    "DEFAULT_CATALOG",
    "MetricCatalog",
    "MetricSpec",
    "CheckinRecord",
    "StateSnapshot",
    "day_of",
]
