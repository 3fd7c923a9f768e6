from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping

import pandas as pd

from .catalog import DEFAULT_CATALOG, MetricCatalog

__all__ = ["CheckinRecord", "StateSnapshot", "day_of"]


def day_of(ts: datetime | pd.Timestamp | str | int | float) -> pd.Timestamp:
    """UTC calendar day of a timestamp; numbers are epoch milliseconds."""

    if isinstance(ts, (int, float)) and not isinstance(ts, bool):
        stamp = pd.Timestamp(int(ts), unit="ms", tz="UTC")
    else:
        stamp = pd.Timestamp(ts)
        stamp = stamp.tz_localize("UTC") if stamp.tzinfo is None else stamp.tz_convert("UTC")
    return stamp.normalize().tz_localize(None)


@dataclass(frozen=True)
class CheckinRecord:
    """One day's self-reported metric values."""

    ts: datetime | pd.Timestamp | str | int | float
    values: Mapping[str, float] = field(default_factory=dict)

    def get(self, metric_id: str, default: float | None = None) -> float:
        if metric_id in self.values:
            return float(self.values[metric_id])
        if default is None:
            return DEFAULT_CATALOG.spec(metric_id).default
        return float(default)

    def index(self, catalog: MetricCatalog = DEFAULT_CATALOG) -> float:
        return catalog.system_index({key: self.get(key) for key in catalog.ids})


@dataclass(frozen=True)
class StateSnapshot:
    """Stored system summary for one moment in time."""

    ts: datetime | pd.Timestamp | str | int | float
    index: float
    risk: float = 0.0
    volatility: float = 0.0
    entropy: float = 0.0
    stats: Mapping[str, float] = field(default_factory=dict)
