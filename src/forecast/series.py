"""
Dense daily series from sparse snapshots and check-ins.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Literal, Mapping, Sequence

import pandas as pd

from metrics.catalog import DEFAULT_CATALOG, MetricCatalog
from metrics.records import CheckinRecord, StateSnapshot, day_of

__all__ = ["SERIES_KEYS", "DailySeries", "build_daily_series", "build_forecast_input"]

SeriesKey = Literal["index", "risk", "volatility", "entropy", "strength", "intelligence", "wisdom"]
SERIES_KEYS: tuple[str, ...] = ("index", "risk", "volatility", "entropy", "strength", "intelligence", "wisdom")
_STAT_KEYS = {"strength", "intelligence", "wisdom"}


@dataclass(frozen=True)
class DailySeries:
    key: str
    dates: tuple[str, ...]
    values: tuple[float, ...]

    def __len__(self) -> int:
        return len(self.values)

    def to_pandas(self) -> pd.Series:
        return pd.Series(list(self.values), index=pd.to_datetime(list(self.dates)), name=self.key, dtype="float64")

    def to_dict(self) -> dict[str, object]:
        return {"key": self.key, "dates": list(self.dates), "values": list(self.values)}


def _snapshot_value(snapshot: StateSnapshot, key: str) -> float | None:
    if key in _STAT_KEYS:
        value = snapshot.stats.get(key)
        return None if value is None else float(value)
    return float(getattr(snapshot, key))


def _last_per_day(records: Iterable[object]) -> dict[pd.Timestamp, object]:
    by_day: dict[pd.Timestamp, object] = {}
    for record in records:
        by_day[day_of(record.ts)] = record  # type: ignore[attr-defined]
    return by_day


def build_daily_series(
    snapshots: Sequence[StateSnapshot],
    checkins: Sequence[CheckinRecord],
    key: str,
    *,
    catalog: MetricCatalog = DEFAULT_CATALOG,
) -> DailySeries:
    """Forward-filled daily values between the first and last recorded day.

    A snapshot on a day wins over a check-in; for ``index`` a check-in's own
    index stands in when the day has no snapshot. Days before the first
    observed value read as 0.
    """

    if key not in SERIES_KEYS:
        raise ValueError(f"Unknown series key {key!r}; expected one of {SERIES_KEYS}.")

    snapshot_days = _last_per_day(snapshots)
    checkin_days = _last_per_day(checkins)
    observed = sorted(set(snapshot_days) | set(checkin_days))
    if not observed:
        return DailySeries(key=key, dates=(), values=())

    days = pd.date_range(observed[0], observed[-1], freq="D")
    raw = pd.Series(index=days, dtype="float64")
    for day in days:
        value: float | None = None
        snapshot = snapshot_days.get(day)
        if snapshot is not None:
            value = _snapshot_value(snapshot, key)  # type: ignore[arg-type]
        checkin = checkin_days.get(day)
        if value is None and key == "index" and checkin is not None:
            value = checkin.index(catalog)  # type: ignore[attr-defined]
        if value is not None:
            raw[day] = round(value, 2)

    dense = raw.ffill().fillna(0.0)
    return DailySeries(
        key=key,
        dates=tuple(day.strftime("%Y-%m-%d") for day in dense.index),
        values=tuple(float(v) for v in dense.to_numpy()),
    )


def build_forecast_input(
    snapshots: Sequence[StateSnapshot],
    checkins: Sequence[CheckinRecord],
    keys: Iterable[str],
) -> Mapping[str, DailySeries]:
    return {key: build_daily_series(snapshots, checkins, key) for key in keys}
