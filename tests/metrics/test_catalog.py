from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from metrics.catalog import CASH_FLOW, DEFAULT_CATALOG, MetricCatalog, MetricSpec
from metrics.records import CheckinRecord, day_of

pytestmark = pytest.mark.unit


def test_default_catalog_layout() -> None:
    assert DEFAULT_CATALOG.ids[-1] == CASH_FLOW
    assert CASH_FLOW not in DEFAULT_CATALOG.index_ids
    assert len(DEFAULT_CATALOG.index_ids) == 8
    assert DEFAULT_CATALOG.spec("sleepHours").max == 12.0


def test_system_index_excludes_cash_flow(base_vector: dict[str, float]) -> None:
    rich = dict(base_vector, cashFlow=500_000.0)
    assert DEFAULT_CATALOG.system_index(base_vector) == DEFAULT_CATALOG.system_index(rich)
    assert DEFAULT_CATALOG.system_index(base_vector) == pytest.approx(42.0 / 8.0)


def test_array_round_trip_and_clamp(base_vector: dict[str, float]) -> None:
    arr = DEFAULT_CATALOG.to_array({"energy": 14.0})
    assert arr[DEFAULT_CATALOG.position("energy")] == 14.0
    assert arr[DEFAULT_CATALOG.position("sleepHours")] == 8.0
    clamped = DEFAULT_CATALOG.clamp_array(arr)
    assert clamped[DEFAULT_CATALOG.position("energy")] == 10.0
    assert DEFAULT_CATALOG.to_mapping(DEFAULT_CATALOG.to_array(base_vector)) == base_vector


def test_unknown_metrics_are_rejected() -> None:
    with pytest.raises(ValueError):
        DEFAULT_CATALOG.to_array({"charisma": 3.0})
    with pytest.raises(ValueError):
        DEFAULT_CATALOG.spec("charisma")
    with pytest.raises(ValueError):
        MetricCatalog(specs=(MetricSpec("a", "A", 0, 1, 0), MetricSpec("a", "A", 0, 1, 0)))
    with pytest.raises(ValueError):
        MetricSpec("b", "B", 1.0, 1.0, 1.0)


def test_index_mask_matches_ids() -> None:
    mask = DEFAULT_CATALOG.index_mask
    assert mask.dtype == np.bool_
    assert [i for i, keep in zip(DEFAULT_CATALOG.ids, mask) if keep] == list(DEFAULT_CATALOG.index_ids)


def test_records_use_utc_days_and_defaults() -> None:
    assert day_of("2024-03-01T23:30:00-02:00") == pd.Timestamp("2024-03-02")
    assert day_of(0) == pd.Timestamp("1970-01-01")
    checkin = CheckinRecord(ts="2024-03-01", values={"mood": 9})
    assert checkin.get("mood") == 9.0
    assert checkin.get("focus") == 5.0
    assert checkin.get("focus", 1.5) == 1.5
