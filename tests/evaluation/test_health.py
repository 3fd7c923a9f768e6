from __future__ import annotations

import pytest

from evaluation.health import (
    CalibrationPoint,
    HealthPolicy,
    compute_brier_score,
    compute_reliability_bins,
    evaluate_model_health,
    health_policy_from_mapping,
    page_hinkley_detect,
)

pytestmark = pytest.mark.unit

FOUR_POINTS = [
    CalibrationPoint(0.1, 0),
    CalibrationPoint(0.2, 0),
    CalibrationPoint(0.7, 1),
    CalibrationPoint(0.8, 1),
]

STABLE = [0.01, 0.03, 0.02, 0.01, 0.03]


def test_brier_score_example_and_sentinel() -> None:
    assert compute_brier_score(FOUR_POINTS) == 0.045
    assert compute_brier_score([]) == 1.0
    assert compute_brier_score([CalibrationPoint(1.7, 1)]) == 0.0


def test_reliability_bins_with_four_buckets() -> None:
    bins = compute_reliability_bins(FOUR_POINTS, 4)
    assert [(b.left, b.right) for b in bins] == [(0.0, 0.25), (0.25, 0.5), (0.5, 0.75), (0.75, 1.0)]
    assert [b.count for b in bins] == [2, 0, 1, 1]
    assert bins[0].mean_probability == 0.15
    assert bins[0].gap == 0.15
    assert bins[1].mean_probability == 0.0 and bins[1].gap == 0.0
    assert bins[2].gap == 0.3
    assert bins[3].gap == 0.2


@pytest.mark.parametrize("bins", [1, 3, 5, 10])
def test_bins_partition_every_point(bins: int) -> None:
    points = [CalibrationPoint(p / 20, p % 2) for p in range(21)] + [CalibrationPoint(-0.2, 0)]
    rows = compute_reliability_bins(points, bins)
    assert len(rows) == bins
    assert sum(row.count for row in rows) == len(points)


def test_page_hinkley_examples() -> None:
    stable = page_hinkley_detect(STABLE)
    assert not stable.triggered
    assert stable.trigger_index is None
    assert stable.score >= 0.0

    shifted = page_hinkley_detect(STABLE + [0.6, 0.65, 0.7])
    assert shifted.triggered
    assert shifted.trigger_index == 5

    empty = page_hinkley_detect([])
    assert (empty.triggered, empty.trigger_index, empty.score) == (False, None, 0.0)


def _example_input() -> dict[str, object]:
    return {
        "kind": "policy",
        "calibration": [
            CalibrationPoint(0.15, 0),
            CalibrationPoint(0.2, 0),
            CalibrationPoint(0.3, 1),
            CalibrationPoint(0.8, 1),
            CalibrationPoint(0.85, 1),
        ],
        "drift_series": [0.01, 0.02, 0.01, 0.02, 0.03],
        "min_samples": 5,
    }


def test_health_snapshot_is_idempotent_and_yellow() -> None:
    first = evaluate_model_health(**_example_input())  # type: ignore[arg-type]
    second = evaluate_model_health(**_example_input())  # type: ignore[arg-type]
    assert first == second
    assert first.to_dict() == second.to_dict()
    assert first.grade == "yellow"
    assert first.v == 1
    assert len(first.reasons) == 3
    assert first.reasons[0].startswith("Enough data")


def test_insufficient_data_and_drift_are_red() -> None:
    snapshot = evaluate_model_health("forecast", FOUR_POINTS, STABLE, min_samples=10)
    assert snapshot.grade == "red"
    assert not snapshot.sufficient
    assert snapshot.reasons[0] == "Insufficient data: 4 of 10 samples."

    drifting = evaluate_model_health("learned", FOUR_POINTS, STABLE + [0.6, 0.65, 0.7], min_samples=4)
    assert drifting.grade == "red"
    assert drifting.reasons[-1] == "Distribution drift detected at index 5."


def test_good_model_is_green() -> None:
    points = [CalibrationPoint(0.05, 0)] * 10 + [CalibrationPoint(0.95, 1)] * 10
    snapshot = evaluate_model_health("forecast", points, [0.1] * 10, min_samples=20)
    assert snapshot.grade == "green"
    assert snapshot.reasons[-1] == "No drift detected."


@pytest.mark.parametrize("bad", [float("nan"), float("inf")])
def test_non_finite_drift_series_is_rejected(bad: float) -> None:
    with pytest.raises(ValueError, match="drift_series"):
        page_hinkley_detect([0.01, bad, 0.9, 0.9, 0.9])

    points = [CalibrationPoint(0.1, 0)] * 30
    with pytest.raises(ValueError, match="drift_series"):
        evaluate_model_health("forecast", points, [0.01, bad, 0.9, 0.9, 0.9], min_samples=20)


def test_policy_validation_and_overrides() -> None:
    with pytest.raises(ValueError):
        evaluate_model_health("oracle", [], [], min_samples=1)  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        HealthPolicy(bins=0)
    strict = health_policy_from_mapping({"yellow_gap": 0.05, "red_gap": 0.1})
    snapshot = evaluate_model_health("forecast", FOUR_POINTS, STABLE, min_samples=4, policy=strict)
    assert snapshot.grade == "red"
    with pytest.raises(ValueError):
        health_policy_from_mapping({"bogus": 1})
