from __future__ import annotations

import numpy as np
import pytest

from forecast.ets import fit_best_ets, fit_simple, fit_trend, forecast_from_fit

pytestmark = pytest.mark.unit


def test_linear_series_selects_exact_trend_model() -> None:
    series = [float(v) for v in range(1, 11)]
    fit = fit_best_ets(series)
    assert fit.model_type == "trend"
    assert fit.mse == pytest.approx(0.0)
    assert forecast_from_fit(fit, 3) == [11.0, 12.0, 13.0]


def test_constant_series_keeps_first_simple_candidate() -> None:
    fit = fit_best_ets([5.0] * 8)
    assert fit.model_type == "simple"
    assert fit.alpha == 0.2
    assert fit.mse == 0.0
    assert forecast_from_fit(fit, 2) == [5.0, 5.0]


def test_single_point_grids_prefer_simple_on_ties() -> None:
    fit = fit_best_ets([3.0] * 6, alpha_grid=[0.4], beta_grid=[0.1])
    assert fit.model_type == "simple"
    assert fit.alpha == 0.4
    assert fit.beta is None


def test_single_observation_is_degenerate() -> None:
    fit = fit_best_ets([4.2])
    assert fit.model_type == "simple"
    assert fit.level == 4.2
    assert fit.residuals == ()
    assert fit.mse == 0.0
    assert forecast_from_fit(fit, 2) == [4.2, 4.2]


def test_residuals_are_actual_minus_fitted() -> None:
    series = np.array([1.0, 3.0, 2.0, 4.0])
    fit = fit_simple(series, 0.5)
    for actual, fitted, residual in zip(series[1:], fit.fitted, fit.residuals):
        assert residual == pytest.approx(actual - fitted)
    short = fit_trend(np.array([1.0, 2.0]), 0.5, 0.5)
    assert short.residuals == () and short.level == 1.0


def test_grid_validation() -> None:
    with pytest.raises(ValueError):
        fit_best_ets([])
    with pytest.raises(ValueError):
        fit_best_ets([1.0, 2.0, 3.0], alpha_grid=[0.5])
    with pytest.raises(ValueError):
        fit_best_ets([1.0, float("inf")])


def test_custom_grids_are_respected() -> None:
    fit = fit_best_ets([1.0, 2.0, 1.5, 2.5, 2.0, 3.0], alpha_grid=[0.3], beta_grid=[0.2])
    assert fit.alpha == 0.3
    assert fit.beta in (None, 0.2)
