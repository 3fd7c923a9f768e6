from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np
from numpy.typing import NDArray

__all__ = [
    "clamp",
    "clamp01",
    "mean",
    "variance",
    "std",
    "quantile",
    "percentile_bands",
    "as_finite_array",
]


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def clamp01(value: float) -> float:
    if value < 0.0:
        return 0.0
    if value > 1.0:
        return 1.0
    return float(value)


def as_finite_array(values: Iterable[float] | NDArray[np.float64], name: str = "values") -> NDArray[np.float64]:
    """Coerce to a 1-D float array, rejecting NaN and infinities."""

    arr = np.asarray(list(values) if not isinstance(values, np.ndarray) else values, dtype=np.float64).ravel()
    if arr.size and not np.all(np.isfinite(arr)):
        raise ValueError(f"{name} must contain only finite numbers.")
    return arr


def mean(values: Iterable[float] | NDArray[np.float64]) -> float:
    arr = np.asarray(list(values) if not isinstance(values, np.ndarray) else values, dtype=np.float64)
    if arr.size == 0:
        return 0.0
    return float(arr.mean())


def variance(values: Iterable[float] | NDArray[np.float64]) -> float:
    """Population variance; zero for an empty sample."""

    arr = np.asarray(list(values) if not isinstance(values, np.ndarray) else values, dtype=np.float64)
    if arr.size == 0:
        return 0.0
    return float(arr.var(ddof=0))


def std(values: Iterable[float] | NDArray[np.float64]) -> float:
    return float(np.sqrt(variance(values)))


def quantile(values: Iterable[float] | NDArray[np.float64], q: float) -> float:
    """Quantile by linear interpolation between order statistics.

    Returns 0.0 for an empty sample so callers never see NaN.
    """

    arr = np.asarray(list(values) if not isinstance(values, np.ndarray) else values, dtype=np.float64).ravel()
    if arr.size == 0:
        return 0.0
    return float(np.quantile(arr, clamp01(q), method="linear"))


def percentile_bands(
    samples: NDArray[np.float64],
    levels: Sequence[float] = (0.1, 0.5, 0.9),
    *,
    decimals: int | None = None,
) -> tuple[NDArray[np.float64], ...]:
    """Per-column quantiles of a ``(n_samples, n_steps)`` matrix.

    Each returned array has one entry per column; the bands are monotone in
    ``levels`` because they are read off the same sorted column.
    """

    matrix = np.asarray(samples, dtype=np.float64)
    if matrix.ndim != 2:
        raise ValueError("samples must be a two-dimensional array.")
    if matrix.shape[0] == 0:
        raise ValueError("samples must contain at least one row.")
    bands = np.quantile(matrix, list(levels), axis=0, method="linear")
    if decimals is not None:
        bands = np.round(bands, decimals)
    return tuple(np.asarray(band, dtype=np.float64) for band in bands)
