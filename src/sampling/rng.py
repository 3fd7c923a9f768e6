"""
Seeded counter-based uniform sampler shared by every stochastic component.

The k-th draw of a stream is a pure function of ``(seed + k * 0x6D2B79F5) mod 2**32``
passed through the mulberry32 finaliser, so draws can be produced one at a time with
plain integers or in batches with vectorised ``uint32`` arithmetic and both paths agree
bit for bit on every platform.
"""

from __future__ import annotations

from typing import Iterator

import numpy as np
from numpy.typing import NDArray

__all__ = ["DeterministicRng", "substream", "uniform_block"]

_MASK32 = 0xFFFFFFFF
_INCREMENT = 0x6D2B79F5
_GOLDEN = 0x9E3779B9
_SCALE = 1.0 / 4294967296.0


def _mix_scalar(t: int) -> int:
    x = ((t ^ (t >> 15)) * (t | 1)) & _MASK32
    x ^= (x + (((x ^ (x >> 7)) * (x | 61)) & _MASK32)) & _MASK32
    return (x ^ (x >> 14)) & _MASK32


def _mix_array(t: NDArray[np.uint32]) -> NDArray[np.uint32]:
    x = (t ^ (t >> np.uint32(15))) * (t | np.uint32(1))
    x ^= x + (x ^ (x >> np.uint32(7))) * (x | np.uint32(61))
    return x ^ (x >> np.uint32(14))


def uniform_block(seed: int, start: int, size: int) -> NDArray[np.float64]:
    """Return draws ``start + 1 .. start + size`` of the stream for ``seed``."""

    if size < 0:
        raise ValueError("size must be non-negative.")
    counters = np.arange(start + 1, start + size + 1, dtype=np.uint64)
    states = (np.uint64(seed & _MASK32) + counters * np.uint64(_INCREMENT)).astype(np.uint32)
    return _mix_array(states).astype(np.float64) * _SCALE


def substream(seed: int, index: int) -> int:
    """Derive an independent 32-bit seed for the ``index``-th sub-stream of ``seed``."""

    if index < 0:
        raise ValueError("substream index must be non-negative.")
    return _mix_scalar(((seed & _MASK32) + (index + 1) * _GOLDEN) & _MASK32)


class DeterministicRng:
    """Restartable uniform sampler on ``[0, 1)``.

    Two instances built from the same seed yield identical sequences forever;
    :meth:`reset` rewinds an instance to its first draw.
    """

    __slots__ = ("_seed", "_counter")

    def __init__(self, seed: int) -> None:
        self._seed = int(seed) & _MASK32
        self._counter = 0

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def draws(self) -> int:
        """Number of values consumed so far."""
        return self._counter

    def reset(self) -> None:
        self._counter = 0

    def random(self) -> float:
        self._counter += 1
        state = (self._seed + self._counter * _INCREMENT) & _MASK32
        return _mix_scalar(state) * _SCALE

    def random_array(self, size: int) -> NDArray[np.float64]:
        block = uniform_block(self._seed, self._counter, size)
        self._counter += size
        return block

    def index(self, length: int) -> int:
        """Uniform integer in ``[0, length)``."""

        if length <= 0:
            raise ValueError("length must be positive.")
        return min(length - 1, int(self.random() * length))

    def stream(self) -> Iterator[float]:
        while True:
            yield self.random()
