# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# arrivals.py
# -----------------------------------------------------------------------------
# Purpose:
#   Sources of randomness for per-slot packet arrivals: the plain uniform draw
#   and a TES (Transform-Expand-Sample) correlator that produces serially
#   correlated values in [0, 1).
#
# Design notes:
#   - A "random source" is any zero-argument callable returning a float in
#     [0, 1). rng.random and TesCorrelator.next both qualify.
#   - The correlator wraps with Python's floor modulo, so negative
#     intermediate values land back in [0, 1).
#
# Usage:
#   from sim.arrivals import TesCorrelator, make_arrival_sources
# -----------------------------------------------------------------------------

from __future__ import annotations
import random
from typing import Callable, List, Optional

RandomSource = Callable[[], float]


class TesCorrelator:
    """Serially correlated uniform values.

    The first value is an independent uniform draw. Every later value is the
    previous one displaced by ``(a + b) * u - b`` (``u`` uniform) and wrapped
    into [0, 1). Small ``a`` and ``b`` give strong correlation; ``a = b = 0``
    repeats the first value forever.

    Parameters
    ----------
    a, b : float
        Non-negative widths of the forward and backward displacement.
    uniform : callable, optional
        Underlying uniform source; defaults to a fresh ``random.Random()``.
    """
    def __init__(self, a: float, b: float, uniform: Optional[RandomSource] = None):
        if a < 0 or b < 0:
            raise ValueError(f"TES parameters must be non-negative (a={a}, b={b})")
        self.a = a
        self.b = b
        self.uniform = uniform if uniform is not None else random.Random().random
        self.previous: Optional[float] = None

    @property
    def seeded(self) -> bool:
        return self.previous is not None

    def _displacement(self) -> float:
        return (self.a + self.b) * self.uniform() - self.b

    def next(self) -> float:
        if self.previous is None:
            self.previous = self.uniform()
        else:
            self.previous = (self.previous + self._displacement()) % 1.0
            # x % 1.0 can round up to exactly 1.0 for tiny negative x
            if self.previous >= 1.0:
                self.previous = 0.0
        return self.previous

    __call__ = next

    def reset(self):
        """Return to the unseeded state; the next value is uncorrelated."""
        self.previous = None


def make_arrival_sources(num_queues: int, rng: random.Random,
                         correlation: Optional[dict] = None) -> List[RandomSource]:
    """
    Build one arrival source per queue.

    When ``correlation`` is enabled each queue gets its own TesCorrelator fed
    by ``rng``; otherwise every queue draws straight from ``rng.random``.
    """
    corr = correlation or {}
    if not corr.get("enabled", False):
        return [rng.random for _ in range(num_queues)]
    a = float(corr.get("a", 0.0))
    b = float(corr.get("b", 0.0))
    return [TesCorrelator(a, b, rng.random) for _ in range(num_queues)]
