# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# metrics.py
# -----------------------------------------------------------------------------
# Purpose:
#   Collect per-slot and per-replication occupancy statistics and reduce the
#   replication means to a t-distribution confidence interval.
#
# Design notes:
#   - Keep side-effect methods (note_*) for instrumentation from the engine.
#   - The standard error divides the sample variance by (R - 1), not R. The
#     published results were produced that way, so it stays.
#   - The t critical value is looked up for R - 1 degrees of freedom unless a
#     fixed value is configured (2.093 reproduces the 20-replication tables).
#
# Usage:
#   M = Metrics(); M.note_slot(queues); M.close_replication(); M.summary()
# -----------------------------------------------------------------------------

from __future__ import annotations
import math
from dataclasses import dataclass, asdict
from statistics import mean, variance
from typing import Dict, List, Optional, Sequence
from scipy.stats import t as student_t

def t_critical_value(replications: int, confidence_level: float = 0.95) -> float:
    """Two-sided Student-t quantile for ``replications - 1`` degrees of freedom."""
    if replications < 2:
        raise ValueError("need at least two replications for a t quantile")
    level = min(max(confidence_level, 0.0), 0.999999)
    alpha = 1.0 - level
    return float(student_t.ppf(1 - alpha / 2.0, replications - 1))

@dataclass(frozen=True)
class ConfidenceSummary:
    mean: float
    half_width: float
    low_ci: float
    high_ci: float

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)

def confidence_summary(values: Sequence[float], confidence_level: float = 0.95,
                       t_critical: Optional[float] = None) -> ConfidenceSummary:
    """
    Mean and confidence interval of the per-replication means.

    Parameters
    ----------
    values : sequence of float
        One mean per replication (R values).
    confidence_level : float
        Two-sided level used when ``t_critical`` is not given.
    t_critical : float, optional
        Fixed critical value overriding the t-table lookup.

    Returns
    -------
    ConfidenceSummary
        ``half_width = t * sqrt(s^2 / (R - 1))`` with ``s^2`` the
        Bessel-corrected sample variance. A single replication gives a zero
        half-width.
    """
    if not values:
        raise ValueError("no replication means to summarise")
    mu = float(mean(values))
    n = len(values)
    if n < 2:
        return ConfidenceSummary(mu, 0.0, mu, mu)
    s_squared = variance(values, mu)
    std_error = math.sqrt(s_squared / (n - 1))
    tcrit = t_critical if t_critical is not None else t_critical_value(n, confidence_level)
    half = tcrit * std_error
    return ConfidenceSummary(mu, half, mu - half, mu + half)

class Metrics:
    """Occupancy bookkeeping for one Simulation."""
    def __init__(self, confidence_level: float = 0.95, t_critical: Optional[float] = None):
        self.confidence_level = confidence_level
        self.t_critical = t_critical
        self.average_queue_lengths: List[float] = []   # current replication, one per slot
        self.average_per_rep: List[float] = []         # one per finished replication
        self.num_serviced = 0                          # current replication
        self.serviced_per_rep: List[int] = []

    def note_slot(self, queues: Sequence) -> float:
        """Record the across-queue average backlog for the slot just run."""
        avg = float(mean([q.size() for q in queues]))
        self.average_queue_lengths.append(avg)
        return avg

    def note_service(self):
        self.num_serviced += 1

    def close_replication(self) -> float:
        """Store this replication's mean and clear the slot-level state."""
        rep_mean = float(mean(self.average_queue_lengths))
        self.average_per_rep.append(rep_mean)
        self.serviced_per_rep.append(self.num_serviced)
        self.average_queue_lengths = []
        self.num_serviced = 0
        return rep_mean

    def reset(self):
        """Forget every recorded slot and replication."""
        self.average_queue_lengths = []
        self.average_per_rep = []
        self.num_serviced = 0
        self.serviced_per_rep = []

    @property
    def total_serviced(self) -> int:
        return sum(self.serviced_per_rep) + self.num_serviced

    def summary(self) -> ConfidenceSummary:
        return confidence_summary(self.average_per_rep, self.confidence_level, self.t_critical)
