# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# simulation.py
# -----------------------------------------------------------------------------
# Purpose:
#   Slotted simulation engine: build queues, servers and the policy, run
#   max_reps replications of (max_time + 1) slots each, and summarise the
#   average queue occupancy with a confidence interval.
#
# Design notes:
#   - Slot order is fixed: select/assign, serve, arrivals, statistics, tick.
#     Slot 0 therefore always sees empty queues at selection time.
#   - Queue backlogs and TES correlators are cleared at the start of every
#     replication (reset_queues=True) so leftover backlog does not bias the
#     early slots. The round-robin cursor is never reset.
#   - One random.Random per engine drives every draw; pass seed or rng for
#     reproducible runs.
#
# Usage:
#   from sim.simulation import configure, run_config
#   sim = configure(50000, 20, 5, 1, "lcq", [1.0]*5, [0.1]*5, seed=1)
#   sim.run(); sim.get_statistics()
# -----------------------------------------------------------------------------

from __future__ import annotations
import random
from typing import Dict, List, Optional, Sequence
from .arrivals import TesCorrelator, make_arrival_sources
from .errors import ConfigurationError, NotYetRunError
from .metrics import ConfidenceSummary, Metrics
from .policies import make_policy
from .queues import SimQueue, Server

def _check_probabilities(label: str, values: Sequence[float]):
    for i, v in enumerate(values):
        if not 0.0 <= v <= 1.0:
            raise ConfigurationError(f"{label}[{i}] = {v} is outside [0, 1]")

class Simulation:
    """
    Replicated slotted simulation of ``num_queues`` queues and
    ``num_servers`` servers.

    Parameters
    ----------
    max_time : int
        Last slot index of a replication; slots 0..max_time run.
    max_reps : int
        Number of replications.
    num_queues, num_servers : int
        Topology size. One server uses a selection policy (random,
        roundrobin, lcq); more use an assignment policy (random, aslcq,
        lcsflcq).
    policy : str
        Policy name, resolved once here.
    connection_probabilities, arrival_rates : sequence of float
        One entry per queue.
    seed : int, optional
        Seed for the engine's generator (ignored when ``rng`` is given).
    rng : random.Random, optional
        Explicit generator shared by every component of this engine.
    correlation : dict, optional
        ``{"enabled": bool, "a": float, "b": float}`` to drive arrivals with
        one TES correlator per queue.
    reset_queues : bool
        Empty backlogs (and correlators) before each replication.
    confidence_level : float
        Level of the reported interval.
    t_critical : float, optional
        Fixed t value, e.g. 2.093; looked up from R - 1 when omitted.
    """
    def __init__(self, max_time: int, max_reps: int, num_queues: int, num_servers: int,
                 policy: str, connection_probabilities: Sequence[float],
                 arrival_rates: Sequence[float], seed: Optional[int] = None,
                 rng: Optional[random.Random] = None, correlation: Optional[dict] = None,
                 reset_queues: bool = True, confidence_level: float = 0.95,
                 t_critical: Optional[float] = None):
        if int(max_time) <= 0:
            raise ConfigurationError(f"max_time must be positive, got {max_time}")
        if int(max_reps) <= 0:
            raise ConfigurationError(f"max_reps must be positive, got {max_reps}")
        if int(num_queues) <= 0 or int(num_servers) <= 0:
            raise ConfigurationError(
                f"need at least one queue and one server (got {num_queues}, {num_servers})"
            )
        if len(connection_probabilities) != num_queues:
            raise ConfigurationError(
                f"expected {num_queues} connection probabilities, got {len(connection_probabilities)}"
            )
        if len(arrival_rates) != num_queues:
            raise ConfigurationError(
                f"expected {num_queues} arrival rates, got {len(arrival_rates)}"
            )
        _check_probabilities("connection_probabilities", connection_probabilities)
        _check_probabilities("arrival_rates", arrival_rates)
        if not 0.0 < confidence_level < 1.0:
            raise ConfigurationError(f"confidence_level must be in (0, 1), got {confidence_level}")

        self.max_time = int(max_time)
        self.max_reps = int(max_reps)
        self.num_queues = int(num_queues)
        self.num_servers = int(num_servers)
        self.policy_name = str(policy).lower()
        self.policy = make_policy(self.policy_name, self.num_servers)
        self.probabs = [float(p) for p in connection_probabilities]
        self.lambdas = [float(l) for l in arrival_rates]
        self.reset_queues = reset_queues
        self.rng = rng if rng is not None else random.Random(seed)
        self.time = 0
        self.queues: List[SimQueue] = [
            SimQueue(self.probabs[i], self.lambdas[i], rng=self.rng, index=i)
            for i in range(self.num_queues)
        ]
        self.servers: List[Server] = [Server(f"server{i}") for i in range(self.num_servers)]
        try:
            self.arrival_sources = make_arrival_sources(self.num_queues, self.rng, correlation)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc
        self.M = Metrics(confidence_level=confidence_level, t_critical=t_critical)
        self.completed_reps = 0

    @property
    def round_robin_cursor(self) -> Optional[int]:
        return getattr(self.policy, "cursor", None)

    @property
    def num_serviced(self) -> int:
        return self.M.total_serviced

    # -------------------------------------------------------------------------
    # Slot mechanics
    # -------------------------------------------------------------------------

    def _serve(self, server: Server, queue: Optional[SimQueue]):
        # None or an already drained queue wastes the server's slot
        if queue is None or queue.empty():
            return
        server.process(queue.dequeue())
        self.M.note_service()

    def generate_arrivals(self):
        for queue, source in zip(self.queues, self.arrival_sources):
            queue.generate_arrival(self.time, source)

    def step(self) -> float:
        """Run one slot and return the recorded average backlog."""
        if self.num_servers == 1:
            self._serve(self.servers[0], self.policy.select(self.queues, self.rng))
        else:
            for server, queue in self.policy.assign(self.queues, self.servers, self.rng):
                self._serve(server, queue)
        self.generate_arrivals()
        avg = self.M.note_slot(self.queues)
        self.time += 1
        return avg

    def _reset_state(self):
        for queue in self.queues:
            queue.reset()
        for source in self.arrival_sources:
            if isinstance(source, TesCorrelator):
                source.reset()

    def run_replication(self) -> float:
        if self.reset_queues:
            self._reset_state()
        while self.time <= self.max_time:
            self.step()
        rep_mean = self.M.close_replication()
        self.time = 0
        self.completed_reps += 1
        return rep_mean

    def run(self):
        """Execute every replication; results via get_statistics().

        Each call starts from empty queues and discards the statistics of any
        earlier run, so exactly max_reps replication means are summarised.
        """
        self.M.reset()
        self.completed_reps = 0
        self.time = 0
        self._reset_state()
        for _ in range(self.max_reps):
            self.run_replication()

    # -------------------------------------------------------------------------
    # Results
    # -------------------------------------------------------------------------

    @property
    def replication_means(self) -> List[float]:
        return list(self.M.average_per_rep)

    def get_statistics(self) -> ConfidenceSummary:
        if self.completed_reps < self.max_reps:
            raise NotYetRunError("call run() before requesting statistics")
        return self.M.summary()

    def describe(self) -> str:
        return f"policy = {self.policy_name}, p = {self.probabs}, lambda = {self.lambdas}"

def configure(max_time: int, max_reps: int, num_queues: int, num_servers: int, policy: str,
              connection_probabilities: Sequence[float], arrival_rates: Sequence[float],
              **options) -> Simulation:
    """Build one engine instance; see Simulation for the keyword options."""
    return Simulation(max_time, max_reps, num_queues, num_servers, policy,
                      connection_probabilities, arrival_rates, **options)

def run_config(cfg: Dict) -> Dict:
    """
    Run one configuration described by a dict and return its summary.

    Expected keys: ``sim`` (max_time, max_reps, seed, reset_queues,
    confidence_level, t_critical), ``queues`` (policy, num_servers,
    connection_probabilities, arrival_rates) and optionally ``correlation``.
    """
    sim_cfg = cfg.get("sim", {})
    q_cfg = cfg["queues"]
    pn = list(q_cfg["connection_probabilities"])
    ln = list(q_cfg["arrival_rates"])
    sim = configure(
        sim_cfg.get("max_time", 50000),
        sim_cfg.get("max_reps", 20),
        len(pn),
        q_cfg.get("num_servers", 1),
        q_cfg["policy"],
        pn,
        ln,
        seed=sim_cfg.get("seed"),
        correlation=cfg.get("correlation"),
        reset_queues=sim_cfg.get("reset_queues", True),
        confidence_level=sim_cfg.get("confidence_level", 0.95),
        t_critical=sim_cfg.get("t_critical"),
    )
    sim.run()
    out = sim.get_statistics().as_dict()
    out["replication_means"] = sim.replication_means
    out["serviced_per_rep"] = list(sim.M.serviced_per_rep)
    return out
