"""
experiments/scenarios.py

Sweep definitions for the slotted queue experiments. Each sweep family yields
runs: the CSV file they belong to, the swept parameter value written in the
first column, and the config overrides (policy, server count and per-queue
arrays) applied on top of config/baseline.yaml.
"""

from __future__ import annotations
from typing import Dict, Iterator, List

SINGLE_SERVER_POLICIES = ["random", "roundrobin", "lcq"]
MULTI_SERVER_POLICIES = ["random", "aslcq", "lcsflcq"]

# Symmetric topology 1: connection probability -> arrival rate step
SYMMETRIC_STEPS = {1.0: 0.02, 0.8: 0.02, 0.2: 0.014}
ASYMMETRIC_PROBS = [1.0, 0.8, 0.6, 0.4, 0.2]
ASYMMETRIC_STEP = 0.006
TOPOLOGY2_PROB = 0.5
TOPOLOGY2_STEP = 0.02
POINTS = 10

def _run(path: str, param: float, policy: str, servers: int,
         pn: List[float], ln: List[float]) -> Dict:
    return {
        "file": path,
        "param": param,
        "overrides": {
            "queues": {
                "policy": policy,
                "num_servers": servers,
                "connection_probabilities": pn,
                "arrival_rates": ln,
            },
        },
    }

def topology1_symmetric(num_queues: int = 5, **_) -> Iterator[Dict]:
    """One server, all queues share p and lambda; lambda = step * i."""
    for p, step in SYMMETRIC_STEPS.items():
        for policy in SINGLE_SERVER_POLICIES:
            path = f"topology1/symmetric/p{p}-{policy}.csv"
            for i in range(1, POINTS + 1):
                lam = step * i
                yield _run(path, lam, policy, 1, [p] * num_queues, [lam] * num_queues)

def topology1_asymmetric(num_queues: int = 5, **_) -> Iterator[Dict]:
    """One server, p falls with the queue index and queue n gets base * n."""
    if num_queues > len(ASYMMETRIC_PROBS):
        raise ValueError(
            f"asymmetric sweep defines {len(ASYMMETRIC_PROBS)} connection probabilities, "
            f"cannot run {num_queues} queues"
        )
    probs = ASYMMETRIC_PROBS[:num_queues]
    for policy in SINGLE_SERVER_POLICIES:
        path = f"topology1/asymmetric/{policy}.csv"
        for i in range(1, POINTS + 1):
            base = ASYMMETRIC_STEP * i
            yield _run(path, base, policy, 1, list(probs),
                       [base * n for n in range(1, len(probs) + 1)])

def topology2(num_queues: int = 5, topology2_servers: int = 3, **_) -> Iterator[Dict]:
    """Several servers, p = 0.5 everywhere and queue n gets lambda * n."""
    for policy in MULTI_SERVER_POLICIES:
        path = f"topology2/{policy}.csv"
        for i in range(1, POINTS + 1):
            lam = TOPOLOGY2_STEP * i
            yield _run(path, lam, policy, topology2_servers,
                       [TOPOLOGY2_PROB] * num_queues,
                       [lam * n for n in range(1, num_queues + 1)])

SWEEPS = {
    "topology1_symmetric": topology1_symmetric,
    "topology1_asymmetric": topology1_asymmetric,
    "topology2": topology2,
}

# Short aliases accepted at the interactive prompt
PROMPT_KEYS = {"a": "topology1_symmetric", "b": "topology1_asymmetric", "c": "topology2"}
