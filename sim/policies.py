# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# policies.py
# -----------------------------------------------------------------------------
# Purpose:
#   Queue selection (one server) and server-to-queue assignment (several
#   servers) policies for the slotted model.
#
# Design notes:
#   - Policies are resolved once, by name, in make_policy(); the engine then
#     calls the policy object every slot.
#   - Single-server policies draw each queue's connectivity at most once per
#     call. Multi-server policies draw connectivity per (server, queue), since
#     every server sees its own channel to each queue.
#   - Ties on backlog size go to the lowest queue index (max() keeps the first
#     maximum it meets).
#   - Several servers may be assigned the same queue; the engine serves them
#     in order and later ones may find the queue already drained.
#
# Usage:
#   from sim.policies import make_policy
#   policy = make_policy("lcq", num_servers=1)
# -----------------------------------------------------------------------------

from __future__ import annotations
import random
from typing import Dict, List, Optional, Sequence, Tuple
from .errors import ConfigurationError
from .queues import SimQueue, Server

Assignment = Tuple[Server, Optional[SimQueue]]

def connected_queues(queues: Sequence[SimQueue]) -> List[SimQueue]:
    """Queues connected in this draw, in index order."""
    return [q for q in queues if q.is_connected()]

def longest(queues: Sequence[SimQueue]) -> Optional[SimQueue]:
    """Longest queue, first one wins ties; None for an empty sequence."""
    if not queues:
        return None
    return max(queues, key=lambda q: q.size())

# -----------------------------------------------------------------------------
# Single-server topology
# -----------------------------------------------------------------------------

class QueuePolicy:
    """Selects at most one queue per slot for a lone server."""
    name = "base"
    multi_server = False

    def select(self, queues: Sequence[SimQueue], rng: random.Random) -> Optional[SimQueue]:
        raise NotImplementedError

class RandomQueuePolicy(QueuePolicy):
    name = "random"

    def select(self, queues, rng):
        candidates = connected_queues(queues)
        if not candidates:
            return None
        queue = rng.choice(candidates)
        # An empty pick wastes the slot
        return queue if queue.size() > 0 else None

class RoundRobinPolicy(QueuePolicy):
    """Visit queues cyclically; the cursor moves every slot, hit or miss."""
    name = "roundrobin"

    def __init__(self):
        self.cursor = 0

    def select(self, queues, rng):
        queue = queues[self.cursor]
        self.cursor = (self.cursor + 1) % len(queues)
        if queue.empty() or not queue.is_connected():
            return None
        return queue

class LongestConnectedQueuePolicy(QueuePolicy):
    name = "lcq"

    def select(self, queues, rng):
        return longest(connected_queues(queues))

# -----------------------------------------------------------------------------
# Multi-server topology
# -----------------------------------------------------------------------------

class AssignmentPolicy:
    """Maps every server to a queue (or None) for one slot."""
    name = "base"
    multi_server = True

    def assign(self, queues: Sequence[SimQueue], servers: Sequence[Server],
               rng: random.Random) -> List[Assignment]:
        raise NotImplementedError

    @staticmethod
    def _shuffled(servers: Sequence[Server], rng: random.Random) -> List[Server]:
        order = list(servers)
        rng.shuffle(order)
        return order

class RandomAssignmentPolicy(AssignmentPolicy):
    name = "random"

    def assign(self, queues, servers, rng):
        assignments: List[Assignment] = []
        for server in self._shuffled(servers, rng):
            candidates = connected_queues(queues)
            assignments.append((server, rng.choice(candidates) if candidates else None))
        return assignments

class ASLCQPolicy(AssignmentPolicy):
    """Assign every server to the longest queue connected to it."""
    name = "aslcq"

    def assign(self, queues, servers, rng):
        return [(server, longest(connected_queues(queues)))
                for server in self._shuffled(servers, rng)]

class LCSFLCQPolicy(AssignmentPolicy):
    """Least Connected Server First / Longest Connected Queue.

    Servers are ranked by how many queues they can reach this slot, fewest
    first. The least connected server takes the longest queue it reaches; the
    rest follow in the same ranking (no re-sort after the first removal), each
    taking the longest queue of its own connected set.
    """
    name = "lcsflcq"

    def assign(self, queues, servers, rng):
        reach = [(server, connected_queues(queues)) for server in self._shuffled(servers, rng)]
        # sorted() is stable, so equal counts keep the shuffled order
        ranked = sorted(reach, key=lambda item: len(item[1]))
        first_server, first_set = ranked[0]
        assignments: List[Assignment] = [(first_server, longest(first_set))]
        for server, reachable in ranked[1:]:
            assignments.append((server, longest(reachable)))
        return assignments

SINGLE_SERVER_POLICIES: Dict[str, type] = {
    RandomQueuePolicy.name: RandomQueuePolicy,
    RoundRobinPolicy.name: RoundRobinPolicy,
    LongestConnectedQueuePolicy.name: LongestConnectedQueuePolicy,
}

MULTI_SERVER_POLICIES: Dict[str, type] = {
    RandomAssignmentPolicy.name: RandomAssignmentPolicy,
    ASLCQPolicy.name: ASLCQPolicy,
    LCSFLCQPolicy.name: LCSFLCQPolicy,
}

def make_policy(name: str, num_servers: int):
    """
    Resolve a policy name for the given topology.

    One server selects from SINGLE_SERVER_POLICIES (random, roundrobin, lcq);
    two or more assign from MULTI_SERVER_POLICIES (random, aslcq, lcsflcq).
    Anything else raises ConfigurationError.
    """
    key = str(name).lower()
    table = SINGLE_SERVER_POLICIES if num_servers == 1 else MULTI_SERVER_POLICIES
    cls = table.get(key)
    if cls is None:
        topology = "single-server" if num_servers == 1 else "multi-server"
        raise ConfigurationError(
            f"Unknown {topology} policy {name!r}; expected one of {sorted(table)}"
        )
    return cls()
