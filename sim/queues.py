# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# queues.py
# -----------------------------------------------------------------------------
# Purpose:
#   Slotted-time primitives: a FIFO packet queue with a per-slot connectivity
#   draw and a per-slot arrival test, and a unit-rate Server.
#
# Design notes:
#   - Packets are opaque markers; the arrival slot index is stored.
#   - Randomness comes from an injected random.Random so runs are seedable.
#   - Services take exactly one slot, so a Server keeps no in-service state.
#
# Usage:
#   from sim.queues import SimQueue, Server
# -----------------------------------------------------------------------------

from __future__ import annotations
import random
from collections import deque
from typing import Any, Callable, Optional
from .errors import EmptyQueueError

class SimQueue:
    """FIFO packet queue for the slotted model.

    Parameters
    ----------
    connection_probability : float
        Probability that the queue is connected to a server in a given slot.
    arrival_rate : float
        Per-slot probability (threshold on the arrival source) that a packet
        arrives.
    rng : random.Random, optional
        Generator for connectivity draws and default arrival draws.
    index : int
        Position of the queue in its simulation, used for naming only.
    """
    def __init__(self, connection_probability: float, arrival_rate: float,
                 rng: Optional[random.Random] = None, index: int = 0):
        self.connection_probability = connection_probability
        self.arrival_rate = arrival_rate
        self.rng = rng if rng is not None else random.Random()
        self.index = index
        self.backlog: deque = deque()

    def __len__(self) -> int:
        return len(self.backlog)

    def __repr__(self) -> str:
        return (f"SimQueue(index={self.index}, size={self.size()}, "
                f"p={self.connection_probability}, lambda={self.arrival_rate})")

    def size(self) -> int:
        return len(self.backlog)

    def empty(self) -> bool:
        return not self.backlog

    def is_connected(self) -> bool:
        # One draw per call; callers must not re-query within the same decision
        return self.rng.random() < self.connection_probability

    def enqueue(self, marker: Any):
        self.backlog.append(marker)

    def dequeue(self) -> Any:
        if not self.backlog:
            raise EmptyQueueError(f"dequeue from empty queue {self.index}")
        return self.backlog.popleft()

    def generate_arrival(self, current_time: int,
                         random_source: Optional[Callable[[], float]] = None) -> bool:
        """
        Test for a packet arrival in slot ``current_time``.

        Draws one value from ``random_source`` (this queue's uniform generator
        when omitted) and enqueues ``current_time`` if the value is below the
        arrival rate. Returns True when a packet arrived.
        """
        draw = random_source() if random_source is not None else self.rng.random()
        if draw < self.arrival_rate:
            self.enqueue(current_time)
            return True
        return False

    def reset(self):
        self.backlog.clear()

class Server:
    """Unit-rate server: processes at most one packet per slot.

    ``processed`` counts packets handled over the server's lifetime; it is a
    diagnostic and does not feed the occupancy statistics.
    """
    def __init__(self, name: str = "server"):
        self.name = name
        self.processed = 0

    def __repr__(self) -> str:
        return f"Server({self.name!r})"

    def process(self, packet: Any):
        # Service completes within the slot; the packet is consumed
        self.processed += 1
