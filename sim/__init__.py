"""
sim package initializer.

This package contains the slotted simulation engine, its primitives
(queues/servers), the TES arrival correlator, the queue selection and server
assignment policies, and the occupancy statistics used by the multi-queue
experiments.
"""
from .errors import ConfigurationError, EmptyQueueError, NotYetRunError
from .simulation import Simulation, configure, run_config

__all__ = [
    "errors", "queues", "arrivals", "policies", "metrics", "simulation",
    "Simulation", "configure", "run_config",
    "ConfigurationError", "EmptyQueueError", "NotYetRunError",
]
