# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# errors.py
# -----------------------------------------------------------------------------
# Purpose:
#   Exception types raised by the slotted simulation core.
#
# Usage:
#   from sim.errors import ConfigurationError, EmptyQueueError, NotYetRunError
# -----------------------------------------------------------------------------

from __future__ import annotations


class ConfigurationError(ValueError):
    """Invalid simulation parameters; raised at construction time."""


class EmptyQueueError(IndexError):
    """dequeue() called on a queue with no backlog."""


class NotYetRunError(RuntimeError):
    """Statistics were requested before Simulation.run() completed."""
