"""Shared fixtures for the simulation tests."""

import pytest


class FakeQueue:
    """Queue stand-in with a fixed size and scripted connectivity answers."""

    def __init__(self, size, answers, index=0):
        self.index = index
        self._size = size
        self._answers = list(answers)

    def size(self):
        return self._size

    def empty(self):
        return self._size == 0

    def is_connected(self):
        return self._answers.pop(0)


@pytest.fixture
def scripted():
    """Factory for a zero-argument source returning the given values in order."""
    def _make(values):
        it = iter(values)
        return lambda: next(it)
    return _make


@pytest.fixture
def fake_queue():
    return FakeQueue
