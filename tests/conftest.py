"""Pytest configuration and fixtures for crontinject tests."""

import heapq
import itertools
from datetime import datetime, timedelta

import pytest

from crontinject import InjectConfig, InjectNode, NodeRegistry, PropertySpec, PropertyType


class FakeHandle:
    def __init__(self):
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeClock:
    """Clock with simulated time; callbacks run only inside advance()."""

    def __init__(self, start: datetime | None = None):
        self.start = start or datetime(2026, 1, 1, 0, 0, 0)
        self._time = 0.0
        self._queue = []
        self._seq = itertools.count()

    def time(self) -> float:
        return self._time

    def now(self) -> datetime:
        return self.start + timedelta(seconds=self._time)

    def call_later(self, delay, callback):
        handle = FakeHandle()
        heapq.heappush(self._queue, (self._time + delay, next(self._seq), callback, handle))
        return handle

    def advance(self, seconds: float) -> None:
        target = self._time + seconds
        while self._queue and self._queue[0][0] <= target + 1e-9:
            when, _, callback, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._time = max(self._time, when)
            callback()
        self._time = target

    @property
    def pending(self) -> int:
        return sum(1 for entry in self._queue if not entry[3].cancelled)


@pytest.fixture
def clock():
    """Simulated clock starting at 2026-01-01 00:00."""
    return FakeClock()


@pytest.fixture
def fires():
    """List collecting one entry per fire."""
    return []


@pytest.fixture
def sent():
    """List collecting messages delivered by nodes."""
    return []


@pytest.fixture
def registry():
    return NodeRegistry()


@pytest.fixture
def make_node(clock, sent):
    """Factory for nodes driven by the fake clock."""
    errors = []

    def factory(node_id="node-1", **config_kwargs):
        config_kwargs.setdefault(
            "props",
            [
                PropertySpec("payload", "hello", PropertyType.STR),
                PropertySpec("topic", "t", PropertyType.STR),
            ],
        )
        node = InjectNode(
            InjectConfig(**config_kwargs),
            send=sent.append,
            node_id=node_id,
            clock=clock,
            on_error=errors.append,
        )
        node.reported_errors = errors
        return node

    return factory


# Configure pytest-asyncio
pytest_plugins = ('pytest_asyncio',)
