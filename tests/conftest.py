"""
Pytest configuration for event API tests.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now += timedelta(**delta)
        return self.now


@pytest.fixture
def clock():
    """A manual clock starting at 2024-01-15T10:00:00Z."""
    return ManualClock(datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def metrics_backend():
    from event_api import InMemoryMetrics

    return InMemoryMetrics()


@pytest.fixture
def store(clock, metrics_backend):
    """Create a fresh EventStore with a manual clock and in-memory metrics."""
    from event_api import EventStore, MetricsCollector

    return EventStore(clock=clock, metrics=MetricsCollector(metrics_backend))


@pytest.fixture
def audit(store):
    from event_api import AuditTrail

    return AuditTrail(store)


@pytest.fixture
def services(clock, metrics_backend):
    """All components wired to one fresh store."""
    from event_api import MetricsCollector, build_services

    return build_services(clock=clock, metrics=MetricsCollector(metrics_backend))
