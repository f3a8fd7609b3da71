"""
Metrics collection for the event store and its producers.

Provides hooks for counting creates, rejected calls, clears and login
outcomes. Backends are pluggable: no-op (default), in-memory (tests and
debugging) and Prometheus.

Usage:
    from event_api import EventStore
    from event_api.metrics import InMemoryMetrics, MetricsCollector

    backend = InMemoryMetrics()
    store = EventStore(metrics=MetricsCollector(backend))
    store.create("order_created", "Order created: A-1")
    backend.get_counter("event_api_events_created_total", {"event_type": "order_created"})
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge

logger = logging.getLogger(__name__)


class MetricsBackend(ABC):
    """Abstract base class for metrics backends."""

    @abstractmethod
    def increment(self, name: str, value: int = 1, tags: dict[str, str] | None = None) -> None:
        """Increment a counter."""

    @abstractmethod
    def gauge(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        """Set a gauge value."""


class NoopMetrics(MetricsBackend):
    """No-op metrics backend (default when metrics disabled)."""

    def increment(self, name: str, value: int = 1, tags: dict[str, str] | None = None) -> None:
        pass

    def gauge(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        pass


@dataclass
class InMemoryMetrics(MetricsBackend):
    """
    In-memory metrics backend for testing and debugging.

    Stores all metrics in memory for later inspection.
    """

    counters: dict[str, int] = field(default_factory=dict)
    gauges: dict[str, float] = field(default_factory=dict)

    def _key(self, name: str, tags: dict[str, str] | None) -> str:
        if not tags:
            return name
        tag_str = ",".join(f"{k}={v}" for k, v in sorted(tags.items()))
        return f"{name}{{{tag_str}}}"

    def increment(self, name: str, value: int = 1, tags: dict[str, str] | None = None) -> None:
        key = self._key(name, tags)
        self.counters[key] = self.counters.get(key, 0) + value

    def gauge(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        self.gauges[self._key(name, tags)] = value

    def reset(self) -> None:
        """Clear all stored metrics."""
        self.counters.clear()
        self.gauges.clear()

    def get_counter(self, name: str, tags: dict[str, str] | None = None) -> int:
        """Get counter value."""
        return self.counters.get(self._key(name, tags), 0)

    def get_gauge(self, name: str, tags: dict[str, str] | None = None) -> float | None:
        """Get gauge value."""
        return self.gauges.get(self._key(name, tags))


class PrometheusMetrics(MetricsBackend):
    """
    Prometheus metrics backend.

    Label names are fixed on first use of a metric name. Pass a dedicated
    ``CollectorRegistry`` when more than one instance lives in a process.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        self.registry = registry if registry is not None else REGISTRY
        self._counters: dict[str, Counter] = {}
        self._gauges: dict[str, Gauge] = {}

    def _get_counter(self, name: str, labels: list[str]) -> Counter:
        if name not in self._counters:
            self._counters[name] = Counter(
                name, f"{name} counter", labels, registry=self.registry
            )
        return self._counters[name]

    def _get_gauge(self, name: str, labels: list[str]) -> Gauge:
        if name not in self._gauges:
            self._gauges[name] = Gauge(name, f"{name} gauge", labels, registry=self.registry)
        return self._gauges[name]

    def increment(self, name: str, value: int = 1, tags: dict[str, str] | None = None) -> None:
        counter = self._get_counter(name, sorted(tags) if tags else [])
        if tags:
            counter.labels(**tags).inc(value)
        else:
            counter.inc(value)

    def gauge(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        gauge = self._get_gauge(name, sorted(tags) if tags else [])
        if tags:
            gauge.labels(**tags).set(value)
        else:
            gauge.set(value)


class MetricsCollector:
    """
    Named metrics for event API operations.

    Wraps a backend; every ``record_*`` method is safe to call with the
    no-op backend.
    """

    # Metric names
    EVENTS_CREATED = "events_created_total"
    EVENTS_REJECTED = "events_rejected_total"
    EVENTS_CLEARED = "events_cleared_total"
    LOGINS = "logins_total"
    STORED_EVENTS = "stored_events"

    def __init__(
        self,
        backend: MetricsBackend | None = None,
        prefix: str = "event_api",
    ):
        """
        Initialize metrics collector.

        Args:
            backend: Metrics backend (defaults to NoopMetrics)
            prefix: Prefix for all metric names
        """
        self.backend = backend or NoopMetrics()
        self.prefix = prefix

    def _name(self, metric: str) -> str:
        """Get prefixed metric name."""
        return f"{self.prefix}_{metric}" if self.prefix else metric

    def record_event_created(self, event_type: str, stored: int) -> None:
        self.backend.increment(self._name(self.EVENTS_CREATED), tags={"event_type": event_type})
        self.backend.gauge(self._name(self.STORED_EVENTS), float(stored))

    def record_rejection(self, operation: str) -> None:
        self.backend.increment(self._name(self.EVENTS_REJECTED), tags={"operation": operation})

    def record_cleared(self, count: int) -> None:
        self.backend.increment(self._name(self.EVENTS_CLEARED), value=count)
        self.backend.gauge(self._name(self.STORED_EVENTS), 0.0)

    def record_login(self, outcome: str) -> None:
        """Outcome is "success", "failure", "suspicious" or "guest"."""
        self.backend.increment(self._name(self.LOGINS), tags={"outcome": outcome})

    def get_snapshot(self) -> dict[str, Any]:
        """
        Get a snapshot of current metrics.

        Works best with InMemoryMetrics backend.

        Returns:
            Dictionary with metrics summary
        """
        if not isinstance(self.backend, InMemoryMetrics):
            return {"backend": type(self.backend).__name__}

        created: dict[str, int] = {}
        rejected: dict[str, int] = {}
        logins: dict[str, int] = {}
        sections = (
            (self._name(self.EVENTS_CREATED), "event_type", created),
            (self._name(self.EVENTS_REJECTED), "operation", rejected),
            (self._name(self.LOGINS), "outcome", logins),
        )

        for key, value in self.backend.counters.items():
            for prefix, tag_name, bucket in sections:
                if key.startswith(prefix + "{"):
                    tag = self._extract_tag(key, tag_name)
                    if tag:
                        bucket[tag] = bucket.get(tag, 0) + value

        return {
            "events_created": created,
            "events_rejected": rejected,
            "logins": logins,
            "total_events_created": sum(created.values()),
            "total_events_cleared": self.backend.get_counter(self._name(self.EVENTS_CLEARED)),
            "stored_events": self.backend.get_gauge(self._name(self.STORED_EVENTS)),
        }

    def _extract_tag(self, key: str, tag_name: str) -> str | None:
        """Extract a tag value from a metric key."""
        # Keys look like: prefix_metric{tag1=val1,tag2=val2}
        if "{" not in key:
            return None
        tag_part = key.split("{", 1)[1].rstrip("}")
        for pair in tag_part.split(","):
            if "=" in pair:
                name, value = pair.split("=", 1)
                if name == tag_name:
                    return value
        return None
