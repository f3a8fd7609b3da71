"""
Event Store - the append-only event log.

The store is the sole owner of the event sequence and the id counter. All
producers (audit, orders, polls, auth) write through it.

Guarantees:
- ids run 1..N within a generation; ``clear_all`` starts a new generation
- metadata is deep-copied on the way in and on the way out, so no caller can
  reach stored state through a reference
- validation happens before any mutation; a failed call changes nothing
- one lock serialises writers, so concurrent creates get ids in the order
  they entered the critical section

Usage:
    from event_api import EventStore

    store = EventStore()
    store.create("login", "User logged in", {"username": "alice"})
    store.query("login")["count"]  # 1
    store.get_by_id(1)["event"].metadata  # {"username": "alice"}
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from collections.abc import Callable
from datetime import datetime
from typing import Any

from .copying import clone_json
from .errors import NotFoundError
from .events import Event, format_timestamp, utc_now
from .metrics import MetricsCollector
from .results import ok, result_boundary
from .telemetry import traced
from .validation import EventValidator

logger = logging.getLogger(__name__)

# Distinguishes "metadata omitted" from an explicit None, which is rejected
_UNSET: Any = object()

Clock = Callable[[], datetime]
EventPredicate = Callable[[Event], bool]


def count_rejection(component: Any, operation: str, error: BaseException) -> None:
    """``result_boundary`` hook: count a failed public call."""
    component.metrics.record_rejection(operation)


class EventStore:
    """
    In-memory, append-only store of immutable events.

    Public methods (``create``, ``query``, ``get_by_id``, ``count``,
    ``clear_all``) return result dictionaries and never raise. The raising
    counterparts (``append``, ``select``, ``find``, ``tally``) are for other
    components of this package, which convert errors at their own boundary.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        metrics: MetricsCollector | None = None,
        validator: EventValidator | None = None,
    ):
        """
        Initialize the store.

        Args:
            clock: Returns the current time; defaults to UTC now
            metrics: Optional MetricsCollector (defaults to no-op)
            validator: Strict EventValidator used for every write and lookup
        """
        self.clock = clock or utc_now
        self.metrics = metrics or MetricsCollector()
        self._validator = validator or EventValidator(strict=True)

        self._lock = threading.RLock()
        self._events: list[Event] = []
        self._next_id = 1

    # ------------------------------------------------------------------
    # Raising API (used inside the package)
    # ------------------------------------------------------------------

    def append(self, event_type: Any, message: Any, metadata: Any = _UNSET) -> Event:
        """
        Validate and store a new event.

        Returns:
            A copy of the stored event

        Raises:
            ValidationError: Bad type, message or metadata
            SerializationError: Metadata contains a cycle
        """
        if metadata is _UNSET:
            metadata = {}
        self._validator.validate(event_type, message, metadata)
        # Copy before taking the lock; a cycle fails here, before any mutation
        stored_metadata = clone_json(dict(metadata))

        with self._lock:
            event = Event(
                id=self._next_id,
                type=event_type.strip(),
                message=message.strip(),
                metadata=stored_metadata,
                timestamp=format_timestamp(self.clock()),
            )
            self._events.append(event)
            self._next_id += 1
            stored = len(self._events)

        logger.debug(f"Stored event {event.id} ({event.type})")
        self.metrics.record_event_created(event.type, stored)
        return self._copy(event)

    def select(
        self,
        type_filter: Any = None,
        predicate: EventPredicate | None = None,
    ) -> list[Event]:
        """
        Copies of stored events in insertion order.

        Args:
            type_filter: Exact type to match (trimmed); None for all
            predicate: Extra condition applied to each event

        Raises:
            ValidationError: If type_filter is given but blank or not a string
        """
        matches = self._matching(type_filter, predicate)
        return [self._copy(event) for event in matches]

    def find(self, event_id: Any) -> Event:
        """
        Copy of the event with the given id.

        Raises:
            ValidationError: If event_id is not a positive integer
            NotFoundError: If no event in this generation has that id
        """
        self._validator.validate_event_id(event_id)
        with self._lock:
            for event in self._events:
                if event.id == event_id:
                    return self._copy(event)
        raise NotFoundError(f"Event with ID {event_id} not found")

    def tally(self, type_filter: Any = None, predicate: EventPredicate | None = None) -> int:
        """Number of matching events; nothing is copied."""
        return len(self._matching(type_filter, predicate))

    def reset(self) -> int:
        """Drop every event and restart ids at 1. Returns the number removed."""
        with self._lock:
            removed = len(self._events)
            self._events.clear()
            self._next_id = 1
        logger.info(f"Cleared {removed} event(s)")
        self.metrics.record_cleared(removed)
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    # ------------------------------------------------------------------
    # Public API (result dictionaries)
    # ------------------------------------------------------------------

    @traced("event_store.create")
    @result_boundary("event_store.create", on_failure=count_rejection)
    def create(self, event_type: Any, message: Any, metadata: Any = _UNSET) -> dict[str, Any]:
        """
        Create a new event.

        Args:
            event_type: Type of event (e.g., "login", "order_created")
            message: Description of the event
            metadata: Optional dict of JSON-compatible values

        Returns:
            ``{"success": True, "event": Event, "message": ...}`` or a failure
        """
        event = self.append(event_type, message, metadata)
        return ok(event=event, message="Event created successfully")

    @traced("event_store.query")
    @result_boundary("event_store.query", on_failure=count_rejection)
    def query(self, type_filter: Any = None) -> dict[str, Any]:
        """
        Retrieve all events, or only those whose type equals the filter.

        Returns:
            ``{"success": True, "events": [...], "count": n}`` or a failure
        """
        events = self.select(type_filter)
        return ok(events=events, count=len(events))

    @traced("event_store.get_by_id")
    @result_boundary("event_store.get_by_id", on_failure=count_rejection)
    def get_by_id(self, event_id: Any) -> dict[str, Any]:
        """Retrieve a specific event by id."""
        return ok(event=self.find(event_id))

    @traced("event_store.count")
    @result_boundary("event_store.count", on_failure=count_rejection)
    def count(self, type_filter: Any = None) -> dict[str, Any]:
        """Count events, optionally filtered by type."""
        total = self.tally(type_filter)
        if type_filter is None:
            return ok(count=total)
        return ok(count=total, type=type_filter.strip())

    @traced("event_store.clear_all")
    @result_boundary("event_store.clear_all", on_failure=count_rejection)
    def clear_all(self) -> dict[str, Any]:
        """Clear all events and reset the id counter."""
        removed = self.reset()
        return ok(count=removed, message=f"Cleared {removed} event(s)")

    # ------------------------------------------------------------------

    def _matching(self, type_filter: Any, predicate: EventPredicate | None) -> list[Event]:
        if type_filter is not None:
            self._validator.validate_type_filter(type_filter)
            wanted = type_filter.strip()
        else:
            wanted = None

        with self._lock:
            return [
                event
                for event in self._events
                if (wanted is None or event.type == wanted)
                and (predicate is None or predicate(event))
            ]

    @staticmethod
    def _copy(event: Event) -> Event:
        return dataclasses.replace(event, metadata=clone_json(event.metadata))
