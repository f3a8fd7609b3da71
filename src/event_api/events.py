"""
Event data model for the event store.

An Event is an immutable, timestamped, typed fact. Types are free-form
strings, but a few conventions are reserved:

    - "audit.*" for security events (audit.login_success, audit.logout, ...)
    - order_created, order_updated, order_cancelled, order_fulfilled
    - poll_engagement

``EventKind`` classifies a type string into one of those families while the
string itself stays the wire representation.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

AUDIT_PREFIX = "audit."

ORDER_CREATED = "order_created"
ORDER_UPDATED = "order_updated"
ORDER_CANCELLED = "order_cancelled"
ORDER_FULFILLED = "order_fulfilled"
ORDER_EVENT_TYPES = frozenset({ORDER_CREATED, ORDER_UPDATED, ORDER_CANCELLED, ORDER_FULFILLED})

POLL_ENGAGEMENT = "poll_engagement"


class EventKind(Enum):
    """Family an event type belongs to."""

    AUDIT = "audit"
    ORDER = "order"
    POLL = "poll"
    CUSTOM = "custom"


def classify_event_type(event_type: str) -> EventKind:
    """
    Classify an event type string.

    Args:
        event_type: Event type (e.g., "audit.login_success", "order_created")

    Returns:
        The EventKind for the type; CUSTOM for anything unreserved
    """
    if event_type.startswith(AUDIT_PREFIX):
        return EventKind.AUDIT
    if event_type in ORDER_EVENT_TYPES:
        return EventKind.ORDER
    if event_type == POLL_ENGAGEMENT:
        return EventKind.POLL
    return EventKind.CUSTOM


def format_timestamp(moment: datetime) -> str:
    """Render a datetime as an ISO-8601 UTC string with a trailing Z."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="microseconds").replace("+00:00", "Z")


def utc_now() -> datetime:
    """Default clock for the store."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class Event:
    """
    Immutable event record.

    The store owns the only reference to a stored Event's metadata; callers
    always receive copies, so freezing the dataclass is enough to keep
    stored events unchanged after insertion.

    Attributes:
        id: Positive integer, unique within a generation
        type: Trimmed event type
        message: Trimmed human-readable message
        metadata: JSON-compatible mapping
        timestamp: ISO-8601 UTC creation time assigned by the store
    """

    id: int
    type: str
    message: str
    metadata: dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: format_timestamp(utc_now()))

    @property
    def kind(self) -> EventKind:
        return classify_event_type(self.type)

    @property
    def created_at(self) -> datetime:
        """Timestamp parsed back into an aware datetime."""
        return datetime.fromisoformat(self.timestamp.replace("Z", "+00:00"))

    def to_dict(self) -> dict[str, Any]:
        """
        Convert event to dictionary representation.

        Returns:
            Dictionary with all event fields (metadata is shared, not copied)
        """
        return {
            "id": self.id,
            "type": self.type,
            "message": self.message,
            "metadata": self.metadata,
            "timestamp": self.timestamp,
        }

    def to_jsonl(self) -> str:
        """
        Serialize event to a single compact JSON line.

        Returns:
            Compact JSON string (single line, no extra whitespace)
        """
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_jsonl(cls, line: str) -> Event:
        """
        Deserialize event from JSONL format.

        Raises:
            json.JSONDecodeError: If line is not valid JSON
            KeyError: If required fields are missing
        """
        data = json.loads(line.strip())
        return cls(
            id=data["id"],
            type=data["type"],
            message=data["message"],
            metadata=data.get("metadata") or {},
            timestamp=data["timestamp"],
        )
