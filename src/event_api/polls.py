"""
Poll engagement events.

Each call records one independent fact (vote cast, changed or removed) as a
``poll_engagement`` event. Metadata always has the same seven keys;
optional ones are None rather than missing.
"""

from __future__ import annotations

import logging
from typing import Any

from .errors import ValidationError
from .events import POLL_ENGAGEMENT, Event
from .metrics import MetricsCollector
from .results import ok, result_boundary
from .store import EventStore, count_rejection
from .telemetry import traced
from .validation import is_non_empty_string, parse_timestamp, require_mapping

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("event_type", "poll_id", "user_id", "new_choice", "timestamp")
OPTIONAL_FIELDS = ("previous_choice", "session_id")
FILTER_FIELDS = ("poll_id", "user_id", "event_type")


def _optional(payload: dict[str, Any], name: str) -> str | None:
    value = payload.get(name)
    return value.strip() if is_non_empty_string(value) else None


class PollEngagementTracker:
    """Records and retrieves poll engagement events."""

    def __init__(self, store: EventStore):
        self.store = store

    @property
    def metrics(self) -> MetricsCollector:
        return self.store.metrics

    @traced("polls.track")
    @result_boundary("polls.track", on_failure=count_rejection)
    def track_poll_engagement(self, payload: Any) -> dict[str, Any]:
        """
        Track a poll engagement.

        Args:
            payload: dict with event_type (e.g. "vote_cast", "vote_changed",
                "vote_removed"), poll_id, user_id, new_choice, timestamp
                (ISO-8601) and optional previous_choice and session_id

        Returns:
            ``{"success": True, "event": Event, "message": ...}`` or a failure
        """
        if not isinstance(payload, dict):
            raise ValidationError("Payload must be an object")

        for name in REQUIRED_FIELDS:
            if not is_non_empty_string(payload.get(name)):
                raise ValidationError(f"{name} is required and must be a non-empty string", name)

        parse_timestamp(payload["timestamp"].strip(), "Invalid timestamp format")

        engagement = {
            "event_type": payload["event_type"].strip(),
            "poll_id": payload["poll_id"].strip(),
            "user_id": payload["user_id"].strip(),
            "previous_choice": _optional(payload, "previous_choice"),
            "new_choice": payload["new_choice"].strip(),
            "timestamp": payload["timestamp"].strip(),
            "session_id": _optional(payload, "session_id"),
        }
        event = self.store.append(
            POLL_ENGAGEMENT, f"Poll engagement: {engagement['event_type']}", engagement
        )
        logger.debug(f"Poll {engagement['poll_id']} engagement by {engagement['user_id']}")
        return ok(event=event, message="Poll engagement tracked successfully")

    @traced("polls.query")
    @result_boundary("polls.query", on_failure=count_rejection)
    def get_poll_engagement_events(self, filters: Any = None) -> dict[str, Any]:
        """
        Poll engagement events, optionally narrowed by poll_id, user_id and
        event_type (exact matches; empty values are ignored).
        """
        criteria = {} if filters is None else require_mapping(filters, "Filters must be an object")
        wanted = {name: criteria[name] for name in FILTER_FIELDS if criteria.get(name)}

        def matches(event: Event) -> bool:
            return all(event.metadata.get(name) == value for name, value in wanted.items())

        events = self.store.select(POLL_ENGAGEMENT, predicate=matches)
        return ok(events=events, count=len(events))
