"""
Audit layer for security events.

Audit events are ordinary store events under the reserved ``audit.`` type
namespace whose metadata always carries ``severity``, ``source`` and
``auditTimestamp``. This module also provides the optional Redactor, which
scrubs secrets and PII out of caller metadata before it reaches the store.

Usage:
    from event_api import AuditTrail, AuditEventType, EventStore

    audit = AuditTrail(EventStore())
    audit.create_audit(AuditEventType.LOGOUT, "User logged out", {"username": "alice"})
    audit.query_audit()["count"]  # 1
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Any

from .copying import clone_json
from .correlation import get_correlation_id
from .errors import ValidationError
from .events import Event, EventKind, format_timestamp
from .metrics import MetricsCollector
from .results import ok, result_boundary
from .store import EventStore, count_rejection
from .telemetry import traced
from .validation import METADATA_NOT_OBJECT, parse_timestamp, require_mapping

logger = logging.getLogger(__name__)

DEFAULT_SEVERITY = "info"
DEFAULT_SOURCE = "system"


class AuditEventType(str, Enum):
    """Reserved audit event types."""

    LOGIN_ATTEMPT = "audit.login_attempt"
    LOGIN_SUCCESS = "audit.login_success"
    LOGIN_FAILURE = "audit.login_failure"
    LOGOUT = "audit.logout"
    SUSPICIOUS_ACTIVITY = "audit.suspicious_activity"
    ACCESS_DENIED = "audit.access_denied"
    PASSWORD_CHANGED = "audit.password_changed"


def is_audit_event(event: Event) -> bool:
    return event.kind is EventKind.AUDIT


class Redactor:
    """
    Secret and PII redaction for audit metadata.

    Values under sensitive keys are replaced wholesale; string values
    anywhere else are scanned with regex patterns.

    Usage:
        redactor = Redactor()
        safe_metadata = redactor.redact(metadata)
    """

    DEFAULT_PATTERNS: list[tuple[str, str]] = [
        (r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}", "[REDACTED_EMAIL]"),
        (r"\b\d{4}[-\s]?\d{4}[-\s]?\d{4}[-\s]?\d{4}\b", "[REDACTED_CC]"),
        (r"Bearer\s+[a-zA-Z0-9._-]+", "[REDACTED_BEARER]"),
        (r"\beyJ[A-Za-z0-9_-]*\.eyJ[A-Za-z0-9_-]*\.[A-Za-z0-9_-]*\b", "[REDACTED_JWT]"),
        (r"\b(sk|pk|api|key|token|secret)[-_]?[a-zA-Z0-9]{20,}\b", "[REDACTED_KEY]"),
        (r"://[^:/@\s]+:[^@\s]+@", "://[REDACTED]:[REDACTED]@"),
    ]

    DEFAULT_REDACT_KEYS = frozenset(
        {
            "password",
            "passwd",
            "pwd",
            "secret",
            "token",
            "access_token",
            "refresh_token",
            "api_key",
            "authorization",
            "credentials",
            "private_key",
            "ssn",
            "credit_card",
            "card_number",
            "cvv",
            "session_key",
            "cookie",
        }
    )

    def __init__(
        self,
        enabled: bool = True,
        patterns: list[tuple[str, str]] | None = None,
        redact_keys: set[str] | frozenset[str] | None = None,
    ):
        """
        Initialize the redactor.

        Args:
            enabled: Whether redaction is active
            patterns: Regex patterns as (pattern, replacement) tuples
            redact_keys: Keys whose values are always redacted (case-insensitive)
        """
        self.enabled = enabled
        self.patterns = patterns or self.DEFAULT_PATTERNS.copy()
        self.redact_keys = {k.lower() for k in (redact_keys or self.DEFAULT_REDACT_KEYS)}
        self._compiled = [(re.compile(p, re.IGNORECASE), r) for p, r in self.patterns]

    def redact_string(self, value: str) -> str:
        if not self.enabled:
            return value

        result = value
        for pattern, replacement in self._compiled:
            result = pattern.sub(replacement, result)
        return result

    def redact(self, data: dict[str, Any]) -> dict[str, Any]:
        """
        Redact a metadata dict.

        Args:
            data: Dictionary to redact (not modified in place)

        Returns:
            New dictionary with sensitive data redacted
        """
        if not self.enabled:
            return data
        return self._redact_recursive(data)

    def _redact_recursive(self, obj: Any) -> Any:
        if isinstance(obj, dict):
            return {
                key: "[REDACTED]"
                if str(key).lower() in self.redact_keys
                else self._redact_recursive(value)
                for key, value in obj.items()
            }
        if isinstance(obj, list):
            return [self._redact_recursive(item) for item in obj]
        if isinstance(obj, str):
            return self.redact_string(obj)
        return obj


class AuditTrail:
    """
    Audit facade over an EventStore.

    The trail enriches metadata and queries the ``audit.`` namespace. It does
    not enforce the prefix on writes; callers pass AuditEventType values.

    Query asymmetry: ``query_audit()`` without a filter returns only
    audit-prefixed events, while ``query_audit(t)`` is an exact-type query
    over every event, prefixed or not.
    """

    def __init__(
        self,
        store: EventStore,
        redactor: Redactor | None = None,
        default_source: str = DEFAULT_SOURCE,
    ):
        """
        Initialize the audit trail.

        Args:
            store: EventStore that holds the audit events
            redactor: Optional Redactor for caller metadata (default: disabled)
            default_source: ``source`` used when the caller gives none
        """
        self.store = store
        self.redactor = redactor or Redactor(enabled=False)
        self.default_source = default_source

    @property
    def metrics(self) -> MetricsCollector:
        return self.store.metrics

    def record(self, event_type: Any, message: Any, metadata: Any = None) -> Event:
        """
        Raising counterpart of ``create_audit``.

        Raises:
            ValidationError: Invalid type, message or metadata
            SerializationError: Metadata contains a cycle
        """
        caller = {} if metadata is None else require_mapping(metadata, METADATA_NOT_OBJECT)
        caller = self.redactor.redact(clone_json(caller))

        enriched = {
            **caller,
            "severity": caller.get("severity") or DEFAULT_SEVERITY,
            "source": caller.get("source") or self.default_source,
            "auditTimestamp": format_timestamp(self.store.clock()),
        }
        correlation_id = get_correlation_id()
        if correlation_id and "correlation_id" not in enriched:
            enriched["correlation_id"] = correlation_id

        return self.store.append(event_type, message, enriched)

    def select_audit(self, type_filter: Any = None) -> list[Event]:
        if type_filter is None:
            return self.store.select(predicate=is_audit_event)
        return self.store.select(type_filter)

    @traced("audit.create")
    @result_boundary("audit.create", on_failure=count_rejection)
    def create_audit(self, event_type: Any, message: Any, metadata: Any = None) -> dict[str, Any]:
        """
        Create an audit event with enriched metadata.

        Caller-supplied ``severity``/``source`` take precedence over the
        defaults; ``auditTimestamp`` is always set here.
        """
        event = self.record(event_type, message, metadata)
        return ok(event=event, message="Audit event created successfully")

    @traced("audit.query")
    @result_boundary("audit.query", on_failure=count_rejection)
    def query_audit(self, type_filter: Any = None) -> dict[str, Any]:
        events = self.select_audit(type_filter)
        return ok(events=events, count=len(events))

    @traced("audit.count")
    @result_boundary("audit.count", on_failure=count_rejection)
    def count_audit(self, type_filter: Any = None) -> dict[str, Any]:
        if type_filter is None:
            return ok(count=self.store.tally(predicate=is_audit_event))
        return ok(count=self.store.tally(type_filter), type=type_filter.strip())

    @traced("audit.query_by_time_range")
    @result_boundary("audit.query_by_time_range", on_failure=count_rejection)
    def query_by_time_range(self, start: Any, end: Any) -> dict[str, Any]:
        """
        Audit events whose timestamp lies in ``[start, end]``.

        Args:
            start: datetime, ISO-8601 string or epoch seconds (not milliseconds)
            end: same forms as start

        Returns:
            ``{"success": True, "events", "count", "time_range": {"start", "end"}}``
        """
        start_at = parse_timestamp(start, "Invalid start time")
        end_at = parse_timestamp(end, "Invalid end time")
        if start_at > end_at:
            raise ValidationError("Start time must be before or equal to end time")

        events = [
            event
            for event in self.store.select(predicate=is_audit_event)
            if start_at <= event.created_at <= end_at
        ]
        return ok(
            events=events,
            count=len(events),
            time_range={"start": format_timestamp(start_at), "end": format_timestamp(end_at)},
        )
