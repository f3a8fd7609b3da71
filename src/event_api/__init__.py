"""
Event API - an in-process event log with audit, order and poll producers.

Features:
- Append-only event store with monotonically increasing ids per generation
- Deep-copy isolation of metadata on write and on read
- Audit events under the reserved "audit.*" namespace with enriched metadata
- Time range queries over audit events
- Order lifecycle and poll engagement producers with upfront validation
- Credential and guest login with an audit event for every attempt
- Uniform {"success": ..., ...} results; no exception crosses a public call
- Metrics with pluggable backends and OpenTelemetry spans

Basic Usage:
    from event_api import build_services

    services = build_services()

    services.auth.login("admin", "admin123")
    services.orders.create_order(
        {"order_id": "A-1", "customer_id": "C-9", "items": [{"sku": "X"}], "total_amount": 10}
    )

    services.audit.query_audit()["count"]  # 2 (attempt + success)
    services.store.query("order_created")["events"][0].metadata["status"]  # "pending"

With Correlation Context:
    from event_api import CorrelationContext

    with CorrelationContext("request-abc-123"):
        services.auth.login("admin", "wrong")  # both audit events carry the ID
"""

from .audit import AuditEventType, AuditTrail, Redactor
from .auth import DEFAULT_USERS, AuthService, User
from .correlation import (
    CorrelationContext,
    clear_correlation_id,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from .errors import (
    AuthenticationError,
    EventApiError,
    NotFoundError,
    SerializationError,
    UnexpectedError,
    ValidationError,
)
from .events import AUDIT_PREFIX, Event, EventKind, classify_event_type
from .metrics import (
    InMemoryMetrics,
    MetricsBackend,
    MetricsCollector,
    NoopMetrics,
    PrometheusMetrics,
)
from .orders import OrderManager, OrderStatus
from .polls import PollEngagementTracker
from .services import Services, build_services
from .store import EventStore
from .telemetry import traced
from .validation import EventValidator, ValidationResult

__version__ = "0.1.0"

__all__ = [
    # Core
    "Event",
    "EventKind",
    "EventStore",
    "classify_event_type",
    "AUDIT_PREFIX",
    # Audit
    "AuditTrail",
    "AuditEventType",
    "Redactor",
    # Producers
    "OrderManager",
    "OrderStatus",
    "PollEngagementTracker",
    "AuthService",
    "User",
    "DEFAULT_USERS",
    # Wiring
    "Services",
    "build_services",
    # Errors
    "EventApiError",
    "ValidationError",
    "NotFoundError",
    "SerializationError",
    "AuthenticationError",
    "UnexpectedError",
    # Validation
    "EventValidator",
    "ValidationResult",
    # Correlation
    "CorrelationContext",
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
    "generate_correlation_id",
    # Metrics
    "MetricsBackend",
    "MetricsCollector",
    "NoopMetrics",
    "InMemoryMetrics",
    "PrometheusMetrics",
    # Telemetry
    "traced",
]
