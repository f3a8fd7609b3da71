#!/usr/bin/env python3
"""
Walk through the event API against one in-memory store.

Usage:
    python examples/demo.py                 # every section
    python examples/demo.py login orders    # selected sections
    python examples/demo.py --verbose audit # with debug logging
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import timedelta
from typing import Any

from event_api import (
    AuditEventType,
    CorrelationContext,
    InMemoryMetrics,
    MetricsCollector,
    Redactor,
    Services,
    build_services,
)
from event_api.events import utc_now

SECTIONS = ("login", "orders", "polls", "audit")


def show(label: str, result: dict[str, Any]) -> None:
    print(f"{label}:")
    if not result["success"]:
        print(f"  error: {result['error']}")
        return
    for key, value in result.items():
        if key == "success":
            continue
        if key == "events":
            for event in value:
                print(f"  - [{event.id}] {event.type}: {event.message}")
        else:
            print(f"  {key}: {value}")


def demo_login(services: Services) -> None:
    auth = services.auth
    show("Valid credentials", auth.login("admin", "admin123"))
    show("Unknown username", auth.login("wronguser", "admin123"))
    show("Wrong password", auth.login("admin", "wrongpass"))
    show("Empty username", auth.login("", "admin123"))
    show("Invalid characters", auth.login("admin'--", "x"))
    show("Guest", auth.guest_login())


def demo_orders(services: Services) -> None:
    orders = services.orders
    show(
        "Create order",
        orders.create_order(
            {
                "order_id": "ORD-001",
                "customer_id": "CUST-123",
                "items": [{"product_id": "PROD-1", "quantity": 2, "price": 29.99}],
                "total_amount": 59.98,
            }
        ),
    )
    show("Start processing", orders.update_order_status("ORD-001", "processing"))
    show("Fulfil", orders.fulfill_order("ORD-001", {"tracking_number": "TRACK123"}))
    show("Unknown status", orders.update_order_status("ORD-001", "shipped"))
    show("History of ORD-001", orders.get_order_events({"order_id": "ORD-001"}))


def demo_polls(services: Services) -> None:
    polls = services.polls
    timestamp = "2024-01-15T10:30:00.000Z"
    show(
        "Vote cast",
        polls.track_poll_engagement(
            {
                "event_type": "vote_cast",
                "poll_id": "poll_12345",
                "user_id": "user_abc",
                "new_choice": "option_a",
                "timestamp": timestamp,
            }
        ),
    )
    show(
        "Vote changed",
        polls.track_poll_engagement(
            {
                "event_type": "vote_changed",
                "poll_id": "poll_12345",
                "user_id": "user_abc",
                "previous_choice": "option_a",
                "new_choice": "option_b",
                "timestamp": timestamp,
                "session_id": "session_xyz",
            }
        ),
    )
    show("Missing poll_id", polls.track_poll_engagement({"event_type": "vote_cast"}))
    show("Engagement for poll_12345", polls.get_poll_engagement_events({"poll_id": "poll_12345"}))


def demo_audit(services: Services) -> None:
    audit = services.audit
    started = utc_now() - timedelta(minutes=1)
    with CorrelationContext() as correlation_id:
        print(f"correlation_id: {correlation_id}")
        services.auth.login("demo", "demo123")
        show(
            "Password change",
            audit.create_audit(
                AuditEventType.PASSWORD_CHANGED,
                "Password changed",
                {"username": "demo", "password": "n3w-s3cret"},
            ),
        )
    show("All audit events", audit.query_audit())
    show("Login successes", audit.count_audit(AuditEventType.LOGIN_SUCCESS))
    show("Last minute", audit.query_by_time_range(started, utc_now()))


def main() -> int:
    parser = argparse.ArgumentParser(description="Event API walkthrough")
    parser.add_argument("sections", nargs="*", help=f"Any of: {', '.join(SECTIONS)}")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()
    unknown = [s for s in args.sections if s not in SECTIONS]
    if unknown:
        parser.error(f"unknown section(s): {', '.join(unknown)}")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    backend = InMemoryMetrics()
    services = build_services(metrics=MetricsCollector(backend), redactor=Redactor())
    handlers = {
        "login": demo_login,
        "orders": demo_orders,
        "polls": demo_polls,
        "audit": demo_audit,
    }

    for section in args.sections or SECTIONS:
        print(f"\n=== {section} ===")
        handlers[section](services)

    print("\n=== metrics ===")
    for key, value in services.store.metrics.get_snapshot().items():
        print(f"  {key}: {value}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
