"""
Order lifecycle events.

Orders are not stored as objects; each call appends one fact to the event
log (order_created, order_updated, order_cancelled, order_fulfilled).
Consequently there is no transition graph and no existence check: updating,
cancelling or fulfilling an order id that was never created is accepted and
logged like any other fact.
"""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Any

from .errors import ValidationError
from .events import (
    ORDER_CANCELLED,
    ORDER_CREATED,
    ORDER_EVENT_TYPES,
    ORDER_FULFILLED,
    ORDER_UPDATED,
    Event,
    format_timestamp,
)
from .metrics import MetricsCollector
from .results import ok, result_boundary
from .store import EventStore, count_rejection
from .telemetry import traced
from .validation import is_number, require_mapping, require_non_empty_string

logger = logging.getLogger(__name__)


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    FULFILLED = "fulfilled"
    CANCELLED = "cancelled"


VALID_STATUSES = tuple(status.value for status in OrderStatus)
STATUS_CHOICES = ", ".join(VALID_STATUSES)

REQUIRED_ORDER_FIELDS = ("order_id", "customer_id", "items", "total_amount")
ORDER_FILTER_FIELDS = ("order_id", "customer_id", "status")


def _status_value(value: Any, message: str) -> str:
    if isinstance(value, OrderStatus):
        return value.value
    if not isinstance(value, str) or value not in VALID_STATUSES:
        raise ValidationError(message)
    return value


class OrderManager:
    """Validates order payloads and records them as order events."""

    def __init__(self, store: EventStore):
        self.store = store

    @property
    def metrics(self) -> MetricsCollector:
        return self.store.metrics

    def _now(self) -> str:
        return format_timestamp(self.store.clock())

    @traced("orders.create")
    @result_boundary(
        "orders.create",
        "An unexpected error occurred while creating the order",
        on_failure=count_rejection,
    )
    def create_order(self, order_data: Any) -> dict[str, Any]:
        """
        Create a new order and record an order_created event.

        Args:
            order_data: dict with order_id, customer_id, items (non-empty
                list), total_amount (non-negative number) and optional status
                (defaults to "pending")

        Returns:
            ``{"success": True, "order": Event, "message": ...}`` or a failure
        """
        if isinstance(order_data, list):
            raise ValidationError("Order data must be an object, not an array")
        data = require_mapping(order_data, "Order data must be an object")

        for name in REQUIRED_ORDER_FIELDS:
            if data.get(name) is None:
                raise ValidationError(f"{name} is required", name)

        order_id = require_non_empty_string(
            data["order_id"], "order_id must be a non-empty string", "order_id"
        )
        customer_id = require_non_empty_string(
            data["customer_id"], "customer_id must be a non-empty string", "customer_id"
        )

        items = data["items"]
        if not isinstance(items, list) or not items:
            raise ValidationError("items must be a non-empty array", "items")

        total_amount = data["total_amount"]
        if not is_number(total_amount) or not math.isfinite(total_amount) or total_amount < 0:
            raise ValidationError("total_amount must be a non-negative number", "total_amount")

        status = _status_value(
            data.get("status") or OrderStatus.PENDING,
            f"status must be one of: {STATUS_CHOICES}",
        )

        metadata = {
            "order_id": order_id,
            "customer_id": customer_id,
            "items": items,
            "total_amount": total_amount,
            "status": status,
            "created_at": self._now(),
        }
        event = self.store.append(ORDER_CREATED, f"Order created: {order_id}", metadata)
        logger.debug(f"Order {order_id} created")
        return ok(order=event, message="Order created successfully")

    @traced("orders.update_status")
    @result_boundary(
        "orders.update_status",
        "An unexpected error occurred while updating the order",
        on_failure=count_rejection,
    )
    def update_order_status(
        self,
        order_id: Any,
        new_status: Any,
        additional_data: Any = None,
    ) -> dict[str, Any]:
        """
        Record an order_updated event.

        Any status may follow any status. ``additional_data`` is merged into
        the metadata after the standard fields.
        """
        order_id = require_non_empty_string(order_id, "orderId must be a non-empty string")
        status = _status_value(new_status, f"newStatus must be one of: {STATUS_CHOICES}")
        extra = (
            {}
            if additional_data is None
            else require_mapping(additional_data, "additionalData must be an object")
        )

        metadata = {
            "order_id": order_id,
            "new_status": status,
            "updated_at": self._now(),
            **extra,
        }
        event = self.store.append(
            ORDER_UPDATED, f"Order status updated: {order_id} -> {status}", metadata
        )
        return ok(order=event, message="Order status updated successfully")

    @traced("orders.cancel")
    @result_boundary(
        "orders.cancel",
        "An unexpected error occurred while cancelling the order",
        on_failure=count_rejection,
    )
    def cancel_order(self, order_id: Any, reason: Any = "") -> dict[str, Any]:
        order_id = require_non_empty_string(order_id, "orderId must be a non-empty string")
        if not isinstance(reason, str):
            raise ValidationError("reason must be a string", "reason")

        metadata = {
            "order_id": order_id,
            "reason": reason.strip(),
            "cancelled_at": self._now(),
        }
        event = self.store.append(ORDER_CANCELLED, f"Order cancelled: {order_id}", metadata)
        return ok(order=event, message="Order cancelled successfully")

    @traced("orders.fulfill")
    @result_boundary(
        "orders.fulfill",
        "An unexpected error occurred while fulfilling the order",
        on_failure=count_rejection,
    )
    def fulfill_order(self, order_id: Any, fulfillment_data: Any = None) -> dict[str, Any]:
        """Record an order_fulfilled event; fulfilment details (tracking etc.) are merged in."""
        order_id = require_non_empty_string(order_id, "orderId must be a non-empty string")
        extra = (
            {}
            if fulfillment_data is None
            else require_mapping(fulfillment_data, "fulfillmentData must be an object")
        )

        metadata = {"order_id": order_id, "fulfilled_at": self._now(), **extra}
        event = self.store.append(ORDER_FULFILLED, f"Order fulfilled: {order_id}", metadata)
        return ok(order=event, message="Order fulfilled successfully")

    @traced("orders.query")
    @result_boundary(
        "orders.query",
        "An unexpected error occurred while retrieving order events",
        on_failure=count_rejection,
    )
    def get_order_events(self, filters: Any = None) -> dict[str, Any]:
        """
        Order events in insertion order, optionally filtered.

        Args:
            filters: dict with optional order_id, customer_id and status.
                A status matches either ``status`` (creation) or
                ``new_status`` (update).
        """
        criteria = {} if filters is None else require_mapping(filters, "Filters must be an object")
        wanted: dict[str, str] = {}
        for name in ORDER_FILTER_FIELDS:
            value = criteria.get(name)
            if value is None:
                continue
            if isinstance(value, OrderStatus):
                value = value.value
            wanted[name] = require_non_empty_string(
                value, f"{name} filter must be a non-empty string when provided", name
            )

        def matches(event: Event) -> bool:
            if event.type not in ORDER_EVENT_TYPES:
                return False
            meta = event.metadata
            if "order_id" in wanted and meta.get("order_id") != wanted["order_id"]:
                return False
            if "customer_id" in wanted and meta.get("customer_id") != wanted["customer_id"]:
                return False
            if "status" in wanted and wanted["status"] not in (
                meta.get("status"),
                meta.get("new_status"),
            ):
                return False
            return True

        events = self.store.select(predicate=matches)
        return ok(events=events, count=len(events))
