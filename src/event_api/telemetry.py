"""
OpenTelemetry integration for the event API.

Public store operations run inside spans so a configured tracer provider
sees every create/query/clear. Without an SDK the OpenTelemetry API hands out
non-recording spans and all of this costs next to nothing.

Usage:
    from event_api.telemetry import traced

    @traced("orders.create")
    def create_order(...):
        ...
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from opentelemetry import trace
from opentelemetry.trace import SpanKind, Status, StatusCode

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

TRACER_NAME = "event_api"


def get_tracer(name: str = TRACER_NAME) -> trace.Tracer:
    """Get an OpenTelemetry tracer."""
    return trace.get_tracer(name)


def traced(
    span_name: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> Callable[[F], F]:
    """
    Decorator to trace function execution with OpenTelemetry.

    Result dictionaries with ``success`` False mark the span as an error,
    since public operations report failures as values rather than raising.

    Args:
        span_name: Name for the span (defaults to function name)
        attributes: Additional span attributes
    """

    def decorator(func: F) -> F:
        name = span_name or func.__name__

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            tracer = get_tracer()
            with tracer.start_as_current_span(name, kind=SpanKind.INTERNAL) as span:
                if attributes:
                    for key, value in attributes.items():
                        span.set_attribute(key, value)
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    span.record_exception(e)
                    raise
                if isinstance(result, dict) and result.get("success") is False:
                    span.set_status(Status(StatusCode.ERROR, str(result.get("error"))))
                else:
                    span.set_status(Status(StatusCode.OK))
                return result

        return wrapper  # type: ignore[return-value]

    return decorator


def add_event_to_span(name: str, attributes: dict[str, Any] | None = None) -> None:
    """Add an event to the current span, if one is recording."""
    span = trace.get_current_span()
    if span and span.is_recording():
        span.add_event(name, attributes=attributes or {})
