"""
Uniform result shape for public operations.

Every public call returns a plain dict:

    {"success": True, ...payload}
    {"success": False, "error": "..."}

The ``result_boundary`` decorator is where internal exceptions become
failure values.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from .errors import EventApiError, UnexpectedError
from .telemetry import add_event_to_span

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., dict[str, Any]])

GENERIC_ERROR = "An unexpected error occurred"


def ok(**payload: Any) -> dict[str, Any]:
    """Build a success result."""
    return {"success": True, **payload}


def fail(error: str) -> dict[str, Any]:
    """Build a failure result."""
    return {"success": False, "error": error}


def result_boundary(
    operation: str,
    fallback_message: str = GENERIC_ERROR,
    on_failure: Callable[[Any, str, BaseException], None] | None = None,
) -> Callable[[F], F]:
    """
    Convert exceptions raised by a public method into failure results.

    Args:
        operation: Name used in log lines
        fallback_message: Message returned for unanticipated exceptions;
            the exception text itself never reaches the caller
        on_failure: Optional hook called as ``on_failure(self, operation, exc)``
            before the failure is returned; unanticipated exceptions arrive
            wrapped in UnexpectedError

    Usage:
        class Store:
            @result_boundary("store.create")
            def create(self, ...):
                ...
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(self: Any, *args: Any, **kwargs: Any) -> dict[str, Any]:
            try:
                return func(self, *args, **kwargs)
            except EventApiError as e:
                logger.warning(f"{operation} rejected: {e}")
                add_event_to_span("rejected", {"operation": operation, "error": str(e)})
                if on_failure is not None:
                    on_failure(self, operation, e)
                return fail(str(e))
            except Exception as e:  # nosec - internal failures never cross the boundary
                logger.exception(f"Unexpected error in {operation}")
                error = UnexpectedError(fallback_message)
                error.__cause__ = e
                add_event_to_span("unexpected_error", {"operation": operation})
                if on_failure is not None:
                    on_failure(self, operation, error)
                return fail(str(error))

        return wrapper  # type: ignore[return-value]

    return decorator
