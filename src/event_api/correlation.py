"""
Correlation ID management.

A correlation ID ties together the audit events produced by one logical
request (for example, the attempt/failure pair of a login). When an ID is
active, the audit layer stamps it into event metadata as ``correlation_id``.

Usage:
    from event_api.correlation import CorrelationContext

    with CorrelationContext("request-abc-123"):
        auth.login("admin", "admin123")
"""

from __future__ import annotations

import logging
import uuid
from contextvars import ContextVar

# Context variable for storing correlation ID in async contexts
_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

logger = logging.getLogger(__name__)


def generate_correlation_id() -> str:
    """Generate a new UUID4 correlation ID."""
    return str(uuid.uuid4())


def get_correlation_id() -> str | None:
    """
    Get the current correlation ID from context.

    Returns:
        The correlation ID if set, None otherwise
    """
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID in the current context."""
    _correlation_id.set(correlation_id)


def clear_correlation_id() -> None:
    """Clear the correlation ID from the current context."""
    _correlation_id.set(None)


class CorrelationContext:
    """
    Context manager for correlation ID management.

    Supports nested contexts by preserving and restoring the previous ID.

    Usage:
        with CorrelationContext("outer"):
            with CorrelationContext("inner"):
                assert get_correlation_id() == "inner"
            assert get_correlation_id() == "outer"
    """

    def __init__(self, correlation_id: str | None = None):
        """
        Initialize correlation context.

        Args:
            correlation_id: Correlation ID to use, or None to generate a new one
        """
        self.correlation_id = correlation_id or generate_correlation_id()
        self.previous_id: str | None = None

    def __enter__(self) -> str:
        self.previous_id = get_correlation_id()
        set_correlation_id(self.correlation_id)
        logger.debug(f"Entered correlation context: {self.correlation_id}")
        return self.correlation_id

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        if self.previous_id:
            set_correlation_id(self.previous_id)
        else:
            clear_correlation_id()
        logger.debug(f"Exited correlation context: {self.correlation_id}")
