"""
Error kinds raised inside the event API.

Internals raise these; the public operations convert them into
``{"success": False, "error": ...}`` dictionaries at the boundary
(see :mod:`event_api.results`). Nothing here ever crosses a public call.
"""

from __future__ import annotations


class EventApiError(Exception):
    """Base class for anticipated failures."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class ValidationError(EventApiError):
    """Raised when input has the wrong shape, type or range."""


class NotFoundError(EventApiError):
    """Raised when a lookup misses."""


class AuthenticationError(EventApiError):
    """Raised when credentials are rejected."""


class SerializationError(EventApiError):
    """Raised when metadata cannot be copied safely (e.g. a cycle)."""


class UnexpectedError(EventApiError):
    """Catch-all for failures nobody anticipated."""
