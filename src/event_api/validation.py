"""
Input validation for events and producer payloads.

All checks run before any store mutation. The ``EventValidator`` collects
errors into a ``ValidationResult``; in strict mode (the default, and what the
store uses) the first failing check raises ``ValidationError`` instead.

Usage:
    from event_api.validation import EventValidator

    validator = EventValidator()
    validator.validate_event_type("order_created")  # OK
    validator.validate_event_type("   ")  # Raises ValidationError

    lenient = EventValidator(strict=False)
    result = lenient.validate("", "msg", [])
    result.errors  # both problems listed
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from .errors import ValidationError

TYPE_REQUIRED = "Event type is required and must be a non-empty string"
MESSAGE_REQUIRED = "Event message is required and must be a non-empty string"
METADATA_NOT_OBJECT = "Metadata must be an object"
FILTER_REQUIRED = "Event type must be a non-empty string when provided"
ID_NOT_POSITIVE = "Event ID must be a positive integer"


@dataclass
class ValidationResult:
    """Result of event validation."""

    valid: bool
    errors: list[str]

    @property
    def ok(self) -> bool:
        return self.valid and len(self.errors) == 0


def is_non_empty_string(value: Any) -> bool:
    """True for a str that is not blank after trimming."""
    return isinstance(value, str) and bool(value.strip())


def require_non_empty_string(value: Any, message: str, field: str | None = None) -> str:
    """
    Return ``value`` trimmed, or raise if it is not a non-empty string.

    Raises:
        ValidationError: With ``message`` when the check fails
    """
    if not is_non_empty_string(value):
        raise ValidationError(message, field)
    return value.strip()


def require_mapping(value: Any, message: str, field: str | None = None) -> dict[str, Any]:
    """Raise unless ``value`` is a mapping (lists and None are rejected)."""
    if not isinstance(value, Mapping):
        raise ValidationError(message, field)
    return dict(value)


def is_number(value: Any) -> bool:
    """True for int/float, excluding bool."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_timestamp(value: Any, message: str = "Invalid timestamp format") -> datetime:
    """
    Parse a timestamp into an aware UTC datetime.

    Accepts datetime objects, ISO-8601 strings (a trailing "Z" is allowed)
    and epoch seconds. Naive values are treated as UTC.

    Raises:
        ValidationError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        moment = value
    elif is_number(value):
        try:
            moment = datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise ValidationError(message) from e
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            moment = datetime.fromisoformat(text)
        except ValueError as e:
            raise ValidationError(message) from e
    else:
        raise ValidationError(message)

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


class EventValidator:
    """
    Validates the arguments of store operations.

    Strict mode raises on the first failure; non-strict mode returns every
    failure in a ValidationResult.
    """

    def __init__(self, strict: bool = True):
        """
        Initialize the validator.

        Args:
            strict: If True, raise errors; if False, return validation result
        """
        self.strict = strict

    def validate_event_type(self, event_type: Any) -> ValidationResult:
        errors = [] if is_non_empty_string(event_type) else [TYPE_REQUIRED]
        return self._result(errors)

    def validate_message(self, message: Any) -> ValidationResult:
        errors = [] if is_non_empty_string(message) else [MESSAGE_REQUIRED]
        return self._result(errors)

    def validate_metadata(self, metadata: Any) -> ValidationResult:
        """Metadata must be a plain mapping; arrays and None are rejected."""
        errors = [] if isinstance(metadata, Mapping) else [METADATA_NOT_OBJECT]
        return self._result(errors)

    def validate_type_filter(self, type_filter: Any) -> ValidationResult:
        """A type filter, when given, follows the same rule as a type."""
        errors = [] if is_non_empty_string(type_filter) else [FILTER_REQUIRED]
        return self._result(errors)

    def validate_event_id(self, event_id: Any) -> ValidationResult:
        valid = isinstance(event_id, int) and not isinstance(event_id, bool) and event_id > 0
        return self._result([] if valid else [ID_NOT_POSITIVE])

    def validate(self, event_type: Any, message: Any, metadata: Any) -> ValidationResult:
        """
        Validate all arguments of a create call.

        Returns:
            Combined ValidationResult
        """
        all_errors: list[str] = []
        for check, value in (
            (self.validate_event_type, event_type),
            (self.validate_message, message),
            (self.validate_metadata, metadata),
        ):
            all_errors.extend(check(value).errors)
        return self._result(all_errors)

    def _result(self, errors: list[str]) -> ValidationResult:
        """Create result, optionally raising in strict mode."""
        valid = len(errors) == 0

        if self.strict and not valid:
            raise ValidationError(errors[0])

        return ValidationResult(valid=valid, errors=errors)
