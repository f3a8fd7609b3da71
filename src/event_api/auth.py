"""
Authentication against a static user list.

The service itself keeps no state; every attempt, successful or not, leaves
an audit trail in the event store. Checks run in a fixed order and each one
short-circuits with its own audit event:

    1. both arguments are strings            -> audit.login_failure
    2. raw length <= max_input_length        -> audit.suspicious_activity
    3. non-empty after trimming              -> audit.login_failure
    4. username matches USERNAME_PATTERN     -> audit.suspicious_activity
    5. audit.login_attempt
    6. known user, 7. matching password      -> audit.login_failure
    8. audit.login_success

Unknown users and wrong passwords produce the same error message so callers
cannot probe which usernames exist.
"""

from __future__ import annotations

import logging
import re
import secrets
from dataclasses import dataclass
from typing import Any, NoReturn

from .audit import AuditEventType, AuditTrail
from .errors import AuthenticationError, UnexpectedError, ValidationError
from .metrics import MetricsCollector
from .results import ok, result_boundary
from .telemetry import traced

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9._-]+$")
MAX_INPUT_LENGTH = 255
INVALID_CREDENTIALS = "Invalid username or password"
GUEST_ROLE = "guest"
AUDIT_SOURCE = "auth_service"


@dataclass(frozen=True)
class User:
    username: str
    password: str
    role: str


DEFAULT_USERS: tuple[User, ...] = (
    User("admin", "admin123", "administrator"),
    User("user", "user123", "user"),
    User("demo", "demo123", "user"),
)


def _audit_unexpected_failure(service: AuthService, operation: str, error: BaseException) -> None:
    """``result_boundary`` hook: anticipated failures were audited already."""
    if not isinstance(error, UnexpectedError):
        return
    service.metrics.record_login("suspicious")
    try:
        service.audit.record(
            AuditEventType.SUSPICIOUS_ACTIVITY,
            "Unexpected error during login",
            {"reason": "unexpected_error", "severity": "error", "source": AUDIT_SOURCE},
        )
    except Exception:  # nosec - the caller still gets the generic failure
        logger.exception("Failed to audit unexpected login error")


class AuthService:
    """
    Credential check and guest identity generation.

    Usage:
        auth = AuthService(AuditTrail(EventStore()))
        auth.login("admin", "admin123")
        # {"success": True, "user": {"username": "admin", "role": "administrator"}, ...}
    """

    def __init__(
        self,
        audit: AuditTrail,
        users: tuple[User, ...] | list[User] = DEFAULT_USERS,
        max_input_length: int = MAX_INPUT_LENGTH,
    ):
        """
        Initialize the service.

        Args:
            audit: AuditTrail receiving login audit events
            users: Known users (copied into an immutable tuple)
            max_input_length: Longest accepted raw username/password
        """
        self.audit = audit
        self.users = tuple(users)
        self.max_input_length = max_input_length

    @property
    def metrics(self) -> MetricsCollector:
        return self.audit.metrics

    @traced("auth.login")
    @result_boundary(
        "auth.login",
        "An unexpected error occurred during login",
        on_failure=_audit_unexpected_failure,
    )
    def login(self, username: Any, password: Any) -> dict[str, Any]:
        """
        Authenticate a user.

        Returns:
            ``{"success": True, "user": {"username", "role"}, "message": ...}``
            or a failure; the password is never returned or logged
        """
        if not isinstance(username, str):
            self._reject(
                AuditEventType.LOGIN_FAILURE,
                "Login failed: invalid username type",
                {"reason": "invalid_username_type"},
                "Username is required and must be a string",
            )
        if not isinstance(password, str):
            self._reject(
                AuditEventType.LOGIN_FAILURE,
                "Login failed: invalid password type",
                {"reason": "invalid_password_type"},
                "Password is required and must be a string",
            )

        # Raw lengths, checked before trimming
        if len(username) > self.max_input_length:
            self._reject(
                AuditEventType.SUSPICIOUS_ACTIVITY,
                "Login rejected: username too long",
                {"reason": "username_too_long", "username_length": len(username)},
                f"Username exceeds maximum length of {self.max_input_length} characters",
            )
        if len(password) > self.max_input_length:
            self._reject(
                AuditEventType.SUSPICIOUS_ACTIVITY,
                "Login rejected: password too long",
                {"reason": "password_too_long", "password_length": len(password)},
                f"Password exceeds maximum length of {self.max_input_length} characters",
            )

        username = username.strip()
        password = password.strip()

        if not username:
            self._reject(
                AuditEventType.LOGIN_FAILURE,
                "Login failed: empty username",
                {"reason": "empty_username"},
                "Username cannot be empty",
            )
        if not password:
            self._reject(
                AuditEventType.LOGIN_FAILURE,
                "Login failed: empty password",
                {"reason": "empty_password", "username": username},
                "Password cannot be empty",
            )

        if not USERNAME_PATTERN.match(username):
            self._reject(
                AuditEventType.SUSPICIOUS_ACTIVITY,
                "Login rejected: invalid characters in username",
                {"reason": "invalid_characters", "username_length": len(username)},
                "Username contains invalid characters",
            )

        self._audit(
            AuditEventType.LOGIN_ATTEMPT,
            f"Login attempt for user: {username}",
            {"username": username},
        )

        user = next((u for u in self.users if u.username == username), None)
        if user is None:
            self._reject(
                AuditEventType.LOGIN_FAILURE,
                f"Login failed for user: {username}",
                {"reason": "user_not_found", "username": username},
                INVALID_CREDENTIALS,
                authentication=True,
            )

        if not secrets.compare_digest(user.password.encode(), password.encode()):
            self._reject(
                AuditEventType.LOGIN_FAILURE,
                f"Login failed for user: {username}",
                {"reason": "incorrect_password", "username": username},
                INVALID_CREDENTIALS,
                authentication=True,
            )

        self._audit(
            AuditEventType.LOGIN_SUCCESS,
            f"User logged in: {username}",
            {"username": user.username, "role": user.role},
        )
        self.metrics.record_login("success")
        logger.info(f"User {user.username} logged in")
        return ok(
            user={"username": user.username, "role": user.role},
            message="Login successful",
        )

    @traced("auth.guest_login")
    @result_boundary("auth.guest_login", on_failure=_audit_unexpected_failure)
    def guest_login(self) -> dict[str, Any]:
        """
        Issue a guest identity.

        The username is ``guest_<unix seconds>_<8 hex chars>`` with the hex
        part drawn from ``secrets``; collisions are improbable, not impossible.
        """
        issued_at = int(self.audit.store.clock().timestamp())
        username = f"guest_{issued_at}_{secrets.token_hex(4)}"

        self._audit(
            AuditEventType.LOGIN_SUCCESS,
            f"Guest logged in: {username}",
            {"username": username, "role": GUEST_ROLE, "login_type": "guest"},
        )
        self.metrics.record_login("guest")
        return ok(
            user={"username": username, "role": GUEST_ROLE},
            message="Guest login successful",
        )

    # ------------------------------------------------------------------

    def _audit(self, event_type: AuditEventType, message: str, metadata: dict[str, Any]) -> None:
        self.audit.record(event_type, message, {"source": AUDIT_SOURCE, **metadata})

    def _reject(
        self,
        event_type: AuditEventType,
        message: str,
        metadata: dict[str, Any],
        error: str,
        authentication: bool = False,
    ) -> NoReturn:
        """Audit a refused attempt, then raise the caller-facing error."""
        suspicious = event_type is AuditEventType.SUSPICIOUS_ACTIVITY
        self._audit(event_type, message, {"severity": "warning", **metadata})
        self.metrics.record_login("suspicious" if suspicious else "failure")
        if suspicious:
            logger.warning(f"Suspicious login activity: {metadata.get('reason')}")
        if authentication:
            raise AuthenticationError(error)
        raise ValidationError(error)
