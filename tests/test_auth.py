"""
Auth service tests: login validation order, audit trail and guest login.
"""

from __future__ import annotations

import re

import pytest

from event_api import AuditEventType, AuthService, CorrelationContext, User


def audit_types(services) -> list[str]:
    return [e.type for e in services.audit.query_audit()["events"]]


class TestLogin:
    """Test credential login results."""

    @pytest.mark.parametrize(
        ("username", "password", "role"),
        [
            ("admin", "admin123", "administrator"),
            ("user", "user123", "user"),
            ("demo", "demo123", "user"),
        ],
    )
    def test_valid_credentials(self, services, username, password, role):
        result = services.auth.login(username, password)

        assert result == {
            "success": True,
            "user": {"username": username, "role": role},
            "message": "Login successful",
        }

    def test_surrounding_whitespace_is_trimmed(self, services):
        result = services.auth.login("  admin ", " admin123  ")
        assert result["success"] is True

    def test_wrong_password(self, services):
        result = services.auth.login("admin", "wrong")
        assert result == {"success": False, "error": "Invalid username or password"}

    def test_unknown_user_has_same_error(self, services):
        result = services.auth.login("nobody", "admin123")
        assert result == {"success": False, "error": "Invalid username or password"}

    def test_empty_username(self, services):
        assert services.auth.login("", "x")["error"] == "Username cannot be empty"
        assert services.auth.login("   ", "x")["error"] == "Username cannot be empty"

    def test_empty_password(self, services):
        assert services.auth.login("admin", "  ")["error"] == "Password cannot be empty"

    def test_non_string_arguments(self, services):
        assert services.auth.login(None, "x")["error"] == (
            "Username is required and must be a string"
        )
        assert services.auth.login("admin", 123)["error"] == (
            "Password is required and must be a string"
        )

    def test_username_too_long(self, services):
        result = services.auth.login("a" * 256, "x")

        assert result["success"] is False
        assert "length" in result["error"]

    def test_length_checked_before_trimming(self, services):
        """255 visible characters plus padding still exceed the limit."""
        result = services.auth.login("a" * 255 + " ", "x")
        assert "length" in result["error"]

    def test_password_too_long(self, services):
        result = services.auth.login("admin", "p" * 256)
        assert "length" in result["error"]

    def test_invalid_characters(self, services):
        result = services.auth.login("bad!name", "x")

        assert result["success"] is False
        assert "invalid characters" in result["error"]

    def test_password_never_returned(self, services):
        result = services.auth.login("admin", "admin123")
        assert "password" not in result["user"]

    def test_custom_users(self, store):
        from event_api import AuditTrail

        auth = AuthService(AuditTrail(store), users=[User("ops", "s3cret", "operator")])

        assert auth.login("ops", "s3cret")["user"]["role"] == "operator"
        assert auth.login("admin", "admin123")["success"] is False


class TestLoginAudit:
    """Test the audit events emitted by login."""

    def test_success_emits_attempt_and_success(self, services):
        services.auth.login("admin", "admin123")

        assert audit_types(services) == ["audit.login_attempt", "audit.login_success"]
        success = services.audit.query_audit(AuditEventType.LOGIN_SUCCESS)["events"][0]
        assert success.metadata["username"] == "admin"
        assert success.metadata["role"] == "administrator"
        assert "password" not in success.metadata

    def test_incorrect_password(self, services):
        services.auth.login("admin", "wrongpassword")

        assert audit_types(services) == ["audit.login_attempt", "audit.login_failure"]
        failure = services.audit.query_audit(AuditEventType.LOGIN_FAILURE)["events"][0]
        assert failure.metadata["reason"] == "incorrect_password"
        assert failure.metadata["severity"] == "warning"

    def test_user_not_found(self, services):
        services.auth.login("ghost", "whatever")

        failure = services.audit.query_audit(AuditEventType.LOGIN_FAILURE)["events"][0]
        assert failure.metadata["reason"] == "user_not_found"

    def test_invalid_characters_is_suspicious(self, services):
        services.auth.login("admin@#$", "admin123")

        # Rejected before the attempt is recorded
        assert audit_types(services) == ["audit.suspicious_activity"]
        event = services.audit.query_audit(AuditEventType.SUSPICIOUS_ACTIVITY)["events"][0]
        assert event.metadata["reason"] == "invalid_characters"

    def test_too_long_is_suspicious(self, services):
        services.auth.login("a" * 256, "admin123")

        events = services.audit.query_audit(AuditEventType.SUSPICIOUS_ACTIVITY)["events"]
        assert len(events) == 1
        assert events[0].metadata["reason"] == "username_too_long"
        assert events[0].metadata["severity"] == "warning"

    def test_type_and_empty_failures(self, services):
        services.auth.login(42, "x")
        services.auth.login("", "x")

        reasons = [
            e.metadata["reason"]
            for e in services.audit.query_audit(AuditEventType.LOGIN_FAILURE)["events"]
        ]
        assert reasons == ["invalid_username_type", "empty_username"]
        assert services.audit.count_audit(AuditEventType.LOGIN_ATTEMPT)["count"] == 0

    def test_required_metadata_fields(self, services):
        services.auth.login("admin", "admin123")

        for event in services.audit.query_audit()["events"]:
            assert event.id
            assert event.message
            assert event.timestamp
            assert event.metadata["severity"]
            assert event.metadata["source"] == "auth_service"
            assert event.metadata["auditTimestamp"]

    def test_multiple_attempts(self, services):
        services.auth.login("admin", "admin123")
        services.auth.login("user", "wrong")
        services.auth.login("demo", "demo123")

        assert services.audit.count_audit()["count"] == 6
        assert services.audit.count_audit(AuditEventType.LOGIN_SUCCESS)["count"] == 2
        assert services.audit.count_audit(AuditEventType.LOGIN_FAILURE)["count"] == 1

    def test_attempt_and_outcome_share_correlation_id(self, services):
        with CorrelationContext("login-req-1"):
            services.auth.login("admin", "wrong")

        events = services.audit.query_audit()["events"]
        assert {e.metadata["correlation_id"] for e in events} == {"login-req-1"}

    def test_login_metrics(self, services, metrics_backend):
        services.auth.login("admin", "admin123")
        services.auth.login("admin", "nope")
        services.auth.login("bad!", "x")

        snapshot = services.store.metrics.get_snapshot()
        assert snapshot["logins"] == {"success": 1, "failure": 1, "suspicious": 1}


class TestUnexpectedLoginError:
    """Internal failures become a generic error plus a suspicious-activity audit."""

    def test_generic_error_and_audit(self, services, monkeypatch):
        class BrokenUsers(tuple):
            def __iter__(self):
                raise RuntimeError("user directory exploded")

        monkeypatch.setattr(services.auth, "users", BrokenUsers())

        result = services.auth.login("admin", "admin123")

        assert result == {"success": False, "error": "An unexpected error occurred during login"}
        events = services.audit.query_audit(AuditEventType.SUSPICIOUS_ACTIVITY)["events"]
        assert len(events) == 1
        assert events[0].metadata["reason"] == "unexpected_error"
        assert "exploded" not in str(events[0].metadata)


class TestGuestLogin:
    """Test guest identities."""

    def test_guest_login(self, services):
        result = services.auth.guest_login()

        assert result["success"] is True
        assert result["user"]["role"] == "guest"
        assert result["message"] == "Guest login successful"

    def test_username_format(self, services, clock):
        username = services.auth.guest_login()["user"]["username"]

        assert re.fullmatch(r"guest_\d+_[0-9a-f]{8}", username)
        assert username.split("_")[1] == str(int(clock().timestamp()))

    def test_usernames_are_unique(self, services):
        names = {services.auth.guest_login()["user"]["username"] for _ in range(20)}
        assert len(names) == 20

    def test_guest_login_is_audited(self, services):
        username = services.auth.guest_login()["user"]["username"]

        event = services.audit.query_audit(AuditEventType.LOGIN_SUCCESS)["events"][0]
        assert event.metadata["username"] == username
        assert event.metadata["login_type"] == "guest"
