"""
Poll engagement tests.
"""

from __future__ import annotations

import pytest

from event_api import PollEngagementTracker


def engagement(**overrides):
    payload = {
        "event_type": "vote_changed",
        "poll_id": "poll_12345",
        "user_id": "user_abc",
        "previous_choice": "option_a",
        "new_choice": "option_b",
        "timestamp": "2024-01-15T10:30:00.000Z",
        "session_id": "session_xyz",
    }
    payload.update(overrides)
    return {k: v for k, v in payload.items() if v is not ...}


@pytest.fixture
def polls(store):
    return PollEngagementTracker(store)


class TestTrackPollEngagement:
    """Test PollEngagementTracker.track_poll_engagement."""

    def test_track_vote_change(self, polls):
        result = polls.track_poll_engagement(engagement())

        assert result["success"] is True
        assert result["message"] == "Poll engagement tracked successfully"
        event = result["event"]
        assert event.type == "poll_engagement"
        assert event.message == "Poll engagement: vote_changed"
        assert event.metadata == {
            "event_type": "vote_changed",
            "poll_id": "poll_12345",
            "user_id": "user_abc",
            "previous_choice": "option_a",
            "new_choice": "option_b",
            "timestamp": "2024-01-15T10:30:00.000Z",
            "session_id": "session_xyz",
        }

    def test_optional_fields_default_to_none(self, polls):
        result = polls.track_poll_engagement(
            engagement(event_type="vote_cast", previous_choice=..., session_id=...)
        )

        metadata = result["event"].metadata
        assert metadata["previous_choice"] is None
        assert metadata["session_id"] is None
        assert set(metadata) == {
            "event_type",
            "poll_id",
            "user_id",
            "previous_choice",
            "new_choice",
            "timestamp",
            "session_id",
        }

    def test_fields_are_trimmed(self, polls):
        result = polls.track_poll_engagement(
            engagement(poll_id="  poll_1 ", new_choice=" b ", session_id="  s  ")
        )

        metadata = result["event"].metadata
        assert metadata["poll_id"] == "poll_1"
        assert metadata["new_choice"] == "b"
        assert metadata["session_id"] == "s"

    @pytest.mark.parametrize("field", ["event_type", "poll_id", "user_id", "new_choice", "timestamp"])
    def test_missing_required_field(self, polls, store, field):
        result = polls.track_poll_engagement(engagement(**{field: ...}))

        assert result["success"] is False
        assert result["error"] == f"{field} is required and must be a non-empty string"
        assert len(store) == 0

    def test_blank_required_field(self, polls):
        result = polls.track_poll_engagement(engagement(poll_id="   "))
        assert "poll_id" in result["error"]

    @pytest.mark.parametrize("payload", [None, "vote", ["vote_cast"], 3])
    def test_payload_must_be_object(self, polls, payload):
        result = polls.track_poll_engagement(payload)
        assert result == {"success": False, "error": "Payload must be an object"}

    def test_invalid_timestamp(self, polls, store):
        result = polls.track_poll_engagement(engagement(timestamp="not-a-date"))

        assert result == {"success": False, "error": "Invalid timestamp format"}
        assert len(store) == 0


class TestGetPollEngagementEvents:
    """Test retrieval and filtering."""

    @pytest.fixture
    def votes(self, polls, store):
        polls.track_poll_engagement(
            engagement(event_type="vote_cast", user_id="user_abc", previous_choice=...)
        )
        polls.track_poll_engagement(engagement(user_id="user_def"))
        polls.track_poll_engagement(engagement(poll_id="poll_999", event_type="vote_removed"))
        store.create("login", "Unrelated event")
        return polls

    def test_all_poll_events(self, votes):
        result = votes.get_poll_engagement_events()

        assert result["success"] is True
        assert result["count"] == 3
        assert all(e.type == "poll_engagement" for e in result["events"])

    def test_filter_by_poll(self, votes):
        assert votes.get_poll_engagement_events({"poll_id": "poll_12345"})["count"] == 2

    def test_filter_by_user(self, votes):
        result = votes.get_poll_engagement_events({"user_id": "user_def"})

        assert result["count"] == 1
        assert result["events"][0].metadata["event_type"] == "vote_changed"

    def test_filter_by_event_type(self, votes):
        assert votes.get_poll_engagement_events({"event_type": "vote_removed"})["count"] == 1

    def test_combined_filters(self, votes):
        result = votes.get_poll_engagement_events(
            {"poll_id": "poll_12345", "user_id": "user_abc", "event_type": "vote_cast"}
        )
        assert result["count"] == 1

    @pytest.mark.parametrize("filters", [["poll_12345"], [], "", 0])
    def test_invalid_filters(self, votes, filters):
        assert votes.get_poll_engagement_events(filters) == {
            "success": False,
            "error": "Filters must be an object",
        }
