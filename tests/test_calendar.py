"""Tests for the Google Calendar client with the Google API boundary mocked."""
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from eventhub.services.calendar_service import CalendarSyncError, GoogleCalendarClient, build_calendar_event

SUMMARY = {
    "title": "Quarterly Planning",
    "date_time": datetime(2026, 4, 2, 15, 0, tzinfo=timezone.utc),
    "duration_hours": 3,
    "location": "Boardroom",
    "description": "Bring numbers",
}


def _client():
    return GoogleCalendarClient("client-id", "client-secret", "http://localhost:8000/api/auth/google/callback")


class TestBuildCalendarEvent:
    def test_body(self):
        body = build_calendar_event(SUMMARY)
        assert body["summary"] == "Quarterly Planning"
        assert body["location"] == "Boardroom"
        assert body["start"] == {"dateTime": "2026-04-02T15:00:00+00:00", "timeZone": "UTC"}
        assert body["end"] == {"dateTime": "2026-04-02T18:00:00+00:00", "timeZone": "UTC"}
        assert body["reminders"] == {
            "useDefault": False,
            "overrides": [{"method": "email", "minutes": 1440}, {"method": "popup", "minutes": 60}],
        }

    def test_defaults_to_two_hours(self):
        body = build_calendar_event({**SUMMARY, "duration_hours": None})
        assert body["end"]["dateTime"] == "2026-04-02T17:00:00+00:00"


class TestGoogleCalendarClient:
    def test_configured(self):
        assert _client().configured is True
        assert GoogleCalendarClient("", "", "http://x").configured is False

    def test_authorization_url(self):
        url = _client().get_authorization_url("signed-state")
        assert url.startswith("https://accounts.google.com/o/oauth2/auth")
        assert "state=signed-state" in url
        assert "access_type=offline" in url
        assert "prompt=consent" in url
        assert "client_id=client-id" in url

    def test_insert_event(self):
        service = MagicMock()
        service.events.return_value.insert.return_value.execute.return_value = {
            "id": "evt-123", "htmlLink": "https://calendar.google.com/event?eid=evt-123",
        }
        with patch("eventhub.services.calendar_service.build", return_value=service) as build:
            created = _client().insert_event("access", "refresh", SUMMARY)

        assert created["id"] == "evt-123"
        assert build.call_args[0][:2] == ("calendar", "v3")
        insert_kwargs = service.events.return_value.insert.call_args[1]
        assert insert_kwargs["calendarId"] == "primary"
        assert insert_kwargs["body"]["summary"] == "Quarterly Planning"

    def test_insert_event_failure(self):
        service = MagicMock()
        service.events.return_value.insert.return_value.execute.side_effect = RuntimeError("403 Forbidden")
        with patch("eventhub.services.calendar_service.build", return_value=service):
            with pytest.raises(CalendarSyncError, match="403 Forbidden"):
                _client().insert_event("access", None, SUMMARY)

    def test_token_exchange_failure(self):
        flow = MagicMock()
        flow.fetch_token.side_effect = ValueError("invalid_grant")
        with patch("eventhub.services.calendar_service.Flow.from_client_config", return_value=flow):
            with pytest.raises(CalendarSyncError, match="invalid_grant"):
                _client().exchange_code_for_tokens("bad-code")

    def test_token_exchange(self):
        flow = MagicMock()
        flow.credentials.token = "access-token"
        flow.credentials.refresh_token = "refresh-token"
        with patch("eventhub.services.calendar_service.Flow.from_client_config", return_value=flow):
            tokens = _client().exchange_code_for_tokens("good-code")

        flow.fetch_token.assert_called_once_with(code="good-code")
        assert tokens == {"access_token": "access-token", "refresh_token": "refresh-token"}
