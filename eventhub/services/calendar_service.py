"""Google Calendar sync: OAuth URL, code exchange and event insert."""
import logging
from datetime import timedelta
from typing import Any, Optional

from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow
from googleapiclient.discovery import build

from eventhub.config import settings
from eventhub.services.status_service import as_utc

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar.events"]
AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
TOKEN_URI = "https://oauth2.googleapis.com/token"
DEFAULT_DURATION_HOURS = 2


class CalendarSyncError(Exception):
    """Raised when Google rejects a token exchange or calendar insert."""


def build_calendar_event(event_summary: dict[str, Any]) -> dict[str, Any]:
    """Google Calendar event body with email (24h) and popup (1h) reminders."""
    start = as_utc(event_summary["date_time"])
    end = start + timedelta(hours=event_summary.get("duration_hours") or DEFAULT_DURATION_HOURS)
    return {
        "summary": event_summary["title"],
        "location": event_summary.get("location", ""),
        "description": event_summary.get("description") or "",
        "start": {"dateTime": start.isoformat(), "timeZone": "UTC"},
        "end": {"dateTime": end.isoformat(), "timeZone": "UTC"},
        "reminders": {
            "useDefault": False,
            "overrides": [
                {"method": "email", "minutes": 24 * 60},
                {"method": "popup", "minutes": 60},
            ],
        },
    }


class GoogleCalendarClient:
    def __init__(
        self,
        client_id: str = settings.GOOGLE_CLIENT_ID,
        client_secret: str = settings.GOOGLE_CLIENT_SECRET,
        redirect_uri: str = settings.GOOGLE_REDIRECT_URI,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def _flow(self, state: Optional[str] = None) -> Flow:
        client_config = {
            "web": {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "auth_uri": AUTH_URI,
                "token_uri": TOKEN_URI,
                "redirect_uris": [self.redirect_uri],
            }
        }
        return Flow.from_client_config(
            client_config,
            scopes=SCOPES,
            redirect_uri=self.redirect_uri,
            state=state,
            autogenerate_code_verifier=False,
        )

    def get_authorization_url(self, state: str) -> str:
        url, _ = self._flow(state).authorization_url(access_type="offline", prompt="consent", state=state)
        return url

    def exchange_code_for_tokens(self, code: str) -> dict[str, Optional[str]]:
        flow = self._flow()
        try:
            flow.fetch_token(code=code)
        except Exception as exc:
            raise CalendarSyncError(f"Token exchange failed: {exc}") from exc
        creds = flow.credentials
        return {"access_token": creds.token, "refresh_token": creds.refresh_token}

    def insert_event(self, access_token: str, refresh_token: Optional[str],
                     event_summary: dict[str, Any]) -> dict[str, Any]:
        """Insert into the user's primary calendar; returns Google's event resource."""
        creds = Credentials(
            token=access_token,
            refresh_token=refresh_token,
            token_uri=TOKEN_URI,
            client_id=self.client_id,
            client_secret=self.client_secret,
            scopes=SCOPES,
        )
        try:
            service = build("calendar", "v3", credentials=creds, cache_discovery=False)
            created = service.events().insert(
                calendarId="primary", body=build_calendar_event(event_summary)
            ).execute()
        except Exception as exc:
            logger.error("Google Calendar insert failed: %s", exc)
            raise CalendarSyncError(f"Google Calendar API error: {exc}") from exc
        logger.info("Created Google Calendar event %s", created.get("id"))
        return created
