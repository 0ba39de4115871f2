"""Pytest fixtures: in-memory SQLite database, fixed clock and fake side-effect clients."""
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from eventhub.database import Base, get_db
from eventhub.deps import get_calendar_client, get_notifier, get_now
from eventhub.main import app
from eventhub.services.calendar_service import CalendarSyncError

# Import all models so they register with Base.metadata
from eventhub.models.user import User, UserRole                      # noqa: F401
from eventhub.models.event import Event, EventCategory               # noqa: F401
from eventhub.models.attendee import EventAttendee                   # noqa: F401
from eventhub.models.registration import Registration, RegistrationStatus  # noqa: F401

SQLITE_URL = "sqlite://"
NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class Clock:
    """Mutable stand-in for the wall clock; tests move ``now`` forward by hand."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FakeNotifier:
    """Records every email instead of sending it. Set ``fail`` or ``raise_error`` to simulate outages."""

    def __init__(self):
        self.sent = []
        self.fail = False
        self.raise_error = False

    def _record(self, kind: str, recipient: str, **details) -> bool:
        if self.raise_error:
            raise RuntimeError("SMTP server unreachable")
        if self.fail:
            return False
        self.sent.append({"kind": kind, "to": recipient, **details})
        return True

    def send_registration_confirmation(self, recipient, name, event_summary, tz_name="UTC"):
        return self._record("confirmation", recipient, title=event_summary["title"])

    def send_event_reminder(self, recipient, name, event_summary, lead_time_label, tz_name="UTC"):
        return self._record("reminder", recipient, title=event_summary["title"], label=lead_time_label)

    def send_event_update(self, recipient, name, event_summary, message, tz_name="UTC"):
        return self._record("update", recipient, title=event_summary["title"], message=message)

    def to(self, kind: str) -> list[str]:
        return [item["to"] for item in self.sent if item["kind"] == kind]


class FakeCalendarClient:
    """Google Calendar client double; no network."""

    def __init__(self):
        self.configured = True
        self.fail = False
        self.inserted = []

    def get_authorization_url(self, state: str) -> str:
        return f"https://accounts.google.com/o/oauth2/auth?client_id=test&state={state}"

    def exchange_code_for_tokens(self, code: str) -> dict:
        if self.fail:
            raise CalendarSyncError("invalid_grant")
        return {"access_token": f"access-{code}", "refresh_token": f"refresh-{code}"}

    def insert_event(self, access_token, refresh_token, event_summary) -> dict:
        if self.fail:
            raise CalendarSyncError("Google Calendar API error: 403 Forbidden")
        event_id = f"gcal-{len(self.inserted) + 1}"
        self.inserted.append({"token": access_token, "summary": event_summary})
        return {"id": event_id, "htmlLink": f"https://calendar.google.com/event?eid={event_id}"}


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh in-memory SQLite engine for each test."""
    engine = create_engine(
        SQLITE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory):
    """Yield a database session bound to the test engine."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def calendar_client():
    return FakeCalendarClient()


@pytest.fixture(scope="function")
def client(session_factory, clock, notifier, calendar_client):
    """FastAPI TestClient with the database, clock, notifier and calendar client overridden."""

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_now] = lambda: clock.now
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_calendar_client] = lambda: calendar_client
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# API helpers
# ---------------------------------------------------------------------------
def create_test_user(client: TestClient, name: str = "Test User", role: str = "user",
                     tz: str = "UTC", password: str = "secret123", email: str = None) -> dict:
    """Register via POST /api/auth/register; returns the user dict plus its ``token``.

    The session cookie is dropped so each request authenticates explicitly.
    """
    email = email or f"{name.lower().replace(' ', '.')}.{uuid.uuid4().hex[:6]}@eventhub.io"
    resp = client.post("/api/auth/register", json={
        "name": name,
        "email": email,
        "password": password,
        "role": role,
        "default_timezone": tz,
    })
    assert resp.status_code == 201, resp.text
    client.cookies.clear()
    body = resp.json()
    return {**body["data"], "token": body["token"]}


def auth_headers(user: dict) -> dict:
    return {"Authorization": f"Bearer {user['token']}"}


def create_test_event(client: TestClient, organizer: dict, start: datetime = None, **overrides) -> dict:
    """Helper: POST /api/events as ``organizer`` and return the event dict."""
    payload = {
        "title": "Test Event",
        "description": "An event used in tests",
        "date_time": (start or NOW + timedelta(days=7)).isoformat(),
        "location": "Main Hall",
        "category": "tech",
        "capacity": 10,
    }
    payload.update(overrides)
    resp = client.post("/api/events/", json=payload, headers=auth_headers(organizer))
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def register_for(client: TestClient, user: dict, event: dict):
    return client.post(f"/api/registrations/{event['event_id']}", headers=auth_headers(user))


def parse_dt(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


# ---------------------------------------------------------------------------
# ORM helpers for service-level tests
# ---------------------------------------------------------------------------
def make_user(db, name: str = "Ada", role: UserRole = UserRole.user, tz: str = "UTC") -> User:
    user = User(
        name=name,
        email=f"{name.lower()}.{uuid.uuid4().hex[:6]}@eventhub.io",
        role=role,
        default_timezone=tz,
        password_hash="",
    )
    db.add(user)
    db.commit()
    return user


def make_event(db, organizer: User, start: datetime, duration_hours: float = 2, **fields) -> Event:
    event = Event(
        title=fields.pop("title", "Service Event"),
        description="Created directly through the ORM",
        date_time=start,
        duration_hours=duration_hours,
        location="Room 1",
        category=EventCategory.meetup,
        capacity=fields.pop("capacity", 10),
        organizer_id=organizer.user_id,
        **fields,
    )
    db.add(event)
    db.commit()
    return event


def make_registration(db, event: Event, user: User,
                      status: RegistrationStatus = RegistrationStatus.confirmed) -> Registration:
    registration = Registration(event_id=event.event_id, user_id=user.user_id, status=status)
    db.add(registration)
    db.commit()
    return registration
