"""Tests for the clock-driven event status lifecycle."""
from datetime import timedelta

import pytest

from eventhub.models.event import Event, EventStatus
from eventhub.services.status_service import derive_status, refresh_status, update_event_statuses
from tests.conftest import NOW, make_event, make_user

START = NOW + timedelta(minutes=30)


class TestDeriveStatus:
    @pytest.mark.parametrize("now, expected", [
        (NOW + timedelta(minutes=10), EventStatus.upcoming),
        (START, EventStatus.ongoing),
        (START + timedelta(hours=1, minutes=59), EventStatus.ongoing),
        (START + timedelta(hours=2), EventStatus.completed),
        (START + timedelta(days=30), EventStatus.completed),
    ])
    def test_follows_start_and_duration(self, now, expected):
        assert derive_status(START, 2, now, EventStatus.upcoming) == expected

    @pytest.mark.parametrize("now", [NOW, START, START + timedelta(days=1)])
    def test_cancelled_is_sticky(self, now):
        assert derive_status(START, 2, now, EventStatus.cancelled) == EventStatus.cancelled

    @pytest.mark.parametrize("now", [NOW, START + timedelta(hours=1), START + timedelta(hours=5)])
    def test_idempotent(self, now):
        once = derive_status(START, 2, now, EventStatus.upcoming)
        assert derive_status(START, 2, now, once) == once

    def test_naive_datetimes_are_treated_as_utc(self):
        naive_start = START.replace(tzinfo=None)
        assert derive_status(naive_start, 2, START + timedelta(minutes=5), EventStatus.upcoming) == EventStatus.ongoing

    def test_fractional_duration(self):
        assert derive_status(START, 0.5, START + timedelta(minutes=31), EventStatus.ongoing) == EventStatus.completed


class TestRefreshStatus:
    def test_reports_change_only_when_status_moves(self, db):
        organizer = make_user(db, "Org")
        event = make_event(db, organizer, START)

        assert refresh_status(db, event, NOW) is False
        assert refresh_status(db, event, START + timedelta(minutes=1)) is True
        assert event.status == EventStatus.ongoing
        assert refresh_status(db, event, START + timedelta(minutes=2)) is False


class TestUpdateEventStatusesJob:
    def test_moves_due_events_and_counts_changes(self, db):
        organizer = make_user(db, "Org")
        started = make_event(db, organizer, NOW - timedelta(minutes=30), title="Started")
        finished = make_event(db, organizer, NOW - timedelta(hours=5), title="Finished",
                              status=EventStatus.ongoing)
        future = make_event(db, organizer, NOW + timedelta(days=1), title="Future")
        cancelled = make_event(db, organizer, NOW - timedelta(hours=5), title="Cancelled",
                               status=EventStatus.cancelled)
        inactive = make_event(db, organizer, NOW - timedelta(hours=5), title="Inactive", is_active=False)

        assert update_event_statuses(db, NOW) == 2

        db.expire_all()
        status_of = {e.title: e.status for e in db.query(Event).all()}
        assert status_of == {
            started.title: EventStatus.ongoing,
            finished.title: EventStatus.completed,
            future.title: EventStatus.upcoming,
            cancelled.title: EventStatus.cancelled,
            inactive.title: EventStatus.upcoming,
        }

    def test_second_run_changes_nothing(self, db):
        organizer = make_user(db, "Org")
        make_event(db, organizer, NOW - timedelta(minutes=30))

        assert update_event_statuses(db, NOW) == 1
        assert update_event_statuses(db, NOW) == 0
