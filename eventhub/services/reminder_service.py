"""Scheduled reminder dispatch.

Each window selects active, upcoming events starting in ``[now+low, now+high)``
and emails every confirmed registrant whose flag for that window is still
false. The flag is written only after a successful send, one commit per
registration: a crash between send and commit can duplicate a reminder on the
next run, but a reminder is never silently dropped.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from eventhub.models.event import Event, EventStatus
from eventhub.models.registration import Registration, RegistrationStatus
from eventhub.services.status_service import as_utc, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReminderWindow:
    name: str
    low_hours: float
    high_hours: float
    label: str
    flag: str  # Registration column recording that this reminder went out


ONE_DAY = ReminderWindow("one_day_before", 24, 25, "in 24 hours", "reminder_one_day_sent")
ONE_HOUR = ReminderWindow("one_hour_before", 1, 2, "in 1 hour", "reminder_one_hour_sent")


def find_window(db: Session, low_hours: float, high_hours: float, now: datetime) -> list[Event]:
    return (
        db.query(Event)
        .filter(
            Event.date_time >= now + timedelta(hours=low_hours),
            Event.date_time < now + timedelta(hours=high_hours),
            Event.status == EventStatus.upcoming,
            Event.is_active.is_(True),
        )
        .order_by(Event.date_time)
        .all()
    )


def dispatch_reminders(
    db: Session,
    window: ReminderWindow,
    notifier,
    now: Optional[datetime] = None,
) -> dict[str, int]:
    """Send one window's reminders; returns counts of events, sent and failed."""
    now = as_utc(now or utcnow())
    flag = getattr(Registration, window.flag)
    events = find_window(db, window.low_hours, window.high_hours, now)
    logger.info("Found %d events for %s reminders", len(events), window.name)

    sent = failed = 0
    for event in events:
        registrations = (
            db.query(Registration)
            .filter(
                Registration.event_id == event.event_id,
                Registration.status == RegistrationStatus.confirmed,
                flag.is_(False),
            )
            .all()
        )
        summary = event.summary()
        for registration in registrations:
            user = registration.user
            try:
                ok = notifier.send_event_reminder(
                    user.email, user.name, summary, window.label, tz_name=user.default_timezone,
                )
            except Exception:
                logger.exception("Reminder to %s for event %s raised", user.email, event.event_id)
                ok = False
            if not ok:
                failed += 1
                continue

            setattr(registration, window.flag, True)
            db.commit()
            sent += 1
            logger.info("Sent %s reminder to %s for event: %s", window.name, user.email, event.title)

    return {"events": len(events), "sent": sent, "failed": failed}


def send_one_day_reminders(db: Session, notifier, now: Optional[datetime] = None) -> dict[str, int]:
    return dispatch_reminders(db, ONE_DAY, notifier, now)


def send_one_hour_reminders(db: Session, notifier, now: Optional[datetime] = None) -> dict[str, int]:
    return dispatch_reminders(db, ONE_HOUR, notifier, now)
