"""Event status lifecycle driven by wall-clock time.

``derive_status`` is the pure rule; ``refresh_status`` applies it to an ORM
event and flushes only when the status actually changes. Cancelled is sticky:
nothing here ever moves an event out of it.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session

from eventhub.models.event import Event, EventStatus

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize to an aware UTC datetime (SQLite hands back naive values)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def derive_status(
    date_time: datetime,
    duration_hours: float,
    now: datetime,
    current_status: EventStatus,
) -> EventStatus:
    if current_status == EventStatus.cancelled:
        return EventStatus.cancelled

    start = as_utc(date_time)
    end = start + timedelta(hours=duration_hours)
    now = as_utc(now)

    if now < start:
        return EventStatus.upcoming
    if now < end:
        return EventStatus.ongoing
    return EventStatus.completed


def refresh_status(db: Session, event: Event, now: Optional[datetime] = None) -> bool:
    """Re-derive ``event.status``; returns True when it changed (caller commits)."""
    new_status = derive_status(event.date_time, event.duration_hours, now or utcnow(), event.status)
    if new_status == event.status:
        return False
    logger.info("Event %s status %s -> %s", event.event_id, event.status.value, new_status.value)
    event.status = new_status
    db.flush()
    return True


def update_event_statuses(db: Session, now: Optional[datetime] = None) -> int:
    """Periodic job: re-derive status of every active upcoming/ongoing event."""
    now = now or utcnow()
    events = (
        db.query(Event)
        .filter(
            Event.is_active.is_(True),
            Event.status.in_([EventStatus.upcoming, EventStatus.ongoing]),
        )
        .all()
    )
    changed = sum(1 for event in events if refresh_status(db, event, now))
    db.commit()
    logger.info("Status job checked %d events, %d changed", len(events), changed)
    return changed
