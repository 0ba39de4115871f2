"""Core event service: event CRUD, ownership checks and status refresh on read.

Responsibilities:
- Authorization hook: only the organizer or an admin may update/delete/view stats
- Status refresh on every single-event read and on list reads
- Capacity edits never drop below the number of confirmed seats
- Raising capacity promotes waitlisted registrations, oldest first
- Update notifications to confirmed registrants when time/location change or the
  event is cancelled
- Cascading delete of registrations and attendee rows
"""
import logging
from datetime import datetime
from typing import Any, Optional

from fastapi import HTTPException, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from eventhub.models.event import Event, EventStatus, Visibility
from eventhub.models.registration import Registration, RegistrationStatus
from eventhub.models.user import User
from eventhub.services.notifier import notify_safely
from eventhub.services.seats import fill_open_seats
from eventhub.services.status_service import as_utc, refresh_status

logger = logging.getLogger(__name__)

NOTIFY_FIELDS = {"date_time": "date and time", "location": "location", "duration_hours": "duration"}


def check_authorization(event: Event, user: User, action: str = "update this event") -> None:
    """Only the organizer or an admin may modify or inspect an event's internals."""
    if event.organizer_id != user.user_id and not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Not authorized to {action}",
        )


def _differs(new: Any, old: Any) -> bool:
    if isinstance(new, datetime) and isinstance(old, datetime):
        return as_utc(new) != as_utc(old)
    return new != old


def get_event_or_404(db: Session, event_id: str) -> Event:
    event = db.query(Event).filter(Event.event_id == event_id).first()
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


def create_event(db: Session, organizer: User, data: dict[str, Any], now: datetime) -> Event:
    event = Event(**data, organizer_id=organizer.user_id, registered_count=0)
    event.status = EventStatus.upcoming
    db.add(event)
    db.flush()
    refresh_status(db, event, now)
    db.commit()
    db.refresh(event)
    logger.info("Created event '%s' (%s) by organizer %s", event.title, event.event_id, organizer.user_id)
    return event


def get_event(db: Session, event_id: str, now: datetime) -> Event:
    event = get_event_or_404(db, event_id)
    if refresh_status(db, event, now):
        db.commit()
        db.refresh(event)
    return event


def list_events(
    db: Session,
    now: datetime,
    viewer: Optional[User] = None,
    category: Optional[str] = None,
    status_filter: Optional[str] = None,
    search: Optional[str] = None,
    from_date: Optional[datetime] = None,
    to_date: Optional[datetime] = None,
    visibility: Optional[str] = None,
) -> list[Event]:
    """Filtered list ordered by start time; statuses are refreshed opportunistically."""
    query = db.query(Event)
    if category and category != "all":
        query = query.filter(Event.category == category)
    if status_filter:
        query = query.filter(Event.status == status_filter)
    else:
        query = query.filter(Event.is_active.is_(True))
    if visibility:
        query = query.filter(Event.visibility == visibility)
    elif viewer is None or not viewer.is_admin:
        query = query.filter(Event.visibility == Visibility.public)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Event.title.ilike(pattern), Event.description.ilike(pattern)))
    if from_date:
        query = query.filter(Event.date_time >= as_utc(from_date))
    if to_date:
        query = query.filter(Event.date_time <= as_utc(to_date))

    events = query.order_by(Event.date_time).all()
    changed = [event for event in events if refresh_status(db, event, now)]
    if changed:
        db.commit()
        logger.info("Refreshed status of %d listed events", len(changed))
    return events


def list_events_by_organizer(db: Session, organizer_id: str, viewer: Optional[User] = None) -> list[Event]:
    query = db.query(Event).filter(Event.organizer_id == organizer_id)
    if viewer is None or (viewer.user_id != organizer_id and not viewer.is_admin):
        query = query.filter(Event.visibility == Visibility.public)
    return query.order_by(Event.date_time.desc()).all()


def update_event(
    db: Session,
    event_id: str,
    actor: User,
    updates: dict[str, Any],
    now: datetime,
    notifier=None,
) -> Event:
    """Apply a partial update; notify confirmed registrants of material changes."""
    event = get_event_or_404(db, event_id)
    check_authorization(event, actor)

    new_capacity = updates.get("capacity")
    if new_capacity is not None and new_capacity < event.registered_count:
        raise HTTPException(
            status_code=400,
            detail=f"Capacity cannot be lower than the {event.registered_count} confirmed registrations",
        )

    changed_labels = [
        label for field, label in NOTIFY_FIELDS.items()
        if field in updates and _differs(updates[field], getattr(event, field))
    ]
    date_moved = "date_time" in updates and _differs(updates["date_time"], event.date_time)
    was_cancelled = event.status == EventStatus.cancelled
    old_capacity = event.capacity

    for field, value in updates.items():
        if field not in ("event_id", "organizer_id", "registered_count", "created_at"):
            setattr(event, field, value)

    if updates.get("status") is not None and updates["status"] != EventStatus.cancelled:
        # Only "cancelled" is set by hand; everything else follows the clock
        event.status = EventStatus.upcoming
    refresh_status(db, event, now)

    if date_moved:
        db.query(Registration).filter(
            Registration.event_id == event.event_id,
            Registration.status != RegistrationStatus.cancelled,
        ).update(
            {Registration.reminder_one_day_sent: False, Registration.reminder_one_hour_sent: False},
            synchronize_session=False,
        )

    promoted: list[Registration] = []
    if event.capacity > old_capacity and event.status not in (EventStatus.completed, EventStatus.cancelled):
        db.flush()
        promoted = fill_open_seats(db, event.event_id)

    db.commit()
    db.refresh(event)
    logger.info("Updated event %s (%s)", event_id, ", ".join(sorted(updates)) or "no fields")

    now_cancelled = event.status == EventStatus.cancelled and not was_cancelled
    if notifier is not None and (changed_labels or now_cancelled):
        if now_cancelled:
            message = "This event has been cancelled."
        else:
            message = f"The event {' and '.join(changed_labels)} changed. Please review the details below."
        notify_registrants(db, event, notifier, message)
    if notifier is not None and promoted:
        summary = event.summary()
        for reg in promoted:
            notify_safely(
                notifier.send_registration_confirmation, reg.user.email, reg.user.name, summary,
                tz_name=reg.user.default_timezone,
            )
    return event


def notify_registrants(db: Session, event: Event, notifier, message: str) -> int:
    """Send an update email to every confirmed registrant; returns the number delivered."""
    registrations = (
        db.query(Registration)
        .filter(Registration.event_id == event.event_id, Registration.status == RegistrationStatus.confirmed)
        .all()
    )
    summary = event.summary()
    sent = sum(
        1 for reg in registrations
        if notify_safely(
            notifier.send_event_update, reg.user.email, reg.user.name, summary, message,
            tz_name=reg.user.default_timezone,
        )
    )
    logger.info("Sent update for event %s to %d/%d registrants", event.event_id, sent, len(registrations))
    return sent


def delete_event(db: Session, event_id: str, actor: User) -> None:
    event = get_event_or_404(db, event_id)
    check_authorization(event, actor, "delete this event")
    deleted = len(event.registrations)
    db.delete(event)
    db.commit()
    logger.info("Deleted event %s and %d registrations", event_id, deleted)


def set_banner(db: Session, event: Event, actor: User, url: str) -> Event:
    check_authorization(event, actor)
    event.banner_image = url
    db.commit()
    db.refresh(event)
    return event


def get_event_stats(db: Session, event_id: str, actor: User) -> dict[str, Any]:
    event = get_event_or_404(db, event_id)
    check_authorization(event, actor, "view event statistics")

    counts = dict(
        db.query(Registration.status, func.count(Registration.registration_id))
        .filter(Registration.event_id == event_id)
        .group_by(Registration.status)
        .all()
    )
    checked_in = db.query(func.count(Registration.registration_id)).filter(
        Registration.event_id == event_id,
        Registration.check_in_status.is_(True),
    ).scalar()

    return {
        "total_registrations": sum(counts.values()),
        "confirmed_registrations": counts.get(RegistrationStatus.confirmed, 0),
        "waitlist_registrations": counts.get(RegistrationStatus.waitlist, 0),
        "cancelled_registrations": counts.get(RegistrationStatus.cancelled, 0),
        "checked_in": int(checked_in or 0),
        "available_seats": event.capacity - event.registered_count,
        "capacity_percentage": round(event.registered_count / event.capacity * 100, 2),
    }
