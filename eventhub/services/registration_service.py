"""Registration service: capacity accounting, waitlist and promotion.

Invariants kept here:
- ``Event.registered_count`` equals the number of confirmed registrations and the
  number of ``EventAttendee`` rows for the event.
- The seat claim is one conditional UPDATE (``registered_count < capacity``), so
  concurrent registrations cannot overbook.
- At most one non-cancelled registration per (event, user).
- One waitlist promotion per confirmed cancellation, oldest ``registered_at`` first.
- Emails go out after commit and never undo the state change.
"""
import logging
from datetime import datetime
from typing import Any, Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from eventhub.models.attendee import EventAttendee
from eventhub.models.event import Event, EventStatus
from eventhub.models.registration import PaymentStatus, Registration, RegistrationStatus
from eventhub.models.user import User
from eventhub.services.calendar_service import CalendarSyncError
from eventhub.services.event_service import check_authorization, get_event_or_404
from eventhub.services.notifier import notify_safely
from eventhub.services.seats import claim_seat, promote_next, release_seat
from eventhub.services.status_service import refresh_status

logger = logging.getLogger(__name__)

ALREADY_REGISTERED = "You are already registered for this event"


def _send_confirmation(notifier, user: User, event: Event) -> bool:
    if notifier is None:
        return False
    return notify_safely(
        notifier.send_registration_confirmation, user.email, user.name, event.summary(),
        tz_name=user.default_timezone,
    )


def get_registration_or_404(db: Session, registration_id: str) -> Registration:
    registration = db.query(Registration).filter(Registration.registration_id == registration_id).first()
    if not registration:
        raise HTTPException(status_code=404, detail="Registration not found")
    return registration


def find_active_registration(db: Session, event_id: str, user_id: str) -> Optional[Registration]:
    return (
        db.query(Registration)
        .filter(
            Registration.event_id == event_id,
            Registration.user_id == user_id,
            Registration.status != RegistrationStatus.cancelled,
        )
        .first()
    )


def register(db: Session, event_id: str, user: User, now: datetime, notifier=None) -> Registration:
    """RSVP ``user`` for an event: confirmed while seats remain, else waitlist or reject."""
    event = get_event_or_404(db, event_id)

    if not event.is_active:
        raise HTTPException(status_code=400, detail="This event is no longer accepting registrations")

    if refresh_status(db, event, now):
        db.commit()
    if event.status in (EventStatus.completed, EventStatus.cancelled):
        raise HTTPException(status_code=400, detail=f"Cannot register for {event.status.value} event")

    if find_active_registration(db, event_id, user.user_id):
        raise HTTPException(status_code=400, detail=ALREADY_REGISTERED)

    if claim_seat(db, event_id):
        reg_status = RegistrationStatus.confirmed
        db.add(EventAttendee(event_id=event_id, user_id=user.user_id))
    elif event.allow_waitlist:
        reg_status = RegistrationStatus.waitlist
    else:
        db.rollback()
        raise HTTPException(status_code=400, detail="Event is full and waitlist is not available")

    registration = Registration(
        event_id=event_id,
        user_id=user.user_id,
        status=reg_status,
        payment_status=PaymentStatus.pending if event.is_paid else PaymentStatus.not_required,
        amount=event.price if event.is_paid else 0,
    )
    db.add(registration)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration by the same user
        db.rollback()
        raise HTTPException(status_code=400, detail=ALREADY_REGISTERED)
    db.refresh(registration)
    db.refresh(event)
    logger.info(
        "User %s registered for event %s as %s (%d/%d)",
        user.user_id, event_id, reg_status.value, event.registered_count, event.capacity,
    )

    if reg_status == RegistrationStatus.confirmed:
        _send_confirmation(notifier, user, event)
    return registration


def cancel(db: Session, registration_id: str, user: User, notifier=None) -> tuple[Registration, Optional[Registration]]:
    """Cancel the caller's registration; returns (cancelled, promoted-or-None)."""
    registration = get_registration_or_404(db, registration_id)
    if registration.user_id != user.user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized to cancel this registration",
        )

    previous_status = registration.status
    registration.status = RegistrationStatus.cancelled
    promoted: Optional[Registration] = None

    if previous_status == RegistrationStatus.confirmed:
        event_id = registration.event_id
        release_seat(db, event_id)
        db.query(EventAttendee).filter(
            EventAttendee.event_id == event_id,
            EventAttendee.user_id == registration.user_id,
        ).delete(synchronize_session="fetch")

        promoted = promote_next(db, event_id)

    db.commit()
    db.refresh(registration)
    logger.info("Registration %s cancelled (was %s)", registration_id, previous_status.value)

    if promoted is not None:
        db.refresh(promoted)
        _send_confirmation(notifier, promoted.user, promoted.event)
    return registration, promoted


def get_registration(db: Session, registration_id: str, user: User) -> Registration:
    registration = get_registration_or_404(db, registration_id)
    event = registration.event
    if (
        registration.user_id != user.user_id
        and event.organizer_id != user.user_id
        and not user.is_admin
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized to view this registration",
        )
    return registration


def list_my_registrations(db: Session, user: User) -> list[Registration]:
    return (
        db.query(Registration)
        .filter(Registration.user_id == user.user_id)
        .order_by(Registration.registered_at.desc())
        .all()
    )


def list_event_registrations(db: Session, event_id: str, user: User) -> list[Registration]:
    event = get_event_or_404(db, event_id)
    check_authorization(event, user, "view registrations")
    return (
        db.query(Registration)
        .filter(Registration.event_id == event_id)
        .order_by(Registration.registered_at.desc())
        .all()
    )


def check_in(db: Session, registration_id: str, user: User, now: datetime) -> Registration:
    registration = get_registration_or_404(db, registration_id)
    check_authorization(registration.event, user, "check in attendees")
    if registration.status != RegistrationStatus.confirmed:
        raise HTTPException(status_code=400, detail="Only confirmed registrations can be checked in")

    registration.check_in_status = True
    registration.check_in_time = now
    db.commit()
    db.refresh(registration)
    logger.info("Checked in registration %s", registration_id)
    return registration


def add_to_calendar(db: Session, registration_id: str, user: User, calendar_client) -> dict[str, Any]:
    """Insert the registration's event into the user's Google Calendar."""
    registration = get_registration_or_404(db, registration_id)
    if registration.user_id != user.user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authorized")

    if not user.google_access_token:
        raise HTTPException(
            status_code=400,
            detail="Google Calendar not connected. Please connect your Google Calendar first.",
        )

    try:
        created = calendar_client.insert_event(
            user.google_access_token, user.google_refresh_token, registration.event.summary()
        )
    except CalendarSyncError as exc:
        raise HTTPException(status_code=500, detail=f"Failed to add event to calendar: {exc}")

    registration.added_to_calendar = True
    registration.calendar_event_id = created.get("id")
    db.commit()
    logger.info("Registration %s synced to calendar event %s", registration_id, registration.calendar_event_id)
    return created
