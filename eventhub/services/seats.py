"""Seat accounting shared by registration and event updates.

``Event.registered_count`` only moves through these helpers, and every
increment is a conditional UPDATE (``registered_count < capacity``), so
concurrent writers cannot push it past capacity. Callers own the commit.
"""
import logging
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from eventhub.models.attendee import EventAttendee
from eventhub.models.event import Event
from eventhub.models.registration import Registration, RegistrationStatus

logger = logging.getLogger(__name__)


def claim_seat(db: Session, event_id: str) -> bool:
    """Atomically take one seat; False when the event is already full."""
    result = db.execute(
        update(Event)
        .where(Event.event_id == event_id)
        .where(Event.registered_count < Event.capacity)
        .values(registered_count=Event.registered_count + 1)
    )
    return result.rowcount == 1


def release_seat(db: Session, event_id: str) -> None:
    db.execute(
        update(Event)
        .where(Event.event_id == event_id)
        .where(Event.registered_count > 0)
        .values(registered_count=Event.registered_count - 1)
    )


def promote_next(db: Session, event_id: str) -> Optional[Registration]:
    """Move the oldest waitlisted registration into a free seat, if both exist."""
    candidate = (
        db.query(Registration)
        .filter(Registration.event_id == event_id, Registration.status == RegistrationStatus.waitlist)
        .order_by(Registration.registered_at.asc())
        .first()
    )
    if candidate is None or not claim_seat(db, event_id):
        return None
    candidate.status = RegistrationStatus.confirmed
    db.add(EventAttendee(event_id=event_id, user_id=candidate.user_id))
    db.flush()
    logger.info("Promoted registration %s from waitlist for event %s", candidate.registration_id, event_id)
    return candidate


def fill_open_seats(db: Session, event_id: str) -> list[Registration]:
    """Promote waitlisted registrations, oldest first, until seats or waitlist run out."""
    promoted = []
    while True:
        registration = promote_next(db, event_id)
        if registration is None:
            return promoted
        promoted.append(registration)
