"""Registration / RSVP API routes."""
import logging
from datetime import datetime
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from eventhub.database import get_db
from eventhub.deps import get_calendar_client, get_current_user, get_notifier, get_now
from eventhub.models.registration import RegistrationStatus
from eventhub.models.user import User
from eventhub.schemas.common import ApiResponse
from eventhub.schemas.registration import CalendarEventOut, RegistrationOut
from eventhub.services import registration_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/my", response_model=ApiResponse[list[RegistrationOut]])
def my_registrations(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    registrations = registration_service.list_my_registrations(db, user)
    return {"success": True, "count": len(registrations), "data": registrations}


@router.get("/event/{event_id}", response_model=ApiResponse[list[RegistrationOut]])
def event_registrations(event_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """All registrations for an event (organizer or admin)."""
    registrations = registration_service.list_event_registrations(db, event_id, user)
    return {"success": True, "count": len(registrations), "data": registrations}


@router.post("/{event_id}", response_model=ApiResponse[RegistrationOut], status_code=status.HTTP_201_CREATED)
def register_for_event(
    event_id: str,
    user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
    notifier=Depends(get_notifier),
    db: Session = Depends(get_db),
):
    """RSVP the current user: confirmed while seats remain, otherwise waitlisted."""
    registration = registration_service.register(db, event_id, user, now, notifier=notifier)
    message = (
        "Successfully registered for the event"
        if registration.status == RegistrationStatus.confirmed
        else "Added to waitlist"
    )
    return {"success": True, "message": message, "data": registration}


@router.get("/{registration_id}", response_model=ApiResponse[RegistrationOut])
def get_registration(registration_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, "data": registration_service.get_registration(db, registration_id, user)}


@router.delete("/{registration_id}", response_model=ApiResponse[RegistrationOut])
def cancel_registration(
    registration_id: str,
    user: User = Depends(get_current_user),
    notifier=Depends(get_notifier),
    db: Session = Depends(get_db),
):
    """Cancel a registration; a freed seat goes to the oldest waitlisted entry."""
    registration, _ = registration_service.cancel(db, registration_id, user, notifier=notifier)
    return {"success": True, "message": "Registration cancelled successfully", "data": registration}


@router.put("/{registration_id}/checkin", response_model=ApiResponse[RegistrationOut])
def check_in(
    registration_id: str,
    user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    registration = registration_service.check_in(db, registration_id, user, now)
    return {"success": True, "message": "Attendee checked in successfully", "data": registration}


@router.post("/{registration_id}/add-to-calendar", response_model=ApiResponse[CalendarEventOut])
def add_to_calendar(
    registration_id: str,
    user: User = Depends(get_current_user),
    calendar_client=Depends(get_calendar_client),
    db: Session = Depends(get_db),
):
    created = registration_service.add_to_calendar(db, registration_id, user, calendar_client)
    return {
        "success": True,
        "message": "Event added to Google Calendar successfully",
        "data": {"id": created["id"], "html_link": created.get("htmlLink")},
    }
