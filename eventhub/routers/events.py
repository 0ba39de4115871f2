"""Event API routes: delegates to event_service for invariant enforcement."""
import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session

from eventhub.database import get_db
from eventhub.deps import get_current_user, get_notifier, get_now, get_optional_user, require_admin
from eventhub.models.event import EventCategory, EventStatus, Visibility
from eventhub.models.user import User
from eventhub.schemas.common import ApiResponse, MessageResponse
from eventhub.schemas.event import EventCreate, EventOut, EventStatsOut, EventUpdate
from eventhub.services import event_service, storage

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=ApiResponse[list[EventOut]])
def list_events(
    category: Optional[str] = Query(None, description="Event category, or 'all'"),
    status_filter: Optional[EventStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    from_date: Optional[datetime] = Query(None),
    to_date: Optional[datetime] = Query(None),
    visibility: Optional[Visibility] = Query(None),
    viewer: Optional[User] = Depends(get_optional_user),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    """List events; defaults to active, public events for non-admins."""
    if category and category != "all":
        try:
            category = EventCategory(category).value
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid category: {category}")
    events = event_service.list_events(
        db,
        now,
        viewer=viewer,
        category=category,
        status_filter=status_filter,
        search=search,
        from_date=from_date,
        to_date=to_date,
        visibility=visibility,
    )
    return {"success": True, "count": len(events), "data": events}


@router.get("/my/organized", response_model=ApiResponse[list[EventOut]])
def my_organized_events(user: User = Depends(require_admin), db: Session = Depends(get_db)):
    events = event_service.list_events_by_organizer(db, user.user_id, viewer=user)
    return {"success": True, "count": len(events), "data": events}


@router.get("/organizer/{organizer_id}", response_model=ApiResponse[list[EventOut]])
def events_by_organizer(
    organizer_id: str,
    viewer: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    events = event_service.list_events_by_organizer(db, organizer_id, viewer=viewer)
    return {"success": True, "count": len(events), "data": events}


@router.get("/{event_id}", response_model=ApiResponse[EventOut])
def get_event(event_id: str, now: datetime = Depends(get_now), db: Session = Depends(get_db)):
    """Fetch a single event; its status is re-derived from the clock first."""
    return {"success": True, "data": event_service.get_event(db, event_id, now)}


@router.post("/", response_model=ApiResponse[EventOut], status_code=status.HTTP_201_CREATED)
def create_event(
    payload: EventCreate,
    user: User = Depends(require_admin),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    event = event_service.create_event(db, user, payload.model_dump(), now)
    return {"success": True, "data": event}


@router.put("/{event_id}", response_model=ApiResponse[EventOut])
def update_event(
    event_id: str,
    payload: EventUpdate,
    user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
    notifier=Depends(get_notifier),
    db: Session = Depends(get_db),
):
    """Update an event (organizer or admin)."""
    updates = payload.model_dump(exclude_unset=True)
    event = event_service.update_event(db, event_id, user, updates, now, notifier=notifier)
    return {"success": True, "data": event}


@router.delete("/{event_id}", response_model=MessageResponse)
def delete_event(event_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    event_service.delete_event(db, event_id, user)
    return {"success": True, "message": "Event deleted successfully"}


@router.post("/{event_id}/banner", response_model=ApiResponse[str])
async def upload_banner(
    event_id: str,
    banner: UploadFile = File(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    event = event_service.get_event_or_404(db, event_id)
    event_service.check_authorization(event, user)
    url = await storage.save_banner(banner, event_id)
    event_service.set_banner(db, event, user, url)
    return {"success": True, "data": url}


@router.get("/{event_id}/stats", response_model=ApiResponse[EventStatsOut])
def event_stats(event_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, "data": event_service.get_event_stats(db, event_id, user)}
