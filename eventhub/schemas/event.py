"""Pydantic schemas for Events."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from eventhub.models.event import EventCategory, EventStatus, Visibility
from eventhub.schemas.common import reject_null, to_utc
from eventhub.schemas.user import UserSummary


class Venue(BaseModel):
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None


class EventCreate(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=2000)
    date_time: datetime
    duration_hours: float = Field(2, gt=0)
    location: str = Field(min_length=1, max_length=255)
    venue: Optional[Venue] = None
    category: EventCategory
    capacity: int = Field(ge=1)
    visibility: Visibility = Visibility.public
    tags: list[str] = []
    requirements: Optional[str] = Field(None, max_length=500)
    price: float = Field(0, ge=0)
    is_paid: bool = False
    allow_waitlist: bool = True
    is_active: bool = True

    @field_validator("date_time")
    @classmethod
    def normalize_date_time(cls, value):
        return to_utc(value)


class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=2000)
    date_time: Optional[datetime] = None
    duration_hours: Optional[float] = Field(None, gt=0)
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    venue: Optional[Venue] = None
    category: Optional[EventCategory] = None
    capacity: Optional[int] = Field(None, ge=1)
    status: Optional[EventStatus] = None
    visibility: Optional[Visibility] = None
    tags: Optional[list[str]] = None
    requirements: Optional[str] = Field(None, max_length=500)
    price: Optional[float] = Field(None, ge=0)
    is_paid: Optional[bool] = None
    allow_waitlist: Optional[bool] = None
    is_active: Optional[bool] = None

    @field_validator(
        "title", "description", "date_time", "duration_hours", "location", "category", "capacity",
        "status", "visibility", "tags", "price", "is_paid", "allow_waitlist", "is_active",
    )
    @classmethod
    def not_null(cls, value, info):
        return reject_null(value, info)

    @field_validator("date_time")
    @classmethod
    def normalize_date_time(cls, value):
        return to_utc(value)


class AttendeeOut(BaseModel):
    user_id: str
    joined_at: Optional[datetime] = None
    user: Optional[UserSummary] = None

    model_config = {"from_attributes": True}


class EventOut(BaseModel):
    event_id: str
    title: str
    description: str
    date_time: datetime
    duration_hours: float
    location: str
    venue: Optional[Venue] = None
    category: EventCategory
    capacity: int
    registered_count: int
    available_seats: int
    is_full: bool
    banner_image: str
    organizer_id: str
    organizer: Optional[UserSummary] = None
    status: EventStatus
    visibility: Visibility
    tags: list[str] = []
    requirements: Optional[str] = None
    price: float
    is_paid: bool
    allow_waitlist: bool
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    attendees: list[AttendeeOut] = []

    model_config = {"from_attributes": True}

    @field_validator("date_time", "created_at", "updated_at")
    @classmethod
    def as_utc(cls, value):
        return to_utc(value)


class EventSummaryOut(BaseModel):
    """Compact event view embedded in registration responses."""
    event_id: str
    title: str
    date_time: datetime
    duration_hours: float
    location: str
    category: EventCategory
    status: EventStatus
    banner_image: str
    organizer: Optional[UserSummary] = None

    model_config = {"from_attributes": True}

    @field_validator("date_time")
    @classmethod
    def as_utc(cls, value):
        return to_utc(value)


class EventStatsOut(BaseModel):
    total_registrations: int
    confirmed_registrations: int
    waitlist_registrations: int
    cancelled_registrations: int
    checked_in: int
    available_seats: int
    capacity_percentage: float


# Rebuild EventOut now that AttendeeOut is defined
EventOut.model_rebuild()
