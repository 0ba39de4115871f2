"""Pydantic schemas for Registrations."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, field_validator

from eventhub.models.registration import PaymentStatus, RegistrationStatus
from eventhub.schemas.common import to_utc
from eventhub.schemas.event import EventSummaryOut
from eventhub.schemas.user import UserSummary


class RemindersSentOut(BaseModel):
    one_day_before: bool
    one_hour_before: bool


class RegistrationOut(BaseModel):
    registration_id: str
    event_id: str
    user_id: str
    status: RegistrationStatus
    registered_at: datetime
    payment_status: PaymentStatus
    amount: float
    check_in_status: bool
    check_in_time: Optional[datetime] = None
    notes: Optional[str] = None
    reminders_sent: RemindersSentOut
    added_to_calendar: bool
    calendar_event_id: Optional[str] = None
    event: Optional[EventSummaryOut] = None
    user: Optional[UserSummary] = None

    model_config = {"from_attributes": True}

    @field_validator("registered_at", "check_in_time")
    @classmethod
    def as_utc(cls, value):
        return to_utc(value)


class CalendarEventOut(BaseModel):
    id: str
    html_link: Optional[str] = None
