"""Event ORM model."""
import uuid
import enum
from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, Float, ForeignKey, Index, Integer, JSON, String, Text,
    Enum as SAEnum,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from eventhub.database import Base


class EventStatus(str, enum.Enum):
    upcoming = "upcoming"
    ongoing = "ongoing"
    completed = "completed"
    cancelled = "cancelled"


class EventCategory(str, enum.Enum):
    conference = "conference"
    workshop = "workshop"
    seminar = "seminar"
    webinar = "webinar"
    meetup = "meetup"
    networking = "networking"
    social = "social"
    sports = "sports"
    cultural = "cultural"
    tech = "tech"
    other = "other"


class Visibility(str, enum.Enum):
    public = "public"
    private = "private"


DEFAULT_BANNER = "/static/banners/event-default.jpg"


class Event(Base):
    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint("capacity >= 1", name="ck_events_capacity_positive"),
        CheckConstraint("registered_count >= 0", name="ck_events_registered_nonnegative"),
        Index("ix_events_date_time_status", "date_time", "status"),
    )

    event_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    date_time = Column(DateTime(timezone=True), nullable=False)
    duration_hours = Column(Float, nullable=False, default=2)
    location = Column(String(255), nullable=False)
    venue = Column(JSON, nullable=True)
    category = Column(SAEnum(EventCategory), nullable=False, index=True)
    capacity = Column(Integer, nullable=False)
    registered_count = Column(Integer, nullable=False, default=0)
    banner_image = Column(String(500), nullable=False, default=DEFAULT_BANNER)
    organizer_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    status = Column(SAEnum(EventStatus), nullable=False, default=EventStatus.upcoming)
    visibility = Column(SAEnum(Visibility), nullable=False, default=Visibility.public)
    tags = Column(JSON, nullable=False, default=list)
    requirements = Column(String(500), nullable=True)
    price = Column(Float, nullable=False, default=0)
    is_paid = Column(Boolean, nullable=False, default=False)
    allow_waitlist = Column(Boolean, nullable=False, default=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    organizer = relationship("User", lazy="joined")
    attendees = relationship("EventAttendee", back_populates="event", cascade="all, delete-orphan")
    registrations = relationship("Registration", back_populates="event", cascade="all, delete-orphan")

    @property
    def is_full(self) -> bool:
        return self.registered_count >= self.capacity

    @property
    def available_seats(self) -> int:
        return max(self.capacity - self.registered_count, 0)

    def summary(self) -> dict:
        """The event fields handed to the notifier and calendar client."""
        return {
            "title": self.title,
            "date_time": self.date_time,
            "duration_hours": self.duration_hours,
            "location": self.location,
            "description": self.description,
        }
