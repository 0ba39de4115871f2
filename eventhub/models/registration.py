"""Registration ORM model: one RSVP attempt by a user for an event."""
import enum
import uuid
from datetime import datetime, timezone
from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Index, String, text, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from eventhub.database import Base


class RegistrationStatus(str, enum.Enum):
    confirmed = "confirmed"
    waitlist = "waitlist"
    cancelled = "cancelled"


class PaymentStatus(str, enum.Enum):
    pending = "pending"
    completed = "completed"
    failed = "failed"
    refunded = "refunded"
    not_required = "not_required"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Registration(Base):
    __tablename__ = "registrations"
    __table_args__ = (
        # At most one non-cancelled registration per (event, user)
        Index(
            "uq_registrations_active_event_user",
            "event_id",
            "user_id",
            unique=True,
            sqlite_where=text("status != 'cancelled'"),
            postgresql_where=text("status != 'cancelled'"),
        ),
        Index("ix_registrations_event_status", "event_id", "status"),
        Index("ix_registrations_user_status", "user_id", "status"),
    )

    registration_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.event_id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    status = Column(SAEnum(RegistrationStatus), nullable=False, default=RegistrationStatus.confirmed)
    registered_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    payment_status = Column(SAEnum(PaymentStatus), nullable=False, default=PaymentStatus.not_required)
    payment_id = Column(String(100), nullable=True)
    amount = Column(Float, nullable=False, default=0)
    check_in_status = Column(Boolean, nullable=False, default=False)
    check_in_time = Column(DateTime(timezone=True), nullable=True)
    notes = Column(String(500), nullable=True)
    reminder_one_day_sent = Column(Boolean, nullable=False, default=False)
    reminder_one_hour_sent = Column(Boolean, nullable=False, default=False)
    added_to_calendar = Column(Boolean, nullable=False, default=False)
    calendar_event_id = Column(String(255), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    event = relationship("Event", back_populates="registrations")
    user = relationship("User", lazy="joined")

    @property
    def reminders_sent(self) -> dict[str, bool]:
        return {
            "one_day_before": bool(self.reminder_one_day_sent),
            "one_hour_before": bool(self.reminder_one_hour_sent),
        }
