"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates all tables for the EventHub application:
users, events, event_attendees, registrations.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum("user", "admin", name="userrole")
event_category = sa.Enum(
    "conference", "workshop", "seminar", "webinar", "meetup", "networking",
    "social", "sports", "cultural", "tech", "other",
    name="eventcategory",
)
event_status = sa.Enum("upcoming", "ongoing", "completed", "cancelled", name="eventstatus")
visibility = sa.Enum("public", "private", name="visibility")
registration_status = sa.Enum("confirmed", "waitlist", "cancelled", name="registrationstatus")
payment_status = sa.Enum("pending", "completed", "failed", "refunded", "not_required", name="paymentstatus")


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=False, server_default=""),
        sa.Column("role", user_role, nullable=False, server_default="user"),
        sa.Column("default_timezone", sa.String(50), nullable=False, server_default="UTC"),
        sa.Column("google_access_token", sa.Text, nullable=True),
        sa.Column("google_refresh_token", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # --- events ---
    op.create_table(
        "events",
        sa.Column("event_id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("date_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration_hours", sa.Float, nullable=False, server_default="2"),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("venue", sa.JSON, nullable=True),
        sa.Column("category", event_category, nullable=False),
        sa.Column("capacity", sa.Integer, nullable=False),
        sa.Column("registered_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("banner_image", sa.String(500), nullable=False),
        sa.Column("organizer_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("status", event_status, nullable=False, server_default="upcoming"),
        sa.Column("visibility", visibility, nullable=False, server_default="public"),
        sa.Column("tags", sa.JSON, nullable=False),
        sa.Column("requirements", sa.String(500), nullable=True),
        sa.Column("price", sa.Float, nullable=False, server_default="0"),
        sa.Column("is_paid", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("allow_waitlist", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("capacity >= 1", name="ck_events_capacity_positive"),
        sa.CheckConstraint("registered_count >= 0", name="ck_events_registered_nonnegative"),
    )
    op.create_index("ix_events_date_time_status", "events", ["date_time", "status"])
    op.create_index("ix_events_category", "events", ["category"])
    op.create_index("ix_events_organizer_id", "events", ["organizer_id"])

    # --- event_attendees ---
    op.create_table(
        "event_attendees",
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.event_id", ondelete="CASCADE"),
                  primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.user_id"), primary_key=True),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- registrations ---
    op.create_table(
        "registrations",
        sa.Column("registration_id", sa.String(36), primary_key=True),
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.event_id", ondelete="CASCADE"),
                  nullable=False),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("status", registration_status, nullable=False, server_default="confirmed"),
        sa.Column("registered_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("payment_status", payment_status, nullable=False, server_default="not_required"),
        sa.Column("payment_id", sa.String(100), nullable=True),
        sa.Column("amount", sa.Float, nullable=False, server_default="0"),
        sa.Column("check_in_status", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("check_in_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.String(500), nullable=True),
        sa.Column("reminder_one_day_sent", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("reminder_one_hour_sent", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("added_to_calendar", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("calendar_event_id", sa.String(255), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(
        "uq_registrations_active_event_user",
        "registrations",
        ["event_id", "user_id"],
        unique=True,
        sqlite_where=sa.text("status != 'cancelled'"),
        postgresql_where=sa.text("status != 'cancelled'"),
    )
    op.create_index("ix_registrations_event_status", "registrations", ["event_id", "status"])
    op.create_index("ix_registrations_user_status", "registrations", ["user_id", "status"])
    op.create_index("ix_registrations_registered_at", "registrations", ["registered_at"])


def downgrade() -> None:
    op.drop_table("registrations")
    op.drop_table("event_attendees")
    op.drop_table("events")
    op.drop_table("users")
    for enum_type in (payment_status, registration_status, visibility, event_status, event_category, user_role):
        enum_type.drop(op.get_bind(), checkfirst=True)
