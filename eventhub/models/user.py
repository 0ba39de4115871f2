"""User ORM model: identity, role and Google Calendar tokens."""
import enum
import uuid
from sqlalchemy import Column, String, DateTime, Text, Enum as SAEnum
from sqlalchemy.sql import func
from eventhub.database import Base


class UserRole(str, enum.Enum):
    user = "user"
    admin = "admin"


class User(Base):
    __tablename__ = "users"

    user_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    phone = Column(String(30), nullable=True)
    password_hash = Column(String(255), nullable=False, default="")
    role = Column(SAEnum(UserRole), nullable=False, default=UserRole.user)
    default_timezone = Column(String(50), nullable=False, default="UTC")  # IANA tz
    google_access_token = Column(Text, nullable=True)
    google_refresh_token = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin

    @property
    def calendar_connected(self) -> bool:
        return bool(self.google_access_token)
