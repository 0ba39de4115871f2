"""Response envelope shared by every endpoint: ``{success, message?, count?, data?}``."""
from datetime import datetime, timezone
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    count: Optional[int] = None
    data: Optional[T] = None


class MessageResponse(BaseModel):
    success: bool = True
    message: str


def to_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Validator helper: treat naive input as UTC, convert aware input to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def reject_null(value, info):
    """Validator helper for partial updates: a field may be omitted but not set to null."""
    if value is None:
        raise ValueError(f"{info.field_name} cannot be null")
    return value
