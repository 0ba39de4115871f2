"""Pydantic schemas for Users and authentication."""
from __future__ import annotations
from datetime import datetime
from typing import Optional

import pytz
from pydantic import BaseModel, EmailStr, Field, field_validator

from eventhub.models.user import UserRole
from eventhub.schemas.common import reject_null


def _check_timezone(value: Optional[str]) -> Optional[str]:
    if value is not None and value not in pytz.all_timezones_set:
        raise ValueError(f"Unknown timezone: {value}")
    return value


class UserRegister(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6)
    role: UserRole = UserRole.user
    phone: Optional[str] = None
    default_timezone: str = "UTC"

    @field_validator("default_timezone")
    @classmethod
    def valid_timezone(cls, value):
        return _check_timezone(value)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserDetailsUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    default_timezone: Optional[str] = None

    @field_validator("name", "email", "default_timezone")
    @classmethod
    def not_null(cls, value, info):
        return reject_null(value, info)

    @field_validator("default_timezone")
    @classmethod
    def valid_timezone(cls, value):
        return _check_timezone(value)


class PasswordUpdate(BaseModel):
    current_password: str
    new_password: str = Field(min_length=6)


class UserSummary(BaseModel):
    user_id: str
    name: str
    email: str

    model_config = {"from_attributes": True}


class UserOut(BaseModel):
    user_id: str
    name: str
    email: str
    phone: Optional[str] = None
    role: UserRole
    default_timezone: str
    calendar_connected: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TokenOut(BaseModel):
    success: bool = True
    token: str
    data: UserOut


class AuthUrlOut(BaseModel):
    success: bool = True
    auth_url: str
