"""FastAPI dependencies: current user, clock, notifier and calendar client.

Tests override ``get_now``, ``get_notifier`` and ``get_calendar_client`` through
``app.dependency_overrides``.
"""
from datetime import datetime
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from eventhub.database import get_db
from eventhub.models.user import User
from eventhub.security import decode_access_token
from eventhub.services.calendar_service import GoogleCalendarClient
from eventhub.services.notifier import EmailNotifier
from eventhub.services.status_service import utcnow

bearer_scheme = HTTPBearer(auto_error=False)


def get_now() -> datetime:
    return utcnow()


def get_notifier() -> EmailNotifier:
    return EmailNotifier()


def get_calendar_client() -> GoogleCalendarClient:
    return GoogleCalendarClient()


def _token_from_request(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get("token")


def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Optional[User]:
    token = _token_from_request(request, credentials)
    if not token:
        return None
    user_id = decode_access_token(token)
    if not user_id:
        return None
    return db.query(User).filter(User.user_id == user_id).first()


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized to access this route",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"User role {user.role.value} is not authorized to access this route",
        )
    return user
