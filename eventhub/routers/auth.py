"""Auth API routes: accounts, session tokens and Google Calendar connection."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from eventhub.config import settings
from eventhub.database import get_db
from eventhub.deps import get_calendar_client, get_current_user
from eventhub.models.user import User
from eventhub.schemas.common import ApiResponse, MessageResponse
from eventhub.schemas.user import (
    AuthUrlOut, PasswordUpdate, TokenOut, UserDetailsUpdate, UserLogin, UserOut, UserRegister,
)
from eventhub.security import (
    create_access_token, create_oauth_state, decode_oauth_state, hash_password, verify_password,
)
from eventhub.services.calendar_service import CalendarSyncError

logger = logging.getLogger(__name__)
router = APIRouter()


def _token_response(user: User, response: Response) -> dict:
    token = create_access_token(user.user_id)
    response.set_cookie(
        key="token",
        value=token,
        httponly=True,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return {"success": True, "token": token, "data": user}


@router.post("/register", response_model=TokenOut, status_code=status.HTTP_201_CREATED)
def register(payload: UserRegister, response: Response, db: Session = Depends(get_db)):
    if db.query(User).filter(User.email == payload.email).first():
        raise HTTPException(status_code=400, detail="User already exists with this email")

    user = User(
        name=payload.name,
        email=payload.email,
        phone=payload.phone,
        role=payload.role,
        default_timezone=payload.default_timezone,
        password_hash=hash_password(payload.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created user %s (%s)", user.user_id, user.email)
    return _token_response(user, response)


@router.post("/login", response_model=TokenOut)
def login(payload: UserLogin, response: Response, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == payload.email).first()
    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return _token_response(user, response)


@router.get("/me", response_model=ApiResponse[UserOut])
def me(user: User = Depends(get_current_user)):
    return {"success": True, "data": user}


@router.get("/logout", response_model=MessageResponse)
def logout(response: Response, user: User = Depends(get_current_user)):
    response.delete_cookie("token")
    return {"success": True, "message": "Logged out successfully"}


@router.put("/updatedetails", response_model=ApiResponse[UserOut])
def update_details(
    payload: UserDetailsUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    updates = payload.model_dump(exclude_unset=True)
    new_email = updates.get("email")
    if new_email and new_email != user.email:
        if db.query(User).filter(User.email == new_email).first():
            raise HTTPException(status_code=400, detail="User already exists with this email")
    for field, value in updates.items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    logger.info("Updated user %s", user.user_id)
    return {"success": True, "data": user}


@router.put("/updatepassword", response_model=TokenOut)
def update_password(
    payload: PasswordUpdate,
    response: Response,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not verify_password(payload.current_password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Password is incorrect")
    user.password_hash = hash_password(payload.new_password)
    db.commit()
    db.refresh(user)
    return _token_response(user, response)


@router.get("/google/url", response_model=AuthUrlOut)
def google_auth_url(user: User = Depends(get_current_user), calendar_client=Depends(get_calendar_client)):
    if not calendar_client.configured:
        raise HTTPException(
            status_code=400,
            detail="Google Calendar not configured. Please set GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET",
        )
    url = calendar_client.get_authorization_url(create_oauth_state(user.user_id))
    return {"success": True, "auth_url": url}


@router.get("/google/callback", response_model=MessageResponse)
def google_callback(
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    calendar_client=Depends(get_calendar_client),
    db: Session = Depends(get_db),
):
    """OAuth redirect target; the signed ``state`` identifies the user."""
    if not code:
        raise HTTPException(status_code=400, detail="Authorization code is required")
    if not state:
        raise HTTPException(status_code=400, detail="State parameter is required")

    user_id = decode_oauth_state(state)
    if not user_id:
        raise HTTPException(status_code=400, detail="Invalid or expired state parameter")
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    try:
        tokens = calendar_client.exchange_code_for_tokens(code)
    except CalendarSyncError as exc:
        raise HTTPException(status_code=500, detail=f"Failed to save Google tokens: {exc}")

    user.google_access_token = tokens["access_token"]
    if tokens.get("refresh_token"):
        user.google_refresh_token = tokens["refresh_token"]
    db.commit()
    logger.info("Connected Google Calendar for user %s", user_id)
    return {"success": True, "message": "Google Calendar connected successfully"}
