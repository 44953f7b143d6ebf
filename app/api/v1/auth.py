"""Signup, login, logout, token refresh, profile and password reset; plus the bearer-token dependency."""

from typing import Annotated

from fastapi import APIRouter, Body, Depends, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.errors import UnauthorizedError
from app.schemas.admin import AccountView
from app.schemas.auth import (
    CurrentUser,
    LoginRequest,
    LoginResult,
    LogoutRequest,
    PasswordResetConfirm,
    PasswordResetRequest,
    ProfileView,
    RefreshRequest,
    RefreshResult,
    SignupRequest,
)
from app.schemas.common import MessageResponse
from app.services import accounts, auth, tokens

router = APIRouter()
security = HTTPBearer(auto_error=False)


def _bearer_token(credentials: HTTPAuthorizationCredentials | None) -> str:
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Not authenticated.")
    return credentials.credentials


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> CurrentUser:
    """
    Dependency: require a valid Bearer access token and return the caller.

    Decoded from the token alone (no store lookup). Every failure is a 401 UNAUTHORIZED.
    """
    token = _bearer_token(credentials)
    claims = tokens.decode_access_claims(token, settings)
    return CurrentUser(
        id=tokens.subject_from_claims(claims),
        permissions=list(claims[tokens.PERMISSIONS_CLAIM]),
    )


@router.post("/signup", response_model=AccountView, status_code=status.HTTP_201_CREATED)
def signup(
    body: SignupRequest,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AccountView:
    """Register a new account. It stays pending until an administrator approves it."""
    account = accounts.register(
        db,
        settings,
        email=body.email,
        password=body.password,
        full_name=body.full_name,
        mobile=body.mobile,
        national_id=body.national_id,
    )
    return AccountView.model_validate(account)


@router.post("/login", response_model=LoginResult)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> LoginResult:
    """
    Authenticate with email and password; returns an access token and a refresh token.
    Include the access token in the Authorization header as: Bearer <access_token>
    """
    return auth.login(db, settings, body.email, body.password)


@router.post("/logout", response_model=MessageResponse)
def logout(
    db: Annotated[Session, Depends(get_db)],
    body: Annotated[LogoutRequest | None, Body()] = None,
) -> MessageResponse:
    """Revoke the supplied refresh token. Always succeeds."""
    auth.logout(db, body.refresh_token if body else None)
    return MessageResponse(message="Logged out successfully")


@router.post("/refresh-token", response_model=RefreshResult)
def refresh_token(
    body: RefreshRequest,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> RefreshResult:
    """Exchange a live refresh token for a new access token with current permissions."""
    return auth.refresh(db, settings, body.refresh_token)


@router.get("/me", response_model=ProfileView)
def me(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ProfileView:
    """Profile of the authenticated account."""
    return auth.get_profile(db, settings, _bearer_token(credentials))


@router.post("/request-password-reset", response_model=MessageResponse)
def request_password_reset(
    body: PasswordResetRequest,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> MessageResponse:
    """Send a reset token if the account exists. The response never reveals whether it does."""
    message = auth.request_password_reset(db, settings, body.email)
    return MessageResponse(message=message)


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    body: PasswordResetConfirm,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> MessageResponse:
    """Set a new password using a single-use reset token."""
    auth.reset_password(db, settings, body.token, body.new_password)
    return MessageResponse(message="Password reset successful")
