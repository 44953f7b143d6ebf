"""Request/response schemas for auth endpoints."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class SignupRequest(BaseModel):
    """New account details. Accounts start pending approval."""

    email: str = Field(..., min_length=1, max_length=255, description="Email address")
    password: str = Field(..., min_length=8, max_length=128, description="Password")
    full_name: str | None = Field(default=None, max_length=255, description="Display name")
    mobile: str | None = Field(default=None, max_length=32)
    national_id: str | None = Field(default=None, max_length=64)


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: str = Field(..., min_length=1, max_length=255, description="Email address")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1, description="Refresh token from login")


class LogoutRequest(BaseModel):
    refresh_token: str | None = Field(default=None, description="Refresh token to revoke")


class PasswordResetRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=255)


class PasswordResetConfirm(BaseModel):
    token: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=8, max_length=128)


class RoleInfo(BaseModel):
    """Role summary embedded in profile views."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: str | None = None


class UserInfo(BaseModel):
    """Basic profile returned with a successful login."""

    id: uuid.UUID
    email: str
    full_name: str
    approval_status: str
    roles: list[str]
    permissions: list[str]


class LoginResult(BaseModel):
    """Tokens issued after a successful login."""

    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="Refresh token (server-revocable)")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Access token lifetime in seconds")
    user: UserInfo


class RefreshResult(BaseModel):
    access_token: str = Field(..., description="New JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Access token lifetime in seconds")


class ProfileView(BaseModel):
    """Profile of the authenticated account with freshly resolved permissions."""

    id: uuid.UUID
    email: str
    full_name: str
    mobile: str | None = None
    approval_status: str
    is_active: bool
    roles: list[RoleInfo]
    permissions: list[str]
    created_at: datetime | None = None
    approved_at: datetime | None = None
    approved_by_user_id: uuid.UUID | None = None


class CurrentUser(BaseModel):
    """Authenticated caller as decoded from the access token (no store round-trip)."""

    id: uuid.UUID
    permissions: list[str]
