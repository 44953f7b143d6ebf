"""Pydantic request/response schemas."""

from app.schemas.admin import AccountListResponse, AccountView, Pagination, RejectRequest
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
    RoleInfo,
    SignupRequest,
    UserInfo,
)
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.health import HealthResponse
from app.schemas.rbac import (
    AssignPermissionsRequest,
    AssignRolesRequest,
    PermissionCreate,
    PermissionView,
    RoleCreate,
    RoleView,
)

__all__ = [
    "AccountListResponse",
    "AccountView",
    "AssignPermissionsRequest",
    "AssignRolesRequest",
    "CurrentUser",
    "ErrorResponse",
    "HealthResponse",
    "LoginRequest",
    "LoginResult",
    "LogoutRequest",
    "MessageResponse",
    "Pagination",
    "PasswordResetConfirm",
    "PasswordResetRequest",
    "PermissionCreate",
    "PermissionView",
    "ProfileView",
    "RefreshRequest",
    "RefreshResult",
    "RejectRequest",
    "RoleCreate",
    "RoleInfo",
    "RoleView",
    "SignupRequest",
    "UserInfo",
]
