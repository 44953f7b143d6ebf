"""Schemas for account administration (approval workflow and listing)."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.auth import RoleInfo


class AccountView(BaseModel):
    """Account as seen by administrators (no password or reset fields)."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    full_name: str
    mobile: str | None = None
    approval_status: str
    active: bool
    approved_by: uuid.UUID | None = None
    approved_at: datetime | None = None
    rejection_reason: str | None = None
    roles: list[RoleInfo] = []
    created_at: datetime | None = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_previous: bool


class AccountListResponse(BaseModel):
    users: list[AccountView]
    pagination: Pagination


class RejectRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=2000, description="Shown to administrators")
