"""Schemas for role and permission management."""

import uuid

from pydantic import BaseModel, ConfigDict, Field


class PermissionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=128, description="Capability name, e.g. users:approve")
    description: str | None = None


class PermissionView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: str | None = None


class RoleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=64)
    description: str | None = None
    is_system_role: bool = False


class RoleView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: str | None = None
    is_system_role: bool
    permissions: list[PermissionView] = []


class AssignPermissionsRequest(BaseModel):
    permission_ids: list[uuid.UUID] = Field(..., min_length=1, description="Replaces the role's permission set")


class AssignRolesRequest(BaseModel):
    role_ids: list[uuid.UUID] = Field(..., min_length=1, description="Replaces the account's role set")
