"""Role and permission management. Every endpoint is restricted to super admins."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_user
from app.core.database import get_db
from app.schemas.admin import AccountView
from app.schemas.auth import CurrentUser
from app.schemas.common import MessageResponse
from app.schemas.rbac import (
    AssignPermissionsRequest,
    AssignRolesRequest,
    PermissionCreate,
    PermissionView,
    RoleCreate,
    RoleView,
)
from app.services import permissions as rbac

router = APIRouter()


@router.post("/permissions", response_model=PermissionView, status_code=status.HTTP_201_CREATED)
def create_permission(
    body: PermissionCreate,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> PermissionView:
    permission = rbac.create_permission(db, current_user.id, body.name, body.description)
    return PermissionView.model_validate(permission)


@router.get("/permissions", response_model=list[PermissionView])
def list_permissions(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> list[PermissionView]:
    return [PermissionView.model_validate(p) for p in rbac.list_permissions(db, current_user.id)]


@router.delete("/permissions/{permission_id}", response_model=MessageResponse)
def delete_permission(
    permission_id: uuid.UUID,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    rbac.delete_permission(db, current_user.id, permission_id)
    return MessageResponse(message="Permission deleted successfully")


@router.post("/roles", response_model=RoleView, status_code=status.HTTP_201_CREATED)
def create_role(
    body: RoleCreate,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> RoleView:
    role = rbac.create_role(
        db, current_user.id, body.name, body.description, body.is_system_role
    )
    return RoleView.model_validate(role)


@router.get("/roles", response_model=list[RoleView])
def list_roles(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> list[RoleView]:
    return [RoleView.model_validate(r) for r in rbac.list_roles(db, current_user.id)]


@router.delete("/roles/{role_id}", response_model=MessageResponse)
def delete_role(
    role_id: uuid.UUID,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Delete a role. System roles are refused with PERMISSION_DENIED."""
    rbac.delete_role(db, current_user.id, role_id)
    return MessageResponse(message="Role deleted successfully")


@router.post("/roles/{role_id}/permissions", response_model=RoleView)
def assign_permissions(
    role_id: uuid.UUID,
    body: AssignPermissionsRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> RoleView:
    """Replace the role's permission set."""
    role = rbac.assign_permissions_to_role(db, current_user.id, role_id, body.permission_ids)
    return RoleView.model_validate(role)


@router.delete("/roles/{role_id}/permissions/{permission_id}", response_model=RoleView)
def remove_permission(
    role_id: uuid.UUID,
    permission_id: uuid.UUID,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> RoleView:
    role = rbac.remove_permission_from_role(db, current_user.id, role_id, permission_id)
    return RoleView.model_validate(role)


@router.post("/users/{user_id}/roles", response_model=AccountView)
def assign_roles(
    user_id: uuid.UUID,
    body: AssignRolesRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> AccountView:
    """Replace the account's role set."""
    account = rbac.assign_roles(db, current_user.id, user_id, body.role_ids)
    return AccountView.model_validate(account)


@router.delete("/users/{user_id}/roles/{role_id}", response_model=AccountView)
def remove_role(
    user_id: uuid.UUID,
    role_id: uuid.UUID,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> AccountView:
    account = rbac.remove_role_from_account(db, current_user.id, user_id, role_id)
    return AccountView.model_validate(account)
