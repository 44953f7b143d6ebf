"""Permission resolution and role/permission management (RBAC).

Permissions are flat capability names. An account's effective set is the union
of its roles' permissions, except that membership in the ``super_admin`` role
grants every permission currently defined. Nothing is cached: each call reads
the current assignments.
"""

import logging
import uuid
from collections.abc import Iterable

from sqlalchemy.orm import Session

from app.core.errors import (
    AccountNotFoundError,
    InvalidInputError,
    NotFoundError,
    PermissionDeniedError,
    PermissionExistsError,
    RoleExistsError,
)
from app.models import Account, Permission, Role
from app.models.account import APPROVAL_APPROVED
from app.models.role import SUPER_ADMIN_ROLE
from app.services.audit import record_audit

logger = logging.getLogger(__name__)

ROLE_NAME_MAX_LEN = 64
PERMISSION_NAME_MAX_LEN = 128


def _load_account(db: Session, account_id: uuid.UUID) -> Account:
    account = db.get(Account, account_id)
    if account is None:
        raise AccountNotFoundError()
    return account


def _has_super_admin_role(account: Account) -> bool:
    return any(role.name == SUPER_ADMIN_ROLE for role in account.roles)


def permissions_for(db: Session, account_id: uuid.UUID) -> set[str]:
    """
    Return the effective permission names for an account.

    Raises AccountNotFoundError for an unknown id.
    """
    account = _load_account(db, account_id)
    if _has_super_admin_role(account):
        return {name for (name,) in db.query(Permission.name).all()}
    return {perm.name for role in account.roles for perm in role.permissions}


def has_permission(db: Session, account_id: uuid.UUID, permission_name: str) -> bool:
    """Membership test against a freshly resolved permission set."""
    return permission_name in permissions_for(db, account_id)


def is_super_admin(db: Session, account_id: uuid.UUID) -> bool:
    return _has_super_admin_role(_load_account(db, account_id))


def _load_actor(db: Session, actor_id: uuid.UUID) -> Account | None:
    """The acting account, or None when it is unknown, deactivated or not approved."""
    account = db.get(Account, actor_id)
    if account is None or not account.active or account.approval_status != APPROVAL_APPROVED:
        return None
    return account


def require_permission(db: Session, actor_id: uuid.UUID, permission_name: str) -> None:
    """
    Raise PermissionDeniedError unless the actor holds the permission.

    Unknown, deactivated and unapproved actors are denied whatever their roles.
    """
    allowed = _load_actor(db, actor_id) is not None and has_permission(
        db, actor_id, permission_name
    )
    if not allowed:
        logger.info("Permission %s denied for actor %s", permission_name, actor_id)
        raise PermissionDeniedError()


def require_super_admin(db: Session, actor_id: uuid.UUID) -> None:
    actor = _load_actor(db, actor_id)
    allowed = actor is not None and _has_super_admin_role(actor)
    if not allowed:
        logger.info("Super admin access denied for actor %s", actor_id)
        raise PermissionDeniedError()


def _clean_name(name: str | None, max_len: int, label: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidInputError(f"{label} name is required.")
    if len(cleaned) > max_len:
        raise InvalidInputError(f"{label} name must be at most {max_len} characters.")
    return cleaned


# --- Permissions ---


def create_permission(
    db: Session,
    actor_id: uuid.UUID,
    name: str,
    description: str | None = None,
) -> Permission:
    name = _clean_name(name, PERMISSION_NAME_MAX_LEN, "Permission")
    require_super_admin(db, actor_id)
    if db.query(Permission).filter(Permission.name == name).first() is not None:
        raise PermissionExistsError(f"Permission already exists: {name}")
    permission = Permission(name=name, description=description)
    db.add(permission)
    db.commit()
    db.refresh(permission)
    record_audit("permission:create", "permission", permission.id, actor_id=actor_id, details=name)
    return permission


def list_permissions(db: Session, actor_id: uuid.UUID) -> list[Permission]:
    require_super_admin(db, actor_id)
    return db.query(Permission).order_by(Permission.name).all()


def delete_permission(db: Session, actor_id: uuid.UUID, permission_id: uuid.UUID) -> None:
    require_super_admin(db, actor_id)
    permission = db.get(Permission, permission_id)
    if permission is None:
        raise NotFoundError("Permission not found.")
    db.delete(permission)
    db.commit()
    record_audit("permission:delete", "permission", permission_id, actor_id=actor_id)


# --- Roles ---


def create_role(
    db: Session,
    actor_id: uuid.UUID,
    name: str,
    description: str | None = None,
    is_system_role: bool = False,
) -> Role:
    name = _clean_name(name, ROLE_NAME_MAX_LEN, "Role")
    require_super_admin(db, actor_id)
    if db.query(Role).filter(Role.name == name).first() is not None:
        raise RoleExistsError(f"Role already exists: {name}")
    role = Role(name=name, description=description, is_system_role=is_system_role)
    db.add(role)
    db.commit()
    db.refresh(role)
    record_audit("role:create", "role", role.id, actor_id=actor_id, details=name)
    return role


def list_roles(db: Session, actor_id: uuid.UUID) -> list[Role]:
    require_super_admin(db, actor_id)
    return db.query(Role).order_by(Role.name).all()


def delete_role(db: Session, actor_id: uuid.UUID, role_id: uuid.UUID) -> None:
    """Delete a non-system role. System roles are refused."""
    require_super_admin(db, actor_id)
    role = db.get(Role, role_id)
    if role is None:
        raise NotFoundError("Role not found.")
    if role.is_system_role:
        raise PermissionDeniedError("System roles cannot be deleted.")
    db.delete(role)
    db.commit()
    record_audit("role:delete", "role", role_id, actor_id=actor_id)


def _required_ids(ids: Iterable[uuid.UUID] | None, label: str) -> set[uuid.UUID]:
    unique = set(ids or ())
    if not unique:
        raise InvalidInputError(f"{label} IDs are required.")
    return unique


def _load_permissions(db: Session, permission_ids: Iterable[uuid.UUID]) -> list[Permission]:
    permissions = []
    for permission_id in permission_ids:
        permission = db.get(Permission, permission_id)
        if permission is None:
            raise NotFoundError(f"Permission not found: {permission_id}")
        permissions.append(permission)
    return permissions


def assign_permissions_to_role(
    db: Session,
    actor_id: uuid.UUID,
    role_id: uuid.UUID,
    permission_ids: Iterable[uuid.UUID],
) -> Role:
    """Replace the role's permission set with the given, non-empty set of permissions."""
    permission_ids = _required_ids(permission_ids, "Permission")
    require_super_admin(db, actor_id)
    role = db.get(Role, role_id)
    if role is None:
        raise NotFoundError("Role not found.")
    role.permissions = _load_permissions(db, permission_ids)
    db.commit()
    db.refresh(role)
    record_audit("role:assign-permissions", "role", role_id, actor_id=actor_id)
    return role


def remove_permission_from_role(
    db: Session,
    actor_id: uuid.UUID,
    role_id: uuid.UUID,
    permission_id: uuid.UUID,
) -> Role:
    require_super_admin(db, actor_id)
    role = db.get(Role, role_id)
    if role is None:
        raise NotFoundError("Role not found.")
    permission = db.get(Permission, permission_id)
    if permission is None:
        raise NotFoundError("Permission not found.")
    if permission in role.permissions:
        role.permissions.remove(permission)
        db.commit()
        db.refresh(role)
    record_audit("role:remove-permission", "role", role_id, actor_id=actor_id)
    return role


# --- Account role assignment ---


def assign_roles(
    db: Session,
    actor_id: uuid.UUID,
    account_id: uuid.UUID,
    role_ids: Iterable[uuid.UUID],
) -> Account:
    """Replace the account's role set with a non-empty set. Takes effect on the next permission resolution."""
    role_ids = _required_ids(role_ids, "Role")
    require_super_admin(db, actor_id)
    account = _load_account(db, account_id)
    roles = []
    for role_id in role_ids:
        role = db.get(Role, role_id)
        if role is None:
            raise NotFoundError(f"Role not found: {role_id}")
        roles.append(role)
    account.roles = roles
    db.commit()
    db.refresh(account)
    record_audit("rbac:user-roles-assign", "user", account_id, actor_id=actor_id)
    return account


def remove_role_from_account(
    db: Session,
    actor_id: uuid.UUID,
    account_id: uuid.UUID,
    role_id: uuid.UUID,
) -> Account:
    require_super_admin(db, actor_id)
    account = _load_account(db, account_id)
    role = db.get(Role, role_id)
    if role is None:
        raise NotFoundError("Role not found.")
    if role in account.roles:
        account.roles.remove(role)
        db.commit()
        db.refresh(account)
    record_audit("rbac:user-role-remove", "user", account_id, actor_id=actor_id)
    return account
