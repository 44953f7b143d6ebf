"""Idempotent seeding of default permissions, system roles and the super admin account.

Run once before the service accepts traffic (FastAPI lifespan or ``python -m app.bootstrap``).
Every insert is guarded by an existence check, so repeated runs change nothing.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from app.core.clock import utcnow
from app.core.security import hash_password, normalize_email
from app.models import Account, Permission, Role
from app.models.account import APPROVAL_APPROVED
from app.models.role import SUPER_ADMIN_ROLE

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_PERMISSIONS: dict[str, str] = {
    "users:view": "List and view accounts",
    "users:approve": "Approve pending accounts",
    "users:reject": "Reject accounts",
    "users:delete": "Deactivate accounts",
}

# name -> (description, permission names). super_admin needs no grants.
DEFAULT_ROLES: dict[str, tuple[str, tuple[str, ...]]] = {
    SUPER_ADMIN_ROLE: ("Full access to every permission", ()),
    "admin": ("Account administration", tuple(DEFAULT_PERMISSIONS)),
    "user": ("Default role for registered accounts", ()),
}


@dataclass
class BootstrapResult:
    permissions_created: int = 0
    roles_created: int = 0
    admin_created: bool = False


def _ensure_permissions(db: Session, result: BootstrapResult) -> dict[str, Permission]:
    by_name = {p.name: p for p in db.query(Permission).all()}
    for name, description in DEFAULT_PERMISSIONS.items():
        if name not in by_name:
            permission = Permission(name=name, description=description)
            db.add(permission)
            by_name[name] = permission
            result.permissions_created += 1
    return by_name


def _ensure_roles(
    db: Session, permissions: dict[str, Permission], result: BootstrapResult
) -> dict[str, Role]:
    by_name = {r.name: r for r in db.query(Role).all()}
    for name, (description, granted) in DEFAULT_ROLES.items():
        if name in by_name:
            continue
        role = Role(name=name, description=description, is_system_role=True)
        role.permissions = [permissions[p] for p in granted]
        db.add(role)
        by_name[name] = role
        result.roles_created += 1
    return by_name


def _ensure_super_admin(
    db: Session, settings: "Settings", roles: dict[str, Role], result: BootstrapResult
) -> None:
    email = normalize_email(settings.BOOTSTRAP_ADMIN_EMAIL)
    if db.query(Account).filter(Account.email == email).first() is not None:
        logger.info("Super admin account already exists: %s", email)
        return
    admin = Account(
        email=email,
        password_hash=hash_password(
            settings.BOOTSTRAP_ADMIN_PASSWORD.get_secret_value(),
            rounds=settings.BCRYPT_ROUNDS,
        ),
        full_name=settings.BOOTSTRAP_ADMIN_NAME,
        approval_status=APPROVAL_APPROVED,
        approved_at=utcnow(),
        active=True,
    )
    admin.roles.append(roles[SUPER_ADMIN_ROLE])
    db.add(admin)
    result.admin_created = True
    logger.warning(
        "Created super admin account %s; change the default password before production use",
        email,
    )


def run_bootstrap(db: Session, settings: "Settings") -> BootstrapResult:
    """Seed defaults if missing and commit. Safe to run repeatedly."""
    result = BootstrapResult()
    permissions = _ensure_permissions(db, result)
    roles = _ensure_roles(db, permissions, result)
    _ensure_super_admin(db, settings, roles, result)
    db.commit()
    logger.info(
        "Bootstrap run: permissions_created=%s, roles_created=%s, admin_created=%s",
        result.permissions_created,
        result.roles_created,
        result.admin_created,
    )
    return result
