"""SQLAlchemy ORM models."""

from app.models.account import Account, account_roles
from app.models.audit import AuditLog
from app.models.base import Base
from app.models.role import Permission, Role, role_permissions
from app.models.session import RefreshSession

__all__ = [
    "Account",
    "AuditLog",
    "Base",
    "Permission",
    "RefreshSession",
    "Role",
    "account_roles",
    "role_permissions",
]
