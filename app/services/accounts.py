"""Account registration and lookup."""

import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import AccountNotFoundError, EmailExistsError, InvalidInputError
from app.core.security import (
    EMAIL_MAX_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    hash_password,
    normalize_email,
)
from app.models import Account, Role
from app.models.account import APPROVAL_PENDING, APPROVAL_STATUSES
from app.services.audit import record_audit
from app.services.permissions import require_permission

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "user"
PERMISSION_VIEW = "users:view"
MAX_PAGE_SIZE = 100


def validate_email(email: str | None) -> str:
    """Normalize and validate an email; raise InvalidInputError when missing or malformed."""
    normalized = normalize_email(email or "")
    if not normalized:
        raise InvalidInputError("Email is required.")
    if len(normalized) > EMAIL_MAX_LEN or "@" not in normalized:
        raise InvalidInputError("Invalid email address.")
    return normalized


def validate_password(password: str | None) -> str:
    if not password:
        raise InvalidInputError("Password is required.")
    if not (PASSWORD_MIN_LEN <= len(password) <= PASSWORD_MAX_LEN):
        raise InvalidInputError(
            f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters."
        )
    return password


def get_account(db: Session, account_id: uuid.UUID) -> Account:
    account = db.get(Account, account_id)
    if account is None:
        raise AccountNotFoundError()
    return account


def get_account_by_email(db: Session, email: str) -> Account | None:
    return db.query(Account).filter(Account.email == normalize_email(email)).first()


def register(
    db: Session,
    settings: "Settings",
    email: str,
    password: str,
    full_name: str | None = None,
    mobile: str | None = None,
    national_id: str | None = None,
) -> Account:
    """
    Create a pending, active account with the default role.

    Raises InvalidInputError before touching the store, EmailExistsError on a duplicate email.
    """
    email = validate_email(email)
    validate_password(password)

    if get_account_by_email(db, email) is not None:
        raise EmailExistsError()

    account = Account(
        email=email,
        password_hash=hash_password(password, rounds=settings.BCRYPT_ROUNDS),
        full_name=(full_name or "").strip() or email,
        mobile=mobile,
        national_id=national_id,
        approval_status=APPROVAL_PENDING,
        active=True,
    )
    default_role = db.query(Role).filter(Role.name == DEFAULT_ROLE).first()
    if default_role is not None:
        account.roles.append(default_role)
    else:
        logger.warning("Default role '%s' not found; account created without roles", DEFAULT_ROLE)

    db.add(account)
    try:
        db.commit()
    except IntegrityError:
        # Concurrent signup with the same email won the unique index.
        db.rollback()
        raise EmailExistsError()
    db.refresh(account)
    logger.info("Registered account %s (pending approval)", account.id)
    record_audit("user:signup", "user", account.id, details="Signup")
    return account


def list_accounts(
    db: Session,
    actor_id: uuid.UUID,
    approval_status: str | None = None,
    page: int = 0,
    limit: int = 20,
) -> tuple[list[Account], int]:
    """
    Page through accounts (users:view). Without a status filter only active accounts are listed.

    Returns (accounts, total).
    """
    if approval_status is not None and approval_status not in APPROVAL_STATUSES:
        raise InvalidInputError(
            f"approval_status must be one of {', '.join(APPROVAL_STATUSES)}."
        )
    if page < 0 or not (1 <= limit <= MAX_PAGE_SIZE):
        raise InvalidInputError(f"page must be >= 0 and limit between 1 and {MAX_PAGE_SIZE}.")
    require_permission(db, actor_id, PERMISSION_VIEW)

    query = db.query(Account)
    if approval_status is not None:
        query = query.filter(Account.approval_status == approval_status)
    else:
        query = query.filter(Account.active.is_(True))
    total = query.count()
    accounts = (
        query.order_by(Account.created_at.desc(), Account.email)
        .offset(page * limit)
        .limit(limit)
        .all()
    )
    return accounts, total


def view_account(db: Session, actor_id: uuid.UUID, account_id: uuid.UUID) -> Account:
    require_permission(db, actor_id, PERMISSION_VIEW)
    return get_account(db, account_id)
