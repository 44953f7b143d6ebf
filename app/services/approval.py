"""Account approval state machine and the login eligibility gate.

    pending --approve--> approved
    pending --reject---> rejected
    approved --reject--> rejected

``rejected`` is terminal. Deactivation (active -> False) is a separate switch,
orthogonal to approval status; an inactive account cannot log in whatever its status.
"""

import logging
import uuid

from sqlalchemy.orm import Session

from app.core.clock import utcnow
from app.core.errors import (
    AccountInactiveError,
    AccountNotFoundError,
    AccountRejectedError,
    InvalidApprovalTransitionError,
    PendingApprovalError,
)
from app.models import Account
from app.models.account import APPROVAL_APPROVED, APPROVAL_PENDING, APPROVAL_REJECTED
from app.services.audit import record_audit
from app.services.permissions import require_permission
from app.services.tokens import revoke_all_sessions

logger = logging.getLogger(__name__)

PERMISSION_APPROVE = "users:approve"
PERMISSION_REJECT = "users:reject"
PERMISSION_DELETE = "users:delete"

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    APPROVAL_PENDING: frozenset({APPROVAL_APPROVED, APPROVAL_REJECTED}),
    APPROVAL_APPROVED: frozenset({APPROVAL_REJECTED}),
    APPROVAL_REJECTED: frozenset(),
}

REJECTION_REASON_MAX_LEN = 2000


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def can_authenticate(account: Account) -> bool:
    return bool(account.active) and account.approval_status == APPROVAL_APPROVED


def authentication_gate(account: Account) -> None:
    """
    Raise the status-specific error when the account may not log in.

    Inactive is checked first since it overrides approval.
    """
    if not account.active:
        raise AccountInactiveError()
    if account.approval_status == APPROVAL_REJECTED:
        raise AccountRejectedError()
    if account.approval_status != APPROVAL_APPROVED:
        raise PendingApprovalError()


def _load_target(db: Session, target_id: uuid.UUID) -> Account:
    account = db.get(Account, target_id)
    if account is None:
        raise AccountNotFoundError()
    return account


def _transition(account: Account, target: str) -> None:
    if not can_transition(account.approval_status, target):
        raise InvalidApprovalTransitionError(
            f"Cannot change approval status from {account.approval_status} to {target}."
        )
    account.approval_status = target


def approve(db: Session, actor_id: uuid.UUID, target_id: uuid.UUID) -> Account:
    """Approve a pending account. Requires users:approve."""
    require_permission(db, actor_id, PERMISSION_APPROVE)
    account = _load_target(db, target_id)
    _transition(account, APPROVAL_APPROVED)
    account.approved_by = actor_id
    account.approved_at = utcnow()
    account.rejection_reason = None
    db.commit()
    db.refresh(account)
    logger.info("Account %s approved by %s", account.id, actor_id)
    record_audit("user:approve", "user", account.id, actor_id=actor_id)
    return account


def reject(
    db: Session,
    actor_id: uuid.UUID,
    target_id: uuid.UUID,
    reason: str | None = None,
) -> Account:
    """Reject a pending or approved account. Requires users:reject. Does not deactivate."""
    require_permission(db, actor_id, PERMISSION_REJECT)
    account = _load_target(db, target_id)
    _transition(account, APPROVAL_REJECTED)
    cleaned = (reason or "").strip()
    account.rejection_reason = cleaned[:REJECTION_REASON_MAX_LEN] or None
    db.commit()
    db.refresh(account)
    logger.info("Account %s rejected by %s", account.id, actor_id)
    record_audit("user:reject", "user", account.id, actor_id=actor_id, details=account.rejection_reason)
    return account


def deactivate(db: Session, actor_id: uuid.UUID, target_id: uuid.UUID) -> Account:
    """Set active = False and revoke the account's refresh sessions. Requires users:delete."""
    require_permission(db, actor_id, PERMISSION_DELETE)
    account = _load_target(db, target_id)
    if account.active:
        account.active = False
        revoke_all_sessions(db, account.id)
        db.commit()
        db.refresh(account)
        logger.info("Account %s deactivated by %s", account.id, actor_id)
    record_audit("user:delete", "user", account.id, actor_id=actor_id)
    return account
