"""Login, logout, token refresh and password reset.

This is the only service that combines the password hasher, the approval gate,
the permission resolver and the token engine in one call.
"""

import logging
import secrets
from collections.abc import Callable
from datetime import timedelta
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from app.core.clock import is_expired, utcnow
from app.core.errors import (
    AccountNotFoundError,
    AuthServiceError,
    InvalidCredentialsError,
    InvalidInputError,
    InvalidRefreshTokenError,
    InvalidTokenError,
    TokenExpiredError,
)
from app.core.security import hash_password, verify_password
from app.models import Account
from app.schemas.auth import LoginResult, ProfileView, RefreshResult, RoleInfo, UserInfo
from app.services import tokens
from app.services.accounts import get_account_by_email, validate_email, validate_password
from app.services.approval import authentication_gate, can_authenticate
from app.services.audit import record_audit
from app.services.permissions import permissions_for

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

PASSWORD_RESET_MESSAGE = "If the email exists, a reset link will be sent."
RESET_TOKEN_BYTES = 32

ResetTokenDelivery = Callable[[Account, str], None]


def log_reset_delivery(account: Account, token: str) -> None:
    """Default delivery: record that a token was issued. The token itself is never logged."""
    logger.info("Password reset token issued for account %s", account.id)


def login(db: Session, settings: "Settings", email: str, password: str) -> LoginResult:
    """
    Authenticate and issue an access token plus a refresh session.

    Unknown email and wrong password both fail as InvalidCredentialsError. The
    approval gate runs before the password check and fails with its own reason.
    """
    if not email or not email.strip():
        raise InvalidInputError("Email is required.")
    if not password:
        raise InvalidInputError("Password is required.")

    account = get_account_by_email(db, email)
    if account is None:
        record_audit("auth:login-failed", "user", details="User not found", status="failure")
        raise InvalidCredentialsError()

    try:
        authentication_gate(account)
    except AuthServiceError as e:
        record_audit(
            "auth:login-failed", "user", account.id, actor_id=account.id,
            details=e.code, status="failure",
        )
        raise

    if not verify_password(password, account.password_hash):
        record_audit(
            "auth:login-failed", "user", account.id, actor_id=account.id,
            details="Invalid password", status="failure",
        )
        raise InvalidCredentialsError()

    permissions = permissions_for(db, account.id)
    access_token, expires_in = tokens.issue_access_token(account.id, permissions, settings)
    session = tokens.issue_refresh_token(db, account, settings)

    logger.info("Login succeeded for account %s", account.id)
    record_audit("auth:login", "user", account.id, actor_id=account.id)
    return LoginResult(
        access_token=access_token,
        refresh_token=session.token,
        expires_in=expires_in,
        user=UserInfo(
            id=account.id,
            email=account.email,
            full_name=account.full_name,
            approval_status=account.approval_status,
            roles=sorted(role.name for role in account.roles),
            permissions=sorted(permissions),
        ),
    )


def refresh(db: Session, settings: "Settings", refresh_token: str) -> RefreshResult:
    """
    Mint a new access token from a live refresh session with a fresh permission snapshot.

    The refresh token itself is not rotated.
    """
    session = tokens.find_active_session(db, refresh_token)
    if session is None or not tokens.verify(refresh_token, settings):
        raise InvalidRefreshTokenError()
    account = db.get(Account, session.account_id)
    if account is None or not can_authenticate(account):
        logger.info("Refresh refused for session %s: account not eligible", session.id)
        raise InvalidRefreshTokenError()

    permissions = permissions_for(db, account.id)
    access_token, expires_in = tokens.issue_access_token(account.id, permissions, settings)
    return RefreshResult(access_token=access_token, expires_in=expires_in)


def logout(db: Session, refresh_token: str | None = None) -> None:
    """Revoke the given refresh session if any. Always succeeds."""
    if refresh_token:
        tokens.revoke_session(db, refresh_token)


def get_profile(db: Session, settings: "Settings", access_token: str | None) -> ProfileView:
    """Profile of the token's subject. UnauthorizedError for a bad token, AccountNotFoundError if gone."""
    account_id = tokens.subject_of(access_token, settings)
    account = db.get(Account, account_id)
    if account is None:
        raise AccountNotFoundError()
    permissions = permissions_for(db, account.id)
    return ProfileView(
        id=account.id,
        email=account.email,
        full_name=account.full_name,
        mobile=account.mobile,
        approval_status=account.approval_status,
        is_active=account.active,
        roles=[RoleInfo.model_validate(role) for role in account.roles],
        permissions=sorted(permissions),
        created_at=account.created_at,
        approved_at=account.approved_at,
        approved_by_user_id=account.approved_by,
    )


def request_password_reset(
    db: Session,
    settings: "Settings",
    email: str,
    deliver: ResetTokenDelivery | None = None,
) -> str:
    """
    Issue a single-use reset token if the account exists.

    Returns the same message whether or not it does.
    """
    email = validate_email(email)
    account = get_account_by_email(db, email)
    if account is None:
        return PASSWORD_RESET_MESSAGE

    token = secrets.token_urlsafe(RESET_TOKEN_BYTES)
    account.reset_token = token
    account.reset_token_expiry = utcnow() + timedelta(
        minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES
    )
    db.commit()
    record_audit("auth:password-reset-requested", "user", account.id, actor_id=account.id)
    (deliver or log_reset_delivery)(account, token)
    return PASSWORD_RESET_MESSAGE


def reset_password(
    db: Session,
    settings: "Settings",
    token: str,
    new_password: str,
) -> None:
    """
    Consume a reset token and set a new password.

    The token and its expiry are cleared in the same conditional update that
    stores the new hash, so a token can be consumed at most once. All refresh
    sessions of the account are revoked.
    """
    if not token or not token.strip() or not new_password:
        raise InvalidInputError("Token and new password are required.")
    validate_password(new_password)
    token = token.strip()

    account = db.query(Account).filter(Account.reset_token == token).first()
    if account is None:
        raise InvalidTokenError()
    if is_expired(account.reset_token_expiry):
        raise TokenExpiredError()

    new_hash = hash_password(new_password, rounds=settings.BCRYPT_ROUNDS)
    updated = (
        db.query(Account)
        .filter(Account.id == account.id, Account.reset_token == token)
        .update(
            {
                Account.password_hash: new_hash,
                Account.reset_token: None,
                Account.reset_token_expiry: None,
            },
            synchronize_session="fetch",
        )
    )
    if updated != 1:
        # Another request consumed the token between the lookup and the update.
        db.rollback()
        raise InvalidTokenError()
    tokens.revoke_all_sessions(db, account.id)
    db.commit()
    logger.info("Password reset completed for account %s", account.id)
    record_audit("auth:password-reset", "user", account.id, actor_id=account.id)
