"""Signed bearer tokens: short-lived access tokens and server-tracked refresh sessions.

Both kinds are JWTs signed with the same key and told apart by claim shape:
access tokens carry a ``permissions`` list, refresh tokens carry
``type: refresh`` and exist as a RefreshSession row that can be revoked.
Access tokens have no server-side record; they stop working only when they expire.
"""

import logging
import uuid
from datetime import timedelta
from typing import Any, TYPE_CHECKING

import jwt
from sqlalchemy.orm import Session

from app.core.clock import is_expired, utcnow
from app.core.errors import UnauthorizedError
from app.models import Account, RefreshSession
from app.services.audit import record_audit

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

REFRESH_TOKEN_TYPE = "refresh"
PERMISSIONS_CLAIM = "permissions"


def _secret(settings: "Settings") -> str:
    return settings.JWT_SECRET.get_secret_value()


def access_token_ttl_seconds(settings: "Settings") -> int:
    return settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60


def issue_access_token(
    subject_id: uuid.UUID | str,
    permissions: set[str] | list[str],
    settings: "Settings",
) -> tuple[str, int]:
    """
    Create an access token embedding a snapshot of the permission set.

    Returns (token, expires_in_seconds). The snapshot is not re-checked until the
    token is refreshed.
    """
    now = utcnow()
    ttl = access_token_ttl_seconds(settings)
    payload: dict[str, Any] = {
        "sub": str(subject_id),
        PERMISSIONS_CLAIM: sorted(permissions),
        "iat": now,
        "exp": now + timedelta(seconds=ttl),
        # Unique per token so two tokens minted in the same second still differ.
        "jti": uuid.uuid4().hex,
    }
    token = jwt.encode(payload, _secret(settings), algorithm=settings.JWT_ALGORITHM)
    return token, ttl


def issue_refresh_token(
    db: Session,
    account: Account,
    settings: "Settings",
) -> RefreshSession:
    """Create a refresh token and persist it as a RefreshSession row."""
    now = utcnow()
    expires_at = now + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    payload: dict[str, Any] = {
        "sub": str(account.id),
        "type": REFRESH_TOKEN_TYPE,
        "iat": now,
        "exp": expires_at,
        "jti": uuid.uuid4().hex,
    }
    token = jwt.encode(payload, _secret(settings), algorithm=settings.JWT_ALGORITHM)
    session = RefreshSession(account_id=account.id, token=token, expires_at=expires_at)
    db.add(session)
    db.commit()
    db.refresh(session)
    record_audit(
        "auth:refresh-token-created",
        "refresh_token",
        session.id,
        actor_id=account.id,
    )
    return session


def _decode(token: str | None, settings: "Settings") -> dict[str, Any] | None:
    """Decode and validate a token. Logs the failure cause and returns None on any failure."""
    if token is None or not token.strip():
        logger.info("Token rejected: empty")
        return None
    try:
        return jwt.decode(
            token.strip(),
            _secret(settings),
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["sub", "exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        logger.info("Token rejected: expired")
    except jwt.InvalidSignatureError:
        logger.info("Token rejected: bad signature")
    except jwt.DecodeError:
        logger.info("Token rejected: malformed")
    except jwt.PyJWTError as e:
        logger.info("Token rejected: %s", type(e).__name__)
    return None


def verify(token: str | None, settings: "Settings") -> bool:
    """Check signature and expiry. Never raises."""
    return _decode(token, settings) is not None


def decode_access_claims(token: str | None, settings: "Settings") -> dict[str, Any]:
    """
    Return validated access-token claims.

    Raises UnauthorizedError for every failure (empty, malformed, bad signature,
    expired, or a token that is not shaped like an access token).
    """
    claims = _decode(token, settings)
    if claims is None:
        raise UnauthorizedError()
    permissions = claims.get(PERMISSIONS_CLAIM)
    if claims.get("type") == REFRESH_TOKEN_TYPE or not isinstance(permissions, list):
        logger.info("Token rejected: not an access token")
        raise UnauthorizedError()
    return claims


def subject_from_claims(claims: dict[str, Any]) -> uuid.UUID:
    """Parse the subject id of already validated claims; UnauthorizedError if it is not a UUID."""
    try:
        return uuid.UUID(str(claims["sub"]))
    except (KeyError, TypeError, ValueError):
        logger.info("Token rejected: invalid subject")
        raise UnauthorizedError()


def subject_of(token: str | None, settings: "Settings") -> uuid.UUID:
    """Return the subject id of a valid access token; fails closed with UnauthorizedError."""
    return subject_from_claims(decode_access_claims(token, settings))


def permissions_of(token: str | None, settings: "Settings") -> set[str]:
    """Return the permission snapshot embedded in a valid access token."""
    return set(decode_access_claims(token, settings)[PERMISSIONS_CLAIM])


def find_active_session(db: Session, token: str | None) -> RefreshSession | None:
    """Return the session for a refresh token if it exists, is not revoked and has not expired."""
    if not token or not token.strip():
        return None
    session = db.query(RefreshSession).filter(RefreshSession.token == token.strip()).first()
    if session is None or session.revoked or is_expired(session.expires_at):
        return None
    return session


def revoke_session(db: Session, token: str | None) -> bool:
    """Mark a refresh session revoked. Idempotent; returns True if a session row was found."""
    if not token or not token.strip():
        return False
    session = db.query(RefreshSession).filter(RefreshSession.token == token.strip()).first()
    if session is None:
        return False
    if not session.revoked:
        session.revoked = True
        db.commit()
        record_audit(
            "auth:refresh-token-revoked",
            "refresh_token",
            session.id,
            actor_id=session.account_id,
        )
    return True


def revoke_all_sessions(db: Session, account_id: uuid.UUID) -> int:
    """Revoke every live refresh session of an account. Returns the number revoked. Caller commits."""
    count = (
        db.query(RefreshSession)
        .filter(RefreshSession.account_id == account_id, RefreshSession.revoked.is_(False))
        .update({RefreshSession.revoked: True}, synchronize_session="fetch")
    )
    if count:
        logger.info("Revoked %s refresh sessions for account %s", count, account_id)
    return count
