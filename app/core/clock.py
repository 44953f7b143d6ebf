"""UTC time helpers shared by token, session and reset-token expiry checks."""

from datetime import UTC, datetime


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on round-trip)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def is_expired(expires_at: datetime | None, now: datetime | None = None) -> bool:
    """True when expires_at is missing or not strictly in the future."""
    if expires_at is None:
        return True
    return as_utc(expires_at) <= (now or utcnow())
