"""Settings, database sessions, password hashing and the error hierarchy shared by every service."""

from app.core.config import Settings, get_settings, settings
from app.core.database import SessionLocal, get_db
from app.core.errors import AuthServiceError

__all__ = ["AuthServiceError", "SessionLocal", "Settings", "get_db", "get_settings", "settings"]
