"""ORM model for server-tracked refresh sessions."""

import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Text, Uuid, func
from sqlalchemy.orm import relationship

from app.models.base import Base


class RefreshSession(Base):
    """
    One refresh token issued at login. Revoked on logout; rows are never deleted
    by the request path (only by account deletion or an external sweep).
    """

    __tablename__ = "refresh_sessions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    account_id = Column(
        Uuid,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token = Column(Text, nullable=False, unique=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    revoked = Column(Boolean, nullable=False, default=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    account = relationship("Account", back_populates="sessions")
