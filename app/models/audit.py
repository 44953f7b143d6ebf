"""ORM model for the security audit trail."""

import uuid

from sqlalchemy import Column, DateTime, String, Text, Uuid, func

from app.models.base import Base


class AuditLog(Base):
    """Write-only record of a security-relevant action. actor_id is null for anonymous or system actions."""

    __tablename__ = "audit_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    actor_id = Column(Uuid, nullable=True, index=True)
    action = Column(String(64), nullable=False, index=True)
    resource_type = Column(String(64), nullable=False, index=True)
    resource_id = Column(String(64), nullable=True)
    details = Column(Text, nullable=True)
    status = Column(String(16), nullable=False, default="success")
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )
