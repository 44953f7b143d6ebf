"""ORM model for authenticable accounts and their role assignments."""

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import relationship

from app.models.base import Base

APPROVAL_PENDING = "pending"
APPROVAL_APPROVED = "approved"
APPROVAL_REJECTED = "rejected"
APPROVAL_STATUSES = (APPROVAL_PENDING, APPROVAL_APPROVED, APPROVAL_REJECTED)

# Many-to-many join between accounts and roles, indexed from both sides.
account_roles = Table(
    "account_roles",
    Base.metadata,
    Column(
        "account_id",
        Uuid,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "role_id",
        Uuid,
        ForeignKey("roles.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Index("ix_account_roles_role_id", "role_id"),
)


class Account(Base):
    """
    Authenticable identity.

    Login requires approval_status == 'approved' and active == True.
    approved_by is a plain id reference to the approving account, not an ownership link.
    """

    __tablename__ = "accounts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    mobile = Column(String(32), nullable=True)
    national_id = Column(String(64), nullable=True)

    approval_status = Column(
        String(16), nullable=False, default=APPROVAL_PENDING, index=True
    )
    active = Column(Boolean, nullable=False, default=True, index=True)
    approved_by = Column(
        Uuid, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True
    )
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    reset_token = Column(String(128), nullable=True, unique=True, index=True)
    reset_token_expiry = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    roles = relationship("Role", secondary=account_roles, lazy="selectin")
    sessions = relationship(
        "RefreshSession",
        back_populates="account",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
