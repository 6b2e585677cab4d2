"""User, LinkedIdentity, and AuditLog models.

Users authenticate with email/password or through a wallet provider and
receive JWT tokens. There is no global role: every permission lives in
``project_permissions``. AuditLog records state-changing operations for
accountability.
"""

from sqlalchemy import Column, String, DateTime, Boolean, Integer, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class User(Base):
    """User account."""

    __tablename__ = "users"

    user_id = Column(String(36), primary_key=True)
    display_name = Column(String(255), nullable=False, default="DeepVest User")
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(Text, nullable=True)  # NULL for wallet-only accounts
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    identities = relationship(
        "LinkedIdentity",
        back_populates="user",
        cascade="all, delete-orphan",
    )


class LinkedIdentity(Base):
    """External identity (wallet) linked to an account.

    One row per (user, provider). Its existence is the per-principal answer
    to "has this account already been linked to its wallet".
    """

    __tablename__ = "linked_identities"
    __table_args__ = (
        UniqueConstraint("user_id", "provider", name="uq_linked_identity_user_provider"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        String(36),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    )
    provider = Column(String(50), nullable=False)
    external_id = Column(String(255), nullable=False)
    linked_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="identities")


class AuditLog(Base):
    """Immutable record of state-changing operations.

    Written by the service layer, never modified or deleted (except by
    retention purge).
    Fields:
        action        create, update, delete, publish, publish_snapshot,
                      archive, permission_grant, permission_change,
                      permission_revoke, login, wallet_login
        resource_type project, snapshot, permission, user
        resource_id   ID of the affected resource
        details       JSON string with additional context
    """

    __tablename__ = "audit_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=True)
    action = Column(String(50), nullable=False)
    resource_type = Column(String(50), nullable=False)
    resource_id = Column(String(255), nullable=True)
    details = Column(Text, nullable=True)
    ip_address = Column(String(45), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
