"""ORM model for user accounts and their approval state."""

from enum import Enum

from sqlalchemy import Boolean, Column, String, func

from app.models.base import Base, UTCDateTime


class Role(str, Enum):
    """Closed set of account roles. Enforcement per business endpoint is external."""

    ADMIN = "admin"
    INSTRUCTOR = "instructor"
    STUDENT = "student"


class ApprovalState(str, Enum):
    """
    Account lifecycle derived from (is_active, is_approved).

    PENDING -> APPROVED or REJECTED (terminal). APPROVED -> DEACTIVATED
    (terminal until an external reactivation).
    """

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    DEACTIVATED = "deactivated"


class Account(Base):
    """
    Identity record used for login and bearer-token authentication.

    password_hash is ``salt_hex:hash_hex`` and never leaves this service.
    linked_profile_id points at a business profile (e.g. a student record)
    owned by another subsystem.
    """

    __tablename__ = "accounts"

    id = Column(String(32), primary_key=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default=Role.STUDENT.value)
    is_active = Column(Boolean, nullable=False, default=True)
    is_approved = Column(Boolean, nullable=False, default=False)
    linked_profile_id = Column(String(64), nullable=True)
    approved_by = Column(String(32), nullable=True)
    approved_at = Column(UTCDateTime(), nullable=True)
    last_login_at = Column(UTCDateTime(), nullable=True)
    created_at = Column(UTCDateTime(), nullable=False, server_default=func.now())
    updated_at = Column(UTCDateTime(), nullable=False, server_default=func.now())

    @property
    def approval_state(self) -> ApprovalState:
        if self.is_active:
            return ApprovalState.APPROVED if self.is_approved else ApprovalState.PENDING
        return ApprovalState.DEACTIVATED if self.is_approved else ApprovalState.REJECTED
