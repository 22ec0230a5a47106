"""SQLAlchemy ORM models."""

from app.models.account import Account, ApprovalState, Role
from app.models.audit_log import AuditLog
from app.models.base import Base
from app.models.session import AuthSession

__all__ = ["Account", "ApprovalState", "AuditLog", "AuthSession", "Base", "Role"]
