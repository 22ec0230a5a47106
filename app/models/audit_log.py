"""ORM model for authentication audit entries."""

from sqlalchemy import Column, String, func

from app.models.base import Base, UTCDateTime


class AuditLog(Base):
    """Append-only record of auth actions (LOGIN, REGISTER, LOGOUT, APPROVE, ...)."""

    __tablename__ = "audit_logs"

    id = Column(String(32), primary_key=True)
    actor_id = Column(String(32), nullable=True, index=True)
    action = Column(String(32), nullable=False, index=True)
    entity_type = Column(String(32), nullable=False)
    entity_id = Column(String(64), nullable=False)
    client_ip = Column(String(64), nullable=True)
    created_at = Column(UTCDateTime(), nullable=False, server_default=func.now())
