"""ORM model for refresh-token sessions."""

from sqlalchemy import Column, ForeignKey, String, func

from app.models.base import Base, UTCDateTime


class AuthSession(Base):
    """
    One row per outstanding refresh token.

    The signed refresh token string is the lookup key. A row is deleted on
    logout, on rotation, or by the expired-session sweep.
    """

    __tablename__ = "sessions"

    id = Column(String(32), primary_key=True)
    account_id = Column(
        String(32),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    refresh_token = Column(String(1024), nullable=False, unique=True, index=True)
    expires_at = Column(UTCDateTime(), nullable=False, index=True)
    created_at = Column(UTCDateTime(), nullable=False, server_default=func.now())
    client_ip = Column(String(64), nullable=True)
    client_agent = Column(String(512), nullable=True)
