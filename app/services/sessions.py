"""Refresh-token session persistence: create, look up, revoke and sweep session rows."""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.clock import Clock, utcnow
from app.core.security import generate_opaque_id
from app.models import AuthSession
from app.services.errors import SessionIntegrityError

logger = logging.getLogger(__name__)

CLIENT_IP_MAX_LEN = 64
CLIENT_AGENT_MAX_LEN = 512


@dataclass(frozen=True)
class ClientInfo:
    """Client metadata recorded on a session (carried forward on rotation)."""

    ip: str | None = None
    user_agent: str | None = None


class SessionStore:
    """
    One row per outstanding refresh token.

    Each operation commits on its own. Uniqueness of refresh tokens is enforced
    by the unique index on sessions.refresh_token, not by in-process locking.
    """

    def __init__(self, db: Session, clock: Clock = utcnow) -> None:
        self.db = db
        self._clock = clock

    def create(
        self,
        account_id: str,
        refresh_token: str,
        expires_at: datetime,
        client: ClientInfo | None = None,
    ) -> AuthSession:
        """Insert a session row. Raises SessionIntegrityError if the token already exists."""
        client = client or ClientInfo()
        row = AuthSession(
            id=generate_opaque_id(),
            account_id=account_id,
            refresh_token=refresh_token,
            expires_at=expires_at,
            created_at=self._clock(),
            client_ip=client.ip[:CLIENT_IP_MAX_LEN] if client.ip else None,
            client_agent=client.user_agent[:CLIENT_AGENT_MAX_LEN] if client.user_agent else None,
        )
        self.db.add(row)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.critical(
                "Duplicate refresh token on session insert",
                extra={"account_id": account_id},
            )
            raise SessionIntegrityError("refresh token already bound to a session") from e
        return row

    def find_by_token(self, refresh_token: str) -> AuthSession | None:
        """Return the live session for this token; expired rows are treated as absent."""
        if not refresh_token:
            return None
        return (
            self.db.query(AuthSession)
            .filter(
                AuthSession.refresh_token == refresh_token,
                AuthSession.expires_at > self._clock(),
            )
            .first()
        )

    def delete_by_token(self, refresh_token: str) -> int:
        """Delete the session for this token. Idempotent; returns the number of rows removed."""
        deleted = (
            self.db.query(AuthSession)
            .filter(AuthSession.refresh_token == refresh_token)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted

    def delete_for_account(self, account_id: str) -> int:
        """Revoke every session owned by an account."""
        deleted = (
            self.db.query(AuthSession)
            .filter(AuthSession.account_id == account_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        if deleted:
            logger.info(
                "Revoked account sessions",
                extra={"account_id": account_id, "sessions_deleted": deleted},
            )
        return deleted

    def delete_expired(self) -> int:
        """Delete sessions whose expiry has passed. Safe to run alongside other operations."""
        deleted = (
            self.db.query(AuthSession)
            .filter(AuthSession.expires_at <= self._clock())
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted
