"""Session cleanup: delete refresh-token sessions whose expiry has passed."""

import logging
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from app.core.clock import Clock, utcnow
from app.services.sessions import SessionStore

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


def run_session_cleanup(session: Session, settings: "Settings", clock: Clock = utcnow) -> int:
    """
    Delete expired sessions. Returns the number of rows removed.

    Idempotent: safe to run repeatedly and alongside live traffic, since expired
    rows are already ignored by session lookups.
    """
    if not settings.SESSION_CLEANUP_ENABLED:
        logger.info("Session cleanup is disabled (SESSION_CLEANUP_ENABLED=false); skipping.")
        return 0

    deleted_count = SessionStore(session, clock).delete_expired()
    if deleted_count > 0:
        logger.info("Session cleanup run: sessions_deleted=%s", deleted_count)
    return deleted_count
