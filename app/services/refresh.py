"""Refresh-token rotation: every refresh token is single-use.

Rotation deletes the old session row and inserts a new one as two separate
commits. A crash between them leaves the user without a session (forced
re-login), which is accepted rather than wrapping both in one transaction.
"""

import logging

from sqlalchemy.orm import Session

from app.core.tokens import TokenService
from app.models import Account
from app.services.credentials import IssuedSession
from app.services.errors import AuthRejectedError, RejectionCode
from app.services.sessions import ClientInfo, SessionStore

logger = logging.getLogger(__name__)


def _reject(reason: RejectionCode) -> AuthRejectedError:
    return AuthRejectedError(reason, clear_refresh_cookie=True)


def rotate_refresh_token(
    db: Session,
    tokens: TokenService,
    presented: str | None,
) -> IssuedSession:
    """
    Exchange a refresh token for a new token pair and retire the old one.

    Every rejection asks the caller to clear the refresh-token cookie. A
    replayed token that was already rotated fails at the session lookup with
    SESSION_NOT_FOUND even though its signature and expiry are still valid.
    """
    if not presented:
        raise _reject(RejectionCode.MISSING_CREDENTIALS)

    payload = tokens.verify(presented, expected_type="refresh")
    if payload is None:
        raise _reject(RejectionCode.INVALID_TOKEN)

    store = SessionStore(db, tokens.now)
    session = store.find_by_token(presented)
    if session is None:
        logger.info("Refresh rejected: no live session", extra={"account_id": payload.subject})
        raise _reject(RejectionCode.SESSION_NOT_FOUND)

    # Read before any commit below expires the loaded row.
    account_id = session.account_id
    client = ClientInfo(ip=session.client_ip, user_agent=session.client_agent)

    account = db.query(Account).filter(Account.id == account_id).first()
    if account is None or not account.is_active:
        logger.info(
            "Refresh rejected: account missing or inactive",
            extra={"account_id": account_id},
        )
        store.delete_by_token(presented)
        raise _reject(RejectionCode.ACCOUNT_INACTIVE)

    pair = tokens.issue_pair(account.id, account.email, account.role)

    if store.delete_by_token(presented) == 0:
        # A concurrent refresh with the same token rotated it first.
        logger.warning(
            "Refresh rejected: session rotated concurrently",
            extra={"account_id": account.id},
        )
        raise _reject(RejectionCode.SESSION_NOT_FOUND)

    row = store.create(account.id, pair.refresh_token, pair.refresh_expires_at, client)
    account.last_login_at = tokens.now()
    db.commit()
    logger.info("Refresh token rotated", extra={"account_id": account.id})
    return IssuedSession(
        account=account,
        session=row,
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        access_expires_at=pair.access_expires_at,
        refresh_expires_at=pair.refresh_expires_at,
    )
