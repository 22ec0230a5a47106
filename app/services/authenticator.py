"""Authenticate an inbound request from its bearer access token."""

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.core.tokens import TokenService
from app.models import Account
from app.services.errors import AuthRejectedError, RejectionCode

logger = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"


@dataclass(frozen=True)
class Identity:
    """Minimal caller identity handed to downstream handlers (never the password hash)."""

    id: str
    email: str
    name: str
    role: str
    linked_profile_id: str | None = None

    @classmethod
    def from_account(cls, account: Account) -> "Identity":
        return cls(
            id=account.id,
            email=account.email,
            name=account.name,
            role=account.role,
            linked_profile_id=account.linked_profile_id,
        )


def parse_bearer(authorization: str | None) -> str | None:
    """Return the token from ``Bearer <token>``, or None if the header is missing or malformed."""
    if not authorization:
        return None
    parts = authorization.strip().split()
    if len(parts) != 2 or parts[0].lower() != BEARER_SCHEME:
        return None
    return parts[1]


def authenticate(
    db: Session,
    tokens: TokenService,
    authorization: str | None,
) -> Identity:
    """
    Resolve the caller of a request.

    The access token itself is stateless; the one database read here re-checks
    that the account is still active, so a deactivated account stops working
    before its outstanding access tokens expire.
    """
    token = parse_bearer(authorization)
    if token is None:
        raise AuthRejectedError(RejectionCode.MISSING_CREDENTIALS)

    payload = tokens.verify(token, expected_type="access")
    if payload is None:
        raise AuthRejectedError(RejectionCode.INVALID_TOKEN)

    account = db.query(Account).filter(Account.id == payload.subject).first()
    if account is None or not account.is_active:
        logger.info(
            "Request rejected: account missing or inactive",
            extra={"account_id": payload.subject},
        )
        raise AuthRejectedError(RejectionCode.ACCOUNT_INACTIVE)
    return Identity.from_account(account)
