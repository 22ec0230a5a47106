"""Registration and login: input validation, password checks, approval gate and session minting."""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.clock import Clock, utcnow
from app.core.security import (
    EMAIL_MAX_LEN,
    NAME_MAX_LEN,
    NAME_MIN_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    generate_opaque_id,
    hash_password,
    verify_password,
)
from app.core.tokens import TokenService
from app.models import Account, AuthSession, Role
from app.services import audit
from app.services.approval import ensure_approved
from app.services.errors import (
    AuthRejectedError,
    EmailConflictError,
    InvalidInputError,
    RejectionCode,
)
from app.services.sessions import ClientInfo, SessionStore

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class IssuedSession:
    """A freshly minted token pair and the session row backing its refresh token."""

    account: Account
    session: AuthSession
    access_token: str
    refresh_token: str
    access_expires_at: datetime
    refresh_expires_at: datetime


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _validate_email(email: object) -> str:
    if not isinstance(email, str) or not email.strip():
        raise InvalidInputError("Email is required.")
    normalized = normalize_email(email)
    if len(normalized) > EMAIL_MAX_LEN or not EMAIL_PATTERN.match(normalized):
        raise InvalidInputError("Invalid email format.")
    return normalized


def _validate_password(password: object) -> None:
    if not isinstance(password, str) or len(password) < PASSWORD_MIN_LEN:
        raise InvalidInputError(
            f"Password must be at least {PASSWORD_MIN_LEN} characters long."
        )
    if len(password) > PASSWORD_MAX_LEN:
        raise InvalidInputError(
            f"Password must be at most {PASSWORD_MAX_LEN} characters long."
        )


def _validate_name(name: object) -> str:
    if not isinstance(name, str) or len(name.strip()) < NAME_MIN_LEN:
        raise InvalidInputError(f"Name must be at least {NAME_MIN_LEN} characters long.")
    stripped = name.strip()
    if len(stripped) > NAME_MAX_LEN:
        raise InvalidInputError(f"Name must be at most {NAME_MAX_LEN} characters long.")
    return stripped


def _validate_role(role: Role | str) -> str:
    try:
        return Role(role).value
    except ValueError:
        raise InvalidInputError(
            "Invalid role. Must be admin, instructor, or student."
        ) from None


@lru_cache
def _dummy_password_hash() -> str:
    # Verified against when the email is unknown so response time does not reveal it.
    return hash_password(generate_opaque_id())


def register(
    db: Session,
    email: str,
    password: str,
    name: str,
    role: Role | str = Role.STUDENT,
    *,
    auto_approve: bool = False,
    client_ip: str | None = None,
    clock: Clock = utcnow,
) -> Account:
    """
    Create an account. Input is validated before storage is touched.

    The account is pending approval unless auto_approve is set (system-seeded
    accounts). No session is issued here; callers decide whether the new
    account may receive one (see open_session).
    """
    normalized_email = _validate_email(email)
    _validate_password(password)
    display_name = _validate_name(name)
    role_value = _validate_role(role)

    if db.query(Account.id).filter(Account.email == normalized_email).first() is not None:
        raise EmailConflictError()

    now = clock()
    account = Account(
        id=generate_opaque_id(),
        email=normalized_email,
        password_hash=hash_password(password),
        name=display_name,
        role=role_value,
        is_active=True,
        is_approved=auto_approve,
        approved_at=now if auto_approve else None,
        created_at=now,
        updated_at=now,
    )
    db.add(account)
    try:
        db.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent registration of the same email.
        db.rollback()
        raise EmailConflictError() from e

    logger.info(
        "Account registered",
        extra={"account_id": account.id, "role": role_value, "pending_approval": not auto_approve},
    )
    audit.record_audit(db, audit.REGISTER, account.id, account.id, client_ip=client_ip, now=now)
    return account


def open_session(
    db: Session,
    tokens: TokenService,
    account: Account,
    client: ClientInfo | None = None,
) -> IssuedSession:
    """Issue a token pair for an account and persist the session backing its refresh token."""
    pair = tokens.issue_pair(account.id, account.email, account.role)
    row = SessionStore(db, tokens.now).create(
        account.id, pair.refresh_token, pair.refresh_expires_at, client
    )
    account.last_login_at = tokens.now()
    db.commit()
    return IssuedSession(
        account=account,
        session=row,
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        access_expires_at=pair.access_expires_at,
        refresh_expires_at=pair.refresh_expires_at,
    )


def revoke_session(
    db: Session,
    tokens: TokenService,
    refresh_token: str | None,
    client_ip: str | None = None,
) -> bool:
    """Delete the session behind a refresh token (logout). Idempotent; True if a row was removed."""
    if not refresh_token:
        return False
    store = SessionStore(db, tokens.now)
    session = store.find_by_token(refresh_token)
    account_id = session.account_id if session is not None else None
    deleted = store.delete_by_token(refresh_token)
    if account_id is not None:
        logger.info("Session revoked", extra={"account_id": account_id})
        audit.record_audit(
            db, audit.LOGOUT, account_id, account_id, client_ip=client_ip, now=tokens.now()
        )
    return deleted > 0


def login(
    db: Session,
    tokens: TokenService,
    email: str,
    password: str,
    client: ClientInfo | None = None,
) -> IssuedSession:
    """
    Authenticate with email and password and open a session.

    Unknown email, deactivated or rejected account, and wrong password all
    raise the same INVALID_CREDENTIALS rejection. Only once the password has
    been verified does a pending account get the specific PENDING_APPROVAL.
    """
    if not isinstance(password, str) or not password or not isinstance(email, str) or not email.strip():
        raise InvalidInputError("Email and password are required.")
    normalized_email = _validate_email(email)

    account = db.query(Account).filter(Account.email == normalized_email).first()
    if account is None:
        verify_password(password, _dummy_password_hash())
        logger.info("Login rejected", extra={"reason": "unknown_email"})
        raise AuthRejectedError(RejectionCode.INVALID_CREDENTIALS)

    password_ok = verify_password(password, account.password_hash)
    if not account.is_active or not password_ok:
        logger.info(
            "Login rejected",
            extra={
                "account_id": account.id,
                "reason": "inactive" if not account.is_active else "bad_password",
            },
        )
        raise AuthRejectedError(RejectionCode.INVALID_CREDENTIALS)

    ensure_approved(account)

    issued = open_session(db, tokens, account, client)
    logger.info("Login succeeded", extra={"account_id": account.id})
    audit.record_audit(
        db,
        audit.LOGIN,
        account.id,
        account.id,
        client_ip=client.ip if client else None,
        now=tokens.now(),
    )
    return issued
