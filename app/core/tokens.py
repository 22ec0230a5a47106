"""Signed access and refresh tokens (HS256 compact JWTs).

Access tokens are stateless: verifying one needs only the secret and a clock.
Refresh tokens have the same shape but a longer lifetime, and are only honoured
while a matching row exists in the sessions table (see app.services.sessions).
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Literal

import jwt
from pydantic import BaseModel, ConfigDict, ValidationError

from app.core.clock import Clock, utcnow
from app.core.security import generate_opaque_id

logger = logging.getLogger(__name__)

# Only one algorithm is ever accepted; tokens declaring anything else are rejected.
TOKEN_ALGORITHM = "HS256"

DEFAULT_ACCESS_TTL = timedelta(hours=2)
DEFAULT_REFRESH_TTL = timedelta(days=30)

TokenType = Literal["access", "refresh"]

_REQUIRED_CLAIMS = ["sub", "email", "role", "iat", "exp", "token_type", "jti"]

# Expiry is checked against the injected clock, not PyJWT's wall clock.
_DECODE_OPTIONS: dict[str, Any] = {
    "verify_signature": True,
    "verify_exp": False,
    "verify_iat": False,
    "verify_nbf": False,
    "require": _REQUIRED_CLAIMS,
}


class TokenPayload(BaseModel):
    """Verified claims of an access or refresh token."""

    model_config = ConfigDict(frozen=True)

    subject: str
    email: str
    role: str
    issued_at: datetime
    expires_at: datetime
    token_type: TokenType
    token_id: str


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    access_expires_at: datetime
    refresh_expires_at: datetime


class TokenService:
    """
    Issue and verify signed tokens with a fixed secret.

    The secret is injected rather than read from global settings, so a second
    instance with a different key models secret rotation: tokens signed by one
    instance never verify against the other.
    """

    def __init__(
        self,
        secret: str,
        access_ttl: timedelta = DEFAULT_ACCESS_TTL,
        refresh_ttl: timedelta = DEFAULT_REFRESH_TTL,
        clock: Clock = utcnow,
    ) -> None:
        if not secret:
            raise ValueError("Token signing secret must be non-empty")
        if access_ttl <= timedelta(0) or refresh_ttl <= timedelta(0):
            raise ValueError("Token lifetimes must be positive")
        self._secret = secret
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self._clock = clock

    def now(self) -> datetime:
        return self._clock()

    def issue_pair(self, subject: str, email: str, role: str) -> TokenPair:
        """Sign an access token and a refresh token sharing subject, email and role."""
        issued_at = int(self._clock().timestamp())
        access_exp = issued_at + int(self.access_ttl.total_seconds())
        refresh_exp = issued_at + int(self.refresh_ttl.total_seconds())
        return TokenPair(
            access_token=self._sign(subject, email, role, "access", issued_at, access_exp),
            refresh_token=self._sign(subject, email, role, "refresh", issued_at, refresh_exp),
            access_expires_at=datetime.fromtimestamp(access_exp, UTC),
            refresh_expires_at=datetime.fromtimestamp(refresh_exp, UTC),
        )

    def _sign(
        self,
        subject: str,
        email: str,
        role: str,
        token_type: TokenType,
        issued_at: int,
        expires_at: int,
    ) -> str:
        payload: dict[str, Any] = {
            "sub": str(subject),
            "email": email,
            "role": role,
            "token_type": token_type,
            # Random id keeps two pairs minted in the same second distinct.
            "jti": generate_opaque_id(),
            "iat": issued_at,
            "exp": expires_at,
        }
        return jwt.encode(payload, self._secret, algorithm=TOKEN_ALGORITHM)

    def verify(
        self, token: str, expected_type: TokenType | None = None
    ) -> TokenPayload | None:
        """
        Return the token's payload, or None if it is malformed, tampered,
        signed with another key or algorithm, expired, or of the wrong type.

        Callers get one rejection path; the reason is only logged at DEBUG.
        """
        if not isinstance(token, str) or token.count(".") != 2:
            logger.debug("Token rejected: not a three-part compact token")
            return None
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[TOKEN_ALGORITHM],
                options=_DECODE_OPTIONS,
            )
            payload = TokenPayload(
                subject=claims["sub"],
                email=claims["email"],
                role=claims["role"],
                issued_at=claims["iat"],
                expires_at=claims["exp"],
                token_type=claims["token_type"],
                token_id=claims["jti"],
            )
        except jwt.PyJWTError as e:
            logger.debug("Token rejected: %s", type(e).__name__)
            return None
        except (ValidationError, ValueError, TypeError, KeyError) as e:
            logger.debug("Token rejected: invalid claims (%s)", type(e).__name__)
            return None

        if payload.expires_at <= self._clock():
            logger.debug("Token rejected: expired", extra={"token_type": payload.token_type})
            return None
        if expected_type is not None and payload.token_type != expected_type:
            logger.debug(
                "Token rejected: wrong token type",
                extra={"token_type": payload.token_type, "expected_type": expected_type},
            )
            return None
        return payload
