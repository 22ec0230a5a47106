"""Exceptions raised by the auth services and mapped to HTTP responses in app.api.errors."""

from enum import Enum


class RejectionCode(str, Enum):
    """Authentication rejection vocabulary surfaced to callers."""

    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    ACCOUNT_INACTIVE = "ACCOUNT_INACTIVE"
    MISSING_CREDENTIALS = "MISSING_CREDENTIALS"
    INVALID_TOKEN = "INVALID_TOKEN"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"


REJECTION_MESSAGES = {
    RejectionCode.INVALID_CREDENTIALS: "Invalid email or password.",
    RejectionCode.PENDING_APPROVAL: "Your account is pending approval.",
    RejectionCode.ACCOUNT_INACTIVE: "User not found or inactive.",
    RejectionCode.MISSING_CREDENTIALS: "Missing or invalid authorization credentials.",
    RejectionCode.INVALID_TOKEN: "Invalid or expired token.",
    RejectionCode.SESSION_NOT_FOUND: "Session not found or expired.",
}


class AuthServiceError(Exception):
    """Base for errors that carry a client-safe message, HTTP status and code."""

    status_code = 400
    code = "BAD_REQUEST"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidInputError(AuthServiceError):
    """Raised when registration or login input is malformed."""

    status_code = 400
    code = "INVALID_INPUT"


class EmailConflictError(AuthServiceError):
    """Raised when registering an email that already has an account."""

    status_code = 409
    code = "EMAIL_TAKEN"

    def __init__(self, message: str = "An account with this email already exists.") -> None:
        super().__init__(message)


class AccountNotFoundError(AuthServiceError):
    """Raised when an approval action targets a missing account or one in the wrong state."""

    status_code = 404
    code = "NOT_FOUND"


class ForbiddenError(AuthServiceError):
    """Raised when an authenticated caller lacks the role an endpoint requires."""

    status_code = 403
    code = "FORBIDDEN"


class AuthRejectedError(AuthServiceError):
    """
    Authentication was refused.

    clear_refresh_cookie tells the HTTP layer to expire the refresh-token cookie
    (set for every rejection on the refresh path).
    """

    def __init__(
        self,
        reason: RejectionCode,
        message: str | None = None,
        clear_refresh_cookie: bool = False,
    ) -> None:
        self.reason = reason
        self.clear_refresh_cookie = clear_refresh_cookie
        super().__init__(message or REJECTION_MESSAGES[reason])

    @property
    def code(self) -> str:  # type: ignore[override]
        return self.reason.value

    @property
    def status_code(self) -> int:  # type: ignore[override]
        return 403 if self.reason is RejectionCode.PENDING_APPROVAL else 401


class SessionIntegrityError(Exception):
    """
    A refresh token collided with an existing session row.

    Token ids are random, so this indicates an integrity problem; it is never
    resolved by overwriting the existing row.
    """
