"""Request/response schemas for auth endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: str = Field(..., max_length=255, description="Account email (case-insensitive)")
    password: str = Field(..., max_length=1024, description="Password")


class RegisterRequest(BaseModel):
    """
    Public self-registration. Any role sent by the client is ignored: public
    registrations are always students, pending approval by default.
    """

    email: str = Field(..., max_length=255, description="Account email")
    password: str = Field(..., max_length=1024, description="Password (8-128 characters)")
    name: str = Field(..., max_length=255, description="Display name (at least 2 characters)")


class UserOut(BaseModel):
    """Authenticated user as returned to clients (no password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str
    role: str
    linked_profile_id: str | None = None


class TokenResponse(BaseModel):
    """Access token in the body; the refresh token travels in an HttpOnly cookie."""

    success: bool = True
    user: UserOut
    access_token: str = Field(..., description="Bearer access token")
    token_type: str = Field(default="bearer", description="Token type")


class RegisterResponse(BaseModel):
    """Registration result. access_token is only present when a session was granted."""

    success: bool = True
    pending_approval: bool = Field(..., description="True when no session was granted")
    message: str
    user: UserOut
    access_token: str | None = None
    token_type: str | None = None


class MeResponse(BaseModel):
    success: bool = True
    user: UserOut


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class PendingUser(BaseModel):
    """Account awaiting approval (admin/instructor view)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str
    role: str
    created_at: datetime


class PendingApprovalsResponse(BaseModel):
    pending_users: list[PendingUser]


class ApproveRequest(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=64, description="Account id to approve")


class ErrorResponse(BaseModel):
    """Error envelope for every non-2xx response."""

    detail: str
    code: str
