"""Pydantic request/response schemas."""

from app.schemas.auth import (
    ApproveRequest,
    ErrorResponse,
    LoginRequest,
    MeResponse,
    MessageResponse,
    PendingApprovalsResponse,
    PendingUser,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
    UserOut,
)
from app.schemas.health import HealthResponse

__all__ = [
    "ApproveRequest",
    "ErrorResponse",
    "HealthResponse",
    "LoginRequest",
    "MeResponse",
    "MessageResponse",
    "PendingApprovalsResponse",
    "PendingUser",
    "RegisterRequest",
    "RegisterResponse",
    "TokenResponse",
    "UserOut",
]
