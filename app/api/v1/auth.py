"""Auth endpoints (register, login, refresh, logout, me) and auth dependencies."""

from collections.abc import Callable
from datetime import timedelta
from functools import lru_cache
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.api.cookies import clear_refresh_cookie, get_refresh_cookie, set_refresh_cookie
from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.tokens import TokenService
from app.models import Role
from app.schemas.auth import (
    LoginRequest,
    MeResponse,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
    UserOut,
)
from app.services import credentials
from app.services.authenticator import Identity, authenticate
from app.services.credentials import IssuedSession
from app.services.errors import ForbiddenError
from app.services.refresh import rotate_refresh_token
from app.services.sessions import ClientInfo

router = APIRouter()
security = HTTPBearer(auto_error=False)


@lru_cache
def get_token_service() -> TokenService:
    """Dependency: process-wide TokenService built from the configured secret and lifetimes."""
    settings = get_settings()
    return TokenService(
        secret=settings.JWT_SECRET.get_secret_value(),
        access_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        refresh_ttl=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )


def client_info(request: Request) -> ClientInfo:
    """Client IP (proxy headers first) and user agent recorded on new sessions."""
    forwarded_for = request.headers.get("x-forwarded-for", "").split(",")[0].strip()
    ip = (
        request.headers.get("cf-connecting-ip")
        or forwarded_for
        or (request.client.host if request.client else None)
    )
    return ClientInfo(ip=ip, user_agent=request.headers.get("user-agent"))


def get_current_identity(
    bearer: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> Identity:
    """Dependency: require a valid Bearer access token for an active account. Raises 401 otherwise."""
    authorization = f"{bearer.scheme} {bearer.credentials}" if bearer is not None else None
    return authenticate(db, tokens, authorization)


def require_roles(*roles: Role) -> Callable[..., Identity]:
    """Build a dependency that admits only callers holding one of the given roles (403 otherwise)."""
    allowed = {role.value for role in roles}

    def _require(
        identity: Annotated[Identity, Depends(get_current_identity)],
    ) -> Identity:
        if identity.role not in allowed:
            raise ForbiddenError("Access denied.")
        return identity

    return _require


require_admin = require_roles(Role.ADMIN)


def _token_response(issued: IssuedSession) -> TokenResponse:
    return TokenResponse(
        user=UserOut.model_validate(issued.account),
        access_token=issued.access_token,
        token_type="bearer",
    )


@router.post("/register", response_model=RegisterResponse, status_code=201)
def register(
    body: RegisterRequest,
    request: Request,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> RegisterResponse:
    """
    Create a student account.

    With REGISTRATION_REQUIRES_APPROVAL (the default) no session is granted and
    pending_approval is true; otherwise the account is approved immediately and
    the response carries an access token plus the refresh cookie.
    """
    client = client_info(request)
    account = credentials.register(
        db,
        body.email,
        body.password,
        body.name,
        Role.STUDENT,
        auto_approve=not settings.REGISTRATION_REQUIRES_APPROVAL,
        client_ip=client.ip,
        clock=tokens.now,
    )
    if not account.is_approved:
        return RegisterResponse(
            pending_approval=True,
            message="Your account request has been submitted and is pending approval.",
            user=UserOut.model_validate(account),
        )

    issued = credentials.open_session(db, tokens, account, client)
    set_refresh_cookie(response, issued.refresh_token, settings)
    return RegisterResponse(
        pending_approval=False,
        message="Account created.",
        user=UserOut.model_validate(issued.account),
        access_token=issued.access_token,
        token_type="bearer",
    )


@router.post("/login", response_model=TokenResponse)
def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> TokenResponse:
    """
    Authenticate with email and password; returns an access token.
    Include it in the Authorization header as: Bearer <access_token>.
    The refresh token is set as an HttpOnly cookie.
    """
    issued = credentials.login(db, tokens, body.email, body.password, client_info(request))
    set_refresh_cookie(response, issued.refresh_token, settings)
    return _token_response(issued)


@router.post("/refresh", response_model=TokenResponse)
def refresh(
    request: Request,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> TokenResponse:
    """Rotate the refresh cookie: the presented refresh token is retired and a new pair issued."""
    issued = rotate_refresh_token(db, tokens, get_refresh_cookie(request, settings))
    set_refresh_cookie(response, issued.refresh_token, settings)
    return _token_response(issued)


@router.post("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> MessageResponse:
    """Revoke the session behind the refresh cookie (if any) and clear the cookie."""
    credentials.revoke_session(
        db, tokens, get_refresh_cookie(request, settings), client_info(request).ip
    )
    clear_refresh_cookie(response, settings)
    return MessageResponse(message="Logged out successfully.")


@router.get("/me", response_model=MeResponse)
def me(
    identity: Annotated[Identity, Depends(get_current_identity)],
) -> MeResponse:
    """Return the authenticated caller."""
    return MeResponse(user=UserOut.model_validate(identity))
