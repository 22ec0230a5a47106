"""Exception handlers: map service errors to the {"detail", "code"} error envelope."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.api.cookies import clear_refresh_cookie
from app.core.config import get_settings
from app.services.errors import AuthRejectedError, AuthServiceError, SessionIntegrityError

logger = logging.getLogger(__name__)


def _error_response(
    status_code: int,
    message: str,
    code: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": message, "code": code},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers for auth rejections, bad input and storage failures."""

    @app.exception_handler(AuthServiceError)
    async def handle_auth_service_error(request: Request, exc: AuthServiceError) -> JSONResponse:
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        response = _error_response(exc.status_code, exc.message, exc.code, headers)
        if isinstance(exc, AuthRejectedError) and exc.clear_refresh_cookie:
            clear_refresh_cookie(response, get_settings())
        logger.info(
            "Request refused",
            extra={"path": request.url.path, "status_code": exc.status_code, "code": exc.code},
        )
        return response

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        # Shape errors never name the offending field.
        return _error_response(400, "Invalid request.", "INVALID_INPUT")

    @app.exception_handler(SessionIntegrityError)
    @app.exception_handler(SQLAlchemyError)
    async def handle_storage_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Storage failure while handling request",
            extra={"path": request.url.path, "method": request.method},
            exc_info=exc,
        )
        return _error_response(500, "Internal server error.", "INTERNAL_ERROR")
