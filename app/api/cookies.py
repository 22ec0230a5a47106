"""Refresh-token cookie transport: HttpOnly, Secure, SameSite=Strict, Path=/."""

from fastapi import Request, Response

from app.core.config import Settings


def refresh_cookie_max_age(settings: Settings) -> int:
    return settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60


def set_refresh_cookie(response: Response, refresh_token: str, settings: Settings) -> None:
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=refresh_token,
        max_age=refresh_cookie_max_age(settings),
        path="/",
        secure=settings.REFRESH_COOKIE_SECURE,
        httponly=True,
        samesite="strict",
    )


def clear_refresh_cookie(response: Response, settings: Settings) -> None:
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value="",
        max_age=0,
        path="/",
        secure=settings.REFRESH_COOKIE_SECURE,
        httponly=True,
        samesite="strict",
    )


def get_refresh_cookie(request: Request, settings: Settings) -> str | None:
    return request.cookies.get(settings.REFRESH_COOKIE_NAME) or None
