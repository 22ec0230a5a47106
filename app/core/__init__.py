"""Core app configuration, database, password hashing and token signing."""

from app.core.config import get_settings, settings
from app.core.database import get_db
from app.core.tokens import TokenService

__all__ = ["get_settings", "settings", "get_db", "TokenService"]
