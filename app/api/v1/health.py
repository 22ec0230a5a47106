"""Health check endpoint with database connectivity and auth configuration status."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.config import DEV_JWT_SECRET, Settings, get_settings
from app.core.database import check_db_connected, get_db
from app.schemas.health import HealthResponse

router = APIRouter()


@router.get("/", response_model=HealthResponse)
def get_health(
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> HealthResponse:
    """
    Return service health, database connectivity, and whether the signing
    secret has been overridden. Used by load balancers and monitoring.
    """
    db_status = "connected" if check_db_connected(db) else "disconnected"
    secret_status = (
        "dev-placeholder"
        if settings.JWT_SECRET.get_secret_value() == DEV_JWT_SECRET
        else "configured"
    )
    return HealthResponse(
        status="ok",
        environment=settings.APP_ENV,
        database=db_status,
        signing_secret=secret_status,
        registration_requires_approval=settings.REGISTRATION_REQUIRES_APPROVAL,
    )
