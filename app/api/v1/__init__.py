"""API v1 routes."""

from fastapi import APIRouter

from app.api.v1 import approvals, auth, health

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(approvals.router, prefix="/auth", tags=["approvals"])
