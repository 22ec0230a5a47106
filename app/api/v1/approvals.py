"""Account approval endpoints: list, approve and reject pending accounts; deactivate accounts."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.v1.auth import require_admin, require_roles
from app.core.database import get_db
from app.models import Role
from app.schemas.auth import (
    ApproveRequest,
    MessageResponse,
    PendingApprovalsResponse,
    PendingUser,
)
from app.services import approval
from app.services.authenticator import Identity

router = APIRouter()

# Students never review accounts.
require_reviewer = require_roles(Role.ADMIN, Role.INSTRUCTOR)


@router.get("/pending-approvals", response_model=PendingApprovalsResponse)
def list_pending_approvals(
    _reviewer: Annotated[Identity, Depends(require_reviewer)],
    db: Annotated[Session, Depends(get_db)],
) -> PendingApprovalsResponse:
    """List active accounts waiting for approval (admin/instructor only)."""
    accounts = approval.list_pending(db)
    return PendingApprovalsResponse(
        pending_users=[PendingUser.model_validate(a) for a in accounts]
    )


@router.post("/pending-approvals", response_model=MessageResponse)
def approve_account(
    body: ApproveRequest,
    reviewer: Annotated[Identity, Depends(require_reviewer)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Approve a pending account so it can log in."""
    account = approval.approve(db, body.user_id, reviewer.id)
    return MessageResponse(
        message=f"Account for {account.name} ({account.email}) has been approved."
    )


@router.delete("/pending-approvals", response_model=MessageResponse)
def reject_account(
    user_id: Annotated[str, Query(min_length=1, max_length=64)],
    reviewer: Annotated[Identity, Depends(require_reviewer)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Reject a pending account. The account is deactivated and cannot log in."""
    account = approval.reject(db, user_id, reviewer.id)
    return MessageResponse(
        message=f"Account for {account.name} ({account.email}) has been rejected."
    )


@router.post("/accounts/{account_id}/deactivate", response_model=MessageResponse)
def deactivate_account(
    account_id: str,
    admin: Annotated[Identity, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Deactivate an approved account (admin only). Its sessions are revoked immediately."""
    account = approval.deactivate(db, account_id, admin.id)
    return MessageResponse(
        message=f"Account for {account.name} ({account.email}) has been deactivated."
    )
