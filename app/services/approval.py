"""Account approval gate: pending/approved/rejected state and the admin actions that move it."""

import logging

from sqlalchemy.orm import Session

from app.core.clock import Clock, utcnow
from app.models import Account, ApprovalState
from app.services import audit
from app.services.errors import AccountNotFoundError, AuthRejectedError, RejectionCode
from app.services.sessions import SessionStore

logger = logging.getLogger(__name__)


def approval_state(account: Account) -> ApprovalState:
    return account.approval_state


def ensure_approved(account: Account) -> None:
    """Raise PENDING_APPROVAL unless the account has been approved."""
    if approval_state(account) is ApprovalState.PENDING:
        raise AuthRejectedError(RejectionCode.PENDING_APPROVAL)


def list_pending(db: Session) -> list[Account]:
    """Active accounts waiting for approval, newest first."""
    return (
        db.query(Account)
        .filter(Account.is_active.is_(True), Account.is_approved.is_(False))
        .order_by(Account.created_at.desc())
        .all()
    )


def _get_in_state(db: Session, account_id: str, state: ApprovalState, not_found: str) -> Account:
    account = db.query(Account).filter(Account.id == account_id).first()
    if account is None or approval_state(account) is not state:
        raise AccountNotFoundError(not_found)
    return account


def approve(db: Session, account_id: str, approver_id: str, clock: Clock = utcnow) -> Account:
    """Approve a pending account so it can log in."""
    account = _get_in_state(
        db, account_id, ApprovalState.PENDING, "User not found or already approved."
    )
    now = clock()
    account.is_approved = True
    account.approved_by = approver_id
    account.approved_at = now
    account.updated_at = now
    db.commit()
    logger.info("Account approved", extra={"account_id": account_id, "approved_by": approver_id})
    audit.record_audit(db, audit.APPROVE, approver_id, account_id, now=now)
    return account


def reject(db: Session, account_id: str, actor_id: str, clock: Clock = utcnow) -> Account:
    """Reject a pending account. Rejection is terminal (modelled as inactive, unapproved)."""
    account = _get_in_state(
        db, account_id, ApprovalState.PENDING, "User not found or already processed."
    )
    now = clock()
    account.is_active = False
    account.updated_at = now
    db.commit()
    SessionStore(db, clock).delete_for_account(account_id)
    logger.info("Account rejected", extra={"account_id": account_id, "rejected_by": actor_id})
    audit.record_audit(db, audit.REJECT, actor_id, account_id, now=now)
    return account


def deactivate(db: Session, account_id: str, actor_id: str, clock: Clock = utcnow) -> Account:
    """Soft-disable an approved account and revoke its sessions."""
    account = _get_in_state(
        db, account_id, ApprovalState.APPROVED, "User not found or not active."
    )
    now = clock()
    account.is_active = False
    account.updated_at = now
    db.commit()
    SessionStore(db, clock).delete_for_account(account_id)
    logger.info(
        "Account deactivated", extra={"account_id": account_id, "deactivated_by": actor_id}
    )
    audit.record_audit(db, audit.DEACTIVATE, actor_id, account_id, now=now)
    return account
