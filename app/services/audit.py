"""Fire-and-forget audit entries for auth actions."""

import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.clock import utcnow
from app.core.security import generate_opaque_id
from app.models import AuditLog

logger = logging.getLogger(__name__)

LOGIN = "LOGIN"
REGISTER = "REGISTER"
LOGOUT = "LOGOUT"
APPROVE = "APPROVE"
REJECT = "REJECT"
DEACTIVATE = "DEACTIVATE"

ENTITY_USER = "USER"


def record_audit(
    db: Session,
    action: str,
    actor_id: str | None,
    entity_id: str,
    entity_type: str = ENTITY_USER,
    client_ip: str | None = None,
    now: datetime | None = None,
) -> bool:
    """
    Write one audit row in its own commit. Returns False if the write failed.

    Call after the primary operation has committed: a failed write is rolled
    back and logged, and never propagates to the caller.
    """
    entry = AuditLog(
        id=generate_opaque_id(),
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        client_ip=client_ip,
        created_at=now or utcnow(),
    )
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(
            "Audit write failed",
            extra={"action": action, "entity_id": entity_id, "reason": str(e)[:200]},
        )
        return False
    return True
