import logging
from typing import Any, Dict, Optional

from fastapi import Request
from sqlalchemy.orm import Session

from .audit_models import AuditLog

logger = logging.getLogger(__name__)


def record_audit_event(
    db: Session,
    action: str,
    resource: str,
    user_id: Optional[int] = None,
    record_id: Optional[Any] = None,
    details: Optional[Dict[str, Any]] = None,
    request: Optional[Request] = None
) -> Optional[AuditLog]:
    """
    Creates an audit log entry.

    Recording is fire-and-forget: a failure is logged and rolled back, and
    never propagates to the operation being audited. Callers must commit
    their own changes before auditing.

    Args:
        db: The database session.
        action: What happened (e.g., 'USER_LOGIN', 'USER_ROLE_CHANGED').
        resource: The kind of record affected (e.g., 'users').
        user_id: The ID of the user who performed the action (if applicable).
        record_id: The ID of the affected record (if applicable).
        details: Snapshot of the data involved in the action.
        request: The FastAPI request object to extract IP address (if available).

    Returns:
        The created AuditLog object, or None when recording failed.
    """
    ip_address = None
    if request is not None and request.client:
        ip_address = request.client.host

    try:
        audit_entry = AuditLog(
            user_id=user_id,
            action=action,
            resource=resource,
            record_id=str(record_id) if record_id is not None else None,
            details=details,
            ip_address=ip_address
        )
        db.add(audit_entry)
        db.commit()
        db.refresh(audit_entry)
        logger.debug(f"Audit log created: {action} on {resource} by {user_id}")
        return audit_entry
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to create audit log for {action}: {str(e)}")
        return None
