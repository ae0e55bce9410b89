"""
Audit logging service
"""
import logging
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from app.models.audit_log import AuditLog
from app.utils.datetime_utils import now_utc
from app.utils.json_serializer import sanitize_for_json

logger = logging.getLogger(__name__)


class AuditAction:
    ROLE_CHANGED = "ROLE_CHANGED"
    USER_LOGIN = "USER_LOGIN"
    USER_CREATED = "USER_CREATED"
    USER_DATA_CLEANED = "USER_DATA_CLEANED"
    INCIDENT_CREATED = "INCIDENT_CREATED"
    INCIDENT_VIEWED = "INCIDENT_VIEWED"
    INCIDENTS_LIST_VIEWED = "INCIDENTS_LIST_VIEWED"
    INCIDENT_STATUS_CHANGED = "INCIDENT_STATUS_CHANGED"
    INCIDENT_REPORT_DOWNLOADED = "INCIDENT_REPORT_DOWNLOADED"
    INCIDENT_DELETED = "INCIDENT_DELETED"
    USERS_LIST_VIEWED = "USERS_LIST_VIEWED"
    USER_PROFILE_UPDATED = "USER_PROFILE_UPDATED"
    USER_DEACTIVATED = "USER_DEACTIVATED"
    USER_REACTIVATED = "USER_REACTIVATED"
    USER_LOCKED = "USER_LOCKED"
    USER_UNLOCKED = "USER_UNLOCKED"
    USER_PASSWORD_RESET = "USER_PASSWORD_RESET"
    USER_FORCE_SIGNOUT = "USER_FORCE_SIGNOUT"
    USER_CUSTOM_CLAIMS_SET = "USER_CUSTOM_CLAIMS_SET"
    USER_DELETED = "USER_DELETED"
    USERS_EXPORTED_CSV = "USERS_EXPORTED_CSV"


def log_audit(
    db: Session,
    user_id: str,
    action: str,
    details: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Append an audit log entry and commit it

    Args:
        db: Database session
        user_id: uid of the user performing the action
        action: Action tag (see AuditAction)
        details: Structured payload describing the action (optional)

    Returns:
        Created AuditLog instance
    """
    entry = AuditLog(
        user_id=user_id,
        action=action,
        details=sanitize_for_json(details or {}),
        timestamp=now_utc()
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


AuditErrorHandler = Callable[[Exception, str, str, Dict[str, Any]], None]


class AuditLogger:
    """
    Best-effort audit trail.

    ``record`` is called after the primary effect has been committed. A
    failure to append is rolled back, written to the operational log and
    handed to ``on_error``; it is never raised to the caller.
    """

    def __init__(self, db: Session, on_error: Optional[AuditErrorHandler] = None):
        self.db = db
        self.on_error = on_error

    def write(self, user_id: str, action: str, details: Dict[str, Any]) -> AuditLog:
        return log_audit(self.db, user_id, action, details)

    def record(
        self,
        user_id: str,
        action: str,
        details: Optional[Dict[str, Any]] = None
    ) -> Optional[AuditLog]:
        details = details or {}
        try:
            return self.write(user_id, action, details)
        except Exception as exc:
            self.db.rollback()
            logger.exception("Error logging audit activity %s for %s", action, user_id)
            if self.on_error is not None:
                try:
                    self.on_error(exc, user_id, action, details)
                except Exception:
                    logger.exception("Audit error handler failed")
            return None
