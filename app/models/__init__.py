"""
Database models
"""
from app.models.user import UserProfile, Role, UserStatus
from app.models.identity_account import IdentityAccount
from app.models.incident import Incident, Severity, Priority, IncidentStatus
from app.models.audit_log import AuditLog
from app.models.notification import Notification, NotificationTarget

__all__ = [
    "UserProfile",
    "Role",
    "UserStatus",
    "IdentityAccount",
    "Incident",
    "Severity",
    "Priority",
    "IncidentStatus",
    "AuditLog",
    "Notification",
    "NotificationTarget",
]
