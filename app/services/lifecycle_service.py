"""
Identity lifecycle handlers - profile creation on sign-up and data cleanup on account deletion
"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.core.constants import DELETED_USER_MARKER
from app.models.identity_account import IdentityAccount
from app.models.incident import Incident
from app.models.user import Role, UserProfile, UserStatus
from app.services.audit_service import AuditAction, AuditLogger
from app.utils.datetime_utils import now_utc

logger = logging.getLogger(__name__)


def default_profile() -> Dict[str, Any]:
    return {
        "firstName": "",
        "lastName": "",
        "department": "",
        "position": "",
        "phone": "",
        "emergencyContact": {
            "name": "",
            "phone": "",
            "relationship": "",
        },
    }


def default_preferences() -> Dict[str, Any]:
    return {
        "notifications": {
            "email": True,
            "push": True,
            "sms": False,
        },
        "language": "en",
        "timezone": "UTC",
    }


def default_permissions() -> Dict[str, Any]:
    return {
        "incidents": ["read", "create"],
        "documents": ["read"],
        "reports": ["read"],
        "compliance": ["read"],
    }


def default_claims() -> Dict[str, Any]:
    return {"role": Role.USER.value, "isActive": True}


def default_display_name(email: Optional[str], display_name: Optional[str]) -> str:
    if display_name:
        return display_name
    return email.split("@")[0] if email else ""


def create_user_profile(db: Session, account: IdentityAccount) -> UserProfile:
    """Create the default profile row for a new account"""
    now = now_utc()
    profile = UserProfile(
        uid=account.uid,
        email=account.email,
        display_name=default_display_name(account.email, account.display_name),
        role=Role.USER.value,
        status=UserStatus.ACTIVE.value,
        is_active=True,
        profile=default_profile(),
        preferences=default_preferences(),
        permissions=default_permissions(),
        created_at=now,
        updated_at=now,
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


def create_user_on_sign_up(identity, account: IdentityAccount) -> None:
    """
    On-create listener: default profile, audit entry and default custom claims
    """
    db = identity.db
    create_user_profile(db, account)

    AuditLogger(db).record(account.uid, AuditAction.USER_CREATED, {
        "email": account.email,
        "displayName": account.display_name,
    })

    identity.set_custom_user_claims(account.uid, default_claims())
    logger.info("User profile created for %s", account.email or account.uid)


def reassign_incidents(db: Session, uid: str) -> int:
    """
    Hand every incident reported by uid over to the deleted-user marker.

    Not committed here; the caller commits it together with the profile removal.
    """
    archived_at = now_utc()
    return (
        db.query(Incident)
        .filter(Incident.reported_by == uid)
        .update(
            {
                Incident.reported_by: DELETED_USER_MARKER,
                Incident.archived_at: archived_at,
                Incident.updated_at: archived_at,
            },
            synchronize_session=False,
        )
    )


def cleanup_user_data(db: Session, uid: str) -> int:
    """
    Remove the profile of a deleted account and archive its incidents.

    Both changes are committed in one transaction. Returns the number of
    reassigned incidents.
    """
    try:
        db.query(UserProfile).filter(UserProfile.uid == uid).delete(synchronize_session=False)
        count = reassign_incidents(db, uid)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.expire_all()
    logger.info("User data cleaned up for UID: %s (%d incidents archived)", uid, count)
    return count


def cleanup_user_data_on_delete(identity, uid: str) -> None:
    """On-delete listener"""
    count = cleanup_user_data(identity.db, uid)
    AuditLogger(identity.db).record(uid, AuditAction.USER_DATA_CLEANED, {"archivedIncidents": count})


def register_lifecycle_handlers(identity) -> None:
    identity.on_user_created(create_user_on_sign_up)
    identity.on_user_deleted(cleanup_user_data_on_delete)
