"""
User service - business logic for user profiles and account status
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.errors import not_found
from app.models.identity_account import IdentityAccount
from app.models.user import Role, UserProfile, UserStatus
from app.utils.datetime_utils import iso_8601_utc, now_utc

logger = logging.getLogger(__name__)

EXPORT_HEADERS = [
    "uid",
    "email",
    "displayName",
    "role",
    "status",
    "isActive",
    "firstName",
    "lastName",
    "department",
    "position",
    "phone",
    "lastLoginAt",
    "createdAt",
    "updatedAt",
]


def get_profile(db: Session, uid: str) -> Optional[UserProfile]:
    return db.query(UserProfile).filter(UserProfile.uid == uid).first()


def get_profile_or_404(db: Session, uid: str) -> UserProfile:
    profile = get_profile(db, uid)
    if profile is None:
        raise not_found("User not found")
    return profile


def set_role(db: Session, uid: str, new_role: Role) -> UserProfile:
    profile = get_profile_or_404(db, uid)
    profile.role = Role(new_role).value
    profile.updated_at = now_utc()
    db.commit()
    db.refresh(profile)
    logger.info("Role of %s set to %s", uid, profile.role)
    return profile


def record_login(db: Session, uid: str) -> UserProfile:
    profile = get_profile_or_404(db, uid)
    profile.last_login_at = now_utc()
    db.commit()
    return profile


def set_status(db: Session, uid: str, status: UserStatus, commit: bool = True) -> UserProfile:
    """
    Set a profile's status; is_active mirrors whether the status is active

    With commit=False the change is only flushed and the caller commits.
    """
    profile = get_profile_or_404(db, uid)
    profile.status = UserStatus(status).value
    profile.is_active = profile.status == UserStatus.ACTIVE.value
    profile.updated_at = now_utc()
    if commit:
        db.commit()
        db.refresh(profile)
    else:
        db.flush()
    return profile


def _merge(base: Dict[str, Any], changes: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base or {})
    for key, value in changes.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def update_profile(
    db: Session,
    uid: str,
    profile_changes: Dict[str, Any],
    preference_changes: Optional[Dict[str, Any]] = None,
) -> List[str]:
    """
    Merge submitted profile and preference fields into the stored profile

    Returns:
        Names of the top-level fields that were written
    """
    profile = get_profile_or_404(db, uid)
    fields = ["profile"]
    profile.profile = _merge(profile.profile, profile_changes)
    if preference_changes is not None:
        profile.preferences = _merge(profile.preferences, preference_changes)
        fields.append("preferences")
    profile.updated_at = now_utc()
    fields.append("updatedAt")
    db.commit()
    return fields


def account_to_dict(account: IdentityAccount) -> Dict[str, Any]:
    return {
        "uid": account.uid,
        "email": account.email,
        "displayName": account.display_name,
        "disabled": bool(account.disabled),
        "metadata": {
            "creationTime": iso_8601_utc(account.created_at),
            "lastSignInTime": iso_8601_utc(account.last_sign_in_at),
        },
        "customClaims": account.custom_claims or {},
    }


def list_profiles(db: Session) -> List[UserProfile]:
    return db.query(UserProfile).order_by(UserProfile.created_at.asc(), UserProfile.uid.asc()).all()


def profile_export_row(profile: UserProfile) -> Dict[str, Any]:
    details = profile.profile or {}
    return {
        "uid": profile.uid,
        "email": profile.email,
        "displayName": profile.display_name,
        "role": profile.role,
        "status": profile.status,
        "isActive": profile.is_active,
        "firstName": details.get("firstName"),
        "lastName": details.get("lastName"),
        "department": details.get("department"),
        "position": details.get("position"),
        "phone": details.get("phone"),
        "lastLoginAt": iso_8601_utc(profile.last_login_at),
        "createdAt": iso_8601_utc(profile.created_at),
        "updatedAt": iso_8601_utc(profile.updated_at),
    }
