"""
User management payload schemas
"""
from typing import Any, Dict, Literal, Optional

from pydantic import ConfigDict, Field

from app.schemas.common import CallPayload, TargetUserRequest

RoleValue = Literal["user", "supervisor", "manager", "admin", "super_admin"]


class SetUserRoleRequest(TargetUserRequest):
    new_role: RoleValue


class ListUsersRequest(CallPayload):
    page_size: Optional[int] = Field(default=None, ge=1, le=1000)
    page_token: Optional[str] = None


class EmergencyContact(CallPayload):
    name: Optional[str] = None
    phone: Optional[str] = None
    relationship: Optional[str] = None


class ProfileFields(CallPayload):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    phone: Optional[str] = None
    emergency_contact: Optional[EmergencyContact] = None


class NotificationPreferences(CallPayload):
    email: Optional[bool] = None
    push: Optional[bool] = None
    sms: Optional[bool] = None


class PreferenceFields(CallPayload):
    notifications: Optional[NotificationPreferences] = None
    language: Optional[str] = None
    timezone: Optional[str] = None


class UpdateProfileRequest(CallPayload):
    profile: ProfileFields
    preferences: Optional[PreferenceFields] = None


class ResetPasswordRequest(TargetUserRequest):
    # Passwords are kept exactly as typed, like the sign-up form
    model_config = ConfigDict(str_strip_whitespace=False)

    new_password: str = Field(..., min_length=8, max_length=72)


class SetClaimsRequest(TargetUserRequest):
    claims: Dict[str, Any]
