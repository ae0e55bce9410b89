"""
User and account management operations
"""
from app.core.config import settings
from app.core.operations import OperationContext, guarded_operation
from app.core.permissions import ADMIN_OR_ABOVE, IsSelf
from app.models.user import UserStatus
from app.schemas.common import OptionalTargetUserRequest, TargetUserRequest
from app.schemas.user import (
    ListUsersRequest,
    ResetPasswordRequest,
    SetClaimsRequest,
    SetUserRoleRequest,
    UpdateProfileRequest,
)
from app.services.audit_service import AuditAction
from app.services.user_service import (
    EXPORT_HEADERS,
    account_to_dict,
    get_profile_or_404,
    list_profiles,
    profile_export_row,
    record_login,
    set_role,
    set_status,
    update_profile,
)
from app.utils.csv_export import render_csv
from app.utils.datetime_utils import epoch_millis

SELF_OR_ADMIN = IsSelf("target_user_id") | ADMIN_OR_ABOVE

SUCCESS = {"success": True}


def _target(ctx, result=None):
    return {"targetUserId": ctx.params.target_user_id}


def _self_or_target(ctx, result=None):
    return {"targetUserId": ctx.params.target_user_id or ctx.caller.uid}


@guarded_operation("getUserRole")
def get_user_role(ctx: OperationContext):
    return {"role": get_profile_or_404(ctx.db, ctx.caller.uid).role}


@guarded_operation(
    "setUserRole",
    schema=SetUserRoleRequest,
    requires=ADMIN_OR_ABOVE,
    audit_action=AuditAction.ROLE_CHANGED,
    audit_details=lambda ctx, result: {
        "targetUserId": ctx.params.target_user_id,
        "newRole": ctx.params.new_role,
    },
)
def set_user_role(ctx: OperationContext):
    target = ctx.params.target_user_id
    set_role(ctx.db, target, ctx.params.new_role)

    # Keep the role claim on the identity in step with the profile
    account = ctx.identity.get_user(target)
    if account is not None:
        claims = dict(account.custom_claims or {})
        claims["role"] = ctx.params.new_role
        ctx.identity.set_custom_user_claims(target, claims)
    return SUCCESS


@guarded_operation(
    "updateLoginTimestamp",
    audit_action=AuditAction.USER_LOGIN,
)
def update_login_timestamp(ctx: OperationContext):
    record_login(ctx.db, ctx.caller.uid)
    return SUCCESS


@guarded_operation(
    "getAllUsers",
    schema=ListUsersRequest,
    requires=ADMIN_OR_ABOVE,
    audit_action=AuditAction.USERS_LIST_VIEWED,
    audit_details=lambda ctx, result: {"count": len(result["users"])},
    failure_message="Failed to list users",
)
def get_all_users(ctx: OperationContext):
    accounts, next_page_token = ctx.identity.list_users(
        page_size=ctx.params.page_size or settings.DEFAULT_PAGE_SIZE,
        page_token=ctx.params.page_token,
    )
    return {
        "users": [account_to_dict(a) for a in accounts],
        "nextPageToken": next_page_token,
    }


@guarded_operation(
    "updateUserProfile",
    schema=UpdateProfileRequest,
    audit_action=AuditAction.USER_PROFILE_UPDATED,
    audit_details=lambda ctx, result: {"fields": result["fields"]},
)
def update_user_profile(ctx: OperationContext):
    params = ctx.params
    preferences = (
        params.preferences.model_dump(by_alias=True, exclude_none=True)
        if params.preferences is not None
        else None
    )
    fields = update_profile(
        ctx.db,
        ctx.caller.uid,
        params.profile.model_dump(by_alias=True, exclude_none=True),
        preferences,
    )
    return {"success": True, "fields": fields}


@guarded_operation(
    "deactivateUserAccount",
    schema=OptionalTargetUserRequest,
    requires=SELF_OR_ADMIN,
    audit_action=AuditAction.USER_DEACTIVATED,
    audit_details=_self_or_target,
    failure_message="Failed to deactivate user",
)
def deactivate_user_account(ctx: OperationContext):
    set_status(ctx.db, ctx.params.target_user_id or ctx.caller.uid, UserStatus.INACTIVE)
    return SUCCESS


@guarded_operation(
    "reactivateUserAccount",
    schema=OptionalTargetUserRequest,
    requires=SELF_OR_ADMIN,
    audit_action=AuditAction.USER_REACTIVATED,
    audit_details=_self_or_target,
    failure_message="Failed to reactivate user",
)
def reactivate_user_account(ctx: OperationContext):
    set_status(ctx.db, ctx.params.target_user_id or ctx.caller.uid, UserStatus.ACTIVE)
    return SUCCESS


@guarded_operation(
    "lockUserAccount",
    schema=TargetUserRequest,
    requires=ADMIN_OR_ABOVE,
    audit_action=AuditAction.USER_LOCKED,
    audit_details=_target,
)
def lock_user_account(ctx: OperationContext):
    target = ctx.params.target_user_id
    get_profile_or_404(ctx.db, target)
    ctx.identity.get_user_or_404(target)

    set_status(ctx.db, target, UserStatus.LOCKED, commit=False)
    ctx.identity.set_disabled(target, True, commit=False)
    ctx.db.commit()
    return SUCCESS


@guarded_operation(
    "unlockUserAccount",
    schema=TargetUserRequest,
    requires=ADMIN_OR_ABOVE,
    audit_action=AuditAction.USER_UNLOCKED,
    audit_details=_target,
)
def unlock_user_account(ctx: OperationContext):
    target = ctx.params.target_user_id
    get_profile_or_404(ctx.db, target)
    ctx.identity.get_user_or_404(target)

    set_status(ctx.db, target, UserStatus.ACTIVE, commit=False)
    ctx.identity.set_disabled(target, False, commit=False)
    ctx.db.commit()
    return SUCCESS


@guarded_operation(
    "resetUserPassword",
    schema=ResetPasswordRequest,
    requires=ADMIN_OR_ABOVE,
    audit_action=AuditAction.USER_PASSWORD_RESET,
    audit_details=_target,
)
def reset_user_password(ctx: OperationContext):
    ctx.identity.update_password(ctx.params.target_user_id, ctx.params.new_password)
    return SUCCESS


@guarded_operation(
    "forceSignOutUser",
    schema=TargetUserRequest,
    requires=ADMIN_OR_ABOVE,
    audit_action=AuditAction.USER_FORCE_SIGNOUT,
    audit_details=_target,
    failure_message="Failed to force sign out user",
)
def force_sign_out_user(ctx: OperationContext):
    ctx.identity.revoke_refresh_tokens(ctx.params.target_user_id)
    return SUCCESS


@guarded_operation(
    "setCustomUserClaims",
    schema=SetClaimsRequest,
    requires=ADMIN_OR_ABOVE,
    audit_action=AuditAction.USER_CUSTOM_CLAIMS_SET,
    audit_details=lambda ctx, result: {
        "targetUserId": ctx.params.target_user_id,
        "claims": ctx.params.claims,
    },
)
def set_custom_user_claims(ctx: OperationContext):
    ctx.identity.set_custom_user_claims(ctx.params.target_user_id, ctx.params.claims)
    return SUCCESS


@guarded_operation(
    "deleteUserAccount",
    schema=TargetUserRequest,
    requires=ADMIN_OR_ABOVE,
    audit_action=AuditAction.USER_DELETED,
    audit_details=_target,
)
def delete_user_account(ctx: OperationContext):
    # The identity's on-delete hook removes the profile and archives incidents
    ctx.identity.delete_user(ctx.params.target_user_id)
    return SUCCESS


@guarded_operation(
    "exportAllUsersCSV",
    requires=ADMIN_OR_ABOVE,
    audit_action=AuditAction.USERS_EXPORTED_CSV,
    audit_details=lambda ctx, result: {"count": result["count"], "path": result["path"]},
    failure_message="Failed to export users as CSV",
)
def export_all_users_csv(ctx: OperationContext):
    rows = [profile_export_row(p) for p in list_profiles(ctx.db)]
    content = render_csv(EXPORT_HEADERS, rows)
    key = f"exports/users_export_{epoch_millis()}.csv"
    url = ctx.storage.save(key, content.encode("utf-8"), "text/csv")
    return {"url": url, "path": key, "count": len(rows), "success": True}
