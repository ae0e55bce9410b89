"""
Notification operations
"""
from app.core.operations import OperationContext, guarded_operation
from app.schemas.notification import ListNotificationsRequest
from app.services.notification_service import list_notifications_for, notification_to_dict


@guarded_operation("listNotifications", schema=ListNotificationsRequest)
def list_notifications(ctx: OperationContext):
    notifications = list_notifications_for(
        ctx.db, ctx.caller.uid, ctx.role.value, limit=ctx.params.limit
    )
    return {"notifications": [notification_to_dict(n) for n in notifications]}
