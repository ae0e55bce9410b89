"""
Notification service
"""
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session, selectinload

from app.models.notification import TARGET_ROLE, TARGET_USER, Notification, NotificationTarget
from app.utils.datetime_utils import iso_8601_utc, now_utc
from app.utils.json_serializer import sanitize_for_json


def create_notification(
    db: Session,
    type: str,
    title: str,
    message: str,
    target_roles: Optional[List[str]] = None,
    target_users: Optional[List[str]] = None,
    data: Optional[Dict[str, Any]] = None,
) -> Notification:
    """
    Add a notification to the current transaction.

    The caller commits, so the notification lands together with the
    change that triggered it.
    """
    notification = Notification(
        type=type,
        title=title,
        message=message,
        data=sanitize_for_json(data or {}),
        created_at=now_utc(),
    )
    for role in dict.fromkeys(target_roles or []):
        notification.targets.append(NotificationTarget(kind=TARGET_ROLE, value=role))
    for uid in dict.fromkeys(target_users or []):
        notification.targets.append(NotificationTarget(kind=TARGET_USER, value=uid))
    db.add(notification)
    return notification


def list_notifications_for(db: Session, uid: str, role: str, limit: int = 20) -> List[Notification]:
    """Most recent notifications addressed to the user directly or to their role"""
    addressed = (
        select(NotificationTarget.notification_id)
        .where(
            or_(
                and_(NotificationTarget.kind == TARGET_ROLE, NotificationTarget.value == role),
                and_(NotificationTarget.kind == TARGET_USER, NotificationTarget.value == uid),
            )
        )
    )
    return (
        db.query(Notification)
        .options(selectinload(Notification.targets))
        .filter(Notification.id.in_(addressed))
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .all()
    )


def notification_to_dict(notification: Notification) -> Dict[str, Any]:
    return {
        "id": notification.id,
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "targetRoles": notification.target_roles,
        "targetUsers": notification.target_users,
        "data": notification.data or {},
        "createdAt": iso_8601_utc(notification.created_at),
    }
