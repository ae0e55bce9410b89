"""
Notification payload schemas
"""
from pydantic import Field

from app.schemas.common import CallPayload


class ListNotificationsRequest(CallPayload):
    limit: int = Field(default=20, ge=1, le=100)
