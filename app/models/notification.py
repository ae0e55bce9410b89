"""
Notification model
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, JSON, ForeignKey, Index
from sqlalchemy.orm import relationship

from app.db.base import Base

TARGET_ROLE = "role"
TARGET_USER = "user"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)

    # Relationships
    targets = relationship(
        "NotificationTarget",
        back_populates="notification",
        cascade="all, delete-orphan",
        order_by="NotificationTarget.id",
    )

    @property
    def target_roles(self):
        return [t.value for t in self.targets if t.kind == TARGET_ROLE]

    @property
    def target_users(self):
        return [t.value for t in self.targets if t.kind == TARGET_USER]


class NotificationTarget(Base):
    """One audience entry of a notification: a role name or a user uid"""
    __tablename__ = "notification_targets"

    id = Column(Integer, primary_key=True, index=True)
    notification_id = Column(Integer, ForeignKey("notifications.id", ondelete="CASCADE"), nullable=False)
    kind = Column(String(10), nullable=False)
    value = Column(String, nullable=False)

    __table_args__ = (
        Index("ix_notification_targets_kind_value", "kind", "value"),
    )

    notification = relationship("Notification", back_populates="targets")
