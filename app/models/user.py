"""
User profile model

One row per identity account, created by the sign-up lifecycle hook.
"""
import enum

from sqlalchemy import Column, String, Boolean, DateTime, JSON
from sqlalchemy.sql import func

from app.db.base import Base


class Role(str, enum.Enum):
    USER = "user"
    SUPERVISOR = "supervisor"
    MANAGER = "manager"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    LOCKED = "locked"


class UserProfile(Base):
    __tablename__ = "users"

    uid = Column(String, primary_key=True, index=True)
    email = Column(String, nullable=True, index=True)
    display_name = Column(String, nullable=False, default="")
    role = Column(String, nullable=False, default=Role.USER.value)
    status = Column(String, nullable=False, default=UserStatus.ACTIVE.value)
    is_active = Column(Boolean, nullable=False, default=True)
    profile = Column(JSON, nullable=False, default=dict)
    preferences = Column(JSON, nullable=False, default=dict)
    permissions = Column(JSON, nullable=False, default=dict)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
