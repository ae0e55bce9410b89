"""
Identity account model

Credentials and provider-level state (disabled flag, custom claims,
session version) for each signed-up user.
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON
from sqlalchemy.sql import func

from app.db.base import Base


class IdentityAccount(Base):
    __tablename__ = "identity_accounts"

    uid = Column(String, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    display_name = Column(String, nullable=True)
    password_hash = Column(String, nullable=False)
    disabled = Column(Boolean, nullable=False, default=False)
    custom_claims = Column(JSON, nullable=False, default=dict)
    # Bumped on revocation; tokens carrying an older value are rejected
    session_version = Column(Integer, nullable=False, default=0)
    last_sign_in_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
