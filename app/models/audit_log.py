"""
Audit log model

Append-only: rows are inserted by the audit service and never updated
or deleted by the application.
"""
from sqlalchemy import Column, Integer, String, DateTime, JSON

from app.db.base import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    action = Column(String, nullable=False, index=True)  # e.g. "USER_LOCKED", "INCIDENT_CREATED"
    details = Column(JSON, nullable=False, default=dict)
    timestamp = Column(DateTime(timezone=True), nullable=False)
