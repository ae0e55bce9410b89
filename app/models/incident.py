"""
Incident model
"""
import enum

from sqlalchemy import Column, String, Text, Boolean, DateTime, JSON
from sqlalchemy.sql import func

from app.db.base import Base


class Severity(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Priority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class IncidentStatus(str, enum.Enum):
    OPEN = "open"
    INVESTIGATING = "investigating"
    RESOLVED = "resolved"
    CLOSED = "closed"


class Incident(Base):
    __tablename__ = "incidents"

    id = Column(String, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    severity = Column(String, nullable=False)
    category = Column(String, nullable=False)
    location = Column(String, nullable=False)
    date_occurred = Column(String, nullable=False)  # ISO-8601 as submitted
    injury_type = Column(String, nullable=True)
    body_part = Column(String, nullable=True)
    witnesses = Column(JSON, nullable=False, default=list)
    immediate_actions = Column(Text, nullable=True)
    attachments = Column(JSON, nullable=False, default=list)
    reported_by = Column(String, nullable=False, index=True)
    status = Column(String, nullable=False, default=IncidentStatus.OPEN.value)
    priority = Column(String, nullable=False)
    # {"currentStage": str, "stages": [{"name", "completedAt", "completedBy"}]}
    workflow = Column(JSON, nullable=False, default=dict)
    deleted = Column(Boolean, nullable=False, default=False, index=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    deleted_by = Column(String, nullable=True)
    archived_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
