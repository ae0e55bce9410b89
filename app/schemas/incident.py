"""
Incident payload schemas
"""
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from app.schemas.common import CallPayload
from app.utils.datetime_utils import parse_iso_8601

SeverityValue = Literal["low", "medium", "high", "critical"]
StatusValue = Literal["open", "investigating", "resolved", "closed"]


class IncidentCreate(CallPayload):
    """
    New incident report

    ``priority``, ``status``, ``reportedBy`` and timestamps are computed by
    the server and ignored if present.
    """
    title: str = Field(..., min_length=5, max_length=200)
    description: str = Field(..., min_length=10)
    severity: SeverityValue
    category: str = Field(..., min_length=1, max_length=100)
    location: str = Field(..., min_length=1, max_length=500)
    date_occurred: str = Field(..., description="ISO-8601 date or datetime")
    injury_type: Optional[str] = None
    body_part: Optional[str] = None
    witnesses: List[str] = Field(default_factory=list)
    immediate_actions: Optional[str] = None
    attachments: List[str] = Field(default_factory=list)

    @field_validator("date_occurred")
    @classmethod
    def validate_date_occurred(cls, v: str) -> str:
        try:
            parse_iso_8601(v)
        except ValueError:
            raise ValueError("must be a valid ISO 8601 date")
        return v


class IncidentRef(CallPayload):
    incident_id: str = Field(..., min_length=1)


class IncidentListRequest(CallPayload):
    include_deleted: bool = False


class IncidentStatusUpdate(CallPayload):
    incident_id: str = Field(..., min_length=1)
    status: StatusValue
    note: Optional[str] = Field(default=None, max_length=1000)
