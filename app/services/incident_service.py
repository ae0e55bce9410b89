"""
Incident service - priority scoring and incident persistence
"""
import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.errors import not_found
from app.models.incident import Incident, IncidentStatus, Priority, Severity
from app.schemas.incident import IncidentCreate
from app.utils.datetime_utils import iso_8601_utc, now_utc

logger = logging.getLogger(__name__)

SEVERITY_WEIGHTS = {
    Severity.CRITICAL.value: 4,
    Severity.HIGH.value: 3,
    Severity.MEDIUM.value: 2,
    Severity.LOW.value: 1,
}
CATEGORY_WEIGHTS = {
    "injury": 3,
    "near_miss": 2,
    "property_damage": 2,
    "environmental": 2,
    "security": 1,
}
DEFAULT_WEIGHT = 1

# (minimum score, priority), checked top-down
PRIORITY_THRESHOLDS = [
    (12, Priority.CRITICAL),
    (8, Priority.HIGH),
    (4, Priority.MEDIUM),
]

INITIAL_STAGE = "reported"


def priority_score(severity: str, category: str) -> int:
    return SEVERITY_WEIGHTS.get(severity, DEFAULT_WEIGHT) * CATEGORY_WEIGHTS.get(category, DEFAULT_WEIGHT)


def calculate_priority(severity: str, category: str) -> Priority:
    """
    Derive incident priority from severity and category weights.

    Pure: the same inputs always give the same priority.
    """
    score = priority_score(severity, category)
    for minimum, priority in PRIORITY_THRESHOLDS:
        if score >= minimum:
            return priority
    return Priority.LOW


def _stage(name: str, actor_uid: str, note: Optional[str] = None) -> Dict[str, Any]:
    stage = {
        "name": name,
        "completedAt": iso_8601_utc(now_utc()),
        "completedBy": actor_uid,
    }
    if note:
        stage["note"] = note
    return stage


def incident_to_dict(incident: Incident) -> Dict[str, Any]:
    """Serialize an incident the way callers see it (camelCase keys)"""
    return {
        "id": incident.id,
        "title": incident.title,
        "description": incident.description,
        "severity": incident.severity,
        "category": incident.category,
        "location": incident.location,
        "dateOccurred": incident.date_occurred,
        "injuryType": incident.injury_type,
        "bodyPart": incident.body_part,
        "witnesses": list(incident.witnesses or []),
        "immediateActions": incident.immediate_actions,
        "attachments": list(incident.attachments or []),
        "reportedBy": incident.reported_by,
        "status": incident.status,
        "priority": incident.priority,
        "workflow": incident.workflow or {},
        "deleted": bool(incident.deleted),
        "deletedAt": iso_8601_utc(incident.deleted_at),
        "deletedBy": incident.deleted_by,
        "archivedAt": iso_8601_utc(incident.archived_at),
        "createdAt": iso_8601_utc(incident.created_at),
        "updatedAt": iso_8601_utc(incident.updated_at),
    }


def get_incident(db: Session, incident_id: str) -> Optional[Incident]:
    return db.query(Incident).filter(Incident.id == incident_id).first()


def get_incident_or_404(db: Session, incident_id: str) -> Incident:
    incident = get_incident(db, incident_id)
    if incident is None:
        raise not_found("Incident not found")
    return incident


def build_incident(data: IncidentCreate, reporter_uid: str) -> Incident:
    """
    Build (but do not persist) a new incident.

    Status, priority, authorship and timestamps are always server-assigned.
    """
    now = now_utc()
    return Incident(
        id=str(uuid.uuid4()),
        title=data.title,
        description=data.description,
        severity=data.severity,
        category=data.category,
        location=data.location,
        date_occurred=data.date_occurred,
        injury_type=data.injury_type,
        body_part=data.body_part,
        witnesses=list(data.witnesses),
        immediate_actions=data.immediate_actions,
        attachments=list(data.attachments),
        reported_by=reporter_uid,
        status=IncidentStatus.OPEN.value,
        priority=calculate_priority(data.severity, data.category).value,
        workflow={
            "currentStage": INITIAL_STAGE,
            "stages": [_stage(INITIAL_STAGE, reporter_uid)],
        },
        deleted=False,
        created_at=now,
        updated_at=now,
    )


def list_incidents(
    db: Session,
    reporter_uid: Optional[str] = None,
    include_deleted: bool = False,
) -> List[Incident]:
    """
    List incidents, newest first.

    Args:
        reporter_uid: restrict to incidents reported by this uid
        include_deleted: include soft-deleted incidents
    """
    query = db.query(Incident)
    if reporter_uid is not None:
        query = query.filter(Incident.reported_by == reporter_uid)
    if not include_deleted:
        query = query.filter(Incident.deleted == False)  # noqa: E712
    return query.order_by(Incident.created_at.desc(), Incident.id.asc()).all()


def transition_incident(
    db: Session,
    incident: Incident,
    new_status: str,
    actor_uid: str,
    note: Optional[str] = None,
) -> Incident:
    """Move an incident to a new status and append the stage to its workflow history"""
    workflow = dict(incident.workflow or {})
    stages = list(workflow.get("stages", []))
    stages.append(_stage(new_status, actor_uid, note))
    workflow["stages"] = stages
    workflow["currentStage"] = new_status

    incident.workflow = workflow
    incident.status = new_status
    incident.updated_at = now_utc()
    db.commit()
    db.refresh(incident)
    return incident


def soft_delete_incident(db: Session, incident: Incident, actor_uid: str) -> Incident:
    """Mark an incident deleted; the row is kept for audit purposes"""
    now = now_utc()
    incident.deleted = True
    incident.deleted_at = now
    incident.deleted_by = actor_uid
    incident.updated_at = now
    db.commit()
    db.refresh(incident)
    logger.info("Incident %s soft-deleted by %s", incident.id, actor_uid)
    return incident
