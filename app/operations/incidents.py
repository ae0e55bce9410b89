"""
Incident operations
"""
from app.core.constants import INCIDENT_NOTIFY_ROLES
from app.core.errors import not_found
from app.core.operations import OperationContext, guarded_operation
from app.core.permissions import SUPERVISOR_OR_ABOVE, IsOwner
from app.models.user import Role
from app.schemas.incident import IncidentCreate, IncidentListRequest, IncidentRef, IncidentStatusUpdate
from app.services.audit_service import AuditAction
from app.services.incident_service import (
    build_incident,
    get_incident_or_404,
    incident_to_dict,
    list_incidents,
    soft_delete_incident,
    transition_incident,
)
from app.services.notification_service import create_notification
from app.utils.datetime_utils import epoch_millis
from app.utils.pdf_report import render_incident_pdf

# Supervisors and above see every incident; anyone else only their own
CAN_ACCESS_INCIDENT = SUPERVISOR_OR_ABOVE | IsOwner("reported_by")


def load_incident(ctx: OperationContext):
    return get_incident_or_404(ctx.db, ctx.params.incident_id)


def require_visible(ctx: OperationContext):
    """Soft-deleted incidents are only visible to supervisors and above"""
    incident = ctx.resource
    if incident.deleted and not ctx.has_role(Role.SUPERVISOR):
        raise not_found("Incident not found")
    return incident


def _incident_ref(ctx, result):
    return {"incidentId": ctx.params.incident_id}


@guarded_operation(
    "createIncident",
    schema=IncidentCreate,
    audit_action=AuditAction.INCIDENT_CREATED,
    audit_details=lambda ctx, result: {
        "incidentId": result["incidentId"],
        "severity": ctx.params.severity,
        "priority": result["priority"],
    },
)
def create_incident(ctx: OperationContext):
    incident = build_incident(ctx.params, ctx.caller.uid)
    ctx.db.add(incident)
    create_notification(
        ctx.db,
        type="incident_reported",
        title="New Incident Reported",
        message=f'Incident "{incident.title}" has been reported',
        target_roles=INCIDENT_NOTIFY_ROLES,
        data={"incidentId": incident.id},
    )
    ctx.db.commit()
    return {"incidentId": incident.id, "priority": incident.priority, "success": True}


@guarded_operation(
    "getIncidentById",
    schema=IncidentRef,
    load=load_incident,
    requires=CAN_ACCESS_INCIDENT,
    audit_action=AuditAction.INCIDENT_VIEWED,
    audit_details=_incident_ref,
    failure_message="Failed to fetch incident",
)
def get_incident_by_id(ctx: OperationContext):
    incident = require_visible(ctx)
    return {"incident": incident_to_dict(incident)}


@guarded_operation(
    "getUserIncidents",
    schema=IncidentListRequest,
    audit_action=AuditAction.INCIDENTS_LIST_VIEWED,
    audit_details=lambda ctx, result: {"count": len(result["incidents"])},
    failure_message="Failed to fetch incidents",
)
def get_user_incidents(ctx: OperationContext):
    if ctx.has_role(Role.SUPERVISOR):
        incidents = list_incidents(ctx.db, include_deleted=ctx.params.include_deleted)
    else:
        incidents = list_incidents(ctx.db, reporter_uid=ctx.caller.uid)
    return {"incidents": [incident_to_dict(i) for i in incidents]}


@guarded_operation(
    "updateIncidentStatus",
    schema=IncidentStatusUpdate,
    load=load_incident,
    requires=SUPERVISOR_OR_ABOVE,
    audit_action=AuditAction.INCIDENT_STATUS_CHANGED,
    audit_details=lambda ctx, result: {
        "incidentId": ctx.params.incident_id,
        "status": ctx.params.status,
    },
)
def update_incident_status(ctx: OperationContext):
    if ctx.resource.deleted:
        raise not_found("Incident not found")
    incident = transition_incident(
        ctx.db, ctx.resource, ctx.params.status, ctx.caller.uid, ctx.params.note
    )
    return {
        "success": True,
        "status": incident.status,
        "currentStage": incident.workflow["currentStage"],
    }


@guarded_operation(
    "deleteIncident",
    schema=IncidentRef,
    load=load_incident,
    requires=CAN_ACCESS_INCIDENT,
    audit_action=AuditAction.INCIDENT_DELETED,
    audit_details=_incident_ref,
)
def delete_incident(ctx: OperationContext):
    if ctx.resource.deleted:
        raise not_found("Incident not found")
    soft_delete_incident(ctx.db, ctx.resource, ctx.caller.uid)
    return {"success": True}


@guarded_operation(
    "downloadIncidentReport",
    schema=IncidentRef,
    load=load_incident,
    requires=CAN_ACCESS_INCIDENT,
    audit_action=AuditAction.INCIDENT_REPORT_DOWNLOADED,
    audit_details=lambda ctx, result: {
        "incidentId": ctx.params.incident_id,
        "path": result["path"],
    },
    failure_message="Failed to generate incident PDF",
)
def download_incident_report(ctx: OperationContext):
    incident = require_visible(ctx)
    pdf_bytes = render_incident_pdf(incident_to_dict(incident))
    key = f"reports/incident_{incident.id}_{epoch_millis()}.pdf"
    url = ctx.storage.save(key, pdf_bytes, "application/pdf")
    return {"url": url, "path": key, "success": True}
