"""
Tests for incident operations
"""
from fastapi import status

from app.core.constants import DELETED_USER_MARKER
from app.models import Incident, Notification, Role
from app.services.audit_service import AuditAction
from app.services.notification_service import create_notification
from app.tests.helpers import VALID_INCIDENT, audit_entries, auth_headers, call, make_user


def _create(client, headers, **overrides):
    payload = dict(VALID_INCIDENT, **overrides)
    response = call(client, "createIncident", payload, headers)
    assert response.status_code == status.HTTP_200_OK, response.json()
    return response.json()["incidentId"]


def test_create_incident_requires_authentication(client, db):
    response = call(client, "createIncident", VALID_INCIDENT)

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["code"] == "unauthenticated"
    assert db.query(Incident).count() == 0


def test_create_incident_computes_server_fields(client, db, identity, regular_user):
    headers = auth_headers(identity, regular_user)
    response = call(
        client,
        "createIncident",
        dict(VALID_INCIDENT, priority="low", status="closed", reportedBy="someone-else"),
        headers,
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["success"] is True
    assert data["priority"] == "high"

    incident = db.query(Incident).filter(Incident.id == data["incidentId"]).one()
    assert incident.reported_by == regular_user.uid
    assert incident.status == "open"
    assert incident.priority == "high"
    assert incident.deleted is False
    assert incident.workflow["currentStage"] == "reported"
    assert incident.workflow["stages"][0]["completedBy"] == regular_user.uid


def test_create_incident_notifies_supervisors(client, db, identity, regular_user):
    incident_id = _create(client, auth_headers(identity, regular_user))

    notification = db.query(Notification).one()
    assert notification.type == "incident_reported"
    assert notification.target_roles == ["supervisor", "manager", "admin", "super_admin"]
    assert notification.data == {"incidentId": incident_id}


def test_create_incident_audited(client, db, identity, regular_user):
    incident_id = _create(client, auth_headers(identity, regular_user), severity="critical")

    entry = audit_entries(db, AuditAction.INCIDENT_CREATED)[0]
    assert entry.user_id == regular_user.uid
    assert entry.details == {"incidentId": incident_id, "severity": "critical", "priority": "critical"}


def test_create_incident_rejects_short_title(client, db, identity, regular_user):
    response = call(client, "createIncident", dict(VALID_INCIDENT, title="Slip"), auth_headers(identity, regular_user))

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    body = response.json()
    assert body["code"] == "invalid-argument"
    assert "title" in body["detail"]
    assert db.query(Incident).count() == 0


def test_create_incident_rejects_bad_date(client, identity, regular_user):
    response = call(
        client, "createIncident", dict(VALID_INCIDENT, dateOccurred="yesterday"), auth_headers(identity, regular_user)
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "dateOccurred" in response.json()["detail"]


def test_create_incident_rejects_unknown_severity(client, identity, regular_user):
    response = call(
        client, "createIncident", dict(VALID_INCIDENT, severity="extreme"), auth_headers(identity, regular_user)
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_malformed_json_is_invalid_argument_after_auth(client, identity, regular_user):
    headers = dict(auth_headers(identity, regular_user), **{"Content-Type": "application/json"})
    response = client.post("/api/v1/operations/createIncident", content=b"{not json", headers=headers)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["code"] == "invalid-argument"


def test_malformed_json_without_token_is_unauthenticated(client):
    response = client.post(
        "/api/v1/operations/createIncident",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_owner_can_read_incident(client, identity, regular_user):
    headers = auth_headers(identity, regular_user)
    incident_id = _create(client, headers)

    response = call(client, "getIncidentById", {"incidentId": incident_id}, headers)

    assert response.status_code == status.HTTP_200_OK
    incident = response.json()["incident"]
    assert incident["id"] == incident_id
    assert incident["reportedBy"] == regular_user.uid
    assert incident["witnesses"] == ["J. Doe"]


def test_other_user_cannot_read_incident(client, db, identity, regular_user, other_user):
    incident_id = _create(client, auth_headers(identity, regular_user))

    response = call(client, "getIncidentById", {"incidentId": incident_id}, auth_headers(identity, other_user))

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["code"] == "permission-denied"
    assert audit_entries(db, AuditAction.INCIDENT_VIEWED) == []


def test_supervisor_can_read_any_incident(client, db, identity, regular_user, supervisor):
    incident_id = _create(client, auth_headers(identity, regular_user))

    response = call(client, "getIncidentById", {"incidentId": incident_id}, auth_headers(identity, supervisor))

    assert response.status_code == status.HTTP_200_OK
    entry = audit_entries(db, AuditAction.INCIDENT_VIEWED)[0]
    assert entry.user_id == supervisor.uid


def test_missing_incident_is_not_found(client, identity, supervisor):
    response = call(client, "getIncidentById", {"incidentId": "missing"}, auth_headers(identity, supervisor))

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"] == "Incident not found"


def test_user_lists_only_own_incidents(client, identity, regular_user, other_user):
    mine = _create(client, auth_headers(identity, regular_user))
    _create(client, auth_headers(identity, other_user), title="Forklift near miss", category="near_miss")

    response = call(client, "getUserIncidents", None, auth_headers(identity, regular_user))

    assert response.status_code == status.HTTP_200_OK
    assert [i["id"] for i in response.json()["incidents"]] == [mine]


def test_supervisor_lists_all_incidents(client, identity, regular_user, other_user, supervisor):
    _create(client, auth_headers(identity, regular_user))
    _create(client, auth_headers(identity, other_user), title="Forklift near miss", category="near_miss")

    response = call(client, "getUserIncidents", {}, auth_headers(identity, supervisor))

    assert len(response.json()["incidents"]) == 2


def test_supervisor_updates_status(client, db, identity, regular_user, supervisor):
    incident_id = _create(client, auth_headers(identity, regular_user))

    response = call(
        client,
        "updateIncidentStatus",
        {"incidentId": incident_id, "status": "investigating", "note": "Assigned to safety officer"},
        auth_headers(identity, supervisor),
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["currentStage"] == "investigating"

    incident = db.query(Incident).filter(Incident.id == incident_id).one()
    db.refresh(incident)
    assert incident.status == "investigating"
    assert [s["name"] for s in incident.workflow["stages"]] == ["reported", "investigating"]
    assert incident.workflow["stages"][1]["note"] == "Assigned to safety officer"


def test_owner_cannot_update_status(client, identity, regular_user):
    headers = auth_headers(identity, regular_user)
    incident_id = _create(client, headers)

    response = call(client, "updateIncidentStatus", {"incidentId": incident_id, "status": "closed"}, headers)

    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_owner_soft_deletes_incident(client, db, identity, regular_user, supervisor):
    headers = auth_headers(identity, regular_user)
    incident_id = _create(client, headers)

    response = call(client, "deleteIncident", {"incidentId": incident_id}, headers)
    assert response.status_code == status.HTTP_200_OK

    incident = db.query(Incident).filter(Incident.id == incident_id).one()
    db.refresh(incident)
    assert incident.deleted is True
    assert incident.deleted_by == regular_user.uid

    # Hidden from the owner, still visible to supervisors on request
    assert call(client, "getIncidentById", {"incidentId": incident_id}, headers).status_code == 404
    assert call(client, "getUserIncidents", {}, headers).json()["incidents"] == []

    sup_headers = auth_headers(identity, supervisor)
    assert call(client, "getIncidentById", {"incidentId": incident_id}, sup_headers).status_code == 200
    listed = call(client, "getUserIncidents", {"includeDeleted": True}, sup_headers).json()["incidents"]
    assert [i["id"] for i in listed] == [incident_id]

    again = call(client, "deleteIncident", {"incidentId": incident_id}, headers)
    assert again.status_code == status.HTTP_404_NOT_FOUND


def test_other_user_cannot_delete_incident(client, db, identity, regular_user, other_user):
    incident_id = _create(client, auth_headers(identity, regular_user))

    response = call(client, "deleteIncident", {"incidentId": incident_id}, auth_headers(identity, other_user))

    assert response.status_code == status.HTTP_403_FORBIDDEN
    incident = db.query(Incident).filter(Incident.id == incident_id).one()
    assert incident.deleted is False


def test_download_incident_report(client, db, identity, regular_user, storage):
    headers = auth_headers(identity, regular_user)
    incident_id = _create(client, headers)

    response = call(client, "downloadIncidentReport", {"incidentId": incident_id}, headers)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["success"] is True
    assert data["path"].startswith(f"reports/incident_{incident_id}_")
    assert data["path"].endswith(".pdf")
    assert data["url"] == f"http://testserver/api/v1/files/{data['path']}"
    assert storage.open(data["path"]).startswith(b"%PDF")

    entry = audit_entries(db, AuditAction.INCIDENT_REPORT_DOWNLOADED)[0]
    assert entry.details["path"] == data["path"]

    download = client.get(f"/api/v1/files/{data['path']}", headers=headers)
    assert download.status_code == status.HTTP_200_OK
    assert download.headers["content-type"] == "application/pdf"


def test_deleted_reporter_incidents_are_archived(client, db, identity, regular_user, admin_user):
    incident_id = _create(client, auth_headers(identity, regular_user))
    before = db.query(Incident).count()

    response = call(client, "deleteUserAccount", {"targetUserId": regular_user.uid}, auth_headers(identity, admin_user))

    assert response.status_code == status.HTTP_200_OK
    assert db.query(Incident).count() == before
    incident = db.query(Incident).filter(Incident.id == incident_id).one()
    assert incident.reported_by == DELETED_USER_MARKER
    assert incident.archived_at is not None


def test_notifications_reach_supervisors_only(client, identity, regular_user, supervisor):
    _create(client, auth_headers(identity, regular_user))

    sup = call(client, "listNotifications", {}, auth_headers(identity, supervisor)).json()["notifications"]
    assert len(sup) == 1
    assert sup[0]["title"] == "New Incident Reported"

    mine = call(client, "listNotifications", {"limit": 5}, auth_headers(identity, regular_user)).json()
    assert mine["notifications"] == []


def test_super_admin_sees_incident_alerts(client, identity, regular_user):
    owner = make_user(identity, "owner@example.com", Role.SUPER_ADMIN)
    _create(client, auth_headers(identity, regular_user))

    response = call(client, "listNotifications", {}, auth_headers(identity, owner))

    assert response.status_code == status.HTTP_200_OK
    notifications = response.json()["notifications"]
    assert [n["type"] for n in notifications] == ["incident_reported"]
    assert "super_admin" in notifications[0]["targetRoles"]


def test_direct_notification_survives_busy_role_feed(client, db, identity, regular_user):
    create_notification(
        db, type="account_notice", title="Welcome", message="Direct message",
        target_users=[regular_user.uid],
    )
    db.commit()
    for i in range(600):
        create_notification(db, type="broadcast", title=f"Broadcast {i}", message="For managers", target_roles=["manager"])
    db.commit()

    response = call(client, "listNotifications", {"limit": 5}, auth_headers(identity, regular_user))

    notifications = response.json()["notifications"]
    assert [n["title"] for n in notifications] == ["Welcome"]
    assert notifications[0]["targetUsers"] == [regular_user.uid]
    assert notifications[0]["targetRoles"] == []
