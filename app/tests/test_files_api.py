"""
Tests for downloading stored reports and exports
"""
from fastapi import status

from app.tests.helpers import VALID_INCIDENT, auth_headers, call


def _report_path(client, headers):
    incident_id = call(client, "createIncident", VALID_INCIDENT, headers).json()["incidentId"]
    response = call(client, "downloadIncidentReport", {"incidentId": incident_id}, headers)
    assert response.status_code == status.HTTP_200_OK
    return incident_id, response.json()["path"]


def test_user_export_restricted_to_admins(client, identity, admin_user, regular_user, manager):
    admin_headers = auth_headers(identity, admin_user)
    path = call(client, "exportAllUsersCSV", None, admin_headers).json()["path"]

    for account in (regular_user, manager):
        response = client.get(f"/api/v1/files/{path}", headers=auth_headers(identity, account))
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["code"] == "permission-denied"

    response = client.get(f"/api/v1/files/{path}", headers=admin_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.content.startswith(b"uid,email")


def test_missing_export_checked_after_role(client, identity, regular_user, admin_user):
    path = "exports/users_export_1.csv"

    user = client.get(f"/api/v1/files/{path}", headers=auth_headers(identity, regular_user))
    admin = client.get(f"/api/v1/files/{path}", headers=auth_headers(identity, admin_user))

    assert user.status_code == status.HTTP_403_FORBIDDEN
    assert admin.status_code == status.HTTP_404_NOT_FOUND


def test_incident_report_follows_incident_access(client, identity, regular_user, other_user, supervisor):
    _, path = _report_path(client, auth_headers(identity, regular_user))

    owner = client.get(f"/api/v1/files/{path}", headers=auth_headers(identity, regular_user))
    stranger = client.get(f"/api/v1/files/{path}", headers=auth_headers(identity, other_user))
    sup = client.get(f"/api/v1/files/{path}", headers=auth_headers(identity, supervisor))

    assert owner.status_code == status.HTTP_200_OK
    assert stranger.status_code == status.HTTP_403_FORBIDDEN
    assert stranger.json()["code"] == "permission-denied"
    assert sup.status_code == status.HTTP_200_OK


def test_report_of_deleted_incident_hidden_from_owner(client, identity, regular_user, supervisor):
    headers = auth_headers(identity, regular_user)
    incident_id, path = _report_path(client, headers)
    call(client, "deleteIncident", {"incidentId": incident_id}, headers)

    assert client.get(f"/api/v1/files/{path}", headers=headers).status_code == status.HTTP_404_NOT_FOUND
    assert client.get(
        f"/api/v1/files/{path}", headers=auth_headers(identity, supervisor)
    ).status_code == status.HTTP_200_OK


def test_report_of_unknown_incident_is_not_found(client, identity, supervisor):
    response = client.get(
        "/api/v1/files/reports/incident_missing_123.pdf", headers=auth_headers(identity, supervisor)
    )

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_unknown_key_family_is_not_found(client, identity, admin_user, storage):
    storage.save("misc/notes.txt", b"hello", "text/plain")

    response = client.get("/api/v1/files/misc/notes.txt", headers=auth_headers(identity, admin_user))

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_download_requires_authentication(client, identity, admin_user):
    path = call(client, "exportAllUsersCSV", None, auth_headers(identity, admin_user)).json()["path"]

    response = client.get(f"/api/v1/files/{path}")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
