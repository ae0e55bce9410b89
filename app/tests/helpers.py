"""
Shared helpers for API tests
"""
from app.models import AuditLog, Role
from app.services.user_service import set_role


def make_user(identity, email, role=Role.USER, password="password123"):
    """Sign up a user through the identity provider and give them a role"""
    account = identity.create_user(email=email, password=password, display_name=email.split("@")[0])
    if role != Role.USER:
        set_role(identity.db, account.uid, role)
    return account


def auth_headers(identity, account):
    """Bearer header for a freshly issued token"""
    identity.db.refresh(account)
    return {"Authorization": f"Bearer {identity.issue_token(account)}"}


def call(client, name, payload=None, headers=None):
    """Invoke a guarded operation over HTTP"""
    kwargs = {"headers": headers or {}}
    if payload is not None:
        kwargs["json"] = payload
    return client.post(f"/api/v1/operations/{name}", **kwargs)


def audit_entries(db, action=None):
    query = db.query(AuditLog)
    if action is not None:
        query = query.filter(AuditLog.action == action)
    return query.all()


VALID_INCIDENT = {
    "title": "Slip on wet floor",
    "description": "Worker slipped near the loading dock entrance",
    "severity": "high",
    "category": "injury",
    "location": "Warehouse B",
    "dateOccurred": "2024-03-01T09:30:00Z",
    "witnesses": ["J. Doe"],
}
