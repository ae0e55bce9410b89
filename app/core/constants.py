"""
Service-wide constants
"""

SERVICE_NAME = "safetyhub-backend"

# Incidents of a deleted user are reassigned to this marker instead of being removed
DELETED_USER_MARKER = "DELETED_USER"

# Roles notified when a new incident is reported
INCIDENT_NOTIFY_ROLES = ["supervisor", "manager", "admin", "super_admin"]
