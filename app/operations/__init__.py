"""
Guarded operation definitions

Importing this package registers every operation with the registry in
app.core.operations.
"""
from app.operations import incidents, notifications, users  # noqa: F401
