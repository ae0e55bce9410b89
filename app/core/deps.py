"""
Dependencies for FastAPI endpoints
"""
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.core.operations import Caller, OperationContext
from app.db.session import get_db
from app.services.audit_service import AuditLogger
from app.services.identity_service import IdentityProvider
from app.services.lifecycle_service import register_lifecycle_handlers
from app.storage.local_provider import LocalStorageProvider
from app.storage.provider import StorageProvider


# auto_error=False: a missing token must surface as "unauthenticated" from
# the operation pipeline, not as a framework 403
security = HTTPBearer(auto_error=False)


def get_identity_provider(db: Session = Depends(get_db)) -> IdentityProvider:
    """Identity provider with the profile lifecycle hooks attached"""
    identity = IdentityProvider(db)
    register_lifecycle_handlers(identity)
    return identity


def get_storage() -> StorageProvider:
    return LocalStorageProvider()


def get_audit_logger(db: Session = Depends(get_db)) -> AuditLogger:
    return AuditLogger(db)


def get_optional_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> Optional[Caller]:
    """Caller for a valid bearer token, or None"""
    if credentials is None or not credentials.credentials:
        return None
    return identity.verify_token(credentials.credentials)


def get_operation_context(
    db: Session = Depends(get_db),
    caller: Optional[Caller] = Depends(get_optional_caller),
    identity: IdentityProvider = Depends(get_identity_provider),
    storage: StorageProvider = Depends(get_storage),
    audit: AuditLogger = Depends(get_audit_logger),
) -> OperationContext:
    return OperationContext(db=db, caller=caller, identity=identity, storage=storage, audit=audit)
