"""
SafetyHub Backend - Main Application Entry Point
"""
import logging
from urllib.parse import urlparse, urlunparse

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import OperationalError

from app.api.router import api_router
from app.core.config import settings
from app.core.errors import (
    OperationError,
    operation_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)
from app.core.logging import setup_logging
from app.db.session import SessionLocal, init_models
from app.models.user import Role, UserProfile
from app.services.identity_service import IdentityProvider
from app.services.lifecycle_service import register_lifecycle_handlers
from app.services.user_service import set_role

setup_logging()
logger = logging.getLogger(__name__)


def _mask_database_url(url: str) -> str:
    """Mask password in DATABASE_URL for safe logging; show full path for sqlite."""
    try:
        parsed = urlparse(url)
        if parsed.scheme.startswith("sqlite"):
            return url
        if parsed.password:
            netloc = f"{parsed.username}:****@{parsed.hostname or ''}"
            if parsed.port:
                netloc += f":{parsed.port}"
            return urlunparse(parsed._replace(netloc=netloc))
    except ValueError:
        return "***"
    return url


app = FastAPI(
    title="SafetyHub Backend",
    description="Incident reporting and user administration for safety and compliance teams",
    version=settings.VERSION or "1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(OperationError, operation_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

app.include_router(api_router, prefix="/api/v1")


@app.on_event("startup")
def startup_log_config() -> None:
    """Create SQLite tables and log DATABASE_URL at startup"""
    init_models()
    logger.info("DATABASE_URL (app): %s", _mask_database_url(settings.DATABASE_URL))


@app.on_event("startup")
def bootstrap_initial_admin() -> None:
    """
    Create the initial super admin if no super admin exists.
    This ensures the system always has someone able to assign roles.
    """
    db = SessionLocal()
    try:
        admin_exists = db.query(UserProfile).filter(
            UserProfile.role == Role.SUPER_ADMIN.value
        ).first()
        if admin_exists:
            logger.info("Super admin already exists, skipping initial bootstrap")
            return

        identity = IdentityProvider(db)
        register_lifecycle_handlers(identity)

        account = identity.get_user_by_email(settings.INITIAL_ADMIN_EMAIL)
        if account is None:
            account = identity.create_user(
                email=settings.INITIAL_ADMIN_EMAIL,
                password=settings.INITIAL_ADMIN_PASSWORD,
                display_name="System Administrator",
            )

        set_role(db, account.uid, Role.SUPER_ADMIN)
        identity.set_custom_user_claims(account.uid, {"role": Role.SUPER_ADMIN.value, "isActive": True})

        logger.info("Initial super admin created: %s", settings.INITIAL_ADMIN_EMAIL)
        logger.info("Password: [set via INITIAL_ADMIN_PASSWORD environment variable]")
    except OperationalError as e:
        db.rollback()
        if "no such table" in str(e).lower():
            logger.warning("Database tables not ready yet, skipping initial bootstrap")
        else:
            logger.error("Database error during admin bootstrap: %s", e)
    except Exception as e:
        db.rollback()
        logger.error("Error during initial admin bootstrap: %s", e, exc_info=True)
    finally:
        db.close()
