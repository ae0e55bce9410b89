"""
Pytest configuration and fixtures
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("APP_ENV", "local")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db.base import Base
from app.core.deps import get_db, get_storage
from app.models import Role
from app.services.identity_service import IdentityProvider
from app.services.lifecycle_service import register_lifecycle_handlers
from app.storage.local_provider import LocalStorageProvider
from app.tests.helpers import make_user


# Use in-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def storage(tmp_path):
    """File storage rooted in a per-test temporary directory"""
    return LocalStorageProvider(str(tmp_path / "storage"), public_base_url="http://testserver")


@pytest.fixture(scope="function")
def client(db, storage):
    """Test client fixture with database and storage overrides"""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def identity(db):
    """Identity provider wired to the same lifecycle hooks as the app"""
    provider = IdentityProvider(db)
    register_lifecycle_handlers(provider)
    return provider


@pytest.fixture
def regular_user(identity):
    return make_user(identity, "worker@example.com")


@pytest.fixture
def other_user(identity):
    return make_user(identity, "colleague@example.com")


@pytest.fixture
def supervisor(identity):
    return make_user(identity, "supervisor@example.com", Role.SUPERVISOR)


@pytest.fixture
def manager(identity):
    return make_user(identity, "manager@example.com", Role.MANAGER)


@pytest.fixture
def admin_user(identity):
    return make_user(identity, "admin@example.com", Role.ADMIN)
