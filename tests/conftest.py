"""Shared test fixtures for the DocVault test suite.

Tests run against a SQLite database file (override with TEST_DATABASE_URL).
The app's migrator creates the schema on import; every table is emptied
before each test. File content goes to an in-memory blob store.
"""

import os

# Point the app at the test database before any app imports.
os.environ["DATABASE_URL"] = os.environ.get(
    "TEST_DATABASE_URL",
    "sqlite:///./docvault_test.db",
)
os.environ["LOG_FORMAT"] = "text"
os.environ["BOOTSTRAP_ADMIN_EMAIL"] = ""

import pytest
from fastapi.testclient import TestClient

from docvault.database import Base, get_db, SessionLocal
from docvault.main import app
from docvault.core.config import settings
from docvault.core.principal import Principal
from docvault.core.token_factory import create_token
from docvault.middleware.request_context import rate_limiter
from docvault.models import User
from docvault.services.blob_store import MemoryBlobStore, get_blob_store
from docvault.services.resource_service import ResourceService


@pytest.fixture(autouse=True)
def _clean_tables():
    """Empty every table before each test, children first.

    Runs before the test (not after) so a failing test leaves its data
    available for inspection.
    """
    db = SessionLocal()
    try:
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())
        db.commit()
    finally:
        db.close()
    yield


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def blob_store() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture()
def client(db, blob_store):
    """TestClient sharing the test session and the in-memory blob store."""

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    rate_limiter.reset()
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db):
    """Factory inserting a user row and returning its Principal."""

    def _make(user_id: str, role: str = "user", email: str = None, is_active: bool = True) -> Principal:
        db.add(User(
            user_id=user_id,
            email=email or f"{user_id}@example.com",
            display_name=user_id.title(),
            role=role,
            is_active=is_active,
        ))
        db.commit()
        return Principal(id=user_id, role=role)

    return _make


@pytest.fixture()
def alice(make_user) -> Principal:
    return make_user("alice")


@pytest.fixture()
def bob(make_user) -> Principal:
    return make_user("bob")


@pytest.fixture()
def carol(make_user) -> Principal:
    return make_user("carol")


@pytest.fixture()
def admin(make_user) -> Principal:
    return make_user("root", role="admin")


@pytest.fixture()
def resources(db, blob_store) -> ResourceService:
    return ResourceService(db, blob_store)


def auth_headers(user_id: str, role: str = "user") -> dict:
    """Bearer headers for *user_id*, signed with the configured secret."""
    token = create_token(subject=user_id, role=role, secret=settings.jwt_secret_key)
    return {"Authorization": f"Bearer {token}"}
