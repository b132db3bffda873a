"""
Test configuration for the credentialing backend.
"""
import os

# Settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from credentialing.accounts.directory import DirectoryIngestion
from credentialing.accounts.service import AccountLifecycleEngine
from credentialing.admins.service import AdminService
from credentialing.core.audit_service import ActorDirectory, AuditLogEngine
from credentialing.core.locks import KeyedLock
from credentialing.core.notifications import Notifier
from credentialing.core.permissions import AdminRole
from credentialing.database import Base, get_db
from credentialing.main import app
from credentialing.storage import AccountStore, AdminStore, EventStore

# Test database URL
TEST_DATABASE_URL = "sqlite://"

# Create test database engine
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session factory
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

TEST_PASSWORD = "Password123!"


class RecordingNotifier(Notifier):
    """Keeps sent messages in memory."""

    def __init__(self):
        self.messages = []

    def send_message(self, account_id, text):
        self.messages.append((account_id, text))


@pytest.fixture(scope="function")
def db():
    """
    Create a fresh database for each test.
    """
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def account_store(db):
    return AccountStore(db)


@pytest.fixture
def admin_store(db):
    return AdminStore(db)


@pytest.fixture
def audit(db, account_store, admin_store):
    return AuditLogEngine(EventStore(db), directory=ActorDirectory(account_store, admin_store))


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def lifecycle(account_store, audit, notifier):
    return AccountLifecycleEngine(account_store, audit, notifier=notifier, locks=KeyedLock())


@pytest.fixture
def ingestion(account_store, audit):
    return DirectoryIngestion(account_store, audit)


@pytest.fixture
def admin_service(admin_store, audit):
    return AdminService(admin_store, audit)


@pytest.fixture
def make_admin(admin_service):
    """Factory creating an admin actor of the given role."""
    def _make(role=AdminRole.SUPER_ADMIN, email=None, name=None):
        value = AdminRole(role).value.lower()
        return admin_service.create_admin(
            name=name or f"{value} user",
            email=email or f"{value}@example.com",
            role=role,
            password=TEST_PASSWORD,
        )
    return _make


@pytest.fixture
def practitioner_draft():
    return {
        "name": "Dr. A",
        "email": "a@x.com",
        "password": TEST_PASSWORD,
        "role": "PRACTITIONER",
        "license_number": "MED-1001",
        "state": "Karnataka",
        "specialty": "General Medicine",
        "documents": [
            {"type": "MEDICAL_DEGREE", "name": "degree.pdf", "url": "https://files.example.com/degree.pdf"}
        ],
    }


@pytest.fixture
def dispensary_draft():
    return {
        "name": "City Pharmacy",
        "email": "pharmacy@x.com",
        "password": TEST_PASSWORD,
        "role": "DISPENSARY",
        "license_number": "PH-2002",
        "documents": [
            {"type": "PHARMACY_LICENSE", "name": "license.pdf", "url": "https://files.example.com/license.pdf"}
        ],
    }


@pytest.fixture(scope="function")
def client(db):
    """
    Create a test client with a test database session.
    """
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as client:
        yield client
    app.dependency_overrides = {}


@pytest.fixture
def login(client, make_admin):
    """Create an admin of the given role and return bearer auth headers."""
    def _login(role=AdminRole.SUPER_ADMIN, email=None):
        admin = make_admin(role, email=email)
        response = client.post(
            "/api/v1/admins/login",
            json={"email": admin.email, "password": TEST_PASSWORD},
        )
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}
    return _login
