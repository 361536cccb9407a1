"""Pytest fixtures for RequestDesk tests.

Provides reusable test fixtures for:
- In-process record store seeded with one user per role
- Services wired to a deterministic clock
- Authenticated test clients with JWT tokens

Usage:
    def test_student_can_create(request_service, people):
        record = request_service.create_request(people.student, DocumentType.OTHER, "...")
        assert record.status == RequestStatus.PENDING
"""

import os
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Callable, Dict, Optional

# Set required environment variables before the application module is imported
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-key-256-bits-minimum-length-required-for-security")
os.environ.setdefault("LOG_JSON", "false")

import pytest
from fastapi.testclient import TestClient

from requestdesk.auth.identity import IdentityFacts
from requestdesk.auth.jwt import create_access_token
from requestdesk.auth.roles import UserRole
from requestdesk.config import Settings
from requestdesk.infrastructure.storage.memory_blob_store import MemoryBlobStore
from requestdesk.infrastructure.store.memory_store import MemoryStore
from requestdesk.notifications.service import Notifier
from requestdesk.password_resets.lifecycle import PasswordResetLifecycle
from requestdesk.password_resets.service import PasswordResetService
from requestdesk.requests.attachments import AttachmentWorkflow
from requestdesk.requests.lifecycle import LifecycleEngine
from requestdesk.requests.models import DocumentRequest, DocumentType
from requestdesk.requests.status import RequestStatus
from requestdesk.requests.service import RequestService
from requestdesk.users.directory import StoreUserDirectory
from requestdesk.users.models import UserProfile

TEST_JWT_SECRET = "test-jwt-secret-key-256-bits-minimum-length-required-for-security"
START_TIME = datetime(2025, 3, 7, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """Returns strictly increasing timestamps, one minute apart."""

    def __init__(self, start: datetime = START_TIME, step: timedelta = timedelta(minutes=1)):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current


class SequentialIds:
    def __init__(self, prefix: str):
        self.prefix = prefix
        self.count = 0

    def __call__(self) -> str:
        self.count += 1
        return f"{self.prefix}-{self.count}"


PROFILES: Dict[str, UserProfile] = {
    "super_admin": UserProfile(
        id="sa-1", email="grace@school.org", first_name="Grace", last_name="Hopper",
        role=UserRole.SUPER_ADMIN,
    ),
    "super_admin_2": UserProfile(
        id="sa-2", email="barbara@school.org", first_name="Barbara", last_name="Liskov",
        role=UserRole.SUPER_ADMIN,
    ),
    "admin": UserProfile(
        id="admin-1", email="ada@school.org", first_name="Ada", last_name="Lovelace",
        role=UserRole.ADMIN, designation="Registrar",
    ),
    "staff": UserProfile(
        id="staff-1", email="alan@school.org", first_name="Alan", last_name="Turing",
        role=UserRole.STAFF, designation="Exams Officer",
    ),
    "staff_2": UserProfile(
        id="staff-2", email="edsger@school.org", first_name="Edsger", last_name="Dijkstra",
        role=UserRole.STAFF, designation="Teacher",
    ),
    "student": UserProfile(
        id="stu-1", email="sam@school.org", first_name="Sam", last_name="Student",
        role=UserRole.STUDENT, admission_number="A123",
    ),
    "other_student": UserProfile(
        id="stu-2", email="olive@school.org", first_name="Olive", last_name="Other",
        role=UserRole.STUDENT, admission_number="B456",
    ),
    "inactive_staff": UserProfile(
        id="staff-9", email="gone@school.org", first_name="Gone", last_name="Away",
        role=UserRole.STAFF, is_active=False,
    ),
}


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def profiles() -> SimpleNamespace:
    return SimpleNamespace(**PROFILES)


@pytest.fixture
def people() -> SimpleNamespace:
    """IdentityFacts of every seeded user, by role name."""
    return SimpleNamespace(**{name: p.to_identity() for name, p in PROFILES.items()})


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def directory(store) -> StoreUserDirectory:
    directory = StoreUserDirectory(store)
    for profile in PROFILES.values():
        directory.save_user(profile)
    return directory


@pytest.fixture
def notifier(store, clock) -> Notifier:
    return Notifier(store, clock=clock, id_factory=SequentialIds("n"))


@pytest.fixture
def engine(clock) -> LifecycleEngine:
    return LifecycleEngine(clock=clock, id_factory=SequentialIds("c"))


@pytest.fixture
def workflow(clock) -> AttachmentWorkflow:
    return AttachmentWorkflow(clock=clock, id_factory=SequentialIds("att"))


@pytest.fixture
def request_service(store, directory, notifier, engine, workflow) -> RequestService:
    return RequestService(store, directory, notifier, engine=engine, workflow=workflow)


@pytest.fixture
def password_reset_service(store, directory, notifier, clock) -> PasswordResetService:
    return PasswordResetService(
        store, directory, notifier,
        lifecycle=PasswordResetLifecycle(clock=clock, id_factory=SequentialIds("pr")),
    )


@pytest.fixture
def make_record(clock) -> Callable[..., DocumentRequest]:
    """Build an unsaved DocumentRequest for engine-level tests."""

    def factory(
        request_id: str = "A123_001_0307",
        student: Optional[UserProfile] = None,
        status: RequestStatus = RequestStatus.PENDING,
        **fields,
    ) -> DocumentRequest:
        student = student or PROFILES["student"]
        return DocumentRequest(
            id=request_id,
            status=status,
            student_id=student.id,
            student_name=student.full_name,
            student_admission_no=student.admission_number or "UNKNOWN",
            document_type=fields.pop("document_type", DocumentType.REFERENCE_LETTER),
            details=fields.pop("details", "For university applications"),
            created_at=fields.pop("created_at", clock()),
            **fields,
        )

    return factory


@pytest.fixture
def submit(request_service, people) -> Callable[..., DocumentRequest]:
    """Create a request through the service as a student."""

    def factory(
        student: Optional[IdentityFacts] = None,
        document_type: DocumentType = DocumentType.REFERENCE_LETTER,
        details: str = "For university applications",
    ) -> DocumentRequest:
        return request_service.create_request(student or people.student, document_type, details)

    return factory


# ============================================================================
# HTTP fixtures
# ============================================================================

@pytest.fixture
def jwt_env(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", TEST_JWT_SECRET)
    monkeypatch.setenv("JWT_EXPIRY_MINUTES", "60")


@pytest.fixture
def blob_store() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def app(store, directory, blob_store, jwt_env):
    from requestdesk.main import create_app

    settings = Settings(
        LOG_JSON=False,
        LOG_LEVEL="WARNING",
        ENVIRONMENT="test",
        MAX_UPLOAD_BYTES=1024,
        BATCH_MAX_SIZE=2,
    )
    return create_app(settings=settings, store=store, blob_store=blob_store)


@pytest.fixture
def client(app) -> TestClient:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(jwt_env) -> Callable[[IdentityFacts], Dict[str, str]]:
    def factory(identity: IdentityFacts) -> Dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(identity)}"}

    return factory
