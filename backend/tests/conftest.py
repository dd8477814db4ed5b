"""Pytest fixtures — SQLite database for fast, isolated tests."""
import os
import tempfile
from pathlib import Path

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("BLOB_ROOT", tempfile.mkdtemp(prefix="gatepass-blobs-"))
os.environ.setdefault("BLOB_BASE_URL", "http://testserver/blobs")

from datetime import date, timedelta  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from gatepass.config import settings  # noqa: E402
from gatepass.database import Base, get_db  # noqa: E402
from gatepass.main import app  # noqa: E402
from gatepass.models.principal import Principal, Role  # noqa: E402
from gatepass.services import principal_service  # noqa: E402
from gatepass.store import GatePassStore  # noqa: E402

# Import all models so they register with Base.metadata
from gatepass.models.gate_pass import GatePassRequest  # noqa: E402,F401

SQLITE_URL = "sqlite:///./test.db"

STUDENT_PROFILE = {
    "enrollment_number": "ENR2023001",
    "course": "B.Tech CSE",
    "semester": "5",
    "hostel_block": "A",
    "room_number": "101",
    "permanent_address": "12 Lake Road, Pune, Maharashtra",
    "parent_name": "Parent Name",
    "parent_contact": "9876543210",
    "emergency_contact": "9123456780",
}


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    # WAL lets a second session write while the first one has read
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory):
    """Yield a database session, closed after the test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def store(db):
    return GatePassStore(db)


@pytest.fixture(scope="function")
def blob_root():
    """Directory the app serves under /blobs."""
    return Path(settings.BLOB_ROOT)


@pytest.fixture(scope="function")
def client(session_factory):
    """FastAPI TestClient with the database overridden."""

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Service-level helpers: principals written straight through the session
# ---------------------------------------------------------------------------
def make_student(db, name: str = "Student One", complete: bool = True) -> Principal:
    email = name.lower().replace(" ", ".") + "@campus.test"
    student = principal_service.register(db, name, email, Role.student.value)
    if complete:
        for field, value in STUDENT_PROFILE.items():
            setattr(student, field, value)
        student.profile_complete = True
        db.commit()
        db.refresh(student)
    return student


def make_warden(db, name: str = "Warden One") -> Principal:
    email = name.lower().replace(" ", ".") + "@campus.test"
    return principal_service.register(db, name, email, Role.warden.value)


# ---------------------------------------------------------------------------
# API helpers
# ---------------------------------------------------------------------------
def auth(principal_id: str) -> dict:
    return {"X-Principal-Id": principal_id}


def create_test_principal(client: TestClient, name: str = "Test Student", role: str = "student") -> dict:
    """Helper — POST /api/principals and return response JSON."""
    resp = client.post("/api/principals/", json={
        "display_name": name,
        "email": name.lower().replace(" ", ".") + "@campus.test",
        "role": role,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_student(client: TestClient, name: str = "Test Student") -> dict:
    """Helper — register a student and complete their profile."""
    student = create_test_principal(client, name=name, role="student")
    resp = client.post("/api/principals/me/profile", json=STUDENT_PROFILE, headers=auth(student["principal_id"]))
    assert resp.status_code == 200, resp.text
    return resp.json()


def gate_pass_payload(**overrides) -> dict:
    """A valid submission dated a few days from today."""
    leave = date.today() + timedelta(days=3)
    payload = {
        "reason": "Visiting family for a cousin's wedding ceremony",
        "destination": "City X",
        "departure_date": leave.isoformat(),
        "departure_time": "09:00",
        "return_date": (leave + timedelta(days=2)).isoformat(),
        "return_time": "18:00",
        "parent_contact": "9876543210",
    }
    payload.update(overrides)
    return payload
