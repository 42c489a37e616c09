"""
Pytest configuration and fixtures for testing.

This file provides reusable test fixtures for:
- Database setup/teardown
- FastAPI test client
- Profiles with bearer tokens for each role
- Stubbed remote functions and temporary storage
- An in-memory change feed in place of Redis pub/sub
"""

import asyncio
import json
import threading
import uuid
from contextlib import asynccontextmanager

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_db, get_session_factory
from app.core.security import create_access_token
from app.core.storage import LocalStorage, get_storage_backend
from app.models.candidate import Candidate
from app.models.profile import Profile, UserRole
from app.services.functions import FunctionClient, get_function_client
from app.services.realtime import ChangeEvent
from main import app


# Use in-memory SQLite for testing (fast, isolated)
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session():
    """
    Create a fresh database for each test.
    """
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


class RemoteFunctions:
    """Records remote function calls and answers them with a canned body."""

    def __init__(self):
        self.calls = []
        self.status_code = 200
        self.body = {"success": True, "data": {"ok": True}}

    def fail(self, error: str, status_code: int = 200):
        self.status_code = status_code
        self.body = {"success": False, "error": error}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append({
            "function": request.url.path.rsplit("/", 1)[-1],
            "payload": json.loads(request.content or b"{}"),
        })
        return httpx.Response(self.status_code, json=self.body)


@pytest.fixture
def remote_functions():
    return RemoteFunctions()


class LocalChangeFeed:
    """
    Change feed with the same publish/subscribe interface as the Redis one,
    delivering within the process. Keeps every published event for asserts.
    """

    def __init__(self):
        self.published = []
        self._listeners = {}
        self._lock = threading.Lock()

    def publish(self, table, event, new, old=None):
        change = ChangeEvent(table=table, event=event.upper(), new=dict(new), old=old)
        self.published.append(change)
        with self._lock:
            listeners = list(self._listeners.get((table, change.row.get("id")), []))
        for loop, queue in listeners:
            # Publishers run in request worker threads
            loop.call_soon_threadsafe(queue.put_nowait, change)
        return len(listeners)

    @asynccontextmanager
    async def subscribe(self, table, row_id):
        key = (table, row_id)
        listener = (asyncio.get_running_loop(), asyncio.Queue())
        with self._lock:
            self._listeners.setdefault(key, []).append(listener)

        async def changes():
            while True:
                yield await listener[1].get()

        try:
            yield changes()
        finally:
            with self._lock:
                self._listeners[key].remove(listener)

    def ping(self):
        return True

    @property
    def listener_count(self):
        with self._lock:
            return sum(len(listeners) for listeners in self._listeners.values())


@pytest.fixture(autouse=True)
def change_feed(monkeypatch):
    """Route change events through an in-memory feed instead of Redis."""
    feed = LocalChangeFeed()
    monkeypatch.setattr("app.services.realtime.change_feed", feed)
    return feed


@pytest.fixture
def client(db_session, tmp_path, remote_functions):
    """
    FastAPI test client with database, storage and remote function
    dependencies overridden.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    test_storage = LocalStorage(str(tmp_path / "uploads"), "http://testserver/uploads")
    function_client = FunctionClient(
        base_url="http://functions.test",
        transport=httpx.MockTransport(remote_functions.handler),
    )

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal
    app.dependency_overrides[get_storage_backend] = lambda: test_storage
    app.dependency_overrides[get_function_client] = lambda: function_client

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def auth_headers(profile_id: str) -> dict:
    token = create_access_token({"sub": profile_id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_profile(db_session):
    """
    Factory for profiles. Candidate profiles get their candidate row.

    Usage:
        profile = make_profile(UserRole.HR)
        candidate = make_profile(UserRole.CANDIDATE, status="hr_approved", current_step=3)
    """
    def _make(role=UserRole.CANDIDATE, name=None, with_candidate=None, **candidate_fields):
        role_value = role.value if isinstance(role, UserRole) else role
        profile = Profile(
            id=str(uuid.uuid4()),
            email=f"{uuid.uuid4().hex[:8]}@example.com",
            name=name or f"Test {role_value}",
            role=role_value,
        )
        db_session.add(profile)
        db_session.flush()

        if with_candidate is None:
            with_candidate = role_value == UserRole.CANDIDATE.value
        if with_candidate:
            db_session.add(Candidate(id=profile.id, **candidate_fields))

        db_session.commit()
        db_session.refresh(profile)
        return profile

    return _make


@pytest.fixture
def hr_headers(make_profile):
    return auth_headers(make_profile(UserRole.HR).id)


@pytest.fixture
def admin_headers(make_profile):
    return auth_headers(make_profile(UserRole.ADMIN).id)


@pytest.fixture
def submitted_documents():
    """Document columns of a candidate whose application is complete."""
    return {
        "resume": "http://testserver/uploads/resume.pdf",
        "about_me_video": "http://testserver/uploads/about.mp4",
        "sales_pitch_video": "http://testserver/uploads/pitch.mp4",
    }
