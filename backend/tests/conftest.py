"""
Pytest configuration and fixtures for DocVault backend tests.

Every test gets its own in-memory SQLite database, so tests never touch the
dev database and never see each other's rows.
"""
import os
import sys
import pathlib

# Settings are read from the environment at import time; pin a safe test
# environment before anything under app/ is imported.
os.environ["ENV"] = "dev"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["OTP_SWEEP_INTERVAL_SECONDS"] = "0"
os.environ["REDIS_URL"] = ""
os.environ["TWILIO_ACCOUNT_SID"] = ""
os.environ["TWILIO_AUTH_TOKEN"] = ""
os.environ["TWILIO_FROM_NUMBER"] = ""
os.environ["JWT_SECRET"] = "test-secret"

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.db import Base  # noqa: E402
from app import models  # noqa: E402,F401


@pytest.fixture(scope="function")
def engine():
    """Fresh in-memory database with the full schema."""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    try:
        yield test_engine
    finally:
        Base.metadata.drop_all(bind=test_engine)
        test_engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db(session_factory):
    """
    Provide a database session for each test.

    Usage:
        def test_something(db: Session):
            user = User(mobile_number="+15551234567", name="Test")
            db.add(user)
            db.commit()
    """
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """The OTP rate limiter is a process-wide singleton; start every test with empty counters."""
    from app.services.auth import reset_rate_limiter
    reset_rate_limiter()
    yield
    reset_rate_limiter()


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    from app.core.config import settings
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(path))
    return path


def override_get_db(db_session):
    """
    Helper function to create a dependency override for get_db.

    Routes then share the test's session, so rows they commit are visible
    to the test without re-querying through another connection.
    """
    def _override():
        yield db_session
    return _override


@pytest.fixture(scope="function")
def client(db):
    """Provide a FastAPI TestClient with the test database dependency override."""
    from fastapi.testclient import TestClient
    from app.main import app
    from app.db import get_db

    app.dependency_overrides[get_db] = override_get_db(db)
    try:
        # raise_server_exceptions=False so unhandled errors become 500 responses
        with TestClient(app, raise_server_exceptions=False) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


class FakeSMSChannel:
    """Records sends instead of talking to Twilio."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def send(self, mobile_number, code):
        from app.services.auth import DeliveryFailure, DeliveryReceipt
        if self.fail:
            raise DeliveryFailure("carrier unreachable")
        self.sent.append((mobile_number, code))
        return DeliveryReceipt(message_id=f"SM{len(self.sent)}", to=mobile_number)


@pytest.fixture
def sms_channel(monkeypatch):
    """Install a working fake SMS channel."""
    channel = FakeSMSChannel()
    monkeypatch.setattr("app.services.otp_service.get_sms_channel", lambda: channel)
    return channel


@pytest.fixture
def failing_sms_channel(monkeypatch):
    channel = FakeSMSChannel(fail=True)
    monkeypatch.setattr("app.services.otp_service.get_sms_channel", lambda: channel)
    return channel


@pytest.fixture
def frozen_clock(monkeypatch):
    """
    Controllable clock for the OTP ledger.

    Usage:
        def test_expiry(db, frozen_clock):
            frozen_clock.advance(seconds=301)
    """
    from datetime import datetime, timedelta

    class Clock:
        def __init__(self):
            self.now = datetime(2026, 1, 15, 12, 0, 0)

        def __call__(self):
            return self.now

        def advance(self, **kwargs):
            self.now += timedelta(**kwargs)

    clock = Clock()
    monkeypatch.setattr("app.services.otp_ledger.utcnow", clock)
    return clock


@pytest.fixture
def make_user(db):
    """Factory for users with an optional password."""
    from app.services.user_service import UserService

    def _make(mobile_number="+15550001111", name="Test User", role="user", password=None, status="active"):
        user = UserService.create_user(db, mobile_number=mobile_number, name=name, role=role, password=password)
        if status != "active":
            user.status = status
            db.commit()
            db.refresh(user)
        return user
    return _make


@pytest.fixture
def auth_headers():
    """Bearer headers for a user, built with the real token issuer."""
    from app.services.auth import create_session_token

    def _headers(user):
        return {"Authorization": f"Bearer {create_session_token(user)}"}
    return _headers
