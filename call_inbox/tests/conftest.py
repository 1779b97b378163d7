import os

os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["RUN_MIGRATIONS_ON_STARTUP"] = "false"
os.environ["ENVIRONMENT"] = "test"
os.environ["CALL_INBOX_PASSWORD"] = "letmein"
os.environ["LOGIN_ACCESS_TOKEN"] = "access-123"
os.environ["ONESIGNAL_APP_ID"] = ""
os.environ["ONESIGNAL_REST_API_KEY"] = ""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from call_inbox.core import database
from call_inbox.core.clock import utcnow
from call_inbox.core.database import Base
from call_inbox.main import app
from call_inbox.models import CallClaim, Credential, ExtensionMapping
from call_inbox.services.rate_limit import get_login_rate_limiter

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


class FakeRateLimiter:
    def __init__(self, allow: bool = True):
        self.allow = allow
        self.hits = []
        self.resets = []

    def hit(self, key: str) -> bool:
        self.hits.append(key)
        return self.allow

    def reset(self, key: str) -> None:
        self.resets.append(key)


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_tables():
    yield
    db = TestingSessionLocal()
    try:
        for model in (CallClaim, ExtensionMapping, Credential):
            db.query(model).delete()
        db.commit()
    finally:
        db.close()


@pytest.fixture()
def rate_limiter():
    return FakeRateLimiter()


@pytest.fixture()
def client(rate_limiter):
    app.dependency_overrides[database.get_db] = override_get_db
    app.dependency_overrides[database.get_session_factory] = lambda: TestingSessionLocal
    app.dependency_overrides[get_login_rate_limiter] = lambda: rate_limiter
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def auth_headers(client):
    response = client.post(
        "/auth/login?token=access-123",
        json={"password": "letmein", "extension": "101"},
    )
    assert response.status_code == 200
    client.cookies.clear()
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture()
def make_claim(db):
    def _make_claim(
        phone_norm: str,
        status: str = "missed",
        handled_by_ext=None,
        updated_ago: timedelta = timedelta(minutes=5),
        expires_in: timedelta = timedelta(hours=12),
    ) -> CallClaim:
        now = utcnow()
        claim = CallClaim(
            phone_norm=phone_norm,
            last_pbx_call_id=f"pbx-{phone_norm}",
            status=status,
            handled_by_ext=handled_by_ext,
            updated_at=now - updated_ago,
            expires_at=now + expires_in,
        )
        db.add(claim)
        db.commit()
        db.refresh(claim)
        return claim

    return _make_claim


@pytest.fixture()
def session_factory():
    return TestingSessionLocal
