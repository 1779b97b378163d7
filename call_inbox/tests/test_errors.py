import pytest
from fastapi.testclient import TestClient

from call_inbox.core import database
from call_inbox.core.config import Settings, settings
from call_inbox.main import app


def broken_db():
    raise RuntimeError("secret dsn postgresql://callinbox:hunter2@db")


@pytest.fixture()
def failing_client():
    app.dependency_overrides[database.get_db] = broken_db
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_internal_error_is_generic(failing_client):
    response = failing_client.get("/calls")
    assert response.status_code == 500
    assert response.json() == {"error": "internal", "detail": "Internal server error"}
    assert "secret" not in response.text


def test_internal_error_detail_in_development(failing_client, monkeypatch):
    monkeypatch.setattr(settings, "environment", "development")
    response = failing_client.get("/calls")
    assert response.status_code == 500
    assert response.json()["detail"] == (
        "RuntimeError: secret dsn postgresql://callinbox:hunter2@db"
    )


def test_environment_defaults_to_production(monkeypatch):
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    defaults = Settings(_env_file=None)
    assert defaults.environment == "production"
    assert not defaults.is_development
    assert defaults.secure_cookies
