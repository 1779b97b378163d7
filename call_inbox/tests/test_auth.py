from datetime import timedelta

from call_inbox.core.clock import utcnow
from call_inbox.core.security import hash_token
from call_inbox.models import Credential, CredentialKind
from call_inbox.services.auth import AuthContext, issue_credential, purge_expired, validate_token

LOGIN_URL = "/auth/login?token=access-123"


def test_login_success(client):
    response = client.post(LOGIN_URL, json={"password": "letmein", "extension": " 101 "})
    assert response.status_code == 200
    data = response.json()
    assert data["token"]
    assert data["kind"] == "device"
    assert data["extension"] == "101"
    assert "call_inbox_session" in response.cookies


def test_login_stores_only_token_hash(client, db):
    token = client.post(LOGIN_URL, json={"password": "letmein"}).json()["token"]
    stored = db.query(Credential).one()
    assert stored.token_hash == hash_token(token)
    assert stored.token_hash != token


def test_session_login_has_shorter_lifetime(client):
    data = client.post(
        LOGIN_URL, json={"password": "letmein", "remember_device": False}
    ).json()
    assert data["kind"] == "session"
    assert data["extension"] is None


def test_login_failure(client):
    response = client.post(LOGIN_URL, json={"password": "wrong"})
    assert response.status_code == 401
    assert response.json()["error"] == "unauthorized"


def test_login_missing_password_is_unauthorized(client):
    response = client.post(LOGIN_URL, json={"extension": "101"})
    assert response.status_code == 401


def test_login_requires_access_token(client):
    response = client.post("/auth/login", json={"password": "letmein"})
    assert response.status_code == 401
    response = client.post(
        "/auth/login", json={"password": "letmein"}, headers={"X-Login-Token": "access-123"}
    )
    assert response.status_code == 200


def test_login_malformed_body(client):
    response = client.post(
        LOGIN_URL, content="not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_input"


def test_login_rate_limited(client, rate_limiter):
    rate_limiter.allow = False
    response = client.post(LOGIN_URL, json={"password": "letmein"})
    assert response.status_code == 429


def test_successful_login_resets_rate_limit(client, rate_limiter):
    client.post(LOGIN_URL, json={"password": "letmein"})
    assert rate_limiter.hits
    assert rate_limiter.resets == rate_limiter.hits


def test_validate_login_token(client):
    assert client.get("/auth/login-token?token=access-123").json() == {
        "valid": True,
        "extension": None,
        "kind": None,
    }
    assert client.get("/auth/login-token?token=nope").status_code == 401


def test_me_with_bearer(client, auth_headers):
    response = client.get("/auth/me", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["extension"] == "101"


def test_me_with_cookie(client):
    client.post(LOGIN_URL, json={"password": "letmein", "extension": "102"})
    response = client.get("/auth/me")
    assert response.status_code == 200
    assert response.json()["extension"] == "102"


def test_me_with_device_header(client):
    token = client.post(LOGIN_URL, json={"password": "letmein"}).json()["token"]
    client.cookies.clear()
    response = client.get("/auth/me", headers={"X-Device-Token": token})
    assert response.status_code == 200


def test_invalid_bearer_falls_back_to_device_header(client):
    token = client.post(LOGIN_URL, json={"password": "letmein"}).json()["token"]
    client.cookies.clear()
    response = client.get(
        "/auth/me",
        headers={"Authorization": "Bearer stale", "X-Device-Token": token},
    )
    assert response.status_code == 200


def test_me_requires_credential(client):
    response = client.get("/auth/me")
    assert response.status_code == 401


def test_password_header_disabled_by_default(client):
    response = client.get("/auth/me", headers={"X-Auth-Password": "letmein"})
    assert response.status_code == 401


def test_logout_revokes_token(client, auth_headers):
    assert client.post("/auth/logout", headers=auth_headers).status_code == 200
    assert client.get("/auth/me", headers=auth_headers).status_code == 401


def test_restore_sets_cookie(client):
    token = client.post(LOGIN_URL, json={"password": "letmein", "extension": "103"}).json()["token"]
    client.cookies.clear()
    response = client.post("/auth/restore", json={"device_token": token})
    assert response.status_code == 200
    assert response.json() == {"success": True, "extension": "103"}
    assert client.get("/auth/me").status_code == 200


def test_restore_rejects_unknown_token(client):
    assert client.post("/auth/restore", json={"device_token": "nope"}).status_code == 401
    assert client.post("/auth/restore", json={}).status_code == 400


def test_expired_credential_is_rejected_and_purged(client, db):
    db.add(
        Credential(
            token_hash=hash_token("old-token"),
            kind="session",
            expires_at=utcnow() - timedelta(minutes=1),
        )
    )
    db.commit()
    response = client.get("/auth/me", headers={"Authorization": "Bearer old-token"})
    assert response.status_code == 401
    assert purge_expired(db) == 1
    assert db.query(Credential).count() == 0


def test_validate_token_returns_identity_only(db):
    issued = issue_credential(db, CredentialKind.DEVICE, "101")
    assert validate_token(db, issued.token) == AuthContext(
        valid=True, extension="101", kind="device"
    )
