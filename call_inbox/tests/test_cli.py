from datetime import timedelta

from typer.testing import CliRunner

from call_inbox.cli import app
from call_inbox.core.clock import utcnow
from call_inbox.core.security import hash_token
from call_inbox.models import CallClaim, Credential
from call_inbox.tasks import purge_expired_credentials

runner = CliRunner()


def test_record_missed_call(db):
    result = runner.invoke(app, ["record-missed-call", "051 395 476", "--pbx-call-id", "pbx-9"])
    assert result.exit_code == 0, result.output
    claim = db.get(CallClaim, "38651395476")
    assert claim.status == "missed"
    assert claim.last_pbx_call_id == "pbx-9"


def test_record_missed_call_rejects_empty_phone():
    result = runner.invoke(app, ["record-missed-call", "anonymous"])
    assert result.exit_code == 1


def test_issue_device_token_authenticates(client, db):
    result = runner.invoke(app, ["issue-device-token", "--extension", "104"])
    assert result.exit_code == 0, result.output
    token = result.output.strip()
    assert db.query(Credential).filter(Credential.token_hash == hash_token(token)).count() == 1
    response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.json()["extension"] == "104"


def test_purge_task(db):
    db.add_all(
        [
            Credential(token_hash=hash_token("old"), kind="session", expires_at=utcnow() - timedelta(days=1)),
            Credential(token_hash=hash_token("new"), kind="device", expires_at=utcnow() + timedelta(days=1)),
        ]
    )
    db.commit()
    assert purge_expired_credentials() == 1
    assert runner.invoke(app, ["purge-credentials"]).output.strip() == "Purged 0 expired credential(s)"
    assert db.query(Credential).count() == 1
