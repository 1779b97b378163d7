from datetime import timedelta
from typing import Optional

import typer
from sqlalchemy.orm import Session

from call_inbox.core.database import SessionLocal
from call_inbox.core.errors import InvalidInput
from call_inbox.models import CredentialKind
from call_inbox.services.auth import issue_credential, purge_expired
from call_inbox.services.claims import record_missed_call

app = typer.Typer(help="Call inbox maintenance commands.")


@app.command("record-missed-call")
def record_missed_call_cmd(
    phone: str,
    pbx_call_id: Optional[str] = None,
    ttl_hours: int = 24,
):
    """Record a missed call, or refresh the reference and expiry of an existing one."""
    db: Session = SessionLocal()
    try:
        claim = record_missed_call(db, phone, pbx_call_id, timedelta(hours=ttl_hours))
    except InvalidInput as exc:
        typer.echo(exc.message, err=True)
        raise typer.Exit(code=1)
    finally:
        db.close()
    typer.echo(f"{claim.phone_norm} {claim.status} until {claim.expires_at.isoformat()}")


@app.command()
def issue_device_token(extension: Optional[str] = None):
    db: Session = SessionLocal()
    try:
        issued = issue_credential(db, CredentialKind.DEVICE, extension)
    finally:
        db.close()
    typer.echo(issued.token)


@app.command()
def purge_credentials():
    db: Session = SessionLocal()
    try:
        deleted = purge_expired(db)
    finally:
        db.close()
    typer.echo(f"Purged {deleted} expired credential(s)")


if __name__ == "__main__":
    app()
