from celery import shared_task
from sqlalchemy.orm import Session

from call_inbox.core.database import SessionLocal
from call_inbox.services.auth import purge_expired


@shared_task(name="call_inbox.tasks.purge_expired_credentials")
def purge_expired_credentials() -> int:
    db: Session = SessionLocal()
    try:
        return purge_expired(db)
    finally:
        db.close()
