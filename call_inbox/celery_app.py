from celery import Celery

from call_inbox.core.config import settings

celery_app = Celery(
    "call_inbox",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["call_inbox.tasks"],
)

celery_app.conf.beat_schedule = {
    "purge-expired-credentials": {
        "task": "call_inbox.tasks.purge_expired_credentials",
        "schedule": float(settings.credential_purge_interval_seconds),
    }
}
