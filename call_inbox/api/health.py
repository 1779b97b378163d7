import logging

import redis
from fastapi import APIRouter, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from call_inbox.core.config import settings
from call_inbox.core.database import SessionLocal

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/ready")
def ready():
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("Readiness check: database unavailable", exc_info=exc)
        raise HTTPException(status_code=503, detail="Database unavailable") from exc
    finally:
        db.close()
    redis_client = redis.Redis.from_url(settings.redis_url)
    try:
        redis_client.ping()
    except redis.exceptions.RedisError as exc:
        logger.error("Readiness check: redis unavailable", exc_info=exc)
        raise HTTPException(status_code=503, detail="Redis unavailable") from exc
    finally:
        redis_client.close()
    return {"status": "ready"}
