import asyncio
import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import inspect
from sqlalchemy.exc import OperationalError

import call_inbox.models  # noqa: F401  registers tables on Base.metadata
from call_inbox.api import auth, calls, health, mappings, notify
from call_inbox.core.config import settings
from call_inbox.core.database import Base, engine
from call_inbox.core.errors import CallInboxError, InvalidInput
from call_inbox.core.logging import configure_logging

logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(calls.router)
app.include_router(mappings.router)
app.include_router(notify.router)
app.include_router(health.router)


@app.exception_handler(CallInboxError)
async def call_inbox_error_handler(request: Request, exc: CallInboxError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.kind, "detail": exc.message},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = "Malformed request"
    if errors:
        location = ".".join(str(part) for part in errors[0].get("loc", ()) if part != "body")
        message = f"{location}: {errors[0].get('msg')}" if location else errors[0].get("msg", message)
    return JSONResponse(
        status_code=InvalidInput.status_code,
        content={"error": InvalidInput.kind, "detail": message},
    )


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    content = {"error": "internal", "detail": "Internal server error"}
    if settings.is_development:
        content["detail"] = f"{type(exc).__name__}: {exc}"
    return JSONResponse(status_code=500, content=content)


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging()
    await wait_for_database()
    if settings.run_migrations_on_startup:
        run_migrations()
    Base.metadata.create_all(bind=engine)
    if not settings.call_inbox_password:
        logger.warning("CALL_INBOX_PASSWORD is not set; nobody will be able to log in.")


async def wait_for_database(max_attempts: int = 8, delay_seconds: float = 1.5) -> None:
    attempt = 0
    delay = delay_seconds
    while attempt < max_attempts:
        attempt += 1
        try:
            with engine.connect():
                return
        except OperationalError as exc:
            if attempt >= max_attempts:
                logger.error(
                    "Database connection failed after %s attempts.",
                    attempt,
                    exc_info=exc,
                )
                raise
            logger.warning(
                "Database not ready (attempt %s/%s). Retrying in %.1fs.",
                attempt,
                max_attempts,
                delay,
            )
            await asyncio.sleep(delay)
            delay = min(delay * 1.5, 10.0)


def run_migrations() -> None:
    alembic_ini = Path(__file__).resolve().parents[1] / "alembic.ini"
    config = Config(str(alembic_ini))
    config.set_main_option("script_location", str(alembic_ini.parent / "alembic"))
    config.set_main_option("sqlalchemy.url", settings.database_url)
    config.attributes["skip_logging"] = True
    with engine.connect() as connection:
        tables = inspect(connection).get_table_names()
    if tables and "alembic_version" not in tables:
        logger.warning("Existing tables detected without alembic version; stamping baseline.")
        command.stamp(config, "head")
        return
    command.upgrade(config, "head")
