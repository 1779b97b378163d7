from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from call_inbox.core.config import settings
from call_inbox.core.database import get_db, get_session_factory
from call_inbox.core.errors import Unauthorized
from call_inbox.services.auth import AuthContext, CredentialSources, authenticate
from call_inbox.services.feed import CallFeed


def _bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization")
    if not header:
        return None
    scheme, _, value = header.partition(" ")
    if scheme.lower() != "bearer" or not value.strip():
        return None
    return value.strip()


def get_credential_sources(request: Request) -> CredentialSources:
    return CredentialSources(
        bearer=_bearer_token(request),
        device_header=request.headers.get("x-device-token"),
        cookie=request.cookies.get(settings.session_cookie_name),
        password=request.headers.get("x-auth-password"),
    )


def get_auth_context(
    sources: CredentialSources = Depends(get_credential_sources),
    db: Session = Depends(get_db),
) -> AuthContext:
    return authenticate(db, sources)


def require_auth(context: AuthContext = Depends(get_auth_context)) -> AuthContext:
    if not context.valid:
        raise Unauthorized("Unauthorized")
    return context


def get_call_feed(session_factory=Depends(get_session_factory)) -> CallFeed:
    return CallFeed(
        session_factory,
        interval=settings.feed_interval_seconds,
        heartbeat_every=settings.feed_heartbeat_every,
    )
