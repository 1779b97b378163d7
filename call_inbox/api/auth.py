import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request, Response
from sqlalchemy.orm import Session

from call_inbox.core.config import settings
from call_inbox.core.database import get_db
from call_inbox.core.deps import get_credential_sources, require_auth
from call_inbox.core.errors import InvalidInput, RateLimited, Unauthorized
from call_inbox.schemas import (
    AuthStatus,
    LoginRequest,
    LoginResponse,
    RestoreRequest,
    RestoreResponse,
)
from call_inbox.services import auth as auth_service
from call_inbox.services.auth import AuthContext, CredentialSources
from call_inbox.services.rate_limit import RateLimiter, get_login_rate_limiter

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


def _set_credential_cookie(response: Response, token: str, max_age_days: int) -> None:
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=max_age_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.secure_cookies,
        samesite="lax",
        path="/",
    )


def _cookie_lifetime(kind: str) -> int:
    if kind == "device":
        return settings.device_token_expire_days
    return settings.session_token_expire_days


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    token: Optional[str] = Query(default=None),
    x_login_token: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
    rate_limiter: RateLimiter = Depends(get_login_rate_limiter),
):
    client_key = request.client.host if request.client else "unknown"
    if not rate_limiter.hit(client_key):
        logger.warning("Login rate limited for %s", client_key)
        raise RateLimited("Too many attempts")
    auth_service.check_login_access_token(token or x_login_token)
    try:
        issued = auth_service.login(
            db, payload.password, payload.extension, payload.remember_device
        )
    except Unauthorized:
        logger.warning("Failed login from %s", client_key)
        raise
    rate_limiter.reset(client_key)
    _set_credential_cookie(response, issued.token, _cookie_lifetime(issued.kind))
    return LoginResponse(
        token=issued.token,
        kind=issued.kind,
        extension=issued.extension,
        expires_at=issued.expires_at,
    )


@router.get("/login-token", response_model=AuthStatus)
def validate_login_token(token: Optional[str] = Query(default=None)):
    auth_service.check_login_access_token(token)
    return AuthStatus(valid=True)


@router.post("/restore", response_model=RestoreResponse)
def restore(payload: RestoreRequest, response: Response, db: Session = Depends(get_db)):
    if not payload.device_token:
        raise InvalidInput("Device token is required")
    context = auth_service.validate_token(db, payload.device_token)
    if not context:
        raise Unauthorized("Invalid or expired device token")
    _set_credential_cookie(response, payload.device_token, _cookie_lifetime(context.kind))
    return RestoreResponse(extension=context.extension)


@router.post("/logout")
def logout(
    response: Response,
    sources: CredentialSources = Depends(get_credential_sources),
    db: Session = Depends(get_db),
):
    for token in (sources.bearer, sources.device_header, sources.cookie):
        auth_service.logout(db, token)
    response.delete_cookie(settings.session_cookie_name, path="/")
    return {"status": "ok"}


@router.get("/me", response_model=AuthStatus)
def me(context: AuthContext = Depends(require_auth)):
    return AuthStatus(valid=True, extension=context.extension, kind=context.kind)
