import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from call_inbox.core.clock import utcnow
from call_inbox.core.config import settings
from call_inbox.core.errors import Unauthorized
from call_inbox.core.security import generate_token, hash_token, verify_password
from call_inbox.models import Credential, CredentialKind

logger = logging.getLogger(__name__)


@dataclass
class AuthContext:
    valid: bool
    extension: Optional[str] = None
    kind: Optional[str] = None


@dataclass
class CredentialSources:
    """Every place a request may carry a credential, in no particular order."""

    bearer: Optional[str] = None
    device_header: Optional[str] = None
    cookie: Optional[str] = None
    password: Optional[str] = None


@dataclass
class IssuedCredential:
    token: str
    kind: str
    extension: Optional[str]
    expires_at: datetime


def check_login_access_token(token: Optional[str]) -> None:
    expected = settings.login_access_token
    if not expected:
        return
    if not token or not verify_password(token, expected):
        raise Unauthorized("Invalid or missing access token")


def login(
    db: Session,
    password: Optional[str],
    extension: Optional[str] = None,
    remember_device: bool = True,
) -> IssuedCredential:
    if not settings.call_inbox_password:
        logger.error("CALL_INBOX_PASSWORD is not set; refusing every login")
    if not password or not verify_password(password, settings.call_inbox_password):
        raise Unauthorized("Invalid password")
    return issue_credential(
        db,
        CredentialKind.DEVICE if remember_device else CredentialKind.SESSION,
        extension,
    )


def issue_credential(
    db: Session, kind: CredentialKind, extension: Optional[str] = None
) -> IssuedCredential:
    if kind == CredentialKind.DEVICE:
        lifetime = timedelta(days=settings.device_token_expire_days)
    else:
        lifetime = timedelta(days=settings.session_token_expire_days)
    token = generate_token()
    label = extension.strip() if extension and extension.strip() else None
    credential = Credential(
        token_hash=hash_token(token),
        kind=kind.value,
        extension=label,
        expires_at=utcnow() + lifetime,
        created_at=utcnow(),
    )
    db.add(credential)
    db.commit()
    db.refresh(credential)
    logger.info("Issued %s credential for extension %s", kind.value, label or "-")
    return IssuedCredential(
        token=token, kind=credential.kind, extension=label, expires_at=credential.expires_at
    )


def validate_token(db: Session, token: Optional[str]) -> Optional[AuthContext]:
    if not token:
        return None
    credential = (
        db.query(Credential)
        .filter(Credential.token_hash == hash_token(token), Credential.expires_at > utcnow())
        .first()
    )
    if not credential:
        return None
    return AuthContext(valid=True, extension=credential.extension, kind=credential.kind)


def authenticate(db: Session, sources: CredentialSources) -> AuthContext:
    for token in (sources.bearer, sources.device_header, sources.cookie):
        context = validate_token(db, token)
        if context:
            return context
    if settings.allow_password_header and sources.password:
        if verify_password(sources.password, settings.call_inbox_password):
            return AuthContext(valid=True, kind="password")
    return AuthContext(valid=False)


def logout(db: Session, token: Optional[str]) -> bool:
    if not token:
        return False
    deleted = (
        db.query(Credential)
        .filter(Credential.token_hash == hash_token(token))
        .delete(synchronize_session=False)
    )
    db.commit()
    return bool(deleted)


def purge_expired(db: Session) -> int:
    deleted = (
        db.query(Credential)
        .filter(Credential.expires_at <= utcnow())
        .delete(synchronize_session=False)
    )
    db.commit()
    if deleted:
        logger.info("Purged %s expired credential(s)", deleted)
    return deleted
