import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from call_inbox.core.clock import parse_datetime, utcnow
from call_inbox.core.config import settings
from call_inbox.core.errors import InvalidInput, NotFound
from call_inbox.models import ExtensionMapping
from call_inbox.services.claims import normalize

logger = logging.getLogger(__name__)


def _require_phone(phone_number: Optional[str]) -> str:
    if not isinstance(phone_number, str) or not normalize(phone_number):
        raise InvalidInput("phone_number is required")
    return normalize(phone_number)


def _require_extension(extension: Optional[str]) -> str:
    if not isinstance(extension, str) or not extension.strip():
        raise InvalidInput("extension must be a non-empty string")
    return extension.strip()


def _require_expiry(expires_at: object) -> datetime:
    if expires_at is None or expires_at == "":
        raise InvalidInput("expires_at is required (ISO date string)")
    try:
        return parse_datetime(expires_at)
    except ValueError as exc:
        raise InvalidInput("expires_at must be a valid date") from exc


def list_mappings(db: Session, limit: Optional[int] = None) -> List[ExtensionMapping]:
    return (
        db.query(ExtensionMapping)
        .order_by(ExtensionMapping.created_at.desc())
        .limit(limit or settings.mapping_list_limit)
        .all()
    )


def create_mapping(
    db: Session,
    phone_number: Optional[str],
    extension: Optional[str],
    expires_at: object,
) -> ExtensionMapping:
    phone = _require_phone(phone_number)
    extension_value = _require_extension(extension)
    expiry = _require_expiry(expires_at)

    mapping = _upsert(db, phone, extension_value, expiry)
    try:
        db.commit()
    except IntegrityError:
        # Concurrent insert for the same number; apply ours as the update.
        db.rollback()
        mapping = _upsert(db, phone, extension_value, expiry)
        db.commit()
    db.refresh(mapping)
    logger.info("Mapping %s -> %s until %s", phone, extension_value, expiry.isoformat())
    return mapping


def _upsert(db: Session, phone: str, extension: str, expires_at: datetime) -> ExtensionMapping:
    mapping = (
        db.query(ExtensionMapping)
        .filter(ExtensionMapping.phone_number == phone)
        .with_for_update()
        .first()
    )
    if mapping:
        mapping.extension = extension
        mapping.expires_at = expires_at
        mapping.created_at = utcnow()
    else:
        mapping = ExtensionMapping(
            phone_number=phone,
            extension=extension,
            expires_at=expires_at,
            created_at=utcnow(),
        )
        db.add(mapping)
    return mapping


def update_mapping(
    db: Session,
    phone_number: str,
    extension: Optional[str] = None,
    expires_at: object = None,
) -> ExtensionMapping:
    if not extension and not expires_at:
        raise InvalidInput("At least one of extension or expires_at must be provided")
    updates = {}
    if extension is not None:
        updates["extension"] = _require_extension(extension)
    if expires_at is not None:
        updates["expires_at"] = _require_expiry(expires_at)

    mapping = (
        db.query(ExtensionMapping)
        .filter(ExtensionMapping.phone_number == normalize(phone_number))
        .first()
    )
    if not mapping:
        raise NotFound("Mapping not found")
    for field, value in updates.items():
        setattr(mapping, field, value)
    db.commit()
    db.refresh(mapping)
    return mapping


def delete_mapping(db: Session, phone_number: str) -> str:
    mapping = (
        db.query(ExtensionMapping)
        .filter(ExtensionMapping.phone_number == normalize(phone_number))
        .first()
    )
    if not mapping:
        raise NotFound("Mapping not found")
    phone = mapping.phone_number
    db.delete(mapping)
    db.commit()
    return phone
