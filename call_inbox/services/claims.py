import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from call_inbox.core.clock import utcnow
from call_inbox.core.config import settings
from call_inbox.core.errors import InvalidInput, NotFound
from call_inbox.models import CallClaim, CallStatus
from call_inbox.phone import normalize_phone, search_patterns

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = (CallStatus.MISSED.value, CallStatus.CLAIMED.value)
TRANSITION_TARGETS = (CallStatus.CLAIMED.value, CallStatus.HANDLED.value)
LIFECYCLE_ORDER = {
    CallStatus.MISSED.value: 0,
    CallStatus.CLAIMED.value: 1,
    CallStatus.HANDLED.value: 2,
}


@dataclass
class CallFilters:
    search: Optional[str] = None
    status: Optional[str] = None
    extension: Optional[str] = None
    include_expired: bool = False
    include_handled: bool = False
    limit: Optional[int] = None


@dataclass
class TransitionResult:
    claim: CallClaim
    previous_status: str

    @property
    def status_changed(self) -> bool:
        return self.previous_status != self.claim.status


def normalize(value: Optional[str]) -> str:
    return normalize_phone(value, settings.default_country_code, settings.national_number_length)


def _resolve_limit(limit: Optional[int]) -> int:
    if limit is None:
        return settings.call_list_limit
    if limit < 1:
        raise InvalidInput("limit must be a positive integer")
    return min(limit, settings.call_list_max_limit)


def list_active(db: Session, filters: Optional[CallFilters] = None) -> List[CallClaim]:
    filters = filters or CallFilters()
    query = db.query(CallClaim)
    if filters.status:
        if filters.status not in {item.value for item in CallStatus}:
            raise InvalidInput(f"Unknown status: {filters.status}")
        query = query.filter(CallClaim.status == filters.status)
    else:
        statuses = list(ACTIVE_STATUSES)
        if filters.include_handled:
            statuses.append(CallStatus.HANDLED.value)
        query = query.filter(CallClaim.status.in_(statuses))
    if not filters.include_expired:
        query = query.filter(CallClaim.expires_at > utcnow())
    if filters.extension:
        query = query.filter(CallClaim.handled_by_ext == filters.extension.strip())
    if filters.search:
        patterns = search_patterns(
            filters.search, settings.default_country_code, settings.national_number_length
        )
        if patterns:
            query = query.filter(
                or_(*[CallClaim.phone_norm.like(f"%{pattern}%") for pattern in patterns])
            )
    return (
        query.order_by(CallClaim.updated_at.desc())
        .limit(_resolve_limit(filters.limit))
        .all()
    )


def transition(
    db: Session, phone_norm: str, new_status: Optional[str], extension: Optional[str]
) -> TransitionResult:
    if not new_status or new_status not in TRANSITION_TARGETS:
        raise InvalidInput(f"Status must be one of: {', '.join(TRANSITION_TARGETS)}")
    if not isinstance(extension, str) or not extension.strip():
        raise InvalidInput("Extension is required")
    key = normalize(phone_norm)
    if not key:
        raise NotFound("Call not found")

    claim = (
        db.query(CallClaim)
        .filter(CallClaim.phone_norm == key)
        .with_for_update()
        .first()
    )
    if not claim:
        raise NotFound("Call not found")

    previous_status = claim.status
    current_rank = LIFECYCLE_ORDER.get(previous_status)
    if current_rank is not None and LIFECYCLE_ORDER[new_status] < current_rank:
        db.rollback()
        raise InvalidInput(f"Cannot move a {previous_status} call back to {new_status}")

    claim.status = new_status
    claim.handled_by_ext = extension.strip()
    claim.updated_at = utcnow()
    db.commit()
    db.refresh(claim)
    logger.info(
        "Call %s %s -> %s by extension %s",
        key,
        previous_status,
        claim.status,
        claim.handled_by_ext,
    )
    return TransitionResult(claim=claim, previous_status=previous_status)


def record_missed_call(
    db: Session,
    phone: str,
    pbx_call_id: Optional[str] = None,
    ttl: Optional[timedelta] = None,
) -> CallClaim:
    key = normalize(phone)
    if not key:
        raise InvalidInput("phone is required")
    now = utcnow()
    expires_at = now + (ttl or timedelta(hours=settings.missed_call_ttl_hours))
    claim = db.query(CallClaim).filter(CallClaim.phone_norm == key).first()
    if claim:
        if pbx_call_id:
            claim.last_pbx_call_id = pbx_call_id
        claim.expires_at = expires_at
        claim.updated_at = now
    else:
        claim = CallClaim(
            phone_norm=key,
            last_pbx_call_id=pbx_call_id,
            status=CallStatus.MISSED.value,
            updated_at=now,
            expires_at=expires_at,
        )
        db.add(claim)
    db.commit()
    db.refresh(claim)
    return claim
