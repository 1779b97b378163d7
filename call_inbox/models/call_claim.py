import enum

from sqlalchemy import Column, DateTime, String

from call_inbox.core.clock import utcnow
from call_inbox.core.database import Base


class CallStatus(str, enum.Enum):
    MISSED = "missed"
    CLAIMED = "claimed"
    HANDLED = "handled"
    # Reserved: stored and filterable, never produced by a transition.
    ANSWERED = "answered"
    CALLBACK_STARTED = "callback_started"
    CALLBACK_DONE = "callback_done"
    ARCHIVED = "archived"


class CallClaim(Base):
    __tablename__ = "call_claims"

    phone_norm = Column(String(32), primary_key=True)
    last_pbx_call_id = Column(String(128), nullable=True)
    status = Column(String(32), nullable=False, default=CallStatus.MISSED.value, index=True)
    handled_by_ext = Column(String(32), nullable=True, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    expires_at = Column(DateTime, nullable=False, index=True)
