import enum

from sqlalchemy import Column, DateTime, Integer, String

from call_inbox.core.clock import utcnow
from call_inbox.core.database import Base


class CredentialKind(str, enum.Enum):
    SESSION = "session"
    DEVICE = "device"


class Credential(Base):
    __tablename__ = "credentials"

    id = Column(Integer, primary_key=True)
    token_hash = Column(String(64), nullable=False, unique=True)
    kind = Column(String(16), nullable=False, default=CredentialKind.SESSION.value)
    extension = Column(String(32), nullable=True)
    expires_at = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
