from sqlalchemy import Column, DateTime, String

from call_inbox.core.clock import utcnow
from call_inbox.core.database import Base


class ExtensionMapping(Base):
    __tablename__ = "extension_mappings"

    phone_number = Column(String(32), primary_key=True)
    extension = Column(String(32), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    expires_at = Column(DateTime, nullable=False)
