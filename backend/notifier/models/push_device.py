"""NotificationDevice model - push tokens registered by app users."""
from datetime import datetime, timezone
from sqlalchemy import Boolean, Column, DateTime, JSON, String

from ..database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationDevice(Base):
    """Registered device for push notifications.

    The primary key is the SHA-256 of the raw token, so registering the
    same token twice always lands on the same row.
    """

    __tablename__ = "notification_devices"

    id = Column(String, primary_key=True)  # sha256(token) hex digest
    token = Column(String, nullable=False)
    user_id = Column(String, nullable=False, index=True)
    role = Column(String, default="member")
    preferences = Column(JSON, default=dict, nullable=False)  # category -> bool
    enabled = Column(Boolean, default=True, nullable=False)
    platform = Column(String, default="unknown")  # web, android, ios
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def allows(self, category: str) -> bool:
        """True unless the device explicitly opted out of ``category``."""
        return (self.preferences or {}).get(category) is not False
