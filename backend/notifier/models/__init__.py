"""Database models."""
from .enums import UserRole, NotificationCategory
from .user import User
from .push_device import NotificationDevice
from .service import Service, ServiceSong
from .schedule import Schedule, ScheduleAssignment

__all__ = [
    "UserRole",
    "NotificationCategory",
    "User",
    "NotificationDevice",
    "Service",
    "ServiceSong",
    "Schedule",
    "ScheduleAssignment",
]
