"""Closed enumerations shared by models, services and schemas."""
from enum import Enum


class UserRole(str, Enum):
    """Account roles. ``root`` is the elevated role, ``minister`` the manager role."""
    ROOT = "root"
    MINISTER = "minister"
    MEMBER = "member"


# Roles allowed to emit domain events
MANAGE_ROLES = (UserRole.ROOT.value, UserRole.MINISTER.value)


class NotificationCategory(str, Enum):
    """Semantic class of a notification; also the key of per-device opt-outs."""
    ASSIGNMENT = "assignment"
    SERVICE_SONGS = "serviceSongs"
    ANNOUNCEMENTS = "announcements"
    CATALOG = "catalog"
    MONTHLY_SCHEDULE = "monthlySchedule"
    REMINDER = "reminder"
