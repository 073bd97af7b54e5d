"""Services for device registration, recipient resolution, dispatch and reminders."""
from dataclasses import dataclass
from typing import Optional

from ..config import Settings
from .device_registry import DeviceRegistry
from .notifier import NotificationService, SendOutcome
from .push_sender import DispatchResult, FirebaseGateway, PushGateway, PushSenderService
from .recipients import RecipientResolver
from .reminders import ReminderService, ReminderSummary
from .token_collector import TokenCollector


@dataclass
class Services:
    """Components wired from one Settings instance."""
    config: Settings
    registry: DeviceRegistry
    notifications: NotificationService
    reminders: ReminderService


def build_services(config: Settings, gateway: Optional[PushGateway] = None, clock=None) -> Services:
    """Wire every component from ``config``; pass ``gateway`` to replace FCM."""
    sender = PushSenderService(gateway or FirebaseGateway(config), config)
    notifications = NotificationService(RecipientResolver(), TokenCollector(), sender)
    return Services(
        config=config,
        registry=DeviceRegistry(),
        notifications=notifications,
        reminders=ReminderService(config, notifications, clock=clock),
    )


__all__ = [
    "Services",
    "build_services",
    "DeviceRegistry",
    "NotificationService",
    "SendOutcome",
    "DispatchResult",
    "FirebaseGateway",
    "PushGateway",
    "PushSenderService",
    "RecipientResolver",
    "ReminderService",
    "ReminderSummary",
    "TokenCollector",
]
