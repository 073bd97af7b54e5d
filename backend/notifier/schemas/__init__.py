"""Pydantic schemas for API request/response models."""
from .device import (
    DeviceRegisterRequest,
    DeviceUnregisterRequest,
    DevicePreferencesRequest,
    OkResponse,
)
from .notification import (
    EmitEventRequest,
    AdminSendRequest,
    SendResponse,
)

__all__ = [
    "DeviceRegisterRequest",
    "DeviceUnregisterRequest",
    "DevicePreferencesRequest",
    "OkResponse",
    "EmitEventRequest",
    "AdminSendRequest",
    "SendResponse",
]
