"""Device registration schemas for API."""
from typing import Dict, Optional

from .base import CamelModel


class DeviceRegisterRequest(CamelModel):
    """Request to register a device for push notifications."""
    token: Optional[str] = None
    role: Optional[str] = None
    preferences: Optional[Dict[str, bool]] = None  # category -> allowed
    platform: Optional[str] = None  # web, android, ios


class DeviceUnregisterRequest(CamelModel):
    """Request to disable a device."""
    token: Optional[str] = None


class DevicePreferencesRequest(CamelModel):
    """Request to replace a device's preferences."""
    token: Optional[str] = None
    preferences: Optional[Dict[str, bool]] = None
    enabled: Optional[bool] = None


class OkResponse(CamelModel):
    ok: bool = True
