"""Notification send/emit schemas for API."""
from typing import Any, Dict, List, Optional

from .base import CamelModel


class EmitEventRequest(CamelModel):
    """A domain event; ``data`` keys depend on ``type``."""
    type: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class AdminSendRequest(CamelModel):
    """Direct admin broadcast."""
    target: Optional[str] = None  # all, role, users
    role: Optional[str] = None
    user_ids: Optional[List[str]] = None
    title: Optional[str] = None
    body: Optional[str] = None
    link: Optional[str] = None
    category: Optional[str] = None


class SendResponse(CamelModel):
    """Aggregate outcome of a send."""
    ok: bool = True
    success: int = 0
    failure: int = 0
    recipients: int = 0
