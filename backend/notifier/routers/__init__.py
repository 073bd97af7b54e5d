"""API routers."""
from .devices import router as devices_router
from .notifications import router as notifications_router
from .cron import router as cron_router

__all__ = ["devices_router", "notifications_router", "cron_router"]
