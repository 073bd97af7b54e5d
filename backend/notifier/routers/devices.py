"""Device registration API endpoints for push notifications."""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..dependencies import get_current_uid, get_services
from ..errors import NotFoundError
from ..schemas.device import (
    DevicePreferencesRequest,
    DeviceRegisterRequest,
    DeviceUnregisterRequest,
    OkResponse,
)
from ..services import Services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["devices"])


@router.post("/register-device", response_model=OkResponse)
async def register_device(
    request: DeviceRegisterRequest,
    uid: str = Depends(get_current_uid),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Register a device for push notifications.

    The app calls this whenever it obtains a token; the device is (re)bound
    to the caller and enabled.
    """
    await services.registry.register_device(
        db,
        request.token,
        uid,
        role=request.role,
        preferences=request.preferences,
        platform=request.platform,
    )
    return OkResponse()


@router.post("/unregister-device", response_model=OkResponse)
async def unregister_device(
    request: DeviceUnregisterRequest,
    uid: str = Depends(get_current_uid),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Disable a device. Unknown tokens are accepted silently.

    This doesn't delete the record but marks it as disabled.
    """
    await services.registry.unregister_device(db, request.token)
    return OkResponse()


@router.post("/update-device-preferences", response_model=OkResponse)
async def update_device_preferences(
    request: DevicePreferencesRequest,
    uid: str = Depends(get_current_uid),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Replace a device's category preferences and enabled flag."""
    device = await services.registry.update_preferences(
        db,
        request.token,
        preferences=request.preferences,
        enabled=request.enabled,
    )
    if device is None:
        raise NotFoundError("Device not found")
    return OkResponse()
