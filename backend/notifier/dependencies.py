"""FastAPI dependencies: wired services, caller identity and role guards."""
import asyncio
import hmac
import logging
from typing import Optional

from fastapi import Depends, Header, Request
from firebase_admin import auth as firebase_auth
from firebase_admin import exceptions as firebase_exceptions
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .database import get_db
from .errors import ForbiddenError, UnauthorizedError
from .models import User
from .models.enums import MANAGE_ROLES, UserRole
from .services import Services
from .services.firebase import get_firebase_app

logger = logging.getLogger(__name__)


def get_services(request: Request) -> Services:
    """Components wired at application start."""
    return request.app.state.services


async def get_current_uid(
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services),
) -> str:
    """Verify the ``Authorization: Bearer <Firebase ID token>`` header and return the uid."""
    header = authorization or ""
    id_token = header[7:] if header.startswith("Bearer ") else ""
    if not id_token:
        raise UnauthorizedError("Missing token")

    try:
        app = get_firebase_app(services.config)
        decoded = await asyncio.to_thread(firebase_auth.verify_id_token, id_token, app=app)
    except RuntimeError as e:
        logger.error(f"Cannot verify ID tokens: {e}")
        raise UnauthorizedError("Invalid token")
    except (ValueError, firebase_exceptions.FirebaseError) as e:
        logger.info(f"ID token rejected: {e}")
        raise UnauthorizedError("Invalid token")

    return decoded["uid"]


async def _load_active_user(db: AsyncSession, uid: str) -> User:
    result = await db.execute(select(User).where(User.id == uid))
    user = result.scalar_one_or_none()
    if user is None or not user.active:
        raise ForbiddenError("User is not active")
    return user


async def require_manage_role(
    uid: str = Depends(get_current_uid),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Caller must be an active root or minister."""
    user = await _load_active_user(db, uid)
    if user.role not in MANAGE_ROLES:
        raise ForbiddenError("Permission denied")
    return user


async def require_root_role(
    uid: str = Depends(get_current_uid),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Caller must be an active root."""
    user = await _load_active_user(db, uid)
    if user.role != UserRole.ROOT.value:
        raise ForbiddenError("Admin permission required")
    return user


async def verify_cron_secret(
    x_cron_secret: Optional[str] = Header(None),
    services: Services = Depends(get_services),
):
    """Cron triggers must present the configured shared secret."""
    expected = services.config.cron_secret
    if not expected or not x_cron_secret or not hmac.compare_digest(x_cron_secret.encode(), expected.encode()):
        raise UnauthorizedError("Invalid cron secret")
