"""Device registry - push token lifecycle and per-device preferences."""
import hashlib
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import ValidationError
from ..models.enums import UserRole
from ..models.push_device import NotificationDevice, utcnow
from ..utils.db_utils import retry_on_lock

logger = logging.getLogger(__name__)


def token_id(token: str) -> str:
    """Deterministic device key: SHA-256 hex digest of the raw token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _require_token(token: Optional[str]) -> str:
    if not token:
        raise ValidationError("token is required")
    return token


class DeviceRegistry:
    """Registers, disables and configures push devices.

    Every write is a read-modify-write on the row keyed by ``token_id``:
    supplied fields overwrite the stored ones, everything else is kept.
    Concurrent writers on the same token resolve last-write-wins.
    """

    async def get_device(self, session: AsyncSession, token: str) -> Optional[NotificationDevice]:
        result = await session.execute(
            select(NotificationDevice).where(NotificationDevice.id == token_id(token))
        )
        return result.scalar_one_or_none()

    async def register_device(
        self,
        session: AsyncSession,
        token: str,
        user_id: str,
        role: Optional[str] = None,
        preferences: Optional[dict] = None,
        platform: Optional[str] = None,
    ) -> NotificationDevice:
        """Create or refresh the device for ``token`` and enable it.

        ``created_at`` is set on first insert only; ``updated_at`` always moves.
        """
        token = _require_token(token)
        try:
            device = await self._upsert(session, token, user_id, role, preferences, platform)
        except IntegrityError:
            # Another request inserted the same token first; apply ours on top
            await session.rollback()
            device = await self._upsert(session, token, user_id, role, preferences, platform)

        await session.refresh(device)
        logger.info(f"Device registered for user {user_id}: {token[:16]}...")
        return device

    async def _upsert(
        self,
        session: AsyncSession,
        token: str,
        user_id: str,
        role: Optional[str],
        preferences: Optional[dict],
        platform: Optional[str],
    ) -> NotificationDevice:
        device = await self.get_device(session, token)

        if device is None:
            device = NotificationDevice(
                id=token_id(token),
                token=token,
                user_id=user_id,
                role=role or UserRole.MEMBER.value,
                preferences=dict(preferences or {}),
                enabled=True,
                platform=platform or "unknown",
            )
            session.add(device)
        else:
            device.token = token
            device.user_id = user_id
            device.enabled = True
            if role:
                device.role = role
            if preferences is not None:
                device.preferences = dict(preferences)
            if platform:
                device.platform = platform
            device.updated_at = utcnow()

        await retry_on_lock(session.commit)
        return device

    async def unregister_device(self, session: AsyncSession, token: str) -> bool:
        """Disable the device for ``token``.

        Returns False (and writes nothing) when the token was never registered.
        """
        token = _require_token(token)
        device = await self.get_device(session, token)
        if device is None:
            logger.debug(f"Unregister for unknown token ignored: {token[:16]}...")
            return False

        device.enabled = False
        device.updated_at = utcnow()
        await retry_on_lock(session.commit)

        logger.info(f"Device unregistered: {token[:16]}...")
        return True

    async def update_preferences(
        self,
        session: AsyncSession,
        token: str,
        preferences: Optional[dict] = None,
        enabled: Optional[bool] = None,
    ) -> Optional[NotificationDevice]:
        """Replace the preference map and set the enabled flag.

        The map is replaced wholesale, not merged key by key. ``enabled``
        stays True unless explicitly False. Returns None for unknown tokens.
        """
        token = _require_token(token)
        device = await self.get_device(session, token)
        if device is None:
            return None

        device.preferences = dict(preferences or {})
        device.enabled = enabled is not False
        device.updated_at = utcnow()
        await retry_on_lock(session.commit)

        logger.info(f"Device preferences updated: {token[:16]}... (enabled={device.enabled})")
        return device

