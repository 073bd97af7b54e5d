"""Token collector - expands user ids to the device tokens allowed to receive a category."""
import logging
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.push_device import NotificationDevice
from ..utils.db_utils import chunked
from .recipients import clean_ids

logger = logging.getLogger(__name__)


class TokenCollector:
    """Collects enabled, preference-passing tokens for a set of users."""

    async def collect_tokens(
        self,
        session: AsyncSession,
        user_ids: Iterable[str],
        category: str,
    ) -> set[str]:
        """Return the de-duplicated tokens of ``user_ids`` that accept ``category``.

        Owners are looked up ten at a time (the store's IN-filter limit).
        A device is skipped when its preferences map ``category`` to False;
        a missing entry counts as allowed.
        """
        category = getattr(category, "value", category)
        tokens: set[str] = set()
        excluded = 0

        for group in chunked(clean_ids(user_ids)):
            result = await session.execute(
                select(NotificationDevice).where(
                    NotificationDevice.enabled.is_(True),
                    NotificationDevice.user_id.in_(group),
                )
            )
            for device in result.scalars().all():
                if not device.allows(category):
                    excluded += 1
                    continue
                if device.token:
                    tokens.add(device.token)

        if excluded:
            logger.debug(f"{excluded} device(s) opted out of '{category}'")
        return tokens

