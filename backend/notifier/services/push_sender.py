"""Push notification sender service using Firebase Cloud Messaging multicast."""
import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol
from urllib.parse import urljoin

from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import messaging

from ..config import Settings
from ..errors import GatewayError
from ..utils.db_utils import chunked
from .firebase import get_firebase_app

logger = logging.getLogger(__name__)

# FCM accepts at most this many tokens in one multicast message
MAX_MULTICAST_TOKENS = 500


@dataclass
class DispatchResult:
    """Aggregate outcome of a dispatch; individual token failures are not kept."""
    success: int = 0
    failure: int = 0

    def __add__(self, other: "DispatchResult") -> "DispatchResult":
        return DispatchResult(self.success + other.success, self.failure + other.failure)


class PushGateway(Protocol):
    """Anything that can deliver one multicast push."""

    async def send_multicast(
        self,
        tokens: List[str],
        title: str,
        body: str,
        data: dict,
        link: str,
    ) -> DispatchResult:
        ...


class FirebaseGateway:
    """PushGateway backed by ``messaging.send_each_for_multicast``."""

    def __init__(self, config: Settings):
        self._config = config

    def _fcm_options(self, link: str) -> Optional[messaging.WebpushFCMOptions]:
        """Click-through link for web push; FCM only accepts absolute HTTPS URLs."""
        absolute = urljoin(self._config.app_base_url, link) if self._config.app_base_url else link
        if not absolute.startswith("https://"):
            return None
        return messaging.WebpushFCMOptions(link=absolute)

    async def send_multicast(
        self,
        tokens: List[str],
        title: str,
        body: str,
        data: dict,
        link: str,
    ) -> DispatchResult:
        try:
            message = messaging.MulticastMessage(
                tokens=tokens,
                notification=messaging.Notification(title=title, body=body),
                data=data,
                webpush=messaging.WebpushConfig(
                    notification=messaging.WebpushNotification(title=title, body=body),
                    fcm_options=self._fcm_options(link),
                ),
            )
            app = get_firebase_app(self._config)
            # The Admin SDK is blocking; keep it off the event loop
            response = await asyncio.to_thread(messaging.send_each_for_multicast, message, app=app)
        except (firebase_exceptions.FirebaseError, ValueError, RuntimeError) as e:
            raise GatewayError(f"Push gateway error: {e}") from e

        return DispatchResult(success=response.success_count, failure=response.failure_count)


class PushSenderService:
    """Dispatch engine: one multicast per token batch, counts aggregated."""

    def __init__(self, gateway: PushGateway, config: Settings):
        self._gateway = gateway
        self._config = config

    def resolve_link(self, link: Optional[str]) -> str:
        """Explicit link, else the configured base URL, else ``/``."""
        return link or self._config.app_base_url or "/"

    async def dispatch(
        self,
        tokens: Iterable[str],
        title: str,
        body: str,
        link: Optional[str],
        category: str,
    ) -> DispatchResult:
        """Send a notification to ``tokens`` and return the gateway counts.

        No tokens means no gateway call at all. Failures are not retried.
        """
        tokens = sorted(set(tokens))
        if not tokens:
            logger.debug("No eligible tokens for push notification")
            return DispatchResult()

        category = getattr(category, "value", category)
        resolved_link = self.resolve_link(link)
        data = {
            "title": title,
            "body": body,
            "link": resolved_link,
            "category": category,
        }

        result = DispatchResult()
        for batch in chunked(tokens, MAX_MULTICAST_TOKENS):
            result += await self._gateway.send_multicast(batch, title, body, data, resolved_link)

        logger.info(
            f"Push '{category}' sent to {len(tokens)} token(s): "
            f"{result.success} success, {result.failure} failed"
        )
        return result
