"""Notification service - resolve recipients, collect tokens, dispatch."""
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from .events import Event, plan_for_event
from .push_sender import DispatchResult, PushSenderService
from .recipients import RecipientResolver, Target
from .token_collector import TokenCollector

logger = logging.getLogger(__name__)


@dataclass
class SendOutcome:
    """Counts reported back to the caller of a send."""
    recipients: int = 0
    tokens: int = 0
    success: int = 0
    failure: int = 0


class NotificationService:
    """Glue between the resolver, the token collector and the dispatch engine."""

    def __init__(
        self,
        resolver: RecipientResolver,
        collector: TokenCollector,
        sender: PushSenderService,
    ):
        self.resolver = resolver
        self.collector = collector
        self.sender = sender

    async def send_to_users(
        self,
        session: AsyncSession,
        user_ids: Iterable[str],
        title: str,
        body: str,
        link: Optional[str],
        category: str,
    ) -> SendOutcome:
        """Push a message to every eligible device of ``user_ids``."""
        user_ids = set(user_ids)
        tokens = await self.collector.collect_tokens(session, user_ids, category)
        result: DispatchResult = await self.sender.dispatch(tokens, title, body, link, category)
        return SendOutcome(
            recipients=len(user_ids),
            tokens=len(tokens),
            success=result.success,
            failure=result.failure,
        )

    async def send_to_target(
        self,
        session: AsyncSession,
        target: Target,
        title: str,
        body: str,
        link: Optional[str],
        category: str,
    ) -> SendOutcome:
        """Resolve ``target`` and push to the resulting users (admin send)."""
        user_ids = await self.resolver.resolve(session, target)
        return await self.send_to_users(session, user_ids, title, body, link, category)

    async def emit_event(self, session: AsyncSession, event: Event) -> SendOutcome:
        """Notify the audience of a domain event."""
        plan = plan_for_event(event)
        logger.info(f"Emitting {type(event).__name__} as '{plan.category.value}'")
        return await self.send_to_target(
            session,
            plan.target,
            plan.title,
            plan.body,
            plan.link,
            plan.category.value,
        )
