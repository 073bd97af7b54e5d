"""Recipient resolver - turns a targeting mode into a set of user ids."""
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import UnsupportedTargetError
from ..models import Schedule, ScheduleAssignment, User
from ..models.enums import UserRole
from ..utils.db_utils import chunked

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AllUsers:
    """Every active user."""


@dataclass(frozen=True)
class ByRole:
    """Every active user with the given role."""
    role: str = UserRole.MEMBER.value


@dataclass(frozen=True)
class ExplicitUsers:
    """Caller-supplied user ids, used as-is.

    Not checked against the users table: the caller's own authorization
    is what vouches for them.
    """
    user_ids: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ByLinkedPerson:
    """Active users linked to any of the given roster persons."""
    person_ids: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ServiceParticipants:
    """Active users linked to anyone assigned to a service in any schedule."""
    service_id: str


Target = Union[AllUsers, ByRole, ExplicitUsers, ByLinkedPerson, ServiceParticipants]


def parse_target(
    target: Optional[str],
    role: Optional[str] = None,
    user_ids: Optional[Iterable[str]] = None,
) -> Target:
    """Map the admin-send ``target`` field (all / role / users) to a Target."""
    if target == "all":
        return AllUsers()
    if target == "role":
        return ByRole(role or UserRole.MEMBER.value)
    if target == "users":
        return ExplicitUsers(tuple(user_ids or ()))
    raise UnsupportedTargetError(f"Unsupported target: {target!r}")


def clean_ids(values: Iterable) -> list[str]:
    """Stringify, drop blanks and duplicates, keep first-seen order."""
    cleaned = []
    seen = set()
    for value in values or ():
        if value is None:
            continue
        text = str(value)
        if text and text not in seen:
            seen.add(text)
            cleaned.append(text)
    return cleaned


class RecipientResolver:
    """Resolves targeting modes against the users table."""

    async def resolve(self, session: AsyncSession, target: Target) -> set[str]:
        if isinstance(target, AllUsers):
            return await self._active_user_ids(session)
        if isinstance(target, ByRole):
            return await self._active_user_ids(session, role=target.role)
        if isinstance(target, ExplicitUsers):
            return set(clean_ids(target.user_ids))
        if isinstance(target, ByLinkedPerson):
            return await self.users_by_linked_persons(session, target.person_ids)
        if isinstance(target, ServiceParticipants):
            person_ids = await self.service_participants(session, target.service_id)
            return await self.users_by_linked_persons(session, person_ids)
        raise UnsupportedTargetError(f"Unsupported target: {type(target).__name__}")

    async def _active_user_ids(self, session: AsyncSession, role: Optional[str] = None) -> set[str]:
        query = select(User.id).where(User.active.is_(True))
        if role is not None:
            query = query.where(User.role == role)
        result = await session.execute(query)
        return set(result.scalars().all())

    async def users_by_linked_persons(self, session: AsyncSession, person_ids: Iterable) -> set[str]:
        """Active users whose linked person is any of ``person_ids``.

        The person ids are queried in chunks to stay under the store's
        IN-filter limit; chunk results are unioned.
        """
        recipients: set[str] = set()
        for group in chunked(clean_ids(person_ids)):
            result = await session.execute(
                select(User.id).where(
                    User.active.is_(True),
                    User.linked_person_id.in_(group),
                )
            )
            recipients.update(result.scalars().all())
        return recipients

    async def service_participants(self, session: AsyncSession, service_id: str) -> list[str]:
        """Person ids assigned to ``service_id`` across all schedules."""
        result = await session.execute(
            select(ScheduleAssignment.person_id)
            .join(Schedule, ScheduleAssignment.schedule_id == Schedule.id)
            .where(ScheduleAssignment.service_id == service_id)
        )
        return clean_ids(result.scalars().all())

