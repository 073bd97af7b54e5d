"""Reminder jobs triggered by cron.

Whether a reminder is due is always recomputed from today's date and the
current schedules/services, never from a stored "already sent" flag, so
running a job twice on the same day is harmless apart from the duplicate
push itself.

A gateway failure aborts the job: services already notified stay notified,
the counts accumulated so far travel on the raised GatewayError.
"""
import logging
from dataclasses import dataclass, fields
from datetime import date, datetime, timedelta
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings
from ..errors import GatewayError
from ..models import Schedule, Service, ServiceSong
from ..models.enums import NotificationCategory, UserRole
from .notifier import NotificationService, SendOutcome
from .recipients import ByRole

logger = logging.getLogger(__name__)

# Days before the first of next month when the schedule reminder starts firing
SCHEDULE_REMINDER_WINDOW_DAYS = 7

SKIP_OUTSIDE_WINDOW = "outside reminder window"
SKIP_SCHEDULE_EXISTS = "schedule already exists"


@dataclass
class ReminderSummary:
    """Outcome of one reminder job run. "Nothing to do" is a normal outcome."""
    ok: bool = True
    skipped: Optional[bool] = None
    reason: Optional[str] = None
    month: Optional[str] = None
    target_date: Optional[str] = None
    checked_services: Optional[int] = None
    notified_services: Optional[int] = None
    recipients: Optional[int] = None
    success: Optional[int] = None
    failure: Optional[int] = None

    def add(self, outcome: SendOutcome):
        self.notified_services = (self.notified_services or 0) + 1
        self.recipients = (self.recipients or 0) + outcome.recipients
        self.success = (self.success or 0) + outcome.success
        self.failure = (self.failure or 0) + outcome.failure

    def as_dict(self) -> dict:
        """camelCase payload without unset fields."""
        payload = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            head, *rest = f.name.split("_")
            payload[head + "".join(part.title() for part in rest)] = value
        return payload


def next_month_start(today: date) -> date:
    if today.month == 12:
        return date(today.year + 1, 1, 1)
    return date(today.year, today.month + 1, 1)


def _when(service: Service) -> str:
    return " ".join(part for part in (service.date, service.start_time) if part)


class ReminderService:
    """The three cron reminders."""

    def __init__(
        self,
        config: Settings,
        notifications: NotificationService,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._config = config
        self._notifications = notifications
        self._clock = clock or (lambda: datetime.now(ZoneInfo(config.reminder_timezone)))

    def today(self) -> date:
        return self._clock().date()

    def target_date(self, days_before: int) -> str:
        """ISO date ``days_before`` days after today."""
        return (self.today() + timedelta(days=days_before)).isoformat()

    async def _schedule_for_month(self, session: AsyncSession, month: str) -> Optional[Schedule]:
        result = await session.execute(
            select(Schedule).where(Schedule.month == month).limit(1)
        )
        return result.scalar_one_or_none()

    async def _services_on(self, session: AsyncSession, day: str) -> list[Service]:
        result = await session.execute(
            select(Service).where(Service.date == day).order_by(Service.start_time, Service.id)
        )
        return list(result.scalars().all())

    async def _has_songs(self, session: AsyncSession, service_id: str) -> bool:
        result = await session.execute(
            select(ServiceSong.id).where(ServiceSong.service_id == service_id).limit(1)
        )
        return result.first() is not None

    async def _send(self, session: AsyncSession, summary: ReminderSummary, **message) -> SendOutcome:
        try:
            return await self._notifications.send_to_users(session, **message)
        except GatewayError as e:
            e.partial = summary.as_dict()
            logger.error(f"Reminder aborted after {summary.notified_services or 0} service(s): {e.message}")
            raise

    async def remind_next_month_schedule(self, session: AsyncSession) -> ReminderSummary:
        """Nag root users to generate next month's schedule during the last week of the month."""
        now = self._clock()
        start = next_month_start(now.date())
        window_start = start - timedelta(days=SCHEDULE_REMINDER_WINDOW_DAYS)
        if now.date() < window_start:
            return ReminderSummary(skipped=True, reason=SKIP_OUTSIDE_WINDOW)

        month = start.strftime("%Y-%m")
        if await self._schedule_for_month(session, month) is not None:
            return ReminderSummary(skipped=True, reason=SKIP_SCHEDULE_EXISTS, month=month)

        recipients = await self._notifications.resolver.resolve(session, ByRole(UserRole.ROOT.value))
        summary = ReminderSummary(month=month, recipients=0, success=0, failure=0)
        outcome = await self._send(
            session,
            summary,
            user_ids=recipients,
            title="Monthly schedule reminder",
            body=f"The schedule for {month} is missing. Please generate it as soon as possible.",
            link="/schedules/generate",
            category=NotificationCategory.REMINDER.value,
        )
        summary.recipients = outcome.recipients
        summary.success = outcome.success
        summary.failure = outcome.failure
        logger.info(f"Monthly schedule reminder for {month}: {outcome.recipients} recipient(s)")
        return summary

    async def remind_service_songs_entry(self, session: AsyncSession) -> ReminderSummary:
        """Ask the worship leader (or the ministers) to enter songs for upcoming services."""
        target = self.target_date(self._config.reminder_minister_days_before)
        services = await self._services_on(session, target)
        summary = ReminderSummary(
            target_date=target,
            checked_services=len(services),
            notified_services=0,
        )
        if not services:
            return summary
        summary.recipients = summary.success = summary.failure = 0

        resolver = self._notifications.resolver
        for service in services:
            if await self._has_songs(session, service.id):
                continue

            recipients: set[str] = set()
            schedule = await self._schedule_for_month(session, (service.date or "")[:7])
            if schedule is not None:
                leader = next(
                    (
                        a for a in schedule.assignments_for(service.id)
                        if a.position_id == self._config.worship_leader_position_id
                    ),
                    None,
                )
                if leader is not None and leader.person_id:
                    recipients = await resolver.users_by_linked_persons(session, [leader.person_id])

            if not recipients:
                recipients = await resolver.resolve(session, ByRole(UserRole.MINISTER.value))

            outcome = await self._send(
                session,
                summary,
                user_ids=recipients,
                title="Service repertoire reminder",
                body=f"Songs are missing for {service.name} ({_when(service)}).",
                link=f"/services/{service.id}",
                category=NotificationCategory.REMINDER.value,
            )
            summary.add(outcome)

        logger.info(
            f"Repertoire reminder for {target}: {summary.notified_services}/{summary.checked_services} service(s) notified"
        )
        return summary

    async def remind_upcoming_service_members(self, session: AsyncSession) -> ReminderSummary:
        """Remind everyone assigned to an upcoming service."""
        target = self.target_date(self._config.reminder_musicians_days_before)
        services = await self._services_on(session, target)
        summary = ReminderSummary(
            target_date=target,
            checked_services=len(services),
            notified_services=0,
        )
        if not services:
            return summary
        summary.recipients = summary.success = summary.failure = 0

        resolver = self._notifications.resolver
        for service in services:
            schedule = await self._schedule_for_month(session, (service.date or "")[:7])
            if schedule is None:
                continue

            person_ids = [a.person_id for a in schedule.assignments_for(service.id)]
            recipients = await resolver.users_by_linked_persons(session, person_ids)
            if not recipients:
                continue

            outcome = await self._send(
                session,
                summary,
                user_ids=recipients,
                title="Upcoming service reminder",
                body=f"You are scheduled for {service.name} ({_when(service)}).",
                link=f"/services/{service.id}",
                category=NotificationCategory.REMINDER.value,
            )
            summary.add(outcome)

        logger.info(
            f"Upcoming service reminder for {target}: {summary.notified_services}/{summary.checked_services} service(s) notified"
        )
        return summary
