"""Scheduler service - runs the reminder jobs in-process.

The HTTP cron endpoints stay the primary trigger; this is for deployments
without an external cron. Every job opens its own session and logs, rather
than raises, its failures so one bad run never stops the scheduler.
"""
import logging
from typing import Awaitable, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .reminders import ReminderService, ReminderSummary

logger = logging.getLogger(__name__)

# (job id, reminder method name, hour of day)
REMINDER_JOBS = (
    ("remind_next_month_schedule", "remind_next_month_schedule", 9),
    ("remind_service_songs_entry", "remind_service_songs_entry", 9),
    ("remind_upcoming_service_members", "remind_upcoming_service_members", 10),
)


class SchedulerService:
    """Daily cron triggers for the reminder jobs."""

    def __init__(
        self,
        reminders: ReminderService,
        session_factory: async_sessionmaker,
        timezone: str = "UTC",
    ):
        self._reminders = reminders
        self._session_factory = session_factory
        self._timezone = timezone
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._running = False

    def start(self):
        """Start the scheduler."""
        if self._running:
            return

        self.scheduler = AsyncIOScheduler(timezone=self._timezone)
        for job_id, method_name, hour in REMINDER_JOBS:
            self.scheduler.add_job(
                self.run_job,
                trigger=CronTrigger(hour=hour, minute=0, timezone=self._timezone),
                args=[job_id, getattr(self._reminders, method_name)],
                id=job_id,
                replace_existing=True,
                max_instances=1,
                misfire_grace_time=3600,
            )

        self.scheduler.start()
        self._running = True
        logger.info(f"Reminder scheduler started ({len(REMINDER_JOBS)} jobs, tz={self._timezone})")

    def stop(self):
        """Stop the scheduler."""
        if self.scheduler and self._running:
            self.scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Reminder scheduler stopped")

    async def run_job(
        self,
        job_id: str,
        job: Callable[[AsyncSession], Awaitable[ReminderSummary]],
    ) -> Optional[ReminderSummary]:
        """Run one reminder in its own session."""
        try:
            async with self._session_factory() as session:
                summary = await job(session)
            logger.info(f"Job {job_id} finished: {summary.as_dict()}")
            return summary
        except Exception as e:
            logger.error(f"Error running job {job_id}: {e}")
            return None
