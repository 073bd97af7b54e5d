"""Tests for the in-process reminder scheduler."""
from notifier.services.reminders import ReminderSummary
from notifier.services.scheduler import REMINDER_JOBS, SchedulerService


class TestSchedulerService:

    async def test_run_job_uses_own_session(self, services, session_factory):
        scheduler = SchedulerService(services.reminders, session_factory)

        summary = await scheduler.run_job(
            "remind_upcoming_service_members",
            services.reminders.remind_upcoming_service_members,
        )

        assert isinstance(summary, ReminderSummary)
        assert summary.target_date == "2026-10-18"

    async def test_run_job_swallows_and_logs_failures(self, services, session_factory, caplog):
        scheduler = SchedulerService(services.reminders, session_factory)

        async def broken(session):
            raise RuntimeError("boom")

        assert await scheduler.run_job("broken", broken) is None
        assert "boom" in caplog.text

    async def test_start_registers_reminder_jobs(self, services, session_factory):
        scheduler = SchedulerService(services.reminders, session_factory, timezone="Europe/Rome")
        scheduler.start()
        try:
            job_ids = {job.id for job in scheduler.scheduler.get_jobs()}
            assert job_ids == {job_id for job_id, _, _ in REMINDER_JOBS}
        finally:
            scheduler.stop()

    def test_stop_without_start_is_noop(self, services, session_factory):
        SchedulerService(services.reminders, session_factory).stop()
