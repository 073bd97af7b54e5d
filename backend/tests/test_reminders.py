"""Tests for the cron reminder jobs.

The fixed clock is 2026-10-16 08:00 UTC unless a test moves it.
"""
from datetime import datetime, timezone

import pytest

from notifier.errors import GatewayError
from notifier.services.device_registry import DeviceRegistry
from notifier.services.reminders import (
    SKIP_OUTSIDE_WINDOW,
    SKIP_SCHEDULE_EXISTS,
    ReminderSummary,
    next_month_start,
)
from tests.conftest import WORSHIP_LEADER


@pytest.fixture
def registry():
    return DeviceRegistry()


def test_next_month_start_rolls_over_year():
    assert next_month_start(datetime(2026, 12, 20).date()).isoformat() == "2027-01-01"
    assert next_month_start(datetime(2026, 10, 16).date()).isoformat() == "2026-11-01"


def test_summary_as_dict_is_camel_case_without_unset():
    summary = ReminderSummary(target_date="2026-10-19", checked_services=2, notified_services=1)
    assert summary.as_dict() == {
        "ok": True,
        "targetDate": "2026-10-19",
        "checkedServices": 2,
        "notifiedServices": 1,
    }


class TestMonthlyScheduleReminder:

    async def test_outside_window_is_skipped(self, services, session, seed, clock, gateway):
        await seed.user("root-1", role="root")
        clock.now = datetime(2026, 10, 7, 9, 0, tzinfo=timezone.utc)  # 25 days before Nov 1

        summary = await services.reminders.remind_next_month_schedule(session)

        assert summary.skipped is True
        assert summary.reason == SKIP_OUTSIDE_WINDOW
        assert gateway.calls == []

    async def test_inside_window_notifies_root_users(self, services, session, seed, clock, registry, gateway):
        await seed.user("root-1", role="root")
        await seed.user("root-2", role="root")
        await seed.user("min-1", role="minister")
        await seed.user("root-off", role="root", active=False)
        await registry.register_device(session, "tok-root-1", "root-1")
        await registry.register_device(session, "tok-min-1", "min-1")
        clock.now = datetime(2026, 10, 29, 9, 0, tzinfo=timezone.utc)  # 3 days before Nov 1

        summary = await services.reminders.remind_next_month_schedule(session)

        assert not summary.skipped
        assert summary.month == "2026-11"
        assert summary.recipients == 2
        assert summary.success == 1
        assert gateway.calls[0]["tokens"] == ["tok-root-1"]
        assert gateway.calls[0]["link"] == "/schedules/generate"
        assert gateway.calls[0]["data"]["category"] == "reminder"

    async def test_first_day_of_window_counts(self, services, session, seed, clock):
        await seed.user("root-1", role="root")
        clock.now = datetime(2026, 10, 25, 0, 0, tzinfo=timezone.utc)  # exactly 7 days before

        summary = await services.reminders.remind_next_month_schedule(session)
        assert not summary.skipped

    async def test_existing_schedule_is_skipped(self, services, session, seed, clock, gateway):
        await seed.user("root-1", role="root")
        await seed.schedule("2026-11")
        clock.now = datetime(2026, 10, 29, 9, 0, tzinfo=timezone.utc)

        summary = await services.reminders.remind_next_month_schedule(session)

        assert summary.skipped is True
        assert summary.reason == SKIP_SCHEDULE_EXISTS
        assert gateway.calls == []

    async def test_december_targets_january(self, services, session, seed, clock):
        await seed.user("root-1", role="root")
        clock.now = datetime(2026, 12, 28, 9, 0, tzinfo=timezone.utc)

        summary = await services.reminders.remind_next_month_schedule(session)
        assert summary.month == "2027-01"


class TestServiceSongsReminder:
    # today + 3 days
    TARGET = "2026-10-19"

    async def test_no_services(self, services, session):
        summary = await services.reminders.remind_service_songs_entry(session)

        assert summary.as_dict() == {
            "ok": True,
            "targetDate": self.TARGET,
            "checkedServices": 0,
            "notifiedServices": 0,
        }

    async def test_worship_leader_notified(self, services, session, seed, registry, gateway):
        await seed.user("u-lead", linked_person_id="p-lead")
        await seed.user("min-1", role="minister")
        await registry.register_device(session, "tok-lead", "u-lead")
        await seed.service("svc-1", self.TARGET, name="Sunday service")
        await seed.schedule("2026-10", [
            ("svc-1", "p-lead", WORSHIP_LEADER),
            ("svc-1", "p-drums", "pos-drums"),
        ])

        summary = await services.reminders.remind_service_songs_entry(session)

        assert summary.checked_services == 1
        assert summary.notified_services == 1
        assert summary.recipients == 1
        assert summary.success == 1
        assert gateway.calls[0]["tokens"] == ["tok-lead"]
        assert gateway.calls[0]["link"] == "/services/svc-1"
        assert "Sunday service" in gateway.calls[0]["body"]

    async def test_service_with_songs_skipped(self, services, session, seed, gateway):
        await seed.user("u-lead", linked_person_id="p-lead")
        await seed.service("svc-1", self.TARGET, songs=["Amazing Grace"])
        await seed.schedule("2026-10", [("svc-1", "p-lead", WORSHIP_LEADER)])

        summary = await services.reminders.remind_service_songs_entry(session)

        assert summary.checked_services == 1
        assert summary.notified_services == 0
        assert summary.recipients == 0
        assert gateway.calls == []

    async def test_falls_back_to_ministers_without_leader(self, services, session, seed, registry, gateway):
        await seed.user("min-1", role="minister")
        await seed.user("min-2", role="minister")
        await seed.user("mem-1")
        await registry.register_device(session, "tok-min-1", "min-1")
        await registry.register_device(session, "tok-mem-1", "mem-1")
        await seed.service("svc-1", self.TARGET)
        await seed.schedule("2026-10", [("svc-1", "p-drums", "pos-drums")])

        summary = await services.reminders.remind_service_songs_entry(session)

        assert summary.notified_services == 1
        assert summary.recipients == 2
        assert gateway.calls[0]["tokens"] == ["tok-min-1"]

    async def test_falls_back_when_leader_not_linked(self, services, session, seed):
        await seed.user("min-1", role="minister")
        await seed.service("svc-1", self.TARGET)
        await seed.schedule("2026-10", [("svc-1", "p-unlinked", WORSHIP_LEADER)])

        summary = await services.reminders.remind_service_songs_entry(session)
        assert summary.recipients == 1

    async def test_falls_back_without_schedule(self, services, session, seed):
        await seed.user("min-1", role="minister")
        await seed.service("svc-1", self.TARGET)

        summary = await services.reminders.remind_service_songs_entry(session)
        assert summary.notified_services == 1
        assert summary.recipients == 1

    async def test_other_dates_ignored(self, services, session, seed, gateway):
        await seed.user("min-1", role="minister")
        await seed.service("svc-1", "2026-10-18")

        summary = await services.reminders.remind_service_songs_entry(session)
        assert summary.checked_services == 0

    async def test_accumulates_across_services(self, services, session, seed, registry, gateway):
        await seed.user("u-a", linked_person_id="p-a")
        await seed.user("u-b", linked_person_id="p-b")
        await registry.register_device(session, "tok-a", "u-a")
        await registry.register_device(session, "tok-b", "u-b")
        await seed.service("svc-1", self.TARGET, start_time="09:00")
        await seed.service("svc-2", self.TARGET, start_time="18:00")
        await seed.schedule("2026-10", [
            ("svc-1", "p-a", WORSHIP_LEADER),
            ("svc-2", "p-b", WORSHIP_LEADER),
        ])

        summary = await services.reminders.remind_service_songs_entry(session)

        assert summary.notified_services == 2
        assert summary.recipients == 2
        assert summary.success == 2
        assert len(gateway.calls) == 2

    async def test_gateway_failure_aborts_with_partial_summary(self, services, session, seed, registry, gateway):
        await seed.user("u-a", linked_person_id="p-a")
        await seed.user("u-b", linked_person_id="p-b")
        await registry.register_device(session, "tok-a", "u-a")
        await registry.register_device(session, "tok-b", "u-b")
        await seed.service("svc-1", self.TARGET, start_time="09:00")
        await seed.service("svc-2", self.TARGET, start_time="18:00")
        await seed.schedule("2026-10", [
            ("svc-1", "p-a", WORSHIP_LEADER),
            ("svc-2", "p-b", WORSHIP_LEADER),
        ])
        gateway.error = "unavailable"
        gateway.fail_on_call = 2

        with pytest.raises(GatewayError) as exc_info:
            await services.reminders.remind_service_songs_entry(session)

        assert exc_info.value.partial["notifiedServices"] == 1
        assert exc_info.value.partial["success"] == 1


class TestUpcomingServiceMembersReminder:
    # today + 2 days
    TARGET = "2026-10-18"

    async def test_notifies_all_assigned_members(self, services, session, seed, registry, gateway):
        await seed.user("u-1", linked_person_id="p-1")
        await seed.user("u-2", linked_person_id="p-2")
        await seed.user("u-3", linked_person_id="p-3")
        await registry.register_device(session, "tok-1", "u-1")
        await registry.register_device(session, "tok-2", "u-2")
        await registry.register_device(session, "tok-3", "u-3")
        await seed.service("svc-1", self.TARGET, name="Evening service", start_time="18:00")
        await seed.schedule("2026-10", [
            ("svc-1", "p-1", "pos-a"),
            ("svc-1", "p-2", "pos-b"),
            ("svc-1", "p-1", "pos-c"),
            ("svc-other", "p-3", "pos-a"),
        ])

        summary = await services.reminders.remind_upcoming_service_members(session)

        assert summary.target_date == self.TARGET
        assert summary.checked_services == 1
        assert summary.notified_services == 1
        assert summary.recipients == 2
        assert sorted(gateway.calls[0]["tokens"]) == ["tok-1", "tok-2"]
        assert "Evening service (2026-10-18 18:00)" in gateway.calls[0]["body"]

    async def test_service_without_schedule_skipped(self, services, session, seed, gateway):
        await seed.user("u-1", linked_person_id="p-1")
        await seed.service("svc-1", self.TARGET)

        summary = await services.reminders.remind_upcoming_service_members(session)

        assert summary.checked_services == 1
        assert summary.notified_services == 0
        assert gateway.calls == []

    async def test_service_without_linked_users_skipped(self, services, session, seed, gateway):
        await seed.service("svc-1", self.TARGET)
        await seed.schedule("2026-10", [("svc-1", "p-nobody", "pos-a")])

        summary = await services.reminders.remind_upcoming_service_members(session)

        assert summary.notified_services == 0
        assert summary.recipients == 0
        assert gateway.calls == []

    async def test_uses_its_own_offset(self, services, session, seed):
        await seed.user("u-1", linked_person_id="p-1")
        await seed.service("svc-1", "2026-10-19")
        await seed.schedule("2026-10", [("svc-1", "p-1", "pos-a")])

        summary = await services.reminders.remind_upcoming_service_members(session)
        assert summary.checked_services == 0
