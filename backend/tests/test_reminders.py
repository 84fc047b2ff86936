import asyncio
import random
from datetime import datetime, timedelta, timezone

import pytest

from backend.features.reminders.scheduler import (
    MORNING_REMINDERS,
    ReminderScheduler,
    plan_reminders,
    should_show_streak_warning,
)
from backend.models.tracker import UserSettings

NOW = datetime(2024, 3, 14, 10, 30, tzinfo=timezone.utc)


def _settings(**overrides):
    return UserSettings(identity="I show up.", **overrides)


def test_plan_orders_slots_and_rolls_past_ones_to_tomorrow():
    plan = plan_reminders(_settings(), NOW, rng=random.Random(1))

    assert [r.kind for r in plan] == ["midday", "evening", "morning"]
    assert plan[0].fire_at == NOW.replace(hour=12, minute=0)
    assert plan[-1].fire_at == (NOW + timedelta(days=1)).replace(hour=7, minute=0)
    assert plan[-1].body in MORNING_REMINDERS


def test_hourly_slots_cover_start_to_end_exclusive():
    plan = plan_reminders(_settings(hourly_notifications_enabled=True), NOW)
    hourly = [r for r in plan if r.kind == "hourly"]

    assert sorted(r.fire_at.hour for r in hourly) == list(range(9, 17))
    assert all(r.body == _settings().hourly_notification_message for r in hourly)


def test_notifications_disabled_plans_nothing():
    assert plan_reminders(_settings(notifications_enabled=False), NOW) == []


def test_streak_warning():
    late = NOW.replace(hour=21)
    assert should_show_streak_warning("2024-03-13", 4, NOW) is True
    assert should_show_streak_warning("2024-03-14", 4, NOW) is False
    assert should_show_streak_warning("2024-03-14", 4, late) is True
    assert should_show_streak_warning(None, 0, NOW) is False
    assert should_show_streak_warning("2024-03-13", 0, NOW) is False


class FakeClock:
    def __init__(self, start):
        self.now = start
        self.sleeps = []

    def __call__(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += timedelta(seconds=seconds)
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_scheduler_delivers_in_order_and_stops():
    clock = FakeClock(NOW)
    delivered = []
    done = asyncio.Event()

    async def notify(reminder):
        delivered.append(reminder.kind)
        if len(delivered) == 3:
            done.set()

    scheduler = ReminderScheduler(notify, user_id="u1", clock=clock, sleep=clock.sleep)
    scheduler.start(_settings())
    assert scheduler.running

    await asyncio.wait_for(done.wait(), timeout=1)
    await scheduler.wait_stopped()

    assert delivered[:3] == ["midday", "evening", "morning"]
    assert clock.sleeps[0] == 90 * 60
    assert not scheduler.running


@pytest.mark.asyncio
async def test_scheduler_survives_notifier_errors():
    clock = FakeClock(NOW)
    calls = []
    done = asyncio.Event()

    async def notify(reminder):
        calls.append(reminder.kind)
        if len(calls) == 2:
            done.set()
        raise RuntimeError("push service down")

    scheduler = ReminderScheduler(notify, clock=clock, sleep=clock.sleep)
    scheduler.start(_settings())
    await asyncio.wait_for(done.wait(), timeout=1)
    await scheduler.wait_stopped()

    assert calls[:2] == ["midday", "evening"]


@pytest.mark.asyncio
async def test_start_with_notifications_off_does_not_spawn_task():
    async def notify(reminder):
        raise AssertionError("should not fire")

    scheduler = ReminderScheduler(notify)
    scheduler.start(_settings(notifications_enabled=False))
    assert not scheduler.running
    await scheduler.wait_stopped()
