"""
Reminder planning and delivery loop.

plan_reminders() is pure: settings + now -> ordered reminder slots.
ReminderScheduler owns one cancellable asyncio task per instance; starting
it again replaces the running plan, stopping it cancels the task.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Awaitable, Callable, List, Literal, Optional

from backend.core.dates import DayLike, as_date, now as current_time
from backend.core.logging import log_event
from backend.models.tracker import UserSettings, parse_clock

ReminderKind = Literal["morning", "midday", "evening", "hourly"]

MORNING_REMINDERS = (
    "Time for your identity vote. Who will you be today?",
    "Cast your vote: Are you living as your true self?",
    "New day, new opportunity. Set your intentions.",
)

MIDDAY_REMINDERS = (
    "5, 4, 3, 2, 1... Choose presence right now.",
    "Wherever you are, you're 5 seconds from the straight line.",
    "Take action. Use the 5 Second Rule.",
)

EVENING_REMINDERS = (
    "Time to reflect. Enter your presence and productivity scores.",
    "How did today go? Log your deep work sets.",
    "End your day with intention. Complete your daily log.",
)

_POOLS = {"morning": MORNING_REMINDERS, "midday": MIDDAY_REMINDERS, "evening": EVENING_REMINDERS}

# Late-evening hour after which an unvoted day triggers a streak warning.
STREAK_WARNING_HOUR = 20


@dataclass(frozen=True)
class Reminder:
    kind: ReminderKind
    fire_at: datetime
    title: str
    body: str


def pick_message(kind: ReminderKind, rng: Optional[random.Random] = None) -> str:
    pool = _POOLS[kind]
    return (rng or random).choice(pool)


def _next_occurrence(now: datetime, hour: int, minute: int) -> datetime:
    candidate = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


def plan_reminders(
    user_settings: UserSettings,
    now: datetime,
    rng: Optional[random.Random] = None,
) -> List[Reminder]:
    """
    Next occurrence of every enabled reminder, ordered by fire time.

    Daily slots: morning, midday, evening. Hourly slots run on the hour from
    the start hour up to (not including) the end hour. A slot that already
    passed today is planned for tomorrow.
    """
    if not user_settings.notifications_enabled:
        return []

    reminders: List[Reminder] = []
    daily_slots = (
        ("morning", user_settings.morning_reminder_time, "Identity vote"),
        ("midday", user_settings.midday_reminder_time, "5 Second Rule"),
        ("evening", user_settings.evening_reminder_time, "Daily log"),
    )
    for kind, clock, title in daily_slots:
        hour, minute = parse_clock(clock, f"{kind}_reminder_time")
        reminders.append(Reminder(kind, _next_occurrence(now, hour, minute), title, pick_message(kind, rng)))

    if user_settings.hourly_notifications_enabled:
        start_hour, _ = parse_clock(user_settings.hourly_notification_start_time, "hourly_notification_start_time")
        end_hour, _ = parse_clock(user_settings.hourly_notification_end_time, "hourly_notification_end_time")
        for hour in range(start_hour, end_hour):
            reminders.append(
                Reminder(
                    "hourly",
                    _next_occurrence(now, hour, 0),
                    "Hourly Reminder",
                    user_settings.hourly_notification_message,
                )
            )

    return sorted(reminders, key=lambda r: r.fire_at)


def should_show_streak_warning(last_vote_date: Optional[DayLike], current_streak: int, now: datetime) -> bool:
    """Warn when a live streak has no vote yet today, or it is late and today is still open."""
    if last_vote_date is None or current_streak == 0:
        return False
    days_since = (now.date() - as_date(last_vote_date)).days
    return days_since >= 1 or (days_since == 0 and now.hour >= STREAK_WARNING_HOUR)


Notifier = Callable[[Reminder], Awaitable[None]]


class ReminderScheduler:
    """Explicit, cancellable reminder loop for one user."""

    def __init__(
        self,
        notify: Notifier,
        *,
        user_id: Optional[str] = None,
        clock: Callable[[], datetime] = current_time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._notify = notify
        self._user_id = user_id
        self._clock = clock
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, user_settings: UserSettings) -> None:
        """(Re)start the loop with the given settings. Must be called inside a running loop."""
        self.stop()
        if not user_settings.notifications_enabled:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(user_settings))

    def stop(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def wait_stopped(self) -> None:
        task = self._task
        self.stop()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _run(self, user_settings: UserSettings) -> None:
        while True:
            plan = plan_reminders(user_settings, self._clock())
            if not plan:
                return
            upcoming = plan[0]
            delay = max(0.0, (upcoming.fire_at - self._clock()).total_seconds())
            await self._sleep(delay)
            try:
                await self._notify(upcoming)
            except Exception as exc:
                log_event(
                    "warning",
                    "reminders.notify_failed",
                    user_id=self._user_id,
                    event_type="reminder",
                    error_code=type(exc).__name__,
                    extra={"kind": upcoming.kind},
                )
            else:
                log_event("info", "reminders.sent", user_id=self._user_id, event_type="reminder", extra={"kind": upcoming.kind})
