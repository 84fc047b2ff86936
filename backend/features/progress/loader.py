"""
Dashboard loader.

Fetches every collection the home/progress screens need concurrently and
hands the engines a usable snapshot. A failed fetch is logged and replaced
by an empty default so one broken query never blanks unrelated widgets.
Read-only: level transitions are persisted by LevelsService.evaluate.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, fields
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel

from backend.core.dates import DayLike, day_key, month_key, shift_days, today_key, week_key
from backend.core.logging import log_event
from backend.features.levels.service import LevelHistory, compute_progress
from backend.features.streaks.service import compute_habit_streak, compute_streak_info
from backend.features.tracker.service import default_settings, five_second_counts
from backend.features.tracker.store import TrackerStore
from backend.models.levels import PresenceLevelProgress, ProductivityLevelProgress
from backend.models.streak import StreakInfo
from backend.models.tracker import (
    DailyEntry,
    DailyVote,
    FiveSecondRuleAction,
    Goal,
    Habit,
    HabitCompletion,
    LevelsGameState,
    UserSettings,
)


@dataclass
class DashboardSnapshot:
    today: str
    settings: UserSettings
    level_state: LevelsGameState
    streak: StreakInfo
    presence_progress: PresenceLevelProgress
    productivity_progress: ProductivityLevelProgress
    today_vote: Optional[DailyVote] = None
    today_entry: Optional[DailyEntry] = None
    today_actions: List[FiveSecondRuleAction] = field(default_factory=list)
    five_second_counts: Dict[str, int] = field(default_factory=dict)
    habits: List[Habit] = field(default_factory=list)
    today_completions: List[HabitCompletion] = field(default_factory=list)
    habit_streaks: Dict[str, int] = field(default_factory=dict)
    daily_goals: List[Goal] = field(default_factory=list)
    weekly_goals: List[Goal] = field(default_factory=list)
    monthly_goals: List[Goal] = field(default_factory=list)
    failed_fetches: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {f.name: _dump(getattr(self, f.name)) for f in fields(self)}


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump()
    if isinstance(value, list):
        return [_dump(v) for v in value]
    return value


async def _fetch(
    name: str,
    fn: Callable[..., Any],
    *args: Any,
    default: Any,
    user_id: str,
    failures: List[str],
) -> Any:
    try:
        return await asyncio.to_thread(fn, *args)
    except Exception as exc:
        failures.append(name)
        log_event(
            "warning",
            "progress.fetch_failed",
            user_id=user_id,
            event_type="fetch_failed",
            error_code=type(exc).__name__,
            extra={"fetch": name, "error": exc},
        )
        return default


async def load_dashboard(
    store: TrackerStore,
    user_id: str,
    today: Optional[DayLike] = None,
    habit_streak_days: int = 60,
) -> DashboardSnapshot:
    today_str = day_key(today) if today else today_key()
    failures: List[str] = []

    def fetch(name, fn, *args, default):
        return _fetch(name, fn, *args, default=default, user_id=user_id, failures=failures)

    habit_history_start = shift_days(today_str, -habit_streak_days)

    (
        user_settings,
        votes,
        today_entries,
        today_actions,
        habits,
        completions,
        daily_goals,
        weekly_goals,
        monthly_goals,
        level_state,
    ) = await asyncio.gather(
        fetch("settings", store.load_settings, user_id, default=None),
        fetch("votes", store.load_votes, user_id, default=[]),
        fetch("today_entry", store.load_entries, user_id, today_str, today_str, default=[]),
        fetch("today_actions", store.load_actions, user_id, today_str, today_str, default=[]),
        fetch("habits", store.load_habits, user_id, default=[]),
        fetch("habit_completions", store.load_completions, user_id, habit_history_start, today_str, default=[]),
        fetch("daily_goals", store.load_goals, user_id, "daily", today_str, today_str, default=[]),
        fetch("weekly_goals", store.load_goals, user_id, "weekly", week_key(today_str), week_key(today_str), default=[]),
        fetch("monthly_goals", store.load_goals, user_id, "monthly", month_key(today_str), month_key(today_str), default=[]),
        fetch("level_state", store.load_level_state, user_id, default=None),
    )

    state = level_state or LevelsGameState.initial(today_str)
    start = min(state.presence_level_start_date, state.productivity_level_start_date)
    goal_start = state.productivity_level_start_date

    entries, window_daily, window_weekly, window_monthly = await asyncio.gather(
        fetch("level_entries", store.load_entries, user_id, start, today_str, default=[]),
        fetch("level_daily_goals", store.load_goals, user_id, "daily", goal_start, today_str, default=[]),
        fetch("level_weekly_goals", store.load_goals, user_id, "weekly", week_key(goal_start), week_key(today_str), default=[]),
        fetch("level_monthly_goals", store.load_goals, user_id, "monthly", month_key(goal_start), month_key(today_str), default=[]),
    )

    history = LevelHistory(
        entries=entries,
        daily_goals=window_daily,
        weekly_goals=window_weekly,
        monthly_goals=window_monthly,
    )
    presence, productivity = compute_progress(state, history)

    return DashboardSnapshot(
        today=today_str,
        settings=user_settings or default_settings(),
        level_state=state,
        streak=compute_streak_info(votes, today_str),
        presence_progress=presence,
        productivity_progress=productivity,
        today_vote=next((v for v in votes if v.date == today_str), None),
        today_entry=today_entries[0] if today_entries else None,
        today_actions=today_actions,
        five_second_counts=five_second_counts(today_actions),
        habits=habits,
        today_completions=[c for c in completions if c.date == today_str],
        habit_streaks={h.id: compute_habit_streak(completions, h.id, today_str) for h in habits},
        daily_goals=daily_goals,
        weekly_goals=weekly_goals,
        monthly_goals=monthly_goals,
        failed_fetches=sorted(failures),
    )

