"""
backend/features/progress/trends.py

Pure reducers for the progress charts: (records, dates) -> read model.
Missing scores stay null so charts can show gaps; counts default to 0.
"""

from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from backend.core.dates import DayLike, day_of_week, last_n_days
from backend.features.levels.metrics import completion_rate
from backend.features.tracker.service import five_second_counts
from backend.features.tracker.store import TrackerStore
from backend.models.tracker import DailyEntry, FiveSecondRuleAction, Habit, HabitCompletion


class WeeklyTrends(BaseModel):
    """Per-day series aligned with `dates` (oldest first)."""

    model_config = ConfigDict(frozen=True)

    dates: List[str]
    labels: List[str] = Field(description="Short weekday names for chart axes")
    presence_scores: List[Optional[int]]
    productivity_scores: List[Optional[int]]
    deep_work_sets: List[int]
    five_second_rule_social: List[int]
    five_second_rule_productivity: List[int]
    five_second_rule_presence: List[int]
    habit_completion_rates: List[int] = Field(description="Percent of active habits completed per day")
    five_second_rule_totals: Dict[str, int]


def build_weekly_trends(
    dates: List[str],
    entries: Iterable[DailyEntry],
    actions: Iterable[FiveSecondRuleAction],
    habits: Iterable[Habit],
    completions: Iterable[HabitCompletion],
) -> WeeklyTrends:
    entries_by_day = {e.date: e for e in entries}
    window = set(dates)
    action_list = [a for a in actions if a.date in window]
    active_habits = {h.id for h in habits if not h.archived}

    completed_by_day: Dict[str, set] = {}
    for c in completions:
        if c.completed and c.habit_id in active_habits:
            completed_by_day.setdefault(c.date, set()).add(c.habit_id)

    per_day_counts = {d: five_second_counts(a for a in action_list if a.date == d) for d in dates}

    return WeeklyTrends(
        dates=list(dates),
        labels=[day_of_week(d) for d in dates],
        presence_scores=[_field(entries_by_day.get(d), "presence_score") for d in dates],
        productivity_scores=[_field(entries_by_day.get(d), "productivity_score") for d in dates],
        deep_work_sets=[_field(entries_by_day.get(d), "deep_work_sets") or 0 for d in dates],
        five_second_rule_social=[per_day_counts[d]["social"] for d in dates],
        five_second_rule_productivity=[per_day_counts[d]["productivity"] for d in dates],
        five_second_rule_presence=[per_day_counts[d]["presence"] for d in dates],
        habit_completion_rates=[
            completion_rate(len(completed_by_day.get(d, ())), len(active_habits)) for d in dates
        ],
        five_second_rule_totals=five_second_counts(action_list),
    )


def load_trends(store: TrackerStore, user_id: str, days: int = 7, today: Optional[DayLike] = None) -> WeeklyTrends:
    dates = last_n_days(days, today)
    start, end = dates[0], dates[-1]
    return build_weekly_trends(
        dates,
        store.load_entries(user_id, start, end),
        store.load_actions(user_id, start, end),
        store.load_habits(user_id),
        store.load_completions(user_id, start, end),
    )


def _field(entry: Optional[DailyEntry], name: str) -> Optional[int]:
    return getattr(entry, name) if entry is not None else None
