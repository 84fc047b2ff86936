"""
Tracker service: record mutations behind the API.

Votes and entries are upserted by day; goals and habit completions toggle;
five second rule actions are append-only.
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional

from backend.core.config import settings
from backend.core.database import create_all_tables, get_database_url
from backend.core.dates import DayLike, day_key, month_key, today_key, week_key
from backend.core.errors import NotFoundError, ValidationError
from backend.core.logging import log_event
from backend.features.tracker.persistence import SqlTrackerStore
from backend.features.tracker.store import InMemoryTrackerStore, TrackerStore
from backend.models.tracker import (
    ACTION_CATEGORIES,
    DailyEntry,
    DailyVote,
    FiveSecondRuleAction,
    Goal,
    GoalType,
    Habit,
    HabitCompletion,
    UserSettings,
    new_id,
    utc_now,
)

ENTRY_FIELDS = ("presence_score", "productivity_score", "deep_work_sets", "time_waster_minutes")

_store: Optional[TrackerStore] = None


def get_tracker_store() -> TrackerStore:
    """SQL store when DATABASE_URL is configured, in-memory store otherwise."""
    global _store
    if _store is None:
        if get_database_url():
            create_all_tables()
            _store = SqlTrackerStore()
        else:
            _store = InMemoryTrackerStore()
    return _store


def set_tracker_store(store: Optional[TrackerStore]) -> None:
    global _store
    _store = store


def default_settings() -> UserSettings:
    return UserSettings(identity=settings.DEFAULT_IDENTITY)


def period_key(goal_type: GoalType, day: DayLike) -> str:
    if goal_type == "daily":
        return day_key(day)
    if goal_type == "weekly":
        return week_key(day)
    if goal_type == "monthly":
        return month_key(day)
    raise ValidationError(f"Unknown goal type: {goal_type!r}")


def five_second_counts(actions: Iterable[FiveSecondRuleAction]) -> Dict[str, int]:
    counts = {category: 0 for category in ACTION_CATEGORIES}
    for action in actions:
        counts[action.category] += 1
    return counts


class TrackerService:
    def __init__(self, store: TrackerStore):
        self.store = store

    # Votes ------------------------------------------------------------
    def cast_vote(self, user_id: str, vote: str, note: Optional[str] = None, today: Optional[DayLike] = None) -> DailyVote:
        """Record today's vote; a second vote on the same day overwrites the first."""
        record = DailyVote(date=day_key(today) if today else today_key(), vote=vote, note=note)
        self.store.save_vote(user_id, record)
        log_event("info", "vote.cast", user_id=user_id, event_type="vote", extra={"date": record.date, "vote": vote})
        return record

    # Entries ----------------------------------------------------------
    def update_entry(self, user_id: str, today: Optional[DayLike] = None, **fields) -> DailyEntry:
        """Merge the given fields into the day's entry. Omitted fields keep their value."""
        unknown = set(fields) - set(ENTRY_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown entry fields: {', '.join(sorted(unknown))}")

        date = day_key(today) if today else today_key()
        existing = self.store.get_entry(user_id, date)
        if existing is None:
            entry = DailyEntry(date=date, **fields)
        else:
            entry = existing.with_changes(timestamp=utc_now(), **fields)
        return self.store.save_entry(user_id, entry)

    # Five second rule -------------------------------------------------
    def add_five_second_action(
        self,
        user_id: str,
        category: str,
        note: Optional[str] = None,
        today: Optional[DayLike] = None,
    ) -> FiveSecondRuleAction:
        action = FiveSecondRuleAction(
            id=new_id(),
            date=day_key(today) if today else today_key(),
            category=category,
            note=note,
        )
        return self.store.add_action(user_id, action)

    # Habits -----------------------------------------------------------
    def add_habit(self, user_id: str, name: str, category: Optional[str] = None) -> Habit:
        return self.store.save_habit(user_id, Habit(id=new_id(), name=name.strip(), category=category))

    def update_habit(self, user_id: str, habit_id: str, **updates) -> Habit:
        habit = self._require_habit(user_id, habit_id)
        allowed = {"name", "category", "archived"}
        unknown = set(updates) - allowed
        if unknown:
            raise ValidationError(f"Unknown habit fields: {', '.join(sorted(unknown))}")
        return self.store.save_habit(user_id, habit.with_changes(**updates))

    def delete_habit(self, user_id: str, habit_id: str) -> Habit:
        """Archive the habit; completion history stays intact."""
        return self.update_habit(user_id, habit_id, archived=True)

    def toggle_habit_completion(self, user_id: str, habit_id: str, today: Optional[DayLike] = None) -> HabitCompletion:
        self._require_habit(user_id, habit_id)
        date = day_key(today) if today else today_key()
        existing = [c for c in self.store.load_completions(user_id, date, date) if c.habit_id == habit_id]
        completed = not existing[0].completed if existing else True
        return self.store.save_completion(user_id, HabitCompletion(habit_id=habit_id, date=date, completed=completed))

    def _require_habit(self, user_id: str, habit_id: str) -> Habit:
        habit = self.store.get_habit(user_id, habit_id)
        if habit is None:
            raise NotFoundError(f"Habit {habit_id} not found")
        return habit

    # Goals ------------------------------------------------------------
    def add_goal(self, user_id: str, goal_type: GoalType, title: str, today: Optional[DayLike] = None) -> Goal:
        """Create an open goal keyed by the current day, ISO week or month."""
        day = today if today else today_key()
        goal = Goal(id=new_id(), type=goal_type, title=title.strip(), date=period_key(goal_type, day))
        return self.store.save_goal(user_id, goal)

    def toggle_goal(self, user_id: str, goal_id: str) -> Goal:
        goal = self.store.get_goal(user_id, goal_id)
        if goal is None:
            raise NotFoundError(f"Goal {goal_id} not found")
        return self.store.save_goal(user_id, goal.with_changes(completed=not goal.completed))

    def delete_goal(self, user_id: str, goal_id: str) -> None:
        self.store.delete_goal(user_id, goal_id)

    # Settings ---------------------------------------------------------
    def get_settings(self, user_id: str) -> UserSettings:
        return self.store.load_settings(user_id) or default_settings()

    def update_settings(self, user_id: str, **updates) -> UserSettings:
        current = self.get_settings(user_id)
        unknown = set(updates) - set(UserSettings.model_fields)
        if unknown:
            raise ValidationError(f"Unknown settings: {', '.join(sorted(unknown))}")
        return self.store.save_settings(user_id, current.with_changes(**updates))
