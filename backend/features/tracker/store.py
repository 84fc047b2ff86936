"""
Tracker store: the persistence boundary for per-user records.

TrackerStore is the contract; InMemoryTrackerStore backs tests and local
development, SqlTrackerStore (persistence.py) backs deployments with a
DATABASE_URL. Collections come back ordered by their natural key.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from backend.core.errors import NotFoundError
from backend.models.tracker import (
    DailyEntry,
    DailyVote,
    FiveSecondRuleAction,
    Goal,
    GoalType,
    Habit,
    HabitCompletion,
    LevelsGameState,
    UserSettings,
)


class TrackerStore(ABC):
    """Read/write access to one user's records, keyed by user id and date keys."""

    # Votes
    @abstractmethod
    def load_votes(self, user_id: str) -> List[DailyVote]: ...

    @abstractmethod
    def get_vote(self, user_id: str, date: str) -> Optional[DailyVote]: ...

    @abstractmethod
    def save_vote(self, user_id: str, vote: DailyVote) -> DailyVote: ...

    # Entries
    @abstractmethod
    def load_entries(self, user_id: str, start: str, end: str) -> List[DailyEntry]: ...

    @abstractmethod
    def get_entry(self, user_id: str, date: str) -> Optional[DailyEntry]: ...

    @abstractmethod
    def save_entry(self, user_id: str, entry: DailyEntry) -> DailyEntry: ...

    # Goals
    @abstractmethod
    def load_goals(self, user_id: str, goal_type: GoalType, start_key: str, end_key: str) -> List[Goal]: ...

    @abstractmethod
    def get_goal(self, user_id: str, goal_id: str) -> Optional[Goal]: ...

    @abstractmethod
    def save_goal(self, user_id: str, goal: Goal) -> Goal: ...

    @abstractmethod
    def delete_goal(self, user_id: str, goal_id: str) -> None: ...

    # Five second rule actions
    @abstractmethod
    def load_actions(self, user_id: str, start: str, end: str) -> List[FiveSecondRuleAction]: ...

    @abstractmethod
    def add_action(self, user_id: str, action: FiveSecondRuleAction) -> FiveSecondRuleAction: ...

    # Habits
    @abstractmethod
    def load_habits(self, user_id: str, include_archived: bool = False) -> List[Habit]: ...

    @abstractmethod
    def get_habit(self, user_id: str, habit_id: str) -> Optional[Habit]: ...

    @abstractmethod
    def save_habit(self, user_id: str, habit: Habit) -> Habit: ...

    @abstractmethod
    def load_completions(self, user_id: str, start: str, end: str) -> List[HabitCompletion]: ...

    @abstractmethod
    def save_completion(self, user_id: str, completion: HabitCompletion) -> HabitCompletion: ...

    # Singletons
    @abstractmethod
    def load_level_state(self, user_id: str) -> Optional[LevelsGameState]: ...

    @abstractmethod
    def save_level_state(self, user_id: str, state: LevelsGameState) -> LevelsGameState: ...

    @abstractmethod
    def load_settings(self, user_id: str) -> Optional[UserSettings]: ...

    @abstractmethod
    def save_settings(self, user_id: str, user_settings: UserSettings) -> UserSettings: ...


class _UserRecords:
    def __init__(self) -> None:
        self.votes: Dict[str, DailyVote] = {}
        self.entries: Dict[str, DailyEntry] = {}
        self.goals: Dict[str, Goal] = {}
        self.actions: List[FiveSecondRuleAction] = []
        self.habits: Dict[str, Habit] = {}
        self.completions: Dict[str, HabitCompletion] = {}
        self.level_state: Optional[LevelsGameState] = None
        self.settings: Optional[UserSettings] = None


class InMemoryTrackerStore(TrackerStore):
    """Process-local store. Records are frozen models, so no copies are needed."""

    def __init__(self) -> None:
        self._users: Dict[str, _UserRecords] = {}
        self._lock = threading.RLock()

    def _user(self, user_id: str) -> _UserRecords:
        with self._lock:
            if user_id not in self._users:
                self._users[user_id] = _UserRecords()
            return self._users[user_id]

    def load_votes(self, user_id: str) -> List[DailyVote]:
        votes = self._user(user_id).votes
        return sorted(votes.values(), key=lambda v: v.date, reverse=True)

    def get_vote(self, user_id: str, date: str) -> Optional[DailyVote]:
        return self._user(user_id).votes.get(date)

    def save_vote(self, user_id: str, vote: DailyVote) -> DailyVote:
        with self._lock:
            self._user(user_id).votes[vote.date] = vote
        return vote

    def load_entries(self, user_id: str, start: str, end: str) -> List[DailyEntry]:
        entries = self._user(user_id).entries.values()
        return sorted((e for e in entries if start <= e.date <= end), key=lambda e: e.date)

    def get_entry(self, user_id: str, date: str) -> Optional[DailyEntry]:
        return self._user(user_id).entries.get(date)

    def save_entry(self, user_id: str, entry: DailyEntry) -> DailyEntry:
        with self._lock:
            self._user(user_id).entries[entry.date] = entry
        return entry

    def load_goals(self, user_id: str, goal_type: GoalType, start_key: str, end_key: str) -> List[Goal]:
        goals = self._user(user_id).goals.values()
        selected = [g for g in goals if g.type == goal_type and start_key <= g.date <= end_key]
        return sorted(selected, key=lambda g: (g.date, g.created_at))

    def get_goal(self, user_id: str, goal_id: str) -> Optional[Goal]:
        return self._user(user_id).goals.get(goal_id)

    def save_goal(self, user_id: str, goal: Goal) -> Goal:
        with self._lock:
            self._user(user_id).goals[goal.id] = goal
        return goal

    def delete_goal(self, user_id: str, goal_id: str) -> None:
        with self._lock:
            if self._user(user_id).goals.pop(goal_id, None) is None:
                raise NotFoundError(f"Goal {goal_id} not found")

    def load_actions(self, user_id: str, start: str, end: str) -> List[FiveSecondRuleAction]:
        actions = self._user(user_id).actions
        return sorted((a for a in actions if start <= a.date <= end), key=lambda a: a.timestamp, reverse=True)

    def add_action(self, user_id: str, action: FiveSecondRuleAction) -> FiveSecondRuleAction:
        with self._lock:
            self._user(user_id).actions.append(action)
        return action

    def load_habits(self, user_id: str, include_archived: bool = False) -> List[Habit]:
        habits = self._user(user_id).habits.values()
        return sorted((h for h in habits if include_archived or not h.archived), key=lambda h: h.created_at)

    def get_habit(self, user_id: str, habit_id: str) -> Optional[Habit]:
        return self._user(user_id).habits.get(habit_id)

    def save_habit(self, user_id: str, habit: Habit) -> Habit:
        with self._lock:
            self._user(user_id).habits[habit.id] = habit
        return habit

    def load_completions(self, user_id: str, start: str, end: str) -> List[HabitCompletion]:
        completions = self._user(user_id).completions.values()
        return sorted((c for c in completions if start <= c.date <= end), key=lambda c: (c.date, c.habit_id))

    def save_completion(self, user_id: str, completion: HabitCompletion) -> HabitCompletion:
        with self._lock:
            self._user(user_id).completions[completion.id] = completion
        return completion

    def load_level_state(self, user_id: str) -> Optional[LevelsGameState]:
        return self._user(user_id).level_state

    def save_level_state(self, user_id: str, state: LevelsGameState) -> LevelsGameState:
        with self._lock:
            self._user(user_id).level_state = state
        return state

    def load_settings(self, user_id: str) -> Optional[UserSettings]:
        return self._user(user_id).settings

    def save_settings(self, user_id: str, user_settings: UserSettings) -> UserSettings:
        with self._lock:
            self._user(user_id).settings = user_settings
        return user_settings
