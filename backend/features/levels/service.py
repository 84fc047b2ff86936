"""
Levels Service

Adapts stored history into the pure level engines and persists the
resulting transition. At most one level-state write per evaluation, and
evaluations for the same user are serialized.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Dict, List, Optional

from backend.core.dates import DayLike, day_key, month_key, today_key, week_key
from backend.core.logging import log_event
from backend.features.levels.presence_engine import PresenceLevelEngine
from backend.features.levels.productivity_engine import ProductivityLevelEngine
from backend.features.tracker.service import get_tracker_store
from backend.features.tracker.store import TrackerStore
from backend.models.levels import PresenceLevelProgress, ProductivityLevelProgress
from backend.models.tracker import MAX_LEVEL, DailyEntry, Goal, LevelsGameState


@dataclass(frozen=True)
class LevelHistory:
    """Read-only snapshot of everything the engines need for one user."""

    entries: List[DailyEntry]
    daily_goals: List[Goal]
    weekly_goals: List[Goal]
    monthly_goals: List[Goal]


@dataclass(frozen=True)
class LevelsEvaluation:
    state: LevelsGameState
    presence_progress: PresenceLevelProgress
    productivity_progress: ProductivityLevelProgress
    presence_leveled_up: bool = False
    productivity_leveled_up: bool = False

    def to_dict(self) -> dict:
        return {
            "state": self.state.model_dump(),
            "presence": self.presence_progress.model_dump(),
            "productivity": self.productivity_progress.model_dump(),
            "presence_leveled_up": self.presence_leveled_up,
            "productivity_leveled_up": self.productivity_leveled_up,
        }


def apply_level_ups(
    state: LevelsGameState,
    history: LevelHistory,
    today: DayLike,
) -> tuple[LevelsGameState, bool, bool]:
    """
    Decide both level-ups against `state` and return the resulting state.

    Pure: the caller decides whether to persist. A level-up bumps the level
    (capped at 5) and moves that level's start date to `today`.
    """
    today_str = day_key(today)

    presence_up = PresenceLevelEngine.should_level_up(
        history.entries, state.presence_level, state.presence_level_start_date
    )
    productivity_up = ProductivityLevelEngine.should_level_up(
        history.entries,
        history.daily_goals,
        history.weekly_goals,
        history.monthly_goals,
        state.productivity_level,
        state.productivity_level_start_date,
    )

    new_state = state
    if presence_up:
        new_state = new_state.with_changes(
            presence_level=min(state.presence_level + 1, MAX_LEVEL),
            presence_level_start_date=today_str,
        )
    if productivity_up:
        new_state = new_state.with_changes(
            productivity_level=min(state.productivity_level + 1, MAX_LEVEL),
            productivity_level_start_date=today_str,
        )
    return new_state, presence_up, productivity_up


def compute_progress(state: LevelsGameState, history: LevelHistory) -> tuple[PresenceLevelProgress, ProductivityLevelProgress]:
    presence = PresenceLevelEngine.progress(
        history.entries, state.presence_level, state.presence_level_start_date
    )
    productivity = ProductivityLevelEngine.progress(
        history.entries,
        history.daily_goals,
        history.weekly_goals,
        history.monthly_goals,
        state.productivity_level,
        state.productivity_level_start_date,
    )
    return presence, productivity


class LevelsService:
    """Load, evaluate, persist."""

    def __init__(self, store: TrackerStore):
        self.store = store
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _user_lock(self, user_id: str) -> threading.Lock:
        with self._locks_guard:
            if user_id not in self._locks:
                self._locks[user_id] = threading.Lock()
            return self._locks[user_id]

    def get_or_create_state(self, user_id: str, today: Optional[DayLike] = None) -> LevelsGameState:
        state = self.store.load_level_state(user_id)
        if state is None:
            state = LevelsGameState.initial(day_key(today) if today else today_key())
            self.store.save_level_state(user_id, state)
        return state

    def load_history(self, user_id: str, state: LevelsGameState, today: DayLike) -> LevelHistory:
        """Load entries and goals from the earlier of the two level start dates."""
        start = min(state.presence_level_start_date, state.productivity_level_start_date)
        goal_start = state.productivity_level_start_date
        end = day_key(today)
        return LevelHistory(
            entries=self.store.load_entries(user_id, start, end),
            daily_goals=self.store.load_goals(user_id, "daily", day_key(goal_start), end),
            weekly_goals=self.store.load_goals(user_id, "weekly", week_key(goal_start), week_key(end)),
            monthly_goals=self.store.load_goals(user_id, "monthly", month_key(goal_start), month_key(end)),
        )

    def evaluate(self, user_id: str, today: Optional[DayLike] = None) -> LevelsEvaluation:
        today_str = day_key(today) if today else today_key()

        with self._user_lock(user_id):
            state = self.get_or_create_state(user_id, today_str)
            history = self.load_history(user_id, state, today_str)
            new_state, presence_up, productivity_up = apply_level_ups(state, history, today_str)

            if new_state != state:
                self.store.save_level_state(user_id, new_state)
                log_event(
                    "info",
                    "levels.level_up",
                    user_id=user_id,
                    event_type="level_up",
                    extra={
                        "presence_level": new_state.presence_level,
                        "productivity_level": new_state.productivity_level,
                        "presence_leveled_up": presence_up,
                        "productivity_leveled_up": productivity_up,
                    },
                )

        presence, productivity = compute_progress(new_state, history)
        return LevelsEvaluation(
            state=new_state,
            presence_progress=presence,
            productivity_progress=productivity,
            presence_leveled_up=presence_up,
            productivity_leveled_up=productivity_up,
        )


_service: Optional[LevelsService] = None


def get_levels_service() -> LevelsService:
    """Shared service bound to the active tracker store, so per-user locks are shared too."""
    global _service
    store = get_tracker_store()
    if _service is None or _service.store is not store:
        _service = LevelsService(store)
    return _service
