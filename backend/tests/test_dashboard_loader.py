import logging

import pytest

from backend.core.config import DEFAULT_IDENTITY_STATEMENT
from backend.core.dates import shift_days
from backend.core.logging import LOGGER_NAME
from backend.features.progress.loader import load_dashboard
from backend.features.tracker.store import InMemoryTrackerStore
from backend.models.tracker import (
    DailyEntry,
    DailyVote,
    FiveSecondRuleAction,
    Goal,
    Habit,
    HabitCompletion,
    LevelsGameState,
)

TODAY = "2024-03-14"


class FlakyStore(InMemoryTrackerStore):
    """Fails selected reads to exercise per-fetch isolation."""

    def __init__(self, broken_goal_types=(), votes_broken=False):
        super().__init__()
        self.broken_goal_types = set(broken_goal_types)
        self.votes_broken = votes_broken

    def load_goals(self, user_id, goal_type, start_key, end_key):
        if goal_type in self.broken_goal_types:
            raise ConnectionError("goals backend unavailable")
        return super().load_goals(user_id, goal_type, start_key, end_key)

    def load_votes(self, user_id):
        if self.votes_broken:
            raise TimeoutError("votes timed out")
        return super().load_votes(user_id)


def _seed(store):
    store.save_level_state("u1", LevelsGameState.initial("2024-03-07"))
    for i in range(3):
        day = shift_days(TODAY, -i)
        store.save_vote("u1", DailyVote(date=day, vote="yes"))
        store.save_entry("u1", DailyEntry(date=day, presence_score=8, productivity_score=5, deep_work_sets=10))
    store.save_habit("u1", Habit(id="h1", name="Meditate"))
    store.save_completion("u1", HabitCompletion(habit_id="h1", date=TODAY, completed=True))
    store.save_completion("u1", HabitCompletion(habit_id="h1", date=shift_days(TODAY, -1), completed=True))
    store.add_action("u1", FiveSecondRuleAction(id="a1", date=TODAY, category="social"))
    store.save_goal("u1", Goal(id="d1", type="daily", title="Write", date=TODAY, completed=True))
    store.save_goal("u1", Goal(id="w1", type="weekly", title="Ship", date="2024-W11"))
    store.save_goal("u1", Goal(id="m1", type="monthly", title="Read", date="2024-03"))


@pytest.mark.asyncio
async def test_dashboard_snapshot_for_seeded_user():
    store = InMemoryTrackerStore()
    _seed(store)

    snapshot = await load_dashboard(store, "u1", TODAY)

    assert snapshot.failed_fetches == []
    assert snapshot.streak.current_streak == 3
    assert snapshot.today_vote.vote == "yes"
    assert snapshot.today_entry.presence_score == 8
    assert snapshot.five_second_counts["social"] == 1
    assert snapshot.habit_streaks == {"h1": 2}
    assert [g.id for g in snapshot.weekly_goals] == ["w1"]
    assert snapshot.presence_progress.days_at_current_level == 3
    assert snapshot.productivity_progress.daily_goals_achieved_rate == 100
    assert snapshot.settings.identity == DEFAULT_IDENTITY_STATEMENT


@pytest.mark.asyncio
async def test_failed_fetch_is_isolated_and_logged(caplog):
    store = FlakyStore(broken_goal_types={"weekly"})
    _seed(store)

    with caplog.at_level(logging.WARNING, logger=LOGGER_NAME):
        snapshot = await load_dashboard(store, "u1", TODAY)

    assert snapshot.failed_fetches == ["level_weekly_goals", "weekly_goals"]
    assert snapshot.weekly_goals == []
    assert [g.id for g in snapshot.daily_goals] == ["d1"]
    assert snapshot.streak.current_streak == 3
    assert snapshot.productivity_progress.weekly_goals_achieved_rate == 0
    assert any(r.getMessage() == "progress.fetch_failed" for r in caplog.records)


@pytest.mark.asyncio
async def test_failed_votes_fall_back_to_empty_streak():
    store = FlakyStore(votes_broken=True)
    _seed(store)

    snapshot = await load_dashboard(store, "u1", TODAY)

    assert snapshot.failed_fetches == ["votes"]
    assert snapshot.streak.current_streak == 0
    assert snapshot.today_vote is None


@pytest.mark.asyncio
async def test_dashboard_is_read_only_for_new_users():
    store = InMemoryTrackerStore()

    snapshot = await load_dashboard(store, "new-user", TODAY)

    assert snapshot.level_state == LevelsGameState.initial(TODAY)
    assert store.load_level_state("new-user") is None
    assert snapshot.to_dict()["presence_progress"]["current_level"] == 1
