import pydantic
import pytest

from backend.core.errors import InvalidDateKeyError, ValidationError
from backend.models.tracker import (
    DailyEntry,
    DailyVote,
    Goal,
    Habit,
    HabitCompletion,
    LevelsGameState,
    UserSettings,
)


def test_scores_are_bounded():
    assert DailyEntry(date="2024-03-14", presence_score=10).presence_score == 10
    with pytest.raises(ValidationError) as exc:
        DailyEntry(date="2024-03-14", presence_score=11)
    assert exc.value.code == "validation_error"
    assert "presence_score" in exc.value.message
    with pytest.raises(ValidationError):
        DailyEntry(date="2024-03-14", productivity_score=0)
    with pytest.raises(ValidationError):
        DailyEntry(date="2024-03-14", deep_work_sets=-1)


def test_malformed_day_key_keeps_its_error_code():
    with pytest.raises(InvalidDateKeyError) as exc:
        DailyVote(date="2024-3-14", vote="yes")
    assert exc.value.code == "invalid_date_key"


def test_vote_and_category_values_are_closed():
    with pytest.raises(ValidationError):
        DailyVote(date="2024-03-14", vote="maybe")


def test_goal_key_follows_its_type():
    assert Goal(id="g", type="weekly", title="Ship", date="2024-W11").date == "2024-W11"
    with pytest.raises(InvalidDateKeyError):
        Goal(id="g", type="weekly", title="Ship", date="2024-03-14")
    with pytest.raises(InvalidDateKeyError):
        Goal(id="g", type="monthly", title="Read", date="2024-13")
    with pytest.raises(ValidationError):
        Goal(id="g", type="yearly", title="Read", date="2024")


def test_blank_names_are_rejected():
    with pytest.raises(ValidationError):
        Goal(id="g", type="daily", title="   ", date="2024-03-14")
    with pytest.raises(ValidationError):
        Habit(id="h", name="")


def test_levels_are_bounded():
    state = LevelsGameState.initial("2024-03-01")
    with pytest.raises(ValidationError):
        state.with_changes(presence_level=6)
    with pytest.raises(InvalidDateKeyError):
        state.with_changes(productivity_level_start_date="yesterday")


def test_with_changes_revalidates_and_leaves_original_untouched():
    entry = DailyEntry(date="2024-03-14", presence_score=7)
    updated = entry.with_changes(deep_work_sets=12)

    assert updated.presence_score == 7
    assert updated.deep_work_sets == 12
    assert entry.deep_work_sets is None
    with pytest.raises(ValidationError):
        entry.with_changes(presence_score=42)


def test_records_are_frozen():
    entry = DailyEntry(date="2024-03-14")
    with pytest.raises(pydantic.ValidationError):
        entry.presence_score = 5


def test_completion_id_is_derived():
    completion = HabitCompletion(habit_id="h1", date="2024-03-14", completed=True)
    assert completion.id == "h1_2024-03-14"
    assert completion.model_dump()["id"] == "h1_2024-03-14"


def test_settings_clock_fields():
    assert UserSettings(identity="me", evening_reminder_time="21:15").evening_reminder_time == "21:15"
    with pytest.raises(ValidationError) as exc:
        UserSettings(identity="me", morning_reminder_time="25:00")
    assert "morning_reminder_time" in exc.value.message
