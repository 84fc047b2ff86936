import pytest

from backend.core.config import DEFAULT_IDENTITY_STATEMENT
from backend.core.errors import NotFoundError, ValidationError
from backend.features.tracker.service import TrackerService, five_second_counts, period_key


@pytest.fixture
def service(store):
    return TrackerService(store)


def test_second_vote_same_day_overwrites(service, store, today):
    service.cast_vote("u1", "yes", today=today)
    service.cast_vote("u1", "no", note="slipped", today=today)

    votes = store.load_votes("u1")
    assert len(votes) == 1
    assert votes[0].vote == "no"


def test_invalid_vote_rejected(service, today):
    with pytest.raises(ValidationError):
        service.cast_vote("u1", "maybe", today=today)


def test_entry_updates_merge_fields(service, today):
    service.update_entry("u1", today=today, presence_score=8)
    entry = service.update_entry("u1", today=today, deep_work_sets=14)

    assert entry.presence_score == 8
    assert entry.deep_work_sets == 14
    assert entry.productivity_score is None


def test_entry_validation(service, today):
    with pytest.raises(ValidationError):
        service.update_entry("u1", today=today, presence_score=11)
    with pytest.raises(ValidationError):
        service.update_entry("u1", today=today, time_waster_minutes=-5)
    with pytest.raises(ValidationError):
        service.update_entry("u1", today=today, mood=3)


def test_goal_keys_follow_cadence(service, today):
    assert service.add_goal("u1", "daily", "Write", today=today).date == "2024-03-14"
    assert service.add_goal("u1", "weekly", "Ship", today=today).date == "2024-W11"
    assert service.add_goal("u1", "monthly", "Read", today=today).date == "2024-03"
    with pytest.raises(ValidationError):
        period_key("yearly", today)


def test_toggle_and_delete_goal(service, store, today):
    goal = service.add_goal("u1", "daily", "  Write  ", today=today)
    assert goal.title == "Write"

    assert service.toggle_goal("u1", goal.id).completed is True
    assert service.toggle_goal("u1", goal.id).completed is False

    service.delete_goal("u1", goal.id)
    assert store.get_goal("u1", goal.id) is None
    with pytest.raises(NotFoundError):
        service.toggle_goal("u1", goal.id)


def test_habit_toggle_flips_completion(service, today):
    habit = service.add_habit("u1", "Meditate", category="mind")

    assert service.toggle_habit_completion("u1", habit.id, today=today).completed is True
    assert service.toggle_habit_completion("u1", habit.id, today=today).completed is False
    with pytest.raises(NotFoundError):
        service.toggle_habit_completion("u1", "nope", today=today)


def test_delete_habit_archives(service, store):
    habit = service.add_habit("u1", "Meditate")
    service.delete_habit("u1", habit.id)

    assert store.load_habits("u1") == []
    assert store.get_habit("u1", habit.id).archived is True


def test_five_second_counts_by_category(service, store, today):
    for category in ("social", "social", "presence"):
        service.add_five_second_action("u1", category, today=today)

    counts = five_second_counts(store.load_actions("u1", today, today))
    assert counts == {"social": 2, "productivity": 0, "presence": 1}


def test_settings_default_and_update(service):
    assert service.get_settings("u1").identity == DEFAULT_IDENTITY_STATEMENT

    updated = service.update_settings("u1", hourly_notifications_enabled=True, morning_reminder_time="06:30")
    assert updated.hourly_notifications_enabled is True
    assert service.get_settings("u1").morning_reminder_time == "06:30"

    with pytest.raises(ValidationError):
        service.update_settings("u1", morning_reminder_time="25:00")
    with pytest.raises(ValidationError):
        service.update_settings("u1", theme="dark")
