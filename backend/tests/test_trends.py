from backend.features.progress.trends import build_weekly_trends, load_trends
from backend.models.tracker import DailyEntry, FiveSecondRuleAction, Habit, HabitCompletion

DATES = ["2024-03-11", "2024-03-12", "2024-03-13"]


def test_missing_scores_stay_null_and_counts_default_to_zero():
    entries = [DailyEntry(date="2024-03-12", presence_score=7, productivity_score=6, deep_work_sets=13)]
    trends = build_weekly_trends(DATES, entries, [], [], [])

    assert trends.labels == ["Mon", "Tue", "Wed"]
    assert trends.presence_scores == [None, 7, None]
    assert trends.productivity_scores == [None, 6, None]
    assert trends.deep_work_sets == [0, 13, 0]
    assert trends.five_second_rule_totals == {"social": 0, "productivity": 0, "presence": 0}


def test_five_second_series_and_totals_ignore_out_of_window_actions():
    actions = [
        FiveSecondRuleAction(id="1", date="2024-03-11", category="social"),
        FiveSecondRuleAction(id="2", date="2024-03-13", category="presence"),
        FiveSecondRuleAction(id="3", date="2024-03-13", category="presence"),
        FiveSecondRuleAction(id="4", date="2024-03-01", category="productivity"),
    ]
    trends = build_weekly_trends(DATES, [], actions, [], [])

    assert trends.five_second_rule_social == [1, 0, 0]
    assert trends.five_second_rule_presence == [0, 0, 2]
    assert trends.five_second_rule_totals == {"social": 1, "productivity": 0, "presence": 2}


def test_habit_completion_rates_use_active_habits_only():
    habits = [Habit(id="h1", name="Read"), Habit(id="h2", name="Run"), Habit(id="h3", name="Old", archived=True)]
    completions = [
        HabitCompletion(habit_id="h1", date="2024-03-11", completed=True),
        HabitCompletion(habit_id="h2", date="2024-03-11", completed=True),
        HabitCompletion(habit_id="h1", date="2024-03-12", completed=True),
        HabitCompletion(habit_id="h2", date="2024-03-12", completed=False),
        HabitCompletion(habit_id="h3", date="2024-03-13", completed=True),
    ]
    trends = build_weekly_trends(DATES, [], [], habits, completions)

    assert trends.habit_completion_rates == [100, 50, 0]


def test_load_trends_reads_window_from_store(store):
    store.save_entry("u1", DailyEntry(date="2024-03-14", presence_score=9))
    store.save_entry("u1", DailyEntry(date="2024-02-01", presence_score=2))

    trends = load_trends(store, "u1", days=30, today="2024-03-14")

    assert len(trends.dates) == 30
    assert trends.dates[-1] == "2024-03-14"
    assert trends.presence_scores[-1] == 9
    assert 2 not in trends.presence_scores
