from backend.features.streaks.service import compute_habit_streak, compute_streak_info
from backend.models.tracker import DailyVote, HabitCompletion


def _votes(*days, vote="yes"):
    return [DailyVote(date=d, vote=vote) for d in days]


def test_empty_history_is_all_zeros():
    info = compute_streak_info([], "2024-03-14")
    assert info.current_streak == 0
    assert info.longest_streak == 0
    assert info.total_votes == 0


def test_three_consecutive_days_ending_today():
    votes = _votes("2024-03-14", "2024-03-13", "2024-03-12", "2024-03-10")
    info = compute_streak_info(votes, "2024-03-14")
    assert info.current_streak == 3
    assert info.total_votes == 4


def test_open_today_keeps_yesterdays_streak():
    votes = _votes("2024-03-13", "2024-03-12")
    info = compute_streak_info(votes, "2024-03-14")
    assert info.current_streak == 2


def test_no_vote_today_or_yesterday_resets_current():
    votes = _votes("2024-03-12", "2024-03-11", "2024-03-10")
    info = compute_streak_info(votes, "2024-03-14")
    assert info.current_streak == 0
    assert info.longest_streak == 3


def test_no_votes_count_as_participation():
    votes = _votes("2024-03-14", "2024-03-13", vote="no")
    info = compute_streak_info(votes, "2024-03-14")
    assert info.current_streak == 2


def test_input_order_does_not_matter():
    votes = _votes("2024-03-12", "2024-03-14", "2024-03-13")
    assert compute_streak_info(votes, "2024-03-14").current_streak == 3


def test_longest_streak_tracks_best_past_run():
    votes = _votes(
        "2024-03-14",
        "2024-03-01", "2024-03-02", "2024-03-03", "2024-03-04",
        "2024-02-20", "2024-02-21",
    )
    info = compute_streak_info(votes, "2024-03-14")
    assert info.current_streak == 1
    assert info.longest_streak == 4
    assert info.total_votes == 7


def test_longest_includes_run_open_at_end_of_scan():
    votes = _votes("2024-03-14", "2024-01-01", "2024-01-02", "2024-01-03")
    assert compute_streak_info(votes, "2024-03-14").longest_streak == 3


def test_duplicate_dates_do_not_double_count_adjacency():
    votes = _votes("2024-03-14", "2024-03-13") + _votes("2024-03-13", vote="no")
    info = compute_streak_info(votes, "2024-03-14")
    assert info.current_streak == 2
    assert info.longest_streak == 2
    assert info.total_votes == 3


def test_streak_across_month_boundary():
    votes = _votes("2024-03-01", "2024-02-29", "2024-02-28")
    assert compute_streak_info(votes, "2024-03-01").current_streak == 3


def test_habit_streak_only_counts_completed_days_for_that_habit():
    completions = [
        HabitCompletion(habit_id="h1", date="2024-03-13", completed=True),
        HabitCompletion(habit_id="h1", date="2024-03-12", completed=True),
        HabitCompletion(habit_id="h1", date="2024-03-11", completed=False),
        HabitCompletion(habit_id="h2", date="2024-03-14", completed=True),
    ]
    assert compute_habit_streak(completions, "h1", "2024-03-14") == 2
    assert compute_habit_streak(completions, "h2", "2024-03-14") == 1
    assert compute_habit_streak(completions, "missing", "2024-03-14") == 0
