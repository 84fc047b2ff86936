from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, List, Optional, Set

from backend.core.dates import DayLike, as_date, today as current_day
from backend.models.streak import StreakInfo
from backend.models.tracker import DailyVote, HabitCompletion


def compute_streak_info(votes: Iterable[DailyVote], today: Optional[DayLike] = None) -> StreakInfo:
    """
    Derive current/longest streak and total votes from an unordered vote history.

    A streak measures participation: "yes" and "no" votes both count.
    Duplicate dates are treated as a single day.
    """
    records = list(votes)
    if not records:
        return StreakInfo.empty()

    ordered = sorted(records, key=lambda v: v.date, reverse=True)
    days = [as_date(v.date) for v in ordered]
    anchor = as_date(today) if today is not None else current_day()

    return StreakInfo(
        current_streak=_current_run(set(days), anchor),
        longest_streak=_longest_run(days),
        total_votes=len(records),
    )


def compute_habit_streak(
    completions: Iterable[HabitCompletion],
    habit_id: str,
    today: Optional[DayLike] = None,
) -> int:
    """Current streak of completed days for one habit, same grace rule as votes."""
    days = {as_date(c.date) for c in completions if c.habit_id == habit_id and c.completed}
    anchor = as_date(today) if today is not None else current_day()
    return _current_run(days, anchor)


def _current_run(days: Set[date], today: date) -> int:
    # An open "today" does not break an otherwise unbroken streak.
    if today in days:
        cursor = today
    elif today - timedelta(days=1) in days:
        cursor = today - timedelta(days=1)
    else:
        return 0

    run = 0
    while cursor in days:
        run += 1
        cursor -= timedelta(days=1)
    return run


def _longest_run(days_desc: List[date]) -> int:
    longest = 0
    run = 0
    previous: Optional[date] = None
    for day in days_desc:
        if previous is None:
            run = 1
        else:
            gap = (previous - day).days
            if gap == 0:
                continue
            if gap == 1:
                run += 1
            else:
                longest = max(longest, run)
                run = 1
        previous = day
    return max(longest, run)
