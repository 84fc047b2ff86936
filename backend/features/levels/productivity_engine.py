"""
Productivity ("Character 9") Level Engine

Pure, deterministic evaluation of the productivity levels game.
No external calls, no side effects.

Two deliberately different views of the same window:
- progress(): informative. Every entry since the level start counts as a
  day, and each metric is averaged over the entries that carry it.
- should_level_up(): strict. Only entries carrying productivity, presence
  AND deep-work sets count toward the day quota, and the time-waster
  ceiling needs its own full quota of measured days.

Row N of PRODUCTIVITY_LEVELS describes what it takes to reach level N; a
user at level L is measured against PRODUCTIVITY_LEVELS[L].
"""

from typing import Dict, Iterable, List, Sequence

from backend.core.dates import DayLike, day_key, month_key, week_key
from backend.features.levels.metrics import completion_rate, mean, round_half_up
from backend.models.levels import (
    ProductivityLevelProgress,
    ProductivityLevelRequirement,
    ProductivityRequirements,
)
from backend.models.tracker import MAX_LEVEL, DailyEntry, Goal, GoalType

PRODUCTIVITY_LEVELS = (
    ProductivityLevelRequirement(
        level=1,
        required_days=3,
        min_productivity_score=2,
        min_presence_score=2,
        min_sets_per_day=12,
        max_time_waster_minutes=None,
        requires_daily_goals=False,
        requires_weekly_goals=False,
        requires_monthly_goals=False,
        description="Productivity >= 2, presence >= 2, 12+ sets/day for 3 days",
    ),
    ProductivityLevelRequirement(
        level=2,
        required_days=7,
        min_productivity_score=2,
        min_presence_score=2,
        min_sets_per_day=12,
        max_time_waster_minutes=30,
        requires_daily_goals=True,
        requires_weekly_goals=False,
        requires_monthly_goals=False,
        description="Level 1 + time wasters <= 30 min + daily goals for 7 days",
    ),
    ProductivityLevelRequirement(
        level=3,
        required_days=14,
        min_productivity_score=2,
        min_presence_score=2,
        min_sets_per_day=12,
        max_time_waster_minutes=30,
        requires_daily_goals=True,
        requires_weekly_goals=True,
        requires_monthly_goals=False,
        description="Level 2 + weekly goals for 14 days",
    ),
    ProductivityLevelRequirement(
        level=4,
        required_days=28,
        min_productivity_score=2,
        min_presence_score=2,
        min_sets_per_day=12,
        max_time_waster_minutes=30,
        requires_daily_goals=True,
        requires_weekly_goals=True,
        requires_monthly_goals=True,
        description="Level 3 + monthly goals for 28 days",
    ),
    ProductivityLevelRequirement(
        level=5,
        required_days=28,
        min_productivity_score=3,
        min_presence_score=3,
        min_sets_per_day=12,
        max_time_waster_minutes=30,
        requires_daily_goals=True,
        requires_weekly_goals=True,
        requires_monthly_goals=True,
        description="Level 4 + productivity >= 3, presence >= 3 for 28 days",
    ),
)


def goal_window_key(goal_type: GoalType, level_start_date: DayLike) -> str:
    """Left edge of the goal window expressed in the cadence's own key format."""
    if goal_type == "daily":
        return day_key(level_start_date)
    if goal_type == "weekly":
        return week_key(level_start_date)
    return month_key(level_start_date)


def goals_in_window(goals: Iterable[Goal], goal_type: GoalType, level_start_date: DayLike) -> List[Goal]:
    start = goal_window_key(goal_type, level_start_date)
    return [g for g in goals if g.date >= start]


class ProductivityLevelEngine:
    """Pure productivity level progress and level-up decisions."""

    @staticmethod
    def requirement_for(current_level: int) -> ProductivityLevelRequirement:
        """Requirement for reaching the next level, clamped to the last row at level 5."""
        index = min(max(current_level, 1), MAX_LEVEL - 1)
        return PRODUCTIVITY_LEVELS[index]

    @staticmethod
    def window(entries: Iterable[DailyEntry], level_start_date: DayLike) -> List[DailyEntry]:
        start = day_key(level_start_date)
        return [e for e in entries if e.date >= start]

    @staticmethod
    def progress(
        entries: Iterable[DailyEntry],
        daily_goals: Iterable[Goal],
        weekly_goals: Iterable[Goal],
        monthly_goals: Iterable[Goal],
        current_level: int,
        level_start_date: DayLike,
    ) -> ProductivityLevelProgress:
        window = ProductivityLevelEngine.window(entries, level_start_date)

        # Independent denominators: each metric only over entries that carry it.
        averages = {
            name: mean(getattr(e, name) for e in window if getattr(e, name) is not None) or 0.0
            for name in ("productivity_score", "presence_score", "deep_work_sets", "time_waster_minutes")
        }

        rates: Dict[str, int] = {}
        for goal_type, goals in (("daily", daily_goals), ("weekly", weekly_goals), ("monthly", monthly_goals)):
            relevant = goals_in_window(goals, goal_type, level_start_date)
            rates[goal_type] = completion_rate(sum(1 for g in relevant if g.completed), len(relevant))

        requirement = ProductivityLevelEngine.requirement_for(current_level)

        return ProductivityLevelProgress(
            current_level=current_level,
            days_at_current_level=len(window),
            average_productivity_score=round_half_up(averages["productivity_score"], 1),
            average_presence_score=round_half_up(averages["presence_score"], 1),
            average_sets_per_day=round_half_up(averages["deep_work_sets"], 1),
            average_time_waster_minutes=int(round_half_up(averages["time_waster_minutes"])),
            daily_goals_achieved_rate=rates["daily"],
            weekly_goals_achieved_rate=rates["weekly"],
            monthly_goals_achieved_rate=rates["monthly"],
            required_days=requirement.required_days,
            requirements=ProductivityRequirements(
                min_productivity_score=requirement.min_productivity_score,
                min_presence_score=requirement.min_presence_score,
                min_sets_per_day=requirement.min_sets_per_day,
                max_time_waster_minutes=requirement.max_time_waster_minutes,
                daily_goals=requirement.requires_daily_goals,
                weekly_goals=requirement.requires_weekly_goals,
                monthly_goals=requirement.requires_monthly_goals,
            ),
        )

    @staticmethod
    def should_level_up(
        entries: Iterable[DailyEntry],
        daily_goals: Iterable[Goal],
        weekly_goals: Iterable[Goal],
        monthly_goals: Iterable[Goal],
        current_level: int,
        level_start_date: DayLike,
    ) -> bool:
        if current_level >= MAX_LEVEL:
            return False

        requirement = ProductivityLevelEngine.requirement_for(current_level)
        window = ProductivityLevelEngine.window(entries, level_start_date)
        if len(window) < requirement.required_days:
            return False

        if not ProductivityLevelEngine._scores_pass(window, requirement):
            return False

        if requirement.max_time_waster_minutes is not None:
            if not ProductivityLevelEngine._time_waster_passes(window, requirement):
                return False

        gates = (
            ("daily", requirement.requires_daily_goals, daily_goals),
            ("weekly", requirement.requires_weekly_goals, weekly_goals),
            ("monthly", requirement.requires_monthly_goals, monthly_goals),
        )
        for goal_type, required, goals in gates:
            if required and not ProductivityLevelEngine._goals_pass(goals, goal_type, level_start_date):
                return False

        return True

    # Gate helpers -------------------------------------------------
    @staticmethod
    def _scores_pass(window: Sequence[DailyEntry], requirement: ProductivityLevelRequirement) -> bool:
        complete = [
            e
            for e in window
            if e.productivity_score is not None
            and e.presence_score is not None
            and e.deep_work_sets is not None
        ]
        if len(complete) < requirement.required_days:
            return False

        if mean(e.productivity_score for e in complete) < requirement.min_productivity_score:
            return False
        if mean(e.presence_score for e in complete) < requirement.min_presence_score:
            return False
        if mean(e.deep_work_sets for e in complete) < requirement.min_sets_per_day:
            return False
        return True

    @staticmethod
    def _time_waster_passes(window: Sequence[DailyEntry], requirement: ProductivityLevelRequirement) -> bool:
        measured = [e.time_waster_minutes for e in window if e.time_waster_minutes is not None]
        if len(measured) < requirement.required_days:
            return False
        return mean(measured) <= requirement.max_time_waster_minutes

    @staticmethod
    def _goals_pass(goals: Iterable[Goal], goal_type: GoalType, level_start_date: DayLike) -> bool:
        relevant = goals_in_window(goals, goal_type, level_start_date)
        # An empty cadence blocks the gate; so does a single open goal.
        return bool(relevant) and all(g.completed for g in relevant)
