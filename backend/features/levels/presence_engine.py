"""
Presence Level Engine

Pure, deterministic evaluation of the presence levels game.
No external calls, no side effects.

Row N of PRESENCE_LEVELS describes what it takes to reach level N, so a
user at level L is measured against PRESENCE_LEVELS[L]. Row 1 is the
starting tier; the last row is also what level 5 shows as progress.
Days without a presence score are not measured and do not count.
"""

from typing import Iterable, List

from backend.core.dates import DayLike, day_key
from backend.features.levels.metrics import mean, round_half_up
from backend.models.levels import PresenceLevelProgress, PresenceLevelRequirement
from backend.models.tracker import MAX_LEVEL, DailyEntry

PRESENCE_LEVELS = (
    PresenceLevelRequirement(1, required_days=7, min_average_score=0, description="Log presence for 7 days"),
    PresenceLevelRequirement(2, required_days=7, min_average_score=9, description="Presence for 7 days with average >= 9"),
    PresenceLevelRequirement(3, required_days=14, min_average_score=9, description="Presence for 14 days with average >= 9"),
    PresenceLevelRequirement(4, required_days=28, min_average_score=9, description="Presence for 28 days with average >= 9"),
    PresenceLevelRequirement(5, required_days=28, min_average_score=10, description="Presence for 28 days with average = 10"),
)


class PresenceLevelEngine:
    """Pure presence level progress and level-up decisions."""

    @staticmethod
    def requirement_for(current_level: int) -> PresenceLevelRequirement:
        """Requirement for reaching the next level, clamped to the last row at level 5."""
        index = min(max(current_level, 1), MAX_LEVEL - 1)
        return PRESENCE_LEVELS[index]

    @staticmethod
    def qualifying_entries(entries: Iterable[DailyEntry], level_start_date: DayLike) -> List[DailyEntry]:
        start = day_key(level_start_date)
        return [e for e in entries if e.date >= start and e.presence_score is not None]

    @staticmethod
    def progress(
        entries: Iterable[DailyEntry],
        current_level: int,
        level_start_date: DayLike,
    ) -> PresenceLevelProgress:
        qualifying = PresenceLevelEngine.qualifying_entries(entries, level_start_date)
        average = mean(e.presence_score for e in qualifying) or 0.0
        requirement = PresenceLevelEngine.requirement_for(current_level)

        return PresenceLevelProgress(
            current_level=current_level,
            days_at_current_level=len(qualifying),
            average_score=round_half_up(average, 1),
            required_days=requirement.required_days,
            required_score=requirement.min_average_score,
        )

    @staticmethod
    def should_level_up(
        entries: Iterable[DailyEntry],
        current_level: int,
        level_start_date: DayLike,
    ) -> bool:
        if current_level >= MAX_LEVEL:
            return False

        requirement = PresenceLevelEngine.requirement_for(current_level)
        qualifying = PresenceLevelEngine.qualifying_entries(entries, level_start_date)
        if len(qualifying) < requirement.required_days:
            return False

        average = mean(e.presence_score for e in qualifying)
        return average is not None and average >= requirement.min_average_score
