"""
Vote streak read model. Day-level, derived from the vote history on demand.
"""

from pydantic import BaseModel, ConfigDict, Field


class StreakInfo(BaseModel):
    """Participation streak derived from daily votes (yes or no both count)."""

    model_config = ConfigDict(frozen=True)

    current_streak: int = Field(ge=0, description="Consecutive days ending today (or yesterday)")
    longest_streak: int = Field(ge=0, description="Longest run of consecutive voting days")
    total_votes: int = Field(ge=0, description="Number of vote records")

    @classmethod
    def empty(cls) -> "StreakInfo":
        return cls(current_streak=0, longest_streak=0, total_votes=0)
