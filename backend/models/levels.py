"""
Levels game models.

Requirement rows are plain frozen dataclasses (static tables); progress
snapshots are frozen pydantic read models returned to callers and the API.
"""

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class PresenceLevelRequirement:
    level: int
    required_days: int
    min_average_score: float
    description: str


@dataclass(frozen=True)
class ProductivityLevelRequirement:
    level: int
    required_days: int
    min_productivity_score: float
    min_presence_score: float
    min_sets_per_day: float
    max_time_waster_minutes: Optional[float]
    requires_daily_goals: bool
    requires_weekly_goals: bool
    requires_monthly_goals: bool
    description: str


class PresenceLevelProgress(BaseModel):
    model_config = ConfigDict(frozen=True)

    current_level: int = Field(ge=1, le=5)
    days_at_current_level: int = Field(ge=0, description="Entries with a presence score since level start")
    average_score: float = Field(ge=0, description="Average presence score, one decimal")
    required_days: int = Field(ge=0)
    required_score: float = Field(ge=0)


class ProductivityRequirements(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_productivity_score: float
    min_presence_score: float
    min_sets_per_day: float
    max_time_waster_minutes: Optional[float] = None
    daily_goals: bool
    weekly_goals: bool
    monthly_goals: bool


class ProductivityLevelProgress(BaseModel):
    model_config = ConfigDict(frozen=True)

    current_level: int = Field(ge=1, le=5)
    days_at_current_level: int = Field(ge=0, description="All entries since level start")
    average_productivity_score: float = Field(ge=0)
    average_presence_score: float = Field(ge=0)
    average_sets_per_day: float = Field(ge=0)
    average_time_waster_minutes: int = Field(ge=0)
    daily_goals_achieved_rate: int = Field(ge=0, le=100, description="Percent of daily goals completed")
    weekly_goals_achieved_rate: int = Field(ge=0, le=100)
    monthly_goals_achieved_rate: int = Field(ge=0, le=100)
    required_days: int = Field(ge=0)
    requirements: ProductivityRequirements
