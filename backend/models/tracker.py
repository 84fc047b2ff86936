"""
backend/models/tracker.py
Tracker records: frozen pydantic models, validated on construction.

Constraint failures surface as the app's ValidationError (or
InvalidDateKeyError for malformed keys), so services and the API never see
pydantic's own error type.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from backend.core.dates import parse_day_key, validate_month_key, validate_week_key
from backend.core.errors import ValidationError, validation_error_from

VoteValue = Literal["yes", "no"]
GoalType = Literal["daily", "weekly", "monthly"]
ActionCategory = Literal["social", "productivity", "presence"]

ACTION_CATEGORIES = ("social", "productivity", "presence")

MIN_LEVEL = 1
MAX_LEVEL = 5


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid4())


def parse_clock(value: str, name: str = "time") -> tuple[int, int]:
    """Parse an HH:MM string into (hour, minute)."""
    try:
        hour_text, minute_text = value.split(":")
        hour, minute = int(hour_text), int(minute_text)
    except (AttributeError, ValueError):
        raise ValidationError(f"{name} must be HH:MM, got {value!r}") from None
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValidationError(f"{name} must be HH:MM, got {value!r}")
    return hour, minute


class Record(BaseModel):
    model_config = ConfigDict(frozen=True)

    def __init__(self, **data: Any):
        try:
            super().__init__(**data)
        except PydanticValidationError as exc:
            raise validation_error_from(exc) from None

    def with_changes(self, **changes: Any):
        """Copy with `changes` applied; the copy is validated like a new record."""
        return type(self)(**{**self.model_dump(), **changes})


def _day_key(value: str) -> str:
    parse_day_key(value)
    return value


def _not_blank(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


Score = Optional[int]


class DailyVote(Record):
    """The daily identity vote. One per user per day, keyed by date."""

    date: str
    vote: VoteValue
    note: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)

    check_date = field_validator("date")(_day_key)


class DailyEntry(Record):
    """
    Per-day scores. Every measured field is optional: None means "not
    measured" and is excluded from averages, never counted as zero.
    """

    date: str
    presence_score: Score = Field(default=None, ge=1, le=10)
    productivity_score: Score = Field(default=None, ge=1, le=10)
    deep_work_sets: Optional[int] = Field(default=None, ge=0)
    time_waster_minutes: Optional[int] = Field(default=None, ge=0)
    timestamp: datetime = Field(default_factory=utc_now)

    check_date = field_validator("date")(_day_key)


class Goal(Record):
    """A goal whose `date` is a day, ISO week or month key depending on type."""

    id: str
    type: GoalType
    title: str
    date: str
    completed: bool = False
    created_at: datetime = Field(default_factory=utc_now)

    check_title = field_validator("title")(_not_blank)

    @model_validator(mode="after")
    def check_period_key(self) -> "Goal":
        if self.type == "daily":
            parse_day_key(self.date)
        elif self.type == "weekly":
            validate_week_key(self.date)
        else:
            validate_month_key(self.date)
        return self


class FiveSecondRuleAction(Record):
    id: str
    date: str
    category: ActionCategory
    note: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)

    check_date = field_validator("date")(_day_key)


class Habit(Record):
    id: str
    name: str
    category: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    archived: bool = False

    check_name = field_validator("name")(_not_blank)


class HabitCompletion(Record):
    habit_id: str
    date: str
    completed: bool
    timestamp: datetime = Field(default_factory=utc_now)

    check_date = field_validator("date")(_day_key)

    @computed_field
    @property
    def id(self) -> str:
        return f"{self.habit_id}_{self.date}"


class LevelsGameState(Record):
    """Singleton per user; only a level-up decision mutates it."""

    presence_level: int = Field(ge=MIN_LEVEL, le=MAX_LEVEL)
    presence_level_start_date: str
    productivity_level: int = Field(ge=MIN_LEVEL, le=MAX_LEVEL)
    productivity_level_start_date: str

    check_dates = field_validator("presence_level_start_date", "productivity_level_start_date")(_day_key)

    @classmethod
    def initial(cls, today: str) -> "LevelsGameState":
        return cls(
            presence_level=MIN_LEVEL,
            presence_level_start_date=today,
            productivity_level=MIN_LEVEL,
            productivity_level_start_date=today,
        )


CLOCK_FIELDS = (
    "morning_reminder_time",
    "midday_reminder_time",
    "evening_reminder_time",
    "hourly_notification_start_time",
    "hourly_notification_end_time",
)


class UserSettings(Record):
    identity: str
    notifications_enabled: bool = True
    morning_reminder_time: str = "07:00"
    midday_reminder_time: str = "12:00"
    evening_reminder_time: str = "20:00"
    hourly_notifications_enabled: bool = False
    hourly_notification_start_time: str = "09:00"
    hourly_notification_end_time: str = "17:00"
    hourly_notification_message: str = "5, 4, 3, 2, 1... Choose presence right now."

    @field_validator(*CLOCK_FIELDS)
    @classmethod
    def check_clock(cls, value: str, info) -> str:
        parse_clock(value, info.field_name)
        return value
