"""
Record endpoints: votes, daily entries, five second rule actions, goals,
habits and settings. Every route takes an explicit user_id; an optional
`today` override keeps the day boundary deterministic for clients and tests.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from backend.features.tracker.service import TrackerService, get_tracker_store
from backend.models.tracker import ActionCategory, GoalType, VoteValue

router = APIRouter(prefix="/v1")


def _service() -> TrackerService:
    return TrackerService(get_tracker_store())


class VoteRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    vote: VoteValue
    note: Optional[str] = None
    today: Optional[str] = None


class EntryRequest(BaseModel):
    """Ranges are enforced by DailyEntry."""

    user_id: str = Field(..., min_length=1)
    presence_score: Optional[int] = None
    productivity_score: Optional[int] = None
    deep_work_sets: Optional[int] = None
    time_waster_minutes: Optional[int] = None
    today: Optional[str] = None


class ActionRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    category: ActionCategory
    note: Optional[str] = None
    today: Optional[str] = None


class GoalRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    type: GoalType
    title: str = Field(..., min_length=1)
    today: Optional[str] = None


class HabitRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    category: Optional[str] = None


class HabitUpdate(BaseModel):
    user_id: str = Field(..., min_length=1)
    name: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = None
    archived: Optional[bool] = None


class SettingsUpdate(BaseModel):
    user_id: str = Field(..., min_length=1)
    identity: Optional[str] = None
    notifications_enabled: Optional[bool] = None
    morning_reminder_time: Optional[str] = None
    midday_reminder_time: Optional[str] = None
    evening_reminder_time: Optional[str] = None
    hourly_notifications_enabled: Optional[bool] = None
    hourly_notification_start_time: Optional[str] = None
    hourly_notification_end_time: Optional[str] = None
    hourly_notification_message: Optional[str] = None


@router.post("/votes")
def cast_vote(body: VoteRequest):
    return _service().cast_vote(body.user_id, body.vote, note=body.note, today=body.today)


@router.post("/entries")
def update_entry(body: EntryRequest):
    """Merge the provided scores into the day's entry; omitted fields are left alone."""
    fields = body.model_dump(exclude_unset=True, exclude={"user_id", "today"})
    return _service().update_entry(body.user_id, today=body.today, **fields)


@router.post("/actions")
def add_action(body: ActionRequest):
    return _service().add_five_second_action(body.user_id, body.category, note=body.note, today=body.today)


@router.post("/goals")
def add_goal(body: GoalRequest):
    return _service().add_goal(body.user_id, body.type, body.title, today=body.today)


@router.post("/goals/{goal_id}/toggle")
def toggle_goal(goal_id: str, user_id: str = Query(..., min_length=1)):
    return _service().toggle_goal(user_id, goal_id)


@router.delete("/goals/{goal_id}")
def delete_goal(goal_id: str, user_id: str = Query(..., min_length=1)):
    _service().delete_goal(user_id, goal_id)
    return {"deleted": goal_id}


@router.post("/habits")
def add_habit(body: HabitRequest):
    return _service().add_habit(body.user_id, body.name, category=body.category)


@router.patch("/habits/{habit_id}")
def update_habit(habit_id: str, body: HabitUpdate):
    updates = body.model_dump(exclude_unset=True, exclude={"user_id"})
    return _service().update_habit(body.user_id, habit_id, **updates)


@router.delete("/habits/{habit_id}")
def delete_habit(habit_id: str, user_id: str = Query(..., min_length=1)):
    """Archive the habit; its completion history is kept."""
    return _service().delete_habit(user_id, habit_id)


@router.post("/habits/{habit_id}/toggle")
def toggle_habit(
    habit_id: str,
    user_id: str = Query(..., min_length=1),
    today: Optional[str] = Query(None),
):
    completion = _service().toggle_habit_completion(user_id, habit_id, today=today)
    return {"id": completion.id, "habit_id": completion.habit_id, "date": completion.date, "completed": completion.completed}


@router.get("/settings")
def get_settings(user_id: str = Query(..., min_length=1)):
    return _service().get_settings(user_id)


@router.put("/settings")
def update_settings(body: SettingsUpdate):
    updates = body.model_dump(exclude_unset=True, exclude_none=True, exclude={"user_id"})
    return _service().update_settings(body.user_id, **updates)
