from __future__ import annotations

from fastapi import APIRouter, Query

from backend.core.dates import now
from backend.features.reminders.scheduler import plan_reminders
from backend.features.tracker.service import TrackerService, get_tracker_store

router = APIRouter()


@router.get("/v1/reminders/plan")
def get_reminder_plan(user_id: str = Query(..., min_length=1)):
    """Next fire time for every enabled reminder, soonest first."""
    user_settings = TrackerService(get_tracker_store()).get_settings(user_id)
    return {
        "reminders": [
            {"kind": r.kind, "fire_at": r.fire_at.isoformat(), "title": r.title, "body": r.body}
            for r in plan_reminders(user_settings, now())
        ]
    }
