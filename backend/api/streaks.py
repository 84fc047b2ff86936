from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Query

from backend.core.dates import as_date, day_key, now, today_key
from backend.features.reminders.scheduler import should_show_streak_warning
from backend.features.streaks.service import compute_streak_info
from backend.features.tracker.service import get_tracker_store

router = APIRouter()


@router.get("/v1/streaks/current")
def get_current_streak(
    user_id: str = Query(..., min_length=1),
    today: Optional[str] = Query(None, description="Override the current day (YYYY-MM-DD)"),
):
    """Return the identity-vote streak for a user."""
    today_str = day_key(today) if today else today_key()
    votes = get_tracker_store().load_votes(user_id)
    info = compute_streak_info(votes, today_str)
    last_vote_date = votes[0].date if votes else None
    moment = datetime.combine(as_date(today_str), now().timetz())
    return {
        **info.model_dump(),
        "last_vote_date": last_vote_date,
        "show_warning": should_show_streak_warning(last_vote_date, info.current_streak, moment),
    }
