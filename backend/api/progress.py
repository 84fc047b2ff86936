from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query

from backend.core.dates import day_key, today_key
from backend.core.errors import ValidationError
from backend.features.progress.loader import load_dashboard
from backend.features.progress.trends import load_trends
from backend.features.tracker.service import get_tracker_store

router = APIRouter()

TREND_WINDOWS = (7, 30)


@router.get("/v1/progress/dashboard")
async def get_dashboard(
    user_id: str = Query(..., min_length=1),
    today: Optional[str] = Query(None),
):
    snapshot = await load_dashboard(get_tracker_store(), user_id, day_key(today) if today else today_key())
    return snapshot.to_dict()


@router.get("/v1/progress/trends")
def get_trends(
    user_id: str = Query(..., min_length=1),
    days: int = Query(7),
    today: Optional[str] = Query(None),
):
    """Per-day chart series for the last 7 or 30 days, oldest first."""
    if days not in TREND_WINDOWS:
        raise ValidationError(f"days must be one of {TREND_WINDOWS}, got {days}")
    return load_trends(get_tracker_store(), user_id, days, day_key(today) if today else today_key()).model_dump()
