from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query

from backend.core.dates import day_key, today_key
from backend.features.levels.service import get_levels_service

router = APIRouter()


@router.get("/v1/levels")
def get_levels(
    user_id: str = Query(..., min_length=1),
    today: Optional[str] = Query(None, description="Override the current day (YYYY-MM-DD)"),
):
    """Evaluate both level engines, persist any level-up, return state and progress."""
    evaluation = get_levels_service().evaluate(user_id, day_key(today) if today else today_key())
    return evaluation.to_dict()
