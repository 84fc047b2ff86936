"""Small numeric helpers shared by the level engines."""

import math
from typing import Iterable, Optional


def mean(values: Iterable[float]) -> Optional[float]:
    """Arithmetic mean, or None for an empty series."""
    items = list(values)
    if not items:
        return None
    return sum(items) / len(items)


def round_half_up(value: float, digits: int = 0) -> float:
    """Round half away from zero for non-negative values (2.25 -> 2.3, 2.5 -> 3)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def completion_rate(completed: int, total: int) -> int:
    """Percentage 0..100, 0 when there is nothing to complete."""
    if total <= 0:
        return 0
    return int(round_half_up(completed / total * 100))
