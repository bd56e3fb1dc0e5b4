"""Time-of-day interval arithmetic for shifts.

Night shifts are split at midnight into same-day pieces before comparing,
so ``22:00-06:00`` is treated as ``[22:00, 24:00) + [00:00, 06:00)``.
"""

from __future__ import annotations

from typing import Optional

from ..common.datetime_utils import time_to_minutes
from ..core.constants import MINUTES_PER_DAY

Interval = tuple[int, int]


def is_valid_shift_range(start: str, end: str) -> bool:
    """Any non-empty span is valid; only ``start == end`` is rejected."""
    return time_to_minutes(start) != time_to_minutes(end)


def split_interval(start_min: int, end_min: int) -> list[Interval]:
    if end_min > start_min:
        return [(start_min, end_min)]
    pieces = [(start_min, MINUTES_PER_DAY)]
    if end_min > 0:
        pieces.append((0, end_min))
    return pieces


def shift_intervals(start: str, end: str) -> list[Interval]:
    return split_interval(time_to_minutes(start), time_to_minutes(end))


def overlaps(a_start: str, a_end: str, b_start: str, b_end: str) -> bool:
    """Half-open overlap test; touching ranges (``09-13`` and ``13-17``) do not overlap."""
    for s1, e1 in shift_intervals(a_start, a_end):
        for s2, e2 in shift_intervals(b_start, b_end):
            if s1 < e2 and s2 < e1:
                return True
    return False


def duration_minutes(start: str, end: str, break_minutes: Optional[int] = 0) -> int:
    """Paid span of a shift, wrapping past midnight for night shifts."""
    total = sum(e - s for s, e in shift_intervals(start, end))
    return max(0, total - int(break_minutes or 0))
