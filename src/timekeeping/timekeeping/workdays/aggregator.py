"""Single-pass reduction of a work day's punches into worked/break/overtime.

Policy notes:
- BREAK closes the open work interval; RESUME reopens it.
- A break that is never resumed counts until 23:59:59.999 of the day it
  started.
- Break time is subtracted from the raw worked total.
- Minutes are accumulated exactly and floored once at the end.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional, Sequence

from ..common.datetime_utils import end_of_day, whole_minutes
from ..core.constants import REGULAR_DAY_MINUTES
from ..core.enums import PunchType
from ..punches.model import PunchEvent, order_punches
from .model import WorkDayTotals


def aggregate_punches(punches: Sequence[PunchEvent]) -> Optional[WorkDayTotals]:
    """Return the day's totals, or ``None`` when there is nothing to aggregate."""
    ordered = order_punches(punches)
    if not ordered:
        return None

    worked = timedelta(0)
    on_break = timedelta(0)
    in_time: Optional[datetime] = None
    break_start: Optional[datetime] = None

    for p in ordered:
        t = p.timestamp
        if p.punch_type == PunchType.IN:
            in_time = t
        elif p.punch_type == PunchType.OUT:
            if in_time is not None:
                worked += t - in_time
                in_time = None
        elif p.punch_type == PunchType.BREAK:
            if in_time is not None:
                worked += t - in_time
                in_time = None
            if break_start is not None:
                on_break += t - break_start
            break_start = t
        elif p.punch_type == PunchType.RESUME:
            if break_start is not None:
                on_break += t - break_start
                break_start = None
            in_time = t

    if break_start is not None:
        on_break += end_of_day(break_start) - break_start

    break_minutes = max(0, whole_minutes(on_break))
    worked_minutes = max(0, whole_minutes(worked) - break_minutes)
    overtime_minutes = max(0, worked_minutes - REGULAR_DAY_MINUTES)

    return WorkDayTotals(
        start_time=ordered[0].timestamp,
        end_time=ordered[-1].timestamp,
        worked_minutes=worked_minutes,
        break_minutes=break_minutes,
        overtime_minutes=overtime_minutes,
    )
