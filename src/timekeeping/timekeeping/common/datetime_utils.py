from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta

from ..core.constants import MINUTES_PER_DAY, WORK_DAY_BOUNDARY_HOUR
from ..core.exceptions import ValidationError

HHMM_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date {value!r} (expected YYYY-MM-DD)")


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into naive local time.

    Stored timestamps carry no zone, so an explicit offset (or a trailing
    'Z') is converted to the server's local time and then dropped.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            text = value.strip()
            if text.endswith(("Z", "z")):
                text = text[:-1] + "+00:00"
            parsed = datetime.fromisoformat(text)
        except (AttributeError, ValueError):
            raise ValidationError(f"Invalid timestamp {value!r}")
    return to_naive_local(parsed)


def to_naive_local(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts
    return ts.astimezone().replace(tzinfo=None)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier. Engine code never calls
    it implicitly; callers pass the timestamp in.
    """
    return datetime.now()


def time_to_minutes(value: str) -> int:
    """Convert an HH:MM string into minutes since midnight (no day wrap)."""
    if not isinstance(value, str) or not HHMM_PATTERN.match(value.strip()):
        raise ValidationError(f"Invalid time {value!r} (expected HH:MM)")
    hours, minutes = value.strip().split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    minutes = int(minutes) % MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def work_day_date(ts: datetime) -> date:
    """Work day a timestamp belongs to.

    Timestamps before the boundary hour are grouped with the previous
    calendar day so that night shifts stay in a single work day.
    """
    day = ts.date()
    if ts.hour < WORK_DAY_BOUNDARY_HOUR:
        day -= timedelta(days=1)
    return day


def window_for_date(day: date, tzinfo=None) -> tuple[datetime, datetime]:
    """Half-open 24h window of work day ``day``, opening at the boundary hour."""
    start = datetime.combine(day, time(WORK_DAY_BOUNDARY_HOUR), tzinfo=tzinfo)
    return start, start + timedelta(days=1)


def work_day_start(ts: datetime) -> datetime:
    return window_for_date(work_day_date(ts), ts.tzinfo)[0]


def work_day_window(ts: datetime) -> tuple[datetime, datetime]:
    """Window of the work day ``ts`` belongs to; it always contains ``ts``."""
    return window_for_date(work_day_date(ts), ts.tzinfo)


def end_of_day(ts: datetime) -> datetime:
    """23:59:59.999 on the calendar day of ``ts``."""
    return datetime.combine(ts.date(), time(23, 59, 59, 999000), tzinfo=ts.tzinfo)


def whole_minutes(delta: timedelta) -> int:
    return int(delta.total_seconds() // 60)


def require_week_start(value: date) -> date:
    """Weekly assignments are keyed by the Monday that opens the week."""
    if isinstance(value, datetime):
        value = value.date()
    if value.weekday() != 0:
        raise ValidationError(f"Week start {value.isoformat()} is not a Monday")
    return value
