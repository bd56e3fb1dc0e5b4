from __future__ import annotations

from datetime import date, datetime

from src.timekeeping.timekeeping.core.enums import PunchType
from src.timekeeping.timekeeping.punches.model import PunchEvent
from src.timekeeping.timekeeping.workdays.aggregator import aggregate_punches

DAY = date(2025, 3, 3)


def _punch(i: int, kind: str, ts: datetime) -> PunchEvent:
    return PunchEvent(punch_id=i, employee_id=10, company_id=1, punch_type=PunchType(kind), timestamp=ts)


def _day(*entries: tuple[str, str]) -> list[PunchEvent]:
    out = []
    for i, (kind, hhmm) in enumerate(entries, start=1):
        hours, minutes = map(int, hhmm.split(":"))
        out.append(_punch(i, kind, datetime(DAY.year, DAY.month, DAY.day, hours, minutes)))
    return out


def test_regular_day_with_lunch_break():
    totals = aggregate_punches(_day(("IN", "08:00"), ("BREAK", "12:00"), ("RESUME", "12:30"), ("OUT", "16:00")))

    assert totals.worked_minutes == 420
    assert totals.break_minutes == 30
    assert totals.overtime_minutes == 0
    assert totals.start_time == datetime(2025, 3, 3, 8, 0)
    assert totals.end_time == datetime(2025, 3, 3, 16, 0)


def test_long_day_counts_overtime():
    totals = aggregate_punches(_day(("IN", "08:00"), ("OUT", "19:00")))

    assert totals.worked_minutes == 660
    assert totals.overtime_minutes == 180
    assert totals.break_minutes == 0


def test_empty_input_produces_no_totals():
    assert aggregate_punches([]) is None


def test_unsorted_input_is_sorted_first():
    punches = _day(("IN", "08:00"), ("BREAK", "12:00"), ("RESUME", "12:30"), ("OUT", "16:00"))

    assert aggregate_punches(list(reversed(punches))) == aggregate_punches(punches)


def test_aggregation_is_idempotent():
    punches = _day(("IN", "09:00"), ("OUT", "13:00"), ("IN", "14:00"), ("OUT", "18:30"))

    first = aggregate_punches(punches)
    second = aggregate_punches(punches)

    assert first == second
    assert first.worked_minutes == 510
    assert first.overtime_minutes == 30


def test_open_session_contributes_nothing():
    totals = aggregate_punches(_day(("IN", "08:00")))

    assert totals.worked_minutes == 0
    assert totals.start_time == totals.end_time


def test_unresolved_break_runs_to_end_of_day():
    totals = aggregate_punches(_day(("IN", "08:00"), ("BREAK", "23:00")))

    # 23:00 -> 23:59:59.999 floors to 59 minutes.
    assert totals.break_minutes == 59
    assert totals.worked_minutes == 15 * 60 - 59


def test_worked_minutes_never_negative():
    totals = aggregate_punches(_day(("IN", "08:00"), ("BREAK", "08:10")))

    assert totals.worked_minutes == 0
    assert totals.break_minutes > 0


def test_seconds_are_floored_once_at_the_end():
    punches = [
        _punch(1, "IN", datetime(2025, 3, 3, 8, 0, 0)),
        _punch(2, "OUT", datetime(2025, 3, 3, 8, 29, 40)),
        _punch(3, "IN", datetime(2025, 3, 3, 9, 0, 0)),
        _punch(4, "OUT", datetime(2025, 3, 3, 9, 30, 30)),
    ]

    assert aggregate_punches(punches).worked_minutes == 60


def test_night_shift_crossing_midnight():
    punches = [
        _punch(1, "IN", datetime(2025, 3, 3, 22, 0)),
        _punch(2, "OUT", datetime(2025, 3, 4, 4, 30)),
    ]

    assert aggregate_punches(punches).worked_minutes == 390
