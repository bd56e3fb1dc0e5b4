"""In-memory repositories implementing the repository Protocols for tests."""

from __future__ import annotations

from contextlib import nullcontext
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, Optional

from src.timekeeping.timekeeping.core.enums import WorkDayStatus
from src.timekeeping.timekeeping.employees.model import Company, Employee
from src.timekeeping.timekeeping.punches.model import (
    EditLogEntry,
    PunchEvent,
    PunchFilters,
    PunchMeta,
    PunchPage,
    order_punches,
)
from src.timekeeping.timekeeping.schedules.model import WeeklyAssignment, WeeklyTemplate
from src.timekeeping.timekeeping.shifts.model import ShiftDefinition
from src.timekeeping.timekeeping.workdays.model import WorkDay

@dataclass
class InMemoryEmployees:
    # company_id -> employee_id -> Employee
    members: dict[int, dict[int, Employee]] = field(default_factory=dict)

    def add(self, company_id: int, employee_id: int, name: str = "Ana") -> Employee:
        emp = Employee(employee_id=employee_id, name=name)
        self.members.setdefault(company_id, {})[employee_id] = emp
        return emp

    def get_active_member(self, *, company_id: int, employee_id: int) -> Optional[Employee]:
        return self.members.get(company_id, {}).get(int(employee_id))

    def list_active_members(self, *, company_id: int, employee_ids: Iterable[int]):
        company = self.members.get(company_id, {})
        return [company[i] for i in sorted({int(i) for i in employee_ids}) if i in company]

    def count_active_members(self, *, company_id: int) -> int:
        return len(self.members.get(company_id, {}))

@dataclass
class InMemoryCompanies:
    companies: dict[int, Company] = field(default_factory=dict)

    def get_by_id(self, company_id: int) -> Optional[Company]:
        return self.companies.get(company_id)

class InMemoryPunches:
    def __init__(self):
        self.rows: dict[int, PunchEvent] = {}
        self._id = 0

    def _next_id(self) -> int:
        self._id += 1
        return self._id

    def list_in_range(self, *, company_id, employee_id, start, end):
        return order_punches(
            p
            for p in self.rows.values()
            if p.company_id == company_id and p.employee_id == employee_id and start <= p.timestamp < end
        )

    def list_company_in_range(self, *, company_id, start, end):
        return order_punches(p for p in self.rows.values() if p.company_id == company_id and start <= p.timestamp < end)

    def get_by_id(self, *, company_id, punch_id):
        p = self.rows.get(int(punch_id))
        return p if p and p.company_id == company_id else None

    def create(self, *, company_id, employee_id, punch_type, timestamp, meta: PunchMeta, created_by_employee=True):
        punch = PunchEvent(
            punch_id=self._next_id(),
            employee_id=employee_id,
            company_id=company_id,
            punch_type=punch_type,
            timestamp=timestamp,
            source=meta.source,
            location=meta.location,
            latitude=meta.latitude,
            longitude=meta.longitude,
            is_remote_work=meta.is_remote_work,
            device_info=meta.device_info,
            notes=meta.notes,
            created_by_employee=created_by_employee,
        )
        self.rows[punch.punch_id] = punch
        return punch

    def create_many(self, *, company_id, entries):
        created = []
        for e in entries:
            punch = PunchEvent(
                punch_id=self._next_id(),
                employee_id=e.employee_id,
                company_id=company_id,
                punch_type=e.punch_type,
                timestamp=e.timestamp,
                source=e.source,
                location=e.location,
                device_info=e.device_info,
                notes=e.notes,
                created_by_employee=False,
            )
            self.rows[punch.punch_id] = punch
            created.append(punch)
        return created

    def update(self, punch: PunchEvent) -> PunchEvent:
        self.rows[punch.punch_id] = punch
        return punch

    def delete(self, *, company_id, punch_id) -> bool:
        return self.rows.pop(int(punch_id), None) is not None

    def search(self, *, company_id, filters: PunchFilters) -> PunchPage:
        items = [
            p
            for p in self.rows.values()
            if p.company_id == company_id
            and (filters.employee_id is None or p.employee_id == filters.employee_id)
            and (filters.start is None or p.timestamp >= filters.start)
            and (filters.end is None or p.timestamp < filters.end)
            and (filters.punch_type is None or p.punch_type == filters.punch_type)
            and (filters.source is None or p.source == filters.source)
        ]
        items.sort(key=lambda p: p.sort_key, reverse=True)
        page = items[filters.offset : filters.offset + filters.limit]
        return PunchPage(items=page, page=filters.page, limit=filters.limit, total=len(items))

class InMemoryEditLogs:
    def __init__(self):
        self.rows: list[tuple[int, EditLogEntry]] = []

    def append(self, *, company_id, punch_id, actor_id, old_timestamp, new_timestamp, reason):
        entry = EditLogEntry(
            log_id=len(self.rows) + 1,
            punch_id=punch_id,
            actor_id=actor_id,
            old_timestamp=old_timestamp,
            new_timestamp=new_timestamp,
            reason=reason,
        )
        self.rows.append((company_id, entry))
        return entry

    def list_for_punch(self, *, company_id, punch_id):
        return [e for c, e in self.rows if c == company_id and e.punch_id == punch_id]

class InMemoryWorkDays:
    def __init__(self):
        self.rows: dict[tuple[int, int, date], WorkDay] = {}

    def get(self, *, company_id, employee_id, work_date):
        return self.rows.get((company_id, employee_id, work_date))

    def list_for_date(self, *, company_id, work_date):
        return [w for (c, _, d), w in sorted(self.rows.items()) if c == company_id and d == work_date]

    def upsert(self, *, company_id, employee_id, work_date, totals):
        key = (company_id, employee_id, work_date)
        previous = self.rows.get(key)
        self.rows[key] = WorkDay(
            work_day_id=previous.work_day_id if previous else len(self.rows) + 1,
            employee_id=employee_id,
            company_id=company_id,
            work_date=work_date,
            start_time=totals.start_time,
            end_time=totals.end_time,
            worked_minutes=totals.worked_minutes,
            break_minutes=totals.break_minutes,
            overtime_minutes=totals.overtime_minutes,
            status=previous.status if previous else WorkDayStatus.PENDING,
        )
        return self.rows[key]

    def delete(self, *, company_id, employee_id, work_date) -> bool:
        return self.rows.pop((company_id, employee_id, work_date), None) is not None

class InMemoryShifts:
    def __init__(self, assignments: Optional["InMemoryAssignments"] = None):
        self.rows: dict[int, ShiftDefinition] = {}
        self._id = 0
        self.assignments = assignments

    def add(self, company_id: int, name: str, start: str, end: str, **kwargs) -> ShiftDefinition:
        return self.create(
            company_id=company_id,
            name=name,
            start_time=start,
            end_time=end,
            break_minutes=kwargs.get("break_minutes", 0),
            flexible=kwargs.get("flexible", False),
            color=kwargs.get("color", "#3B82F6"),
        )

    def get_by_id(self, *, company_id, shift_id):
        s = self.rows.get(int(shift_id))
        return s if s and s.company_id == company_id else None

    def get_many(self, *, company_id, shift_ids):
        return {i: s for i in shift_ids if (s := self.get_by_id(company_id=company_id, shift_id=i))}

    def find_by_name(self, *, company_id, name):
        return next((s for s in self.rows.values() if s.company_id == company_id and s.name == name), None)

    def list_for_company(self, *, company_id, active=None, search=None):
        rows = [
            s
            for s in self.rows.values()
            if s.company_id == company_id
            and (active is None or s.active == active)
            and (not search or search.lower() in s.name.lower())
        ]
        return sorted(rows, key=lambda s: (s.name, s.start_time))

    def create(self, *, company_id, name, start_time, end_time, break_minutes, flexible, color, active=True):
        self._id += 1
        shift = ShiftDefinition(
            shift_id=self._id,
            company_id=company_id,
            name=name,
            start_time=start_time,
            end_time=end_time,
            break_minutes=break_minutes,
            flexible=flexible,
            color=color,
            active=active,
        )
        self.rows[shift.shift_id] = shift
        return shift

    def update(self, shift):
        self.rows[shift.shift_id] = shift
        return shift

    def count_assignments(self, *, company_id, shift_id) -> int:
        if not self.assignments:
            return 0
        return sum(1 for a in self.assignments.rows.values() if a.company_id == company_id and a.shift_id == shift_id)

    def delete(self, *, company_id, shift_id, cascade_assignments=False) -> int:
        removed = 0
        if cascade_assignments and self.assignments:
            doomed = [
                k for k, a in self.assignments.rows.items() if a.company_id == company_id and a.shift_id == shift_id
            ]
            for k in doomed:
                del self.assignments.rows[k]
            removed = len(doomed)
        self.rows.pop(int(shift_id), None)
        return removed

class InMemoryAssignments:
    def __init__(self):
        self.rows: dict[int, WeeklyAssignment] = {}
        self._id = 0

    def _insert(self, company_id, d) -> WeeklyAssignment:
        self._id += 1
        a = WeeklyAssignment(
            assignment_id=self._id,
            company_id=company_id,
            employee_id=d.employee_id,
            week_start=d.week_start,
            day_of_week=d.day_of_week,
            shift_id=d.shift_id,
            notes=d.notes,
        )
        self.rows[a.assignment_id] = a
        return a

    def get_by_id(self, *, company_id, assignment_id):
        a = self.rows.get(int(assignment_id))
        return a if a and a.company_id == company_id else None

    def list_for_slot(self, *, company_id, employee_id, week_start, day_of_week):
        return [
            a
            for a in self.rows.values()
            if (a.company_id, a.employee_id, a.week_start, a.day_of_week)
            == (company_id, employee_id, week_start, day_of_week)
        ]

    def list_for_week(self, *, company_id, week_start, employee_ids=None):
        ids = None if employee_ids is None else {int(i) for i in employee_ids}
        rows = [
            a
            for a in self.rows.values()
            if a.company_id == company_id and a.week_start == week_start and (ids is None or a.employee_id in ids)
        ]
        return sorted(rows, key=lambda a: (a.employee_id, a.day_of_week, a.assignment_id))

    def create(self, *, company_id, draft):
        return self._insert(company_id, draft)

    def create_many(self, *, company_id, drafts):
        return [self._insert(company_id, d) for d in drafts]

    def delete(self, *, company_id, assignment_id) -> bool:
        return self.rows.pop(int(assignment_id), None) is not None

    def delete_slot(self, *, company_id, employee_id, week_start, day_of_week) -> int:
        doomed = [a.assignment_id for a in self.list_for_slot(
            company_id=company_id, employee_id=employee_id, week_start=week_start, day_of_week=day_of_week
        )]
        for i in doomed:
            del self.rows[i]
        return len(doomed)

class InMemoryTemplates:
    def __init__(self):
        self.rows: dict[int, WeeklyTemplate] = {}

    def get_by_id(self, *, company_id, template_id):
        t = self.rows.get(int(template_id))
        return t if t and t.company_id == company_id else None

    def list_active(self, *, company_id):
        return sorted((t for t in self.rows.values() if t.company_id == company_id and t.active), key=lambda t: t.name)

    def create(self, *, company_id, name, week_data, description=None):
        t = WeeklyTemplate(
            template_id=len(self.rows) + 1,
            company_id=company_id,
            name=name,
            description=description,
            week_data={int(d): tuple(s) for d, s in week_data.items()},
        )
        self.rows[t.template_id] = t
        return t

class BrokenCache:
    """Cache backend whose every call fails."""

    def get(self, key):
        raise ConnectionError("cache down")

    def set(self, key, value, ttl_seconds):
        raise ConnectionError("cache down")

    def delete_pattern(self, pattern):
        raise ConnectionError("cache down")

class RecordingLocks:
    """LockManager that records every acquired key."""

    def __init__(self):
        self.acquired: list[str] = []

    def hold(self, key: str):
        self.acquired.append(key)
        return nullcontext()

def at(day: date, hhmm: str) -> datetime:
    hours, minutes = hhmm.split(":")
    return datetime(day.year, day.month, day.day, int(hours), int(minutes))

__all__ = [
    "InMemoryEmployees",
    "InMemoryCompanies",
    "InMemoryPunches",
    "InMemoryEditLogs",
    "InMemoryWorkDays",
    "InMemoryShifts",
    "InMemoryAssignments",
    "InMemoryTemplates",
    "BrokenCache",
    "RecordingLocks",
    "at",
]
