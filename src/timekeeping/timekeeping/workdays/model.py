from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import WorkDayStatus


@dataclass(frozen=True)
class WorkDayTotals:
    """Output of one aggregation pass over a work day's punches."""

    start_time: datetime
    end_time: datetime
    worked_minutes: int
    break_minutes: int
    overtime_minutes: int


@dataclass(frozen=True)
class WorkDay:
    """Derived daily record, keyed by (employee_id, company_id, work_date)."""

    employee_id: int
    company_id: int
    work_date: date
    start_time: datetime
    end_time: datetime
    worked_minutes: int = 0
    break_minutes: int = 0
    overtime_minutes: int = 0
    status: WorkDayStatus = WorkDayStatus.PENDING
    work_day_id: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "id": self.work_day_id,
            "employeeId": self.employee_id,
            "companyId": self.company_id,
            "date": self.work_date.isoformat(),
            "startTime": self.start_time.isoformat(),
            "endTime": self.end_time.isoformat(),
            "workedMinutes": self.worked_minutes,
            "breakMinutes": self.break_minutes,
            "overtimeMinutes": self.overtime_minutes,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class EmployeeDaySummary:
    employee_id: int
    punch_count: int
    worked_minutes: int
    break_minutes: int
    first_punch: Optional[datetime]
    last_punch: Optional[datetime]

    def to_dict(self) -> dict:
        return {
            "employeeId": self.employee_id,
            "entries": self.punch_count,
            "totalMinutes": self.worked_minutes,
            "breakMinutes": self.break_minutes,
            "firstEntry": self.first_punch.isoformat() if self.first_punch else None,
            "lastEntry": self.last_punch.isoformat() if self.last_punch else None,
        }


@dataclass(frozen=True)
class DailySummary:
    company_id: int
    work_date: date
    total_entries: int
    employees: list[EmployeeDaySummary] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "date": self.work_date.isoformat(),
            "totalEntries": self.total_entries,
            "employees": [e.to_dict() for e in self.employees],
        }
