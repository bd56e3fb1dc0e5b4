from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Mapping, Optional

from ..shifts.model import ShiftDefinition

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


@dataclass(frozen=True)
class WeeklyAssignment:
    """A shift (or a rest day when ``shift_id`` is None) for one employee/week/day.

    ``day_of_week`` counts from the Monday ``week_start``: 0 = Monday.
    """

    assignment_id: int
    company_id: int
    employee_id: int
    week_start: date
    day_of_week: int
    shift_id: Optional[int] = None
    notes: Optional[str] = None
    active: bool = True

    @property
    def is_rest_day(self) -> bool:
        return self.shift_id is None

    @property
    def calendar_date(self) -> date:
        return self.week_start + timedelta(days=self.day_of_week)

    def to_dict(self) -> dict:
        return {
            "id": self.assignment_id,
            "companyId": self.company_id,
            "employeeId": self.employee_id,
            "weekStart": self.week_start.isoformat(),
            "dayOfWeek": self.day_of_week,
            "date": self.calendar_date.isoformat(),
            "shiftId": self.shift_id,
            "notes": self.notes,
            "active": self.active,
        }


@dataclass(frozen=True)
class AssignmentDraft:
    """A not-yet-persisted WeeklyAssignment."""

    employee_id: int
    week_start: date
    day_of_week: int
    shift_id: Optional[int] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class AssignedShift:
    """Read model: an assignment joined with its shift definition."""

    assignment: WeeklyAssignment
    shift: Optional[ShiftDefinition] = None

    def to_dict(self) -> dict:
        data = self.assignment.to_dict()
        data["shift"] = self.shift.to_dict() if self.shift else None
        return data


@dataclass(frozen=True)
class TemplateSlot:
    shift_id: Optional[int] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class WeeklyTemplate:
    template_id: int
    company_id: int
    name: str
    week_data: Mapping[int, tuple[TemplateSlot, ...]] = field(default_factory=dict)
    description: Optional[str] = None
    active: bool = True

    def to_dict(self) -> dict:
        return {
            "id": self.template_id,
            "companyId": self.company_id,
            "name": self.name,
            "description": self.description,
            "active": self.active,
            "weekData": {
                str(day): [{"shiftId": s.shift_id, "notes": s.notes} for s in slots]
                for day, slots in sorted(self.week_data.items())
            },
        }


@dataclass(frozen=True)
class DayHours:
    day_of_week: int
    day_name: str
    total_hours: float = 0.0
    employee_count: int = 0


@dataclass(frozen=True)
class WeeklyHoursSummary:
    week_start: date
    total_employees: int
    total_assigned_hours: float
    employees_with_schedule: int
    daily_breakdown: list[DayHours] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "weekStart": self.week_start.isoformat(),
            "totalEmployees": self.total_employees,
            "totalAssignedHours": self.total_assigned_hours,
            "employeesWithSchedule": self.employees_with_schedule,
            "dailyBreakdown": [
                {
                    "dayOfWeek": d.day_of_week,
                    "dayName": d.day_name,
                    "totalHours": d.total_hours,
                    "employeeCount": d.employee_count,
                }
                for d in self.daily_breakdown
            ],
        }
