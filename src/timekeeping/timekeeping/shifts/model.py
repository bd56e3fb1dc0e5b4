from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.constants import DEFAULT_SHIFT_COLOR
from .overlap import duration_minutes


@dataclass(frozen=True)
class ShiftDefinition:
    """Domain entity: a reusable named shift.

    ``start_time``/``end_time`` are HH:MM strings. ``end_time < start_time``
    marks a night shift that wraps past midnight.
    """

    shift_id: int
    company_id: int
    name: str
    start_time: str
    end_time: str
    break_minutes: int = 0
    flexible: bool = False
    color: str = DEFAULT_SHIFT_COLOR
    active: bool = True

    @property
    def paid_minutes(self) -> int:
        return duration_minutes(self.start_time, self.end_time, self.break_minutes)

    def to_dict(self) -> dict:
        return {
            "id": self.shift_id,
            "companyId": self.company_id,
            "name": self.name,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "breakMinutes": self.break_minutes,
            "flexible": self.flexible,
            "color": self.color,
            "active": self.active,
            "durationMinutes": self.paid_minutes,
        }


@dataclass(frozen=True)
class ShiftChanges:
    """Partial update; ``None`` leaves a field untouched."""

    name: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    break_minutes: Optional[int] = None
    flexible: Optional[bool] = None
    color: Optional[str] = None
    active: Optional[bool] = None
