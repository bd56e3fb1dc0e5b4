from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import WorkDay, WorkDayTotals


class WorkDayRepository(Protocol):
    def get(self, *, company_id: int, employee_id: int, work_date: date) -> Optional[WorkDay]:
        raise NotImplementedError

    def list_for_date(self, *, company_id: int, work_date: date) -> Sequence[WorkDay]:
        raise NotImplementedError

    def upsert(self, *, company_id: int, employee_id: int, work_date: date, totals: WorkDayTotals) -> WorkDay:
        """Insert or overwrite the derived fields; an existing status is kept."""

        raise NotImplementedError

    def delete(self, *, company_id: int, employee_id: int, work_date: date) -> bool:
        raise NotImplementedError
