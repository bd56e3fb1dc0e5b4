from __future__ import annotations

import logging
from datetime import date
from itertools import groupby
from typing import Optional

from ..common.cache import SafeCache
from ..common.datetime_utils import window_for_date
from ..common.locks import LockManager, work_day_scope
from ..core.constants import DAILY_SUMMARY_TTL_SECONDS
from ..core.exceptions import NotFoundError
from ..punches.model import order_punches
from ..punches.repository import PunchRepository
from .aggregator import aggregate_punches
from .model import DailySummary, EmployeeDaySummary, WorkDay
from .repository import WorkDayRepository

logger = logging.getLogger(__name__)


def daily_summary_key(company_id: int, work_date: date) -> str:
    return f"daily-summary:{company_id}:{work_date.isoformat()}"


class WorkDayService:
    """Keeps WorkDay rows in step with the punch log."""

    def __init__(
        self,
        work_days: WorkDayRepository,
        punches: PunchRepository,
        *,
        locks: LockManager,
        cache: SafeCache,
    ):
        self._work_days = work_days
        self._punches = punches
        self._locks = locks
        self._cache = cache

    def rebuild(self, *, company_id: int, employee_id: int, work_date: date) -> Optional[WorkDay]:
        """Recompute one WorkDay from its punches.

        The caller must already hold the work day's lock scope. A window
        without punches has its WorkDay removed and ``None`` is returned.
        """
        start, end = window_for_date(work_date)
        punches = self._punches.list_in_range(
            company_id=company_id, employee_id=employee_id, start=start, end=end
        )
        totals = aggregate_punches(punches)

        if totals is None:
            if self._work_days.delete(company_id=company_id, employee_id=employee_id, work_date=work_date):
                logger.info(
                    "Removed empty work day employee=%s company=%s date=%s", employee_id, company_id, work_date
                )
            self._invalidate(company_id)
            return None

        work_day = self._work_days.upsert(
            company_id=company_id, employee_id=employee_id, work_date=work_date, totals=totals
        )
        logger.info(
            "Recomputed work day employee=%s company=%s date=%s worked=%d break=%d overtime=%d",
            employee_id,
            company_id,
            work_date,
            work_day.worked_minutes,
            work_day.break_minutes,
            work_day.overtime_minutes,
        )
        self._invalidate(company_id)
        return work_day

    def recompute_work_day(self, *, company_id: int, employee_id: int, work_date: date) -> Optional[WorkDay]:
        with self._locks.hold(work_day_scope(company_id, employee_id, work_date)):
            return self.rebuild(company_id=company_id, employee_id=employee_id, work_date=work_date)

    def get_work_day(self, *, company_id: int, employee_id: int, work_date: date) -> WorkDay:
        work_day = self._work_days.get(company_id=company_id, employee_id=employee_id, work_date=work_date)
        if not work_day:
            raise NotFoundError(f"No work day recorded for {work_date.isoformat()}")
        return work_day

    def get_daily_summary(self, *, company_id: int, work_date: date) -> DailySummary:
        key = daily_summary_key(company_id, work_date)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        start, end = window_for_date(work_date)
        punches = sorted(
            self._punches.list_company_in_range(company_id=company_id, start=start, end=end),
            key=lambda p: p.employee_id,
        )

        employees: list[EmployeeDaySummary] = []
        for employee_id, group in groupby(punches, key=lambda p: p.employee_id):
            ordered = order_punches(group)
            totals = aggregate_punches(ordered)
            employees.append(
                EmployeeDaySummary(
                    employee_id=employee_id,
                    punch_count=len(ordered),
                    worked_minutes=totals.worked_minutes if totals else 0,
                    break_minutes=totals.break_minutes if totals else 0,
                    first_punch=ordered[0].timestamp if ordered else None,
                    last_punch=ordered[-1].timestamp if ordered else None,
                )
            )

        summary = DailySummary(
            company_id=company_id,
            work_date=work_date,
            total_entries=len(punches),
            employees=employees,
        )
        self._cache.set(key, summary, DAILY_SUMMARY_TTL_SECONDS)
        return summary

    def _invalidate(self, company_id: int) -> None:
        self._cache.invalidate(f"work-days:{company_id}:*", f"daily-summary:{company_id}:*")
