from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import WorkDayStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_date
from .model import WorkDay, WorkDayTotals
from .repository import WorkDayRepository

_COLUMNS = """
    work_day_id, employee_id, company_id, work_date, start_time, end_time,
    worked_minutes, break_minutes, overtime_minutes, status
"""


def _to_work_day(r: dict) -> WorkDay:
    return WorkDay(
        work_day_id=int(r["work_day_id"]),
        employee_id=int(r["employee_id"]),
        company_id=int(r["company_id"]),
        work_date=normalize_mysql_date(r["work_date"]),
        start_time=r["start_time"],
        end_time=r["end_time"],
        worked_minutes=int(r["worked_minutes"]),
        break_minutes=int(r["break_minutes"]),
        overtime_minutes=int(r["overtime_minutes"]),
        status=WorkDayStatus(r["status"]),
    )


class MySQLWorkDayRepository(WorkDayRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, *, company_id: int, employee_id: int, work_date: date) -> Optional[WorkDay]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM work_days
                WHERE company_id=%s AND employee_id=%s AND work_date=%s
                """,
                (int(company_id), int(employee_id), work_date),
            )
            r = fetchone(cur)
            return _to_work_day(r) if r else None

    def list_for_date(self, *, company_id: int, work_date: date) -> Sequence[WorkDay]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM work_days
                WHERE company_id=%s AND work_date=%s
                ORDER BY employee_id ASC
                """,
                (int(company_id), work_date),
            )
            return [_to_work_day(r) for r in fetchall(cur)]

    def upsert(self, *, company_id: int, employee_id: int, work_date: date, totals: WorkDayTotals) -> WorkDay:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO work_days(
                    employee_id, company_id, work_date, start_time, end_time,
                    worked_minutes, break_minutes, overtime_minutes, status
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    start_time=VALUES(start_time),
                    end_time=VALUES(end_time),
                    worked_minutes=VALUES(worked_minutes),
                    break_minutes=VALUES(break_minutes),
                    overtime_minutes=VALUES(overtime_minutes)
                """,
                (
                    int(employee_id),
                    int(company_id),
                    work_date,
                    totals.start_time,
                    totals.end_time,
                    totals.worked_minutes,
                    totals.break_minutes,
                    totals.overtime_minutes,
                    WorkDayStatus.PENDING.value,
                ),
            )
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM work_days
                WHERE company_id=%s AND employee_id=%s AND work_date=%s
                """,
                (int(company_id), int(employee_id), work_date),
            )
            return _to_work_day(fetchone(cur))

    def delete(self, *, company_id: int, employee_id: int, work_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM work_days WHERE company_id=%s AND employee_id=%s AND work_date=%s",
                (int(company_id), int(employee_id), work_date),
            )
            return cur.rowcount > 0
