from __future__ import annotations

import json
from datetime import date
from typing import Iterable, Mapping, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, normalize_mysql_date
from .model import AssignmentDraft, TemplateSlot, WeeklyAssignment, WeeklyTemplate
from .repository import WeeklyAssignmentRepository, WeeklyTemplateRepository

_ASSIGNMENT_COLUMNS = "assignment_id, company_id, employee_id, week_start, day_of_week, shift_id, notes, active"


def _to_assignment(r: dict) -> WeeklyAssignment:
    return WeeklyAssignment(
        assignment_id=int(r["assignment_id"]),
        company_id=int(r["company_id"]),
        employee_id=int(r["employee_id"]),
        week_start=normalize_mysql_date(r["week_start"]),
        day_of_week=int(r["day_of_week"]),
        shift_id=int(r["shift_id"]) if r.get("shift_id") is not None else None,
        notes=r.get("notes"),
        active=bool(r.get("active", 1)),
    )


def _draft_params(company_id: int, d: AssignmentDraft) -> tuple:
    return (int(company_id), int(d.employee_id), d.week_start, int(d.day_of_week), d.shift_id, d.notes)


_INSERT_ASSIGNMENT = """
    INSERT INTO weekly_assignments(company_id, employee_id, week_start, day_of_week, shift_id, notes)
    VALUES(%s,%s,%s,%s,%s,%s)
"""


def _from_draft(assignment_id: int, company_id: int, d: AssignmentDraft) -> WeeklyAssignment:
    return WeeklyAssignment(
        assignment_id=assignment_id,
        company_id=int(company_id),
        employee_id=int(d.employee_id),
        week_start=d.week_start,
        day_of_week=int(d.day_of_week),
        shift_id=d.shift_id,
        notes=d.notes,
    )


class MySQLWeeklyAssignmentRepository(WeeklyAssignmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, *, company_id: int, assignment_id: int) -> Optional[WeeklyAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_ASSIGNMENT_COLUMNS} FROM weekly_assignments WHERE company_id=%s AND assignment_id=%s",
                (int(company_id), int(assignment_id)),
            )
            r = fetchone(cur)
            return _to_assignment(r) if r else None

    def list_for_slot(
        self, *, company_id: int, employee_id: int, week_start: date, day_of_week: int
    ) -> Sequence[WeeklyAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_ASSIGNMENT_COLUMNS}
                FROM weekly_assignments
                WHERE company_id=%s AND employee_id=%s AND week_start=%s AND day_of_week=%s AND active=1
                ORDER BY assignment_id ASC
                """,
                (int(company_id), int(employee_id), week_start, int(day_of_week)),
            )
            return [_to_assignment(r) for r in fetchall(cur)]

    def list_for_week(
        self, *, company_id: int, week_start: date, employee_ids: Optional[Iterable[int]] = None
    ) -> Sequence[WeeklyAssignment]:
        sql = f"""
            SELECT {_ASSIGNMENT_COLUMNS}
            FROM weekly_assignments
            WHERE company_id=%s AND week_start=%s AND active=1
        """
        params: tuple = (int(company_id), week_start)
        if employee_ids is not None:
            ids = sorted({int(i) for i in employee_ids})
            if not ids:
                return []
            placeholders, id_params = in_clause(ids)
            sql += f" AND employee_id IN ({placeholders})"
            params += id_params
        sql += " ORDER BY employee_id ASC, day_of_week ASC, assignment_id ASC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return [_to_assignment(r) for r in fetchall(cur)]

    def create(self, *, company_id: int, draft: AssignmentDraft) -> WeeklyAssignment:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_INSERT_ASSIGNMENT, _draft_params(company_id, draft))
            return _from_draft(int(cur.lastrowid), company_id, draft)

    def create_many(self, *, company_id: int, drafts: Sequence[AssignmentDraft]) -> Sequence[WeeklyAssignment]:
        created: list[WeeklyAssignment] = []
        with db_cursor(self._conn_factory) as (_, cur):
            for d in drafts:
                cur.execute(_INSERT_ASSIGNMENT, _draft_params(company_id, d))
                created.append(_from_draft(int(cur.lastrowid), company_id, d))
        return created

    def delete(self, *, company_id: int, assignment_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM weekly_assignments WHERE company_id=%s AND assignment_id=%s",
                (int(company_id), int(assignment_id)),
            )
            return cur.rowcount > 0

    def delete_slot(self, *, company_id: int, employee_id: int, week_start: date, day_of_week: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                DELETE FROM weekly_assignments
                WHERE company_id=%s AND employee_id=%s AND week_start=%s AND day_of_week=%s
                """,
                (int(company_id), int(employee_id), week_start, int(day_of_week)),
            )
            return int(cur.rowcount)


def _dump_week_data(week_data: Mapping[int, Sequence[TemplateSlot]]) -> str:
    return json.dumps(
        {str(day): [{"shiftId": s.shift_id, "notes": s.notes} for s in slots] for day, slots in week_data.items()}
    )


def _load_week_data(raw) -> dict[int, tuple[TemplateSlot, ...]]:
    data = json.loads(raw) if isinstance(raw, (str, bytes, bytearray)) else (raw or {})
    return {
        int(day): tuple(TemplateSlot(shift_id=s.get("shiftId"), notes=s.get("notes")) for s in slots)
        for day, slots in data.items()
    }


def _to_template(r: dict) -> WeeklyTemplate:
    return WeeklyTemplate(
        template_id=int(r["template_id"]),
        company_id=int(r["company_id"]),
        name=r["name"],
        description=r.get("description"),
        week_data=_load_week_data(r.get("week_data")),
        active=bool(r.get("active", 1)),
    )


class MySQLWeeklyTemplateRepository(WeeklyTemplateRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, *, company_id: int, template_id: int) -> Optional[WeeklyTemplate]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT template_id, company_id, name, description, week_data, active
                FROM weekly_templates
                WHERE company_id=%s AND template_id=%s
                """,
                (int(company_id), int(template_id)),
            )
            r = fetchone(cur)
            return _to_template(r) if r else None

    def list_active(self, *, company_id: int) -> Sequence[WeeklyTemplate]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT template_id, company_id, name, description, week_data, active
                FROM weekly_templates
                WHERE company_id=%s AND active=1
                ORDER BY name ASC
                """,
                (int(company_id),),
            )
            return [_to_template(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        company_id: int,
        name: str,
        week_data: Mapping[int, Sequence[TemplateSlot]],
        description: Optional[str] = None,
    ) -> WeeklyTemplate:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO weekly_templates(company_id, name, description, week_data)
                VALUES(%s,%s,%s,%s)
                """,
                (int(company_id), name, description, _dump_week_data(week_data)),
            )
            template_id = int(cur.lastrowid)
        return WeeklyTemplate(
            template_id=template_id,
            company_id=int(company_id),
            name=name,
            description=description,
            week_data={int(d): tuple(s) for d, s in week_data.items()},
        )
