from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, normalize_mysql_time
from .model import ShiftDefinition
from .repository import ShiftRepository

_COLUMNS = "shift_id, company_id, name, start_time, end_time, break_minutes, flexible, color, active"


def _to_shift(r: dict) -> ShiftDefinition:
    return ShiftDefinition(
        shift_id=int(r["shift_id"]),
        company_id=int(r["company_id"]),
        name=r["name"],
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        break_minutes=int(r.get("break_minutes") or 0),
        flexible=bool(r.get("flexible")),
        color=r["color"],
        active=bool(r.get("active", 1)),
    )


class MySQLShiftRepository(ShiftRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, *, company_id: int, shift_id: int) -> Optional[ShiftDefinition]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM shift_definitions WHERE company_id=%s AND shift_id=%s",
                (int(company_id), int(shift_id)),
            )
            r = fetchone(cur)
            return _to_shift(r) if r else None

    def get_many(self, *, company_id: int, shift_ids: Iterable[int]) -> dict[int, ShiftDefinition]:
        ids = sorted({int(i) for i in shift_ids})
        if not ids:
            return {}
        placeholders, params = in_clause(ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM shift_definitions
                WHERE company_id=%s AND shift_id IN ({placeholders})
                """,
                (int(company_id), *params),
            )
            return {s.shift_id: s for s in (_to_shift(r) for r in fetchall(cur))}

    def find_by_name(self, *, company_id: int, name: str) -> Optional[ShiftDefinition]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM shift_definitions WHERE company_id=%s AND name=%s",
                (int(company_id), name),
            )
            r = fetchone(cur)
            return _to_shift(r) if r else None

    def list_for_company(
        self, *, company_id: int, active: Optional[bool] = None, search: Optional[str] = None
    ) -> Sequence[ShiftDefinition]:
        where = ["company_id=%s"]
        params: list = [int(company_id)]
        if active is not None:
            where.append("active=%s")
            params.append(1 if active else 0)
        if search:
            where.append("LOWER(name) LIKE %s")
            params.append(f"%{search.lower()}%")

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM shift_definitions
                WHERE {" AND ".join(where)}
                ORDER BY name ASC, start_time ASC
                """,
                tuple(params),
            )
            return [_to_shift(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        company_id: int,
        name: str,
        start_time: str,
        end_time: str,
        break_minutes: int,
        flexible: bool,
        color: str,
        active: bool = True,
    ) -> ShiftDefinition:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO shift_definitions(
                    company_id, name, start_time, end_time, break_minutes, flexible, color, active
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(company_id),
                    name,
                    start_time,
                    end_time,
                    int(break_minutes),
                    1 if flexible else 0,
                    color,
                    1 if active else 0,
                ),
            )
            shift_id = int(cur.lastrowid)
        return ShiftDefinition(
            shift_id=shift_id,
            company_id=int(company_id),
            name=name,
            start_time=start_time,
            end_time=end_time,
            break_minutes=int(break_minutes),
            flexible=flexible,
            color=color,
            active=active,
        )

    def update(self, shift: ShiftDefinition) -> ShiftDefinition:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE shift_definitions
                SET name=%s, start_time=%s, end_time=%s, break_minutes=%s, flexible=%s, color=%s, active=%s
                WHERE company_id=%s AND shift_id=%s
                """,
                (
                    shift.name,
                    shift.start_time,
                    shift.end_time,
                    int(shift.break_minutes),
                    1 if shift.flexible else 0,
                    shift.color,
                    1 if shift.active else 0,
                    int(shift.company_id),
                    int(shift.shift_id),
                ),
            )
        return shift

    def count_assignments(self, *, company_id: int, shift_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS total FROM weekly_assignments WHERE company_id=%s AND shift_id=%s",
                (int(company_id), int(shift_id)),
            )
            r = fetchone(cur)
            return int(r["total"]) if r else 0

    def delete(self, *, company_id: int, shift_id: int, cascade_assignments: bool = False) -> int:
        removed = 0
        with db_cursor(self._conn_factory) as (_, cur):
            if cascade_assignments:
                cur.execute(
                    "DELETE FROM weekly_assignments WHERE company_id=%s AND shift_id=%s",
                    (int(company_id), int(shift_id)),
                )
                removed = int(cur.rowcount)
            cur.execute(
                "DELETE FROM shift_definitions WHERE company_id=%s AND shift_id=%s",
                (int(company_id), int(shift_id)),
            )
        return removed
