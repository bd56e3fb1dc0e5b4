from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import PunchSource, PunchType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import BulkPunchEntry, EditLogEntry, PunchEvent, PunchFilters, PunchMeta, PunchPage
from .repository import EditLogRepository, PunchRepository

_PUNCH_COLUMNS = """
    punch_id, employee_id, company_id, punch_type, punched_at, source, location,
    latitude, longitude, is_remote_work, device_info, notes, created_by_employee,
    approved_by, approved_at
"""


def _to_punch(r: dict) -> PunchEvent:
    return PunchEvent(
        punch_id=int(r["punch_id"]),
        employee_id=int(r["employee_id"]),
        company_id=int(r["company_id"]),
        punch_type=PunchType(r["punch_type"]),
        timestamp=r["punched_at"],
        source=PunchSource(r["source"]),
        location=r.get("location"),
        latitude=float(r["latitude"]) if r.get("latitude") is not None else None,
        longitude=float(r["longitude"]) if r.get("longitude") is not None else None,
        is_remote_work=bool(r.get("is_remote_work")),
        device_info=r.get("device_info"),
        notes=r.get("notes"),
        created_by_employee=bool(r.get("created_by_employee", 1)),
        approved_by=int(r["approved_by"]) if r.get("approved_by") is not None else None,
        approved_at=r.get("approved_at"),
    )


class MySQLPunchRepository(PunchRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_in_range(
        self, *, company_id: int, employee_id: int, start: datetime, end: datetime
    ) -> Sequence[PunchEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_PUNCH_COLUMNS}
                FROM punch_events
                WHERE company_id=%s AND employee_id=%s AND punched_at >= %s AND punched_at < %s
                ORDER BY punched_at ASC, punch_id ASC
                """,
                (int(company_id), int(employee_id), start, end),
            )
            return [_to_punch(r) for r in fetchall(cur)]

    def list_company_in_range(self, *, company_id: int, start: datetime, end: datetime) -> Sequence[PunchEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_PUNCH_COLUMNS}
                FROM punch_events
                WHERE company_id=%s AND punched_at >= %s AND punched_at < %s
                ORDER BY employee_id ASC, punched_at ASC, punch_id ASC
                """,
                (int(company_id), start, end),
            )
            return [_to_punch(r) for r in fetchall(cur)]

    def get_by_id(self, *, company_id: int, punch_id: int) -> Optional[PunchEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_PUNCH_COLUMNS} FROM punch_events WHERE company_id=%s AND punch_id=%s",
                (int(company_id), int(punch_id)),
            )
            r = fetchone(cur)
            return _to_punch(r) if r else None

    def create(
        self,
        *,
        company_id: int,
        employee_id: int,
        punch_type: PunchType,
        timestamp: datetime,
        meta: PunchMeta,
        created_by_employee: bool = True,
    ) -> PunchEvent:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO punch_events(
                    employee_id, company_id, punch_type, punched_at, source, location,
                    latitude, longitude, is_remote_work, device_info, notes, created_by_employee
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(employee_id),
                    int(company_id),
                    PunchType(punch_type).value,
                    timestamp,
                    meta.source.value,
                    meta.location,
                    meta.latitude,
                    meta.longitude,
                    1 if meta.is_remote_work else 0,
                    meta.device_info,
                    meta.notes,
                    1 if created_by_employee else 0,
                ),
            )
            punch_id = int(cur.lastrowid)
        return PunchEvent(
            punch_id=punch_id,
            employee_id=int(employee_id),
            company_id=int(company_id),
            punch_type=PunchType(punch_type),
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

    def create_many(self, *, company_id: int, entries: Sequence[BulkPunchEntry]) -> Sequence[PunchEvent]:
        created: list[PunchEvent] = []
        # One transaction for the whole batch.
        with db_cursor(self._conn_factory) as (_, cur):
            for e in entries:
                cur.execute(
                    """
                    INSERT INTO punch_events(
                        employee_id, company_id, punch_type, punched_at, source, location,
                        device_info, notes, created_by_employee
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,0)
                    """,
                    (
                        int(e.employee_id),
                        int(company_id),
                        e.punch_type.value,
                        e.timestamp,
                        e.source.value,
                        e.location,
                        e.device_info,
                        e.notes,
                    ),
                )
                created.append(
                    PunchEvent(
                        punch_id=int(cur.lastrowid),
                        employee_id=int(e.employee_id),
                        company_id=int(company_id),
                        punch_type=e.punch_type,
                        timestamp=e.timestamp,
                        source=e.source,
                        location=e.location,
                        device_info=e.device_info,
                        notes=e.notes,
                        created_by_employee=False,
                    )
                )
        return created

    def update(self, punch: PunchEvent) -> PunchEvent:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE punch_events
                SET punch_type=%s, punched_at=%s, location=%s, device_info=%s, notes=%s,
                    approved_by=%s, approved_at=%s
                WHERE company_id=%s AND punch_id=%s
                """,
                (
                    punch.punch_type.value,
                    punch.timestamp,
                    punch.location,
                    punch.device_info,
                    punch.notes,
                    punch.approved_by,
                    punch.approved_at,
                    int(punch.company_id),
                    int(punch.punch_id),
                ),
            )
        return punch

    def delete(self, *, company_id: int, punch_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM punch_events WHERE company_id=%s AND punch_id=%s",
                (int(company_id), int(punch_id)),
            )
            return cur.rowcount > 0

    def search(self, *, company_id: int, filters: PunchFilters) -> PunchPage:
        where = ["company_id=%s"]
        params: list = [int(company_id)]
        if filters.employee_id is not None:
            where.append("employee_id=%s")
            params.append(int(filters.employee_id))
        if filters.start is not None:
            where.append("punched_at >= %s")
            params.append(filters.start)
        if filters.end is not None:
            where.append("punched_at < %s")
            params.append(filters.end)
        if filters.punch_type is not None:
            where.append("punch_type=%s")
            params.append(filters.punch_type.value)
        if filters.source is not None:
            where.append("source=%s")
            params.append(filters.source.value)
        where_sql = " AND ".join(where)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM punch_events WHERE {where_sql}", tuple(params))
            r = fetchone(cur)
            total = int(r["total"]) if r else 0

            cur.execute(
                f"""
                SELECT {_PUNCH_COLUMNS}
                FROM punch_events
                WHERE {where_sql}
                ORDER BY punched_at DESC, punch_id DESC
                LIMIT %s OFFSET %s
                """,
                (*params, int(filters.limit), int(filters.offset)),
            )
            items = [_to_punch(row) for row in fetchall(cur)]

        return PunchPage(items=items, page=filters.page, limit=filters.limit, total=total)


class MySQLEditLogRepository(EditLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(
        self,
        *,
        company_id: int,
        punch_id: int,
        actor_id: int,
        old_timestamp: datetime,
        new_timestamp: datetime,
        reason: str,
    ) -> EditLogEntry:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO punch_edit_logs(company_id, punch_id, actor_id, old_timestamp, new_timestamp, reason)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(company_id), int(punch_id), int(actor_id), old_timestamp, new_timestamp, reason),
            )
            log_id = int(cur.lastrowid)
        return EditLogEntry(
            log_id=log_id,
            punch_id=int(punch_id),
            actor_id=int(actor_id),
            old_timestamp=old_timestamp,
            new_timestamp=new_timestamp,
            reason=reason,
        )

    def list_for_punch(self, *, company_id: int, punch_id: int) -> Sequence[EditLogEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT log_id, punch_id, actor_id, old_timestamp, new_timestamp, reason, created_at
                FROM punch_edit_logs
                WHERE company_id=%s AND punch_id=%s
                ORDER BY created_at ASC, log_id ASC
                """,
                (int(company_id), int(punch_id)),
            )
            return [
                EditLogEntry(
                    log_id=int(r["log_id"]),
                    punch_id=int(r["punch_id"]),
                    actor_id=int(r["actor_id"]),
                    old_timestamp=r["old_timestamp"],
                    new_timestamp=r["new_timestamp"],
                    reason=r["reason"],
                    created_at=r.get("created_at"),
                )
                for r in fetchall(cur)
            ]
