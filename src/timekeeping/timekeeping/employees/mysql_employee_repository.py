from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import Company, Employee
from .repository import CompanyRepository, EmployeeRepository

_EMPLOYEE_COLUMNS = "e.employee_id, e.name, e.surname, e.dni, e.active"


def _to_employee(r: dict) -> Employee:
    return Employee(
        employee_id=int(r["employee_id"]),
        name=r["name"],
        surname=r.get("surname"),
        dni=r.get("dni"),
        active=bool(r.get("active", 1)),
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_active_member(self, *, company_id: int, employee_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_EMPLOYEE_COLUMNS}
                FROM employees e
                JOIN employee_companies ec ON ec.employee_id = e.employee_id
                WHERE ec.company_id=%s AND e.employee_id=%s AND ec.active=1 AND e.active=1
                """,
                (int(company_id), int(employee_id)),
            )
            r = fetchone(cur)
            return _to_employee(r) if r else None

    def list_active_members(self, *, company_id: int, employee_ids: Iterable[int]) -> Sequence[Employee]:
        ids = sorted({int(i) for i in employee_ids})
        if not ids:
            return []
        placeholders, params = in_clause(ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_EMPLOYEE_COLUMNS}
                FROM employees e
                JOIN employee_companies ec ON ec.employee_id = e.employee_id
                WHERE ec.company_id=%s AND ec.active=1 AND e.active=1
                  AND e.employee_id IN ({placeholders})
                """,
                (int(company_id), *params),
            )
            return [_to_employee(r) for r in fetchall(cur)]

    def count_active_members(self, *, company_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS total
                FROM employees e
                JOIN employee_companies ec ON ec.employee_id = e.employee_id
                WHERE ec.company_id=%s AND ec.active=1 AND e.active=1
                """,
                (int(company_id),),
            )
            r = fetchone(cur)
            return int(r["total"]) if r else 0


class MySQLCompanyRepository(CompanyRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, company_id: int) -> Optional[Company]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT company_id, name, latitude, longitude, geofence_radius, require_geolocation
                FROM companies
                WHERE company_id=%s
                """,
                (int(company_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Company(
                company_id=int(r["company_id"]),
                name=r["name"],
                latitude=float(r["latitude"]) if r.get("latitude") is not None else None,
                longitude=float(r["longitude"]) if r.get("longitude") is not None else None,
                geofence_radius_m=int(r["geofence_radius"]) if r.get("geofence_radius") else None,
                require_geolocation=bool(r.get("require_geolocation")),
            )
