from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .common.cache import MemoryCache, SafeCache
from .common.locks import LocalLockManager, LockManager, MySQLLockManager
from .core.constants import DEFAULT_GEOFENCE_RADIUS_M, DEFAULT_LOCK_TIMEOUT_SECONDS
from .core.exceptions import ValidationError
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLCompanyRepository, MySQLEmployeeRepository
from .employees.repository import CompanyRepository, EmployeeRepository
from .punches.mysql_punch_repository import MySQLEditLogRepository, MySQLPunchRepository
from .punches.repository import EditLogRepository, PunchRepository
from .punches.service import PunchService
from .schedules.mysql_schedule_repository import MySQLWeeklyAssignmentRepository, MySQLWeeklyTemplateRepository
from .schedules.repository import WeeklyAssignmentRepository, WeeklyTemplateRepository
from .schedules.service import WeeklyScheduleService
from .shifts.mysql_shift_repository import MySQLShiftRepository
from .shifts.repository import ShiftRepository
from .shifts.service import ShiftService
from .workdays.mysql_work_day_repository import MySQLWorkDayRepository
from .workdays.repository import WorkDayRepository
from .workdays.service import WorkDayService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]
    cache: SafeCache
    locks: LockManager

    punch_service: PunchService
    work_day_service: WorkDayService
    shift_service: ShiftService
    weekly_schedule_service: WeeklyScheduleService


def wire_services(
    *,
    punches: PunchRepository,
    edit_logs: EditLogRepository,
    employees: EmployeeRepository,
    companies: CompanyRepository,
    work_days: WorkDayRepository,
    shifts: ShiftRepository,
    assignments: WeeklyAssignmentRepository,
    templates: WeeklyTemplateRepository,
    locks: LockManager,
    cache: SafeCache,
    conn: Optional[DatabaseConnection] = None,
    default_geofence_radius_m: float = DEFAULT_GEOFENCE_RADIUS_M,
) -> Container:
    """Assemble services over any set of repositories."""
    work_day_service = WorkDayService(work_days, punches, locks=locks, cache=cache)
    punch_service = PunchService(
        punches,
        edit_logs,
        employees,
        companies,
        work_day_service,
        locks=locks,
        cache=cache,
        default_geofence_radius_m=default_geofence_radius_m,
    )
    shift_service = ShiftService(shifts, cache=cache)
    weekly_schedule_service = WeeklyScheduleService(
        assignments, templates, shifts, employees, locks=locks, cache=cache
    )

    return Container(
        conn=conn,
        cache=cache,
        locks=locks,
        punch_service=punch_service,
        work_day_service=work_day_service,
        shift_service=shift_service,
        weekly_schedule_service=weekly_schedule_service,
    )


def build_lock_manager(
    backend: str, conn: DatabaseConnection, *, timeout_seconds: float = DEFAULT_LOCK_TIMEOUT_SECONDS
) -> LockManager:
    backend = (backend or "local").lower()
    if backend == "local":
        return LocalLockManager(timeout_seconds=timeout_seconds)
    if backend == "mysql":
        return MySQLLockManager(conn, timeout_seconds=timeout_seconds)
    raise ValidationError(f"Unknown LOCK_BACKEND {backend!r} (expected 'local' or 'mysql')")


def build_container(
    *,
    db_config: dict,
    lock_backend: str = "local",
    lock_timeout_seconds: float = DEFAULT_LOCK_TIMEOUT_SECONDS,
    default_geofence_radius_m: float = DEFAULT_GEOFENCE_RADIUS_M,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire_services(
        punches=MySQLPunchRepository(conn),
        edit_logs=MySQLEditLogRepository(conn),
        employees=MySQLEmployeeRepository(conn),
        companies=MySQLCompanyRepository(conn),
        work_days=MySQLWorkDayRepository(conn),
        shifts=MySQLShiftRepository(conn),
        assignments=MySQLWeeklyAssignmentRepository(conn),
        templates=MySQLWeeklyTemplateRepository(conn),
        locks=build_lock_manager(lock_backend, conn, timeout_seconds=lock_timeout_seconds),
        cache=SafeCache(MemoryCache()),
        conn=conn,
        default_geofence_radius_m=default_geofence_radius_m,
    )
