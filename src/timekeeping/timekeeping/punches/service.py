from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Optional, Sequence

from ..common.cache import SafeCache
from ..common.datetime_utils import now_local, to_naive_local, work_day_date, work_day_window
from ..common.geo import is_within_radius
from ..common.locks import LockManager, hold_all, work_day_scope
from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_GEOFENCE_RADIUS_M, MAX_PAGE_LIMIT
from ..core.enums import PunchSource, PunchType
from ..core.exceptions import GeofenceError, NotFoundError, ValidationError
from ..employees.model import Company
from ..employees.repository import CompanyRepository, EmployeeRepository
from ..workdays.service import WorkDayService
from .model import BulkPunchEntry, EditLogEntry, PunchChanges, PunchEvent, PunchFilters, PunchMeta, PunchPage
from .repository import EditLogRepository, PunchRepository
from .state_machine import CurrentPunchState, project_state, validate_next_punch

logger = logging.getLogger(__name__)


def coerce_punch_type(value) -> PunchType:
    if isinstance(value, PunchType):
        return value
    try:
        return PunchType(str(value).strip().upper())
    except ValueError:
        raise ValidationError(f"Invalid punch type {value!r} (expected IN, OUT, BREAK or RESUME)")


def coerce_punch_source(value) -> PunchSource:
    if isinstance(value, PunchSource):
        return value
    try:
        return PunchSource(str(value).strip().upper())
    except ValueError:
        raise ValidationError(f"Invalid punch source {value!r}")


class PunchService:
    """Records punches and keeps each affected WorkDay recomputed.

    Every write runs inside the work day's lock scope:
    validate -> append -> recompute.
    """

    def __init__(
        self,
        punches: PunchRepository,
        edit_logs: EditLogRepository,
        employees: EmployeeRepository,
        companies: CompanyRepository,
        work_days: WorkDayService,
        *,
        locks: LockManager,
        cache: SafeCache,
        default_geofence_radius_m: float = DEFAULT_GEOFENCE_RADIUS_M,
    ):
        self._punches = punches
        self._edit_logs = edit_logs
        self._employees = employees
        self._companies = companies
        self._work_days = work_days
        self._locks = locks
        self._cache = cache
        self._default_radius = float(default_geofence_radius_m)

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------
    def validate_and_record_punch(
        self,
        *,
        company_id: int,
        employee_id: int,
        punch_type: PunchType,
        timestamp: datetime,
        meta: Optional[PunchMeta] = None,
    ) -> PunchEvent:
        punch_type = coerce_punch_type(punch_type)
        meta = meta or PunchMeta()
        timestamp = to_naive_local(timestamp)
        self._require_member(company_id=company_id, employee_id=employee_id)

        day = work_day_date(timestamp)
        start, end = work_day_window(timestamp)
        with self._locks.hold(work_day_scope(company_id, employee_id, day)):
            existing = self._punches.list_in_range(
                company_id=company_id, employee_id=employee_id, start=start, end=end
            )
            validate_next_punch(existing, punch_type)
            punch = self._punches.create(
                company_id=company_id,
                employee_id=employee_id,
                punch_type=punch_type,
                timestamp=timestamp,
                meta=meta,
            )
            self._work_days.rebuild(company_id=company_id, employee_id=employee_id, work_date=day)

        self._invalidate(company_id)
        logger.info(
            "Punch recorded id=%s employee=%s company=%s type=%s at=%s",
            punch.punch_id,
            employee_id,
            company_id,
            punch_type.value,
            timestamp.isoformat(),
        )
        return punch

    def punch(
        self,
        *,
        company_id: int,
        employee_id: int,
        punch_type: PunchType,
        timestamp: Optional[datetime] = None,
        meta: Optional[PunchMeta] = None,
    ) -> PunchEvent:
        """Employee-facing punch: geofence first, then the sequence rules."""
        meta = meta or PunchMeta()
        self.check_geofence(company_id=company_id, meta=meta)
        return self.validate_and_record_punch(
            company_id=company_id,
            employee_id=employee_id,
            punch_type=punch_type,
            timestamp=timestamp or now_local(),
            meta=meta,
        )

    def check_geofence(self, *, company_id: int, meta: PunchMeta) -> Optional[float]:
        """Return the distance to the company centre, or ``None`` when not checked."""
        if meta.is_remote_work or not meta.has_coordinates:
            return None

        company = self._companies.get_by_id(company_id)
        if not company or not company.has_geofence:
            return None

        radius = float(company.geofence_radius_m or self._default_radius)
        inside, distance = is_within_radius(
            meta.latitude,
            meta.longitude,
            center_lat=company.latitude,
            center_lon=company.longitude,
            radius_m=radius,
        )
        if not inside:
            raise GeofenceError(
                f"You are too far from the workplace to punch. Distance: {round(distance)}m, "
                f"allowed radius: {round(radius)}m. Move closer or mark the punch as remote work.",
                distance_m=distance,
                radius_m=radius,
            )
        logger.debug("Geofence ok company=%s distance=%.1fm", company_id, distance)
        return distance

    def get_company_geolocation(self, company_id: int) -> Company:
        company = self._companies.get_by_id(company_id)
        if not company:
            raise NotFoundError("Company not found")
        return company

    # ------------------------------------------------------------------
    # Live state
    # ------------------------------------------------------------------
    def get_current_punch_state(
        self, *, company_id: int, employee_id: int, now: Optional[datetime] = None
    ) -> CurrentPunchState:
        start, end = work_day_window(now or now_local())
        punches = self._punches.list_in_range(company_id=company_id, employee_id=employee_id, start=start, end=end)
        return project_state(punches)

    # ------------------------------------------------------------------
    # Administrative amendments
    # ------------------------------------------------------------------
    def update_punch(
        self,
        *,
        company_id: int,
        punch_id: int,
        actor_id: int,
        changes: PunchChanges,
        reason: str,
        now: Optional[datetime] = None,
    ) -> PunchEvent:
        reason = require_non_empty(reason, "Reason")
        if changes.is_empty():
            raise ValidationError("Nothing to update")

        current = self.get_punch(company_id=company_id, punch_id=punch_id)
        updated = replace(
            current,
            punch_type=changes.punch_type if changes.punch_type is not None else current.punch_type,
            timestamp=to_naive_local(changes.timestamp) if changes.timestamp is not None else current.timestamp,
            location=changes.location if changes.location is not None else current.location,
            device_info=changes.device_info if changes.device_info is not None else current.device_info,
            notes=changes.notes if changes.notes is not None else current.notes,
            approved_by=int(actor_id),
            approved_at=now or now_local(),
        )

        days = {work_day_date(current.timestamp), work_day_date(updated.timestamp)}
        scopes = [work_day_scope(company_id, current.employee_id, d) for d in days]
        with hold_all(self._locks, scopes):
            self._punches.update(updated)
            self._edit_logs.append(
                company_id=company_id,
                punch_id=current.punch_id,
                actor_id=actor_id,
                old_timestamp=current.timestamp,
                new_timestamp=updated.timestamp,
                reason=reason,
            )
            self._rebuild_days(company_id, current.employee_id, days)

        self._invalidate(company_id)
        logger.info("Punch %s updated by %s: %s", punch_id, actor_id, reason)
        return updated

    def delete_punch(
        self,
        *,
        company_id: int,
        punch_id: int,
        actor_id: int,
        reason: str,
        now: Optional[datetime] = None,
    ) -> None:
        reason = require_non_empty(reason, "Reason")
        current = self.get_punch(company_id=company_id, punch_id=punch_id)
        day = work_day_date(current.timestamp)

        with self._locks.hold(work_day_scope(company_id, current.employee_id, day)):
            self._punches.delete(company_id=company_id, punch_id=punch_id)
            self._edit_logs.append(
                company_id=company_id,
                punch_id=current.punch_id,
                actor_id=actor_id,
                old_timestamp=current.timestamp,
                new_timestamp=now or now_local(),
                reason=f"Deleted: {reason}",
            )
            self._work_days.rebuild(company_id=company_id, employee_id=current.employee_id, work_date=day)

        self._invalidate(company_id)
        logger.info("Punch %s deleted by %s: %s", punch_id, actor_id, reason)

    def bulk_create_punches(self, *, company_id: int, entries: Sequence[BulkPunchEntry]) -> list[PunchEvent]:
        """Administrative import; all-or-nothing on employee membership."""
        if not entries:
            raise ValidationError("At least one entry is required")

        employee_ids = {int(e.employee_id) for e in entries}
        members = self._employees.list_active_members(company_id=company_id, employee_ids=employee_ids)
        if len({m.employee_id for m in members}) != len(employee_ids):
            raise NotFoundError("Some employees do not exist or are not active")

        windows = {(int(e.employee_id), work_day_date(e.timestamp)) for e in entries}
        scopes = [work_day_scope(company_id, emp, day) for emp, day in windows]
        with hold_all(self._locks, scopes):
            created = list(self._punches.create_many(company_id=company_id, entries=entries))
            for emp, day in sorted(windows):
                self._work_days.rebuild(company_id=company_id, employee_id=emp, work_date=day)

        self._invalidate(company_id)
        logger.info("Bulk created %d punches for company %s", len(created), company_id)
        return created

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get_punch(self, *, company_id: int, punch_id: int) -> PunchEvent:
        punch = self._punches.get_by_id(company_id=company_id, punch_id=punch_id)
        if not punch:
            raise NotFoundError("Punch not found")
        return punch

    def list_punches(self, *, company_id: int, filters: PunchFilters) -> PunchPage:
        if filters.page < 1:
            raise ValidationError("Page must be 1 or greater")
        if not 1 <= filters.limit <= MAX_PAGE_LIMIT:
            raise ValidationError(f"Limit must be between 1 and {MAX_PAGE_LIMIT}")
        return self._punches.search(company_id=company_id, filters=filters)

    def get_edit_log(self, *, company_id: int, punch_id: int) -> list[EditLogEntry]:
        # Audit entries outlive deleted punches.
        return list(self._edit_logs.list_for_punch(company_id=company_id, punch_id=punch_id))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _require_member(self, *, company_id: int, employee_id: int) -> None:
        if not self._employees.get_active_member(company_id=company_id, employee_id=employee_id):
            raise NotFoundError("Employee not found or not active")

    def _rebuild_days(self, company_id: int, employee_id: int, days: set[date]) -> None:
        for day in sorted(days):
            self._work_days.rebuild(company_id=company_id, employee_id=employee_id, work_date=day)

    def _invalidate(self, company_id: int) -> None:
        self._cache.invalidate(f"time-entries:{company_id}:*")
