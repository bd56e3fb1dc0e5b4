from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from typing import Iterable, Mapping, Optional, Sequence

from ..common.cache import SafeCache
from ..common.datetime_utils import require_week_start
from ..common.locks import LockManager, hold_all, weekly_slot_scope
from ..common.validators import clean_note, require_day_of_week, require_min_length
from ..core.constants import DEFAULT_REST_DAY_NOTE, WEEKLY_VIEW_TTL_SECONDS
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..employees.repository import EmployeeRepository
from ..shifts.model import ShiftDefinition
from ..shifts.overlap import duration_minutes, overlaps
from ..shifts.repository import ShiftRepository
from .model import (
    DAY_NAMES,
    AssignedShift,
    AssignmentDraft,
    DayHours,
    TemplateSlot,
    WeeklyAssignment,
    WeeklyHoursSummary,
    WeeklyTemplate,
)
from .repository import WeeklyAssignmentRepository, WeeklyTemplateRepository

logger = logging.getLogger(__name__)

Slot = tuple[int, int]


def _shifts_collide(candidate: ShiftDefinition, other: Optional[ShiftDefinition]) -> bool:
    if other is None:
        return False
    return overlaps(candidate.start_time, candidate.end_time, other.start_time, other.end_time)


class WeeklyScheduleService:
    """Weekly shift assignments.

    Every read-check-insert for an (employee, week, day) slot runs under that
    slot's lock so two concurrent requests cannot both pass the overlap check.
    """

    def __init__(
        self,
        assignments: WeeklyAssignmentRepository,
        templates: WeeklyTemplateRepository,
        shifts: ShiftRepository,
        employees: EmployeeRepository,
        *,
        locks: LockManager,
        cache: SafeCache,
    ):
        self._assignments = assignments
        self._templates = templates
        self._shifts = shifts
        self._employees = employees
        self._locks = locks
        self._cache = cache

    # ------------------------------------------------------------------
    # Single assignment
    # ------------------------------------------------------------------
    def upsert_weekly_assignment(
        self,
        *,
        company_id: int,
        employee_id: int,
        week_start: date,
        day_of_week: int,
        shift_id: Optional[int],
        notes: Optional[str] = None,
    ) -> WeeklyAssignment:
        """Add a shift to a day, or mark the day as rest when ``shift_id`` is None.

        Shifts are additive: a new non-overlapping shift never replaces an
        existing one. A rest day replaces everything on that day.
        """
        week_start = require_week_start(week_start)
        day_of_week = require_day_of_week(day_of_week)
        notes = clean_note(notes)
        if not self._employees.get_active_member(company_id=company_id, employee_id=employee_id):
            raise NotFoundError("Employee does not belong to this company")

        shift = None
        if shift_id is not None:
            shift = self._shifts.get_by_id(company_id=company_id, shift_id=shift_id)
            if not shift:
                raise NotFoundError("Shift does not belong to this company")

        with self._locks.hold(weekly_slot_scope(company_id, employee_id, week_start, day_of_week)):
            if shift is None:
                removed = self._assignments.delete_slot(
                    company_id=company_id, employee_id=employee_id, week_start=week_start, day_of_week=day_of_week
                )
                draft = AssignmentDraft(
                    employee_id=employee_id,
                    week_start=week_start,
                    day_of_week=day_of_week,
                    notes=notes or DEFAULT_REST_DAY_NOTE,
                )
                logger.debug("Rest day replaces %d assignment(s)", removed)
            else:
                existing = self._assignments.list_for_slot(
                    company_id=company_id, employee_id=employee_id, week_start=week_start, day_of_week=day_of_week
                )
                if any(a.shift_id == shift.shift_id for a in existing):
                    raise ConflictError("This shift is already assigned on that day")

                existing_shifts = self._shifts.get_many(
                    company_id=company_id, shift_ids=[a.shift_id for a in existing if a.shift_id is not None]
                )
                for other in existing_shifts.values():
                    if _shifts_collide(shift, other):
                        raise ConflictError(
                            f"Shift {shift.start_time}-{shift.end_time} overlaps "
                            f"existing shift {other.start_time}-{other.end_time}"
                        )
                draft = AssignmentDraft(
                    employee_id=employee_id,
                    week_start=week_start,
                    day_of_week=day_of_week,
                    shift_id=shift.shift_id,
                    notes=notes,
                )

            created = self._assignments.create(company_id=company_id, draft=draft)

        self._invalidate(company_id, week_start, employee_id)
        logger.info(
            "Weekly assignment %s employee=%s week=%s day=%d shift=%s",
            created.assignment_id,
            employee_id,
            week_start,
            day_of_week,
            created.shift_id,
        )
        return created

    def delete_weekly_assignment(self, *, company_id: int, assignment_id: int) -> None:
        assignment = self._assignments.get_by_id(company_id=company_id, assignment_id=assignment_id)
        if not assignment:
            raise NotFoundError("Weekly assignment not found")

        scope = weekly_slot_scope(company_id, assignment.employee_id, assignment.week_start, assignment.day_of_week)
        with self._locks.hold(scope):
            self._assignments.delete(company_id=company_id, assignment_id=assignment_id)

        self._invalidate(company_id, assignment.week_start, assignment.employee_id)
        logger.info("Weekly assignment %s deleted", assignment_id)

    # ------------------------------------------------------------------
    # Batch: copy week / apply template
    # ------------------------------------------------------------------
    def copy_week(
        self,
        *,
        company_id: int,
        from_week_start: date,
        to_week_start: date,
        employee_ids: Optional[Iterable[int]] = None,
    ) -> list[WeeklyAssignment]:
        """Copy a week's assignments, keeping only entries that fit the destination."""
        from_week_start = require_week_start(from_week_start)
        to_week_start = require_week_start(to_week_start)
        ids = sorted({int(i) for i in employee_ids}) if employee_ids else None

        source = self._assignments.list_for_week(
            company_id=company_id, week_start=from_week_start, employee_ids=ids
        )
        if source:
            members = self._employees.list_active_members(
                company_id=company_id, employee_ids={a.employee_id for a in source}
            )
            member_ids = {m.employee_id for m in members}
            source = [a for a in source if a.employee_id in member_ids]
        if not source:
            raise NotFoundError("No assignments to copy in the source week")

        candidates = [
            AssignmentDraft(
                employee_id=a.employee_id,
                week_start=to_week_start,
                day_of_week=a.day_of_week,
                shift_id=a.shift_id,
                notes=a.notes,
            )
            for a in source
        ]
        created = self._merge_into_week(company_id=company_id, week_start=to_week_start, candidates=candidates)
        logger.info(
            "Copied week %s -> %s: %d of %d entries inserted",
            from_week_start,
            to_week_start,
            len(created),
            len(candidates),
        )
        return created

    def apply_template(
        self,
        *,
        company_id: int,
        template_id: int,
        week_start: date,
        employee_ids: Iterable[int],
    ) -> list[WeeklyAssignment]:
        week_start = require_week_start(week_start)
        ids = sorted({int(i) for i in employee_ids or ()})
        if not ids:
            raise ValidationError("Select at least one employee")

        template = self._templates.get_by_id(company_id=company_id, template_id=template_id)
        if not template:
            raise NotFoundError("Template not found")

        members = self._employees.list_active_members(company_id=company_id, employee_ids=ids)
        if len({m.employee_id for m in members}) != len(ids):
            raise NotFoundError("Some employees do not exist or are not active")

        candidates = [
            AssignmentDraft(
                employee_id=employee_id,
                week_start=week_start,
                day_of_week=day,
                shift_id=slot.shift_id,
                notes=slot.notes,
            )
            for employee_id in ids
            for day, slots in sorted(template.week_data.items())
            for slot in slots
        ]
        created = self._merge_into_week(company_id=company_id, week_start=week_start, candidates=candidates)
        logger.info(
            "Applied template %s to week %s: %d of %d entries inserted",
            template_id,
            week_start,
            len(created),
            len(candidates),
        )
        return created

    def _merge_into_week(
        self, *, company_id: int, week_start: date, candidates: Sequence[AssignmentDraft]
    ) -> list[WeeklyAssignment]:
        """Best-effort merge: exact duplicates and overlapping shifts are dropped."""
        slots = {(c.employee_id, c.day_of_week) for c in candidates}
        scopes = [weekly_slot_scope(company_id, emp, week_start, day) for emp, day in slots]

        with hold_all(self._locks, scopes):
            existing = self._assignments.list_for_week(
                company_id=company_id, week_start=week_start, employee_ids={emp for emp, _ in slots}
            )
            shift_ids = {a.shift_id for a in existing} | {c.shift_id for c in candidates}
            shifts = self._shifts.get_many(company_id=company_id, shift_ids=[s for s in shift_ids if s is not None])

            taken: dict[Slot, list[Optional[int]]] = defaultdict(list)
            for a in existing:
                taken[(a.employee_id, a.day_of_week)].append(a.shift_id)

            accepted: list[AssignmentDraft] = []
            for c in candidates:
                slot = (c.employee_id, c.day_of_week)
                if c.shift_id in taken[slot]:
                    continue
                if c.shift_id is not None:
                    shift = shifts.get(c.shift_id)
                    if shift is None:
                        logger.warning(
                            "Dropped entry for employee %s: shift %s no longer exists", c.employee_id, c.shift_id
                        )
                        continue
                    if any(_shifts_collide(shift, shifts.get(s)) for s in taken[slot] if s is not None):
                        logger.warning(
                            "Dropped overlapping shift %s for employee %s on day %d",
                            c.shift_id,
                            c.employee_id,
                            c.day_of_week,
                        )
                        continue
                taken[slot].append(c.shift_id)
                accepted.append(c)

            created = list(self._assignments.create_many(company_id=company_id, drafts=accepted)) if accepted else []

        self._invalidate(company_id, week_start)
        return created

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------
    def create_template(
        self,
        *,
        company_id: int,
        name: str,
        week_data: Mapping[int, Sequence[TemplateSlot]],
        description: Optional[str] = None,
    ) -> WeeklyTemplate:
        name = require_min_length(name, "Name", 2)
        normalized = {require_day_of_week(day): tuple(slots) for day, slots in (week_data or {}).items()}

        shift_ids = {s.shift_id for slots in normalized.values() for s in slots if s.shift_id is not None}
        known = self._shifts.get_many(company_id=company_id, shift_ids=shift_ids)
        missing = sorted(shift_ids - set(known))
        if missing:
            raise NotFoundError(f"Shifts not found in this company: {', '.join(map(str, missing))}")

        template = self._templates.create(
            company_id=company_id, name=name, week_data=normalized, description=clean_note(description)
        )
        logger.info("Weekly template %s created for company %s", template.template_id, company_id)
        return template

    def list_templates(self, *, company_id: int) -> list[WeeklyTemplate]:
        return list(self._templates.list_active(company_id=company_id))

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    def get_weekly_assignments(self, *, company_id: int, employee_id: int, week_start: date) -> list[AssignedShift]:
        week_start = require_week_start(week_start)
        key = f"weekly-assignments:{company_id}:{employee_id}:{week_start.isoformat()}"
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        rows = self._assignments.list_for_week(
            company_id=company_id, week_start=week_start, employee_ids=[employee_id]
        )
        result = self._with_shifts(company_id, rows)
        self._cache.set(key, result, WEEKLY_VIEW_TTL_SECONDS)
        return result

    def get_company_weekly_assignments(self, *, company_id: int, week_start: date) -> list[AssignedShift]:
        week_start = require_week_start(week_start)
        key = f"company-weekly-assignments:{company_id}:{week_start.isoformat()}"
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        rows = self._assignments.list_for_week(company_id=company_id, week_start=week_start)
        result = self._with_shifts(company_id, rows)
        self._cache.set(key, result, WEEKLY_VIEW_TTL_SECONDS)
        return result

    def get_weekly_hours_summary(self, *, company_id: int, week_start: date) -> WeeklyHoursSummary:
        rows = self.get_company_weekly_assignments(company_id=company_id, week_start=week_start)

        minutes = [0] * 7
        per_day: list[set[int]] = [set() for _ in range(7)]
        employees: set[int] = set()
        for row in rows:
            if row.shift is None:
                continue
            day = row.assignment.day_of_week
            minutes[day] += duration_minutes(row.shift.start_time, row.shift.end_time)
            per_day[day].add(row.assignment.employee_id)
            employees.add(row.assignment.employee_id)

        breakdown = [
            DayHours(
                day_of_week=day,
                day_name=DAY_NAMES[day],
                total_hours=round(minutes[day] / 60, 2),
                employee_count=len(per_day[day]),
            )
            for day in range(7)
        ]
        return WeeklyHoursSummary(
            week_start=require_week_start(week_start),
            total_employees=self._employees.count_active_members(company_id=company_id),
            total_assigned_hours=round(sum(minutes) / 60, 2),
            employees_with_schedule=len(employees),
            daily_breakdown=breakdown,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _with_shifts(self, company_id: int, rows: Sequence[WeeklyAssignment]) -> list[AssignedShift]:
        shifts = self._shifts.get_many(
            company_id=company_id, shift_ids=[r.shift_id for r in rows if r.shift_id is not None]
        )
        return [AssignedShift(assignment=r, shift=shifts.get(r.shift_id) if r.shift_id else None) for r in rows]

    def _invalidate(self, company_id: int, week_start: date, employee_id: Optional[int] = None) -> None:
        week = week_start.isoformat()
        employee = employee_id if employee_id is not None else "*"
        self._cache.invalidate(
            f"weekly-assignments:{company_id}:{employee}:{week}",
            f"company-weekly-assignments:{company_id}:{week}",
        )
