from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from ..common.cache import SafeCache
from ..common.datetime_utils import minutes_to_time, time_to_minutes
from ..common.validators import require_color, require_min_length
from ..core.constants import DEFAULT_SHIFT_COLOR, SHIFT_LIST_TTL_SECONDS
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from .model import ShiftChanges, ShiftDefinition
from .overlap import is_valid_shift_range
from .repository import ShiftRepository

logger = logging.getLogger(__name__)


def normalize_hhmm(value: str) -> str:
    """Validate HH:MM and zero-pad it (``9:05`` -> ``09:05``)."""
    return minutes_to_time(time_to_minutes(value))


def _require_break_minutes(value) -> int:
    try:
        minutes = int(value or 0)
    except (TypeError, ValueError):
        raise ValidationError("Break minutes must be a number")
    if minutes < 0:
        raise ValidationError("Break minutes must not be negative")
    return minutes


class ShiftService:
    def __init__(self, shifts: ShiftRepository, *, cache: SafeCache):
        self._shifts = shifts
        self._cache = cache

    def create_shift(
        self,
        *,
        company_id: int,
        name: str,
        start_time: str,
        end_time: str,
        break_minutes: Optional[int] = 0,
        flexible: bool = False,
        color: Optional[str] = None,
    ) -> ShiftDefinition:
        name = require_min_length(name, "Name", 2)
        start_time = normalize_hhmm(start_time)
        end_time = normalize_hhmm(end_time)
        if not is_valid_shift_range(start_time, end_time):
            raise ValidationError("Shift start and end times must differ")

        if self._shifts.find_by_name(company_id=company_id, name=name):
            raise ConflictError("A shift with this name already exists")

        shift = self._shifts.create(
            company_id=company_id,
            name=name,
            start_time=start_time,
            end_time=end_time,
            break_minutes=_require_break_minutes(break_minutes),
            flexible=bool(flexible),
            color=require_color(color or DEFAULT_SHIFT_COLOR),
        )
        self._invalidate(company_id)
        logger.info("Shift created id=%s company=%s %s-%s", shift.shift_id, company_id, start_time, end_time)
        return shift

    def update_shift(self, *, company_id: int, shift_id: int, changes: ShiftChanges) -> ShiftDefinition:
        current = self.get_shift(company_id=company_id, shift_id=shift_id)

        name = current.name
        if changes.name is not None:
            name = require_min_length(changes.name, "Name", 2)
            other = self._shifts.find_by_name(company_id=company_id, name=name)
            if other and other.shift_id != current.shift_id:
                raise ConflictError("A shift with this name already exists")

        start_time = normalize_hhmm(changes.start_time) if changes.start_time is not None else current.start_time
        end_time = normalize_hhmm(changes.end_time) if changes.end_time is not None else current.end_time
        if not is_valid_shift_range(start_time, end_time):
            raise ValidationError("Shift start and end times must differ")

        updated = replace(
            current,
            name=name,
            start_time=start_time,
            end_time=end_time,
            break_minutes=(
                _require_break_minutes(changes.break_minutes)
                if changes.break_minutes is not None
                else current.break_minutes
            ),
            flexible=bool(changes.flexible) if changes.flexible is not None else current.flexible,
            color=require_color(changes.color) if changes.color is not None else current.color,
            active=bool(changes.active) if changes.active is not None else current.active,
        )
        self._shifts.update(updated)
        self._invalidate(company_id)
        logger.info("Shift updated id=%s company=%s", shift_id, company_id)
        return updated

    def delete_shift(self, *, company_id: int, shift_id: int, force: bool = False) -> int:
        """Delete a shift. Returns the number of weekly assignments removed with it."""
        self.get_shift(company_id=company_id, shift_id=shift_id)

        in_use = self._shifts.count_assignments(company_id=company_id, shift_id=shift_id)
        if in_use and not force:
            raise ConflictError(
                f"Cannot delete a shift assigned in {in_use} weekly assignment(s); use force to remove them"
            )

        removed = self._shifts.delete(company_id=company_id, shift_id=shift_id, cascade_assignments=force)
        self._invalidate(company_id)
        if removed:
            self._cache.invalidate(
                f"weekly-assignments:{company_id}:*", f"company-weekly-assignments:{company_id}:*"
            )
        logger.info("Shift deleted id=%s company=%s removed_assignments=%d", shift_id, company_id, removed)
        return removed

    def get_shift(self, *, company_id: int, shift_id: int) -> ShiftDefinition:
        shift = self._shifts.get_by_id(company_id=company_id, shift_id=shift_id)
        if not shift:
            raise NotFoundError("Shift not found")
        return shift

    def list_shifts(
        self, *, company_id: int, active: Optional[bool] = None, search: Optional[str] = None
    ) -> list[ShiftDefinition]:
        search = search.strip() if search and search.strip() else None
        key = f"shifts:{company_id}:{active}:{(search or '').lower()}"
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        shifts = list(self._shifts.list_for_company(company_id=company_id, active=active, search=search))
        self._cache.set(key, shifts, SHIFT_LIST_TTL_SECONDS)
        return shifts

    def _invalidate(self, company_id: int) -> None:
        self._cache.invalidate(f"shifts:{company_id}:*")
