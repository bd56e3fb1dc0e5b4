from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import PunchType
from .model import BulkPunchEntry, EditLogEntry, PunchEvent, PunchFilters, PunchMeta, PunchPage


class PunchRepository(Protocol):
    """Append-mostly event store of punches.

    Range queries are half-open ``[start, end)`` and sorted ascending by
    timestamp, ties by insertion order.
    """

    def list_in_range(
        self, *, company_id: int, employee_id: int, start: datetime, end: datetime
    ) -> Sequence[PunchEvent]:
        raise NotImplementedError

    def list_company_in_range(self, *, company_id: int, start: datetime, end: datetime) -> Sequence[PunchEvent]:
        raise NotImplementedError

    def get_by_id(self, *, company_id: int, punch_id: int) -> Optional[PunchEvent]:
        raise NotImplementedError

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
        raise NotImplementedError

    def create_many(self, *, company_id: int, entries: Sequence[BulkPunchEntry]) -> Sequence[PunchEvent]:
        raise NotImplementedError

    def update(self, punch: PunchEvent) -> PunchEvent:
        """Persist every mutable field of ``punch``."""

        raise NotImplementedError

    def delete(self, *, company_id: int, punch_id: int) -> bool:
        raise NotImplementedError

    def search(self, *, company_id: int, filters: PunchFilters) -> PunchPage:
        raise NotImplementedError


class EditLogRepository(Protocol):
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
        raise NotImplementedError

    def list_for_punch(self, *, company_id: int, punch_id: int) -> Sequence[EditLogEntry]:
        raise NotImplementedError
