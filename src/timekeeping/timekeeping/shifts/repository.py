from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from .model import ShiftDefinition


class ShiftRepository(Protocol):
    def get_by_id(self, *, company_id: int, shift_id: int) -> Optional[ShiftDefinition]:
        raise NotImplementedError

    def get_many(self, *, company_id: int, shift_ids: Iterable[int]) -> dict[int, ShiftDefinition]:
        raise NotImplementedError

    def find_by_name(self, *, company_id: int, name: str) -> Optional[ShiftDefinition]:
        raise NotImplementedError

    def list_for_company(
        self, *, company_id: int, active: Optional[bool] = None, search: Optional[str] = None
    ) -> Sequence[ShiftDefinition]:
        raise NotImplementedError

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
        raise NotImplementedError

    def update(self, shift: ShiftDefinition) -> ShiftDefinition:
        raise NotImplementedError

    def count_assignments(self, *, company_id: int, shift_id: int) -> int:
        """Weekly assignments that still reference the shift."""

        raise NotImplementedError

    def delete(self, *, company_id: int, shift_id: int, cascade_assignments: bool = False) -> int:
        """Delete the shift; returns how many weekly assignments were removed with it."""

        raise NotImplementedError
