from __future__ import annotations

from datetime import date
from typing import Iterable, Mapping, Optional, Protocol, Sequence

from .model import AssignmentDraft, TemplateSlot, WeeklyAssignment, WeeklyTemplate


class WeeklyAssignmentRepository(Protocol):
    def get_by_id(self, *, company_id: int, assignment_id: int) -> Optional[WeeklyAssignment]:
        raise NotImplementedError

    def list_for_slot(
        self, *, company_id: int, employee_id: int, week_start: date, day_of_week: int
    ) -> Sequence[WeeklyAssignment]:
        """Active assignments of one employee on one day of one week."""

        raise NotImplementedError

    def list_for_week(
        self, *, company_id: int, week_start: date, employee_ids: Optional[Iterable[int]] = None
    ) -> Sequence[WeeklyAssignment]:
        """Active assignments of a week, ordered by employee then day."""

        raise NotImplementedError

    def create(self, *, company_id: int, draft: AssignmentDraft) -> WeeklyAssignment:
        raise NotImplementedError

    def create_many(self, *, company_id: int, drafts: Sequence[AssignmentDraft]) -> Sequence[WeeklyAssignment]:
        raise NotImplementedError

    def delete(self, *, company_id: int, assignment_id: int) -> bool:
        raise NotImplementedError

    def delete_slot(self, *, company_id: int, employee_id: int, week_start: date, day_of_week: int) -> int:
        raise NotImplementedError


class WeeklyTemplateRepository(Protocol):
    def get_by_id(self, *, company_id: int, template_id: int) -> Optional[WeeklyTemplate]:
        raise NotImplementedError

    def list_active(self, *, company_id: int) -> Sequence[WeeklyTemplate]:
        raise NotImplementedError

    def create(
        self,
        *,
        company_id: int,
        name: str,
        week_data: Mapping[int, Sequence[TemplateSlot]],
        description: Optional[str] = None,
    ) -> WeeklyTemplate:
        raise NotImplementedError
