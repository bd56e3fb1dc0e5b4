from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from .model import Company, Employee


class EmployeeRepository(Protocol):
    """Read-only view of employee/company membership.

    Note (DIP): services depend on this interface, never on a concrete DB.
    """

    def get_active_member(self, *, company_id: int, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def list_active_members(self, *, company_id: int, employee_ids: Iterable[int]) -> Sequence[Employee]:
        raise NotImplementedError

    def count_active_members(self, *, company_id: int) -> int:
        raise NotImplementedError


class CompanyRepository(Protocol):
    def get_by_id(self, company_id: int) -> Optional[Company]:
        raise NotImplementedError
