from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from ..core.constants import DEFAULT_PAGE, DEFAULT_PAGE_LIMIT
from ..core.enums import PunchSource, PunchType


@dataclass(frozen=True)
class PunchEvent:
    """Domain entity: a single clock event.

    Immutable once created; amendments go through an audited edit.
    """

    punch_id: int
    employee_id: int
    company_id: int
    punch_type: PunchType
    timestamp: datetime
    source: PunchSource = PunchSource.WEB
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_remote_work: bool = False
    device_info: Optional[str] = None
    notes: Optional[str] = None
    created_by_employee: bool = True
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None

    @property
    def sort_key(self) -> tuple[datetime, int]:
        # Equal timestamps keep insertion order.
        return self.timestamp, self.punch_id

    def to_dict(self) -> dict:
        return {
            "id": self.punch_id,
            "employeeId": self.employee_id,
            "companyId": self.company_id,
            "type": self.punch_type.value,
            "timestamp": self.timestamp.isoformat(),
            "source": self.source.value,
            "location": self.location,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "isRemoteWork": self.is_remote_work,
            "deviceInfo": self.device_info,
            "notes": self.notes,
            "createdByEmployee": self.created_by_employee,
            "approvedBy": self.approved_by,
            "approvedAt": self.approved_at.isoformat() if self.approved_at else None,
        }


def order_punches(punches: Iterable[PunchEvent]) -> list[PunchEvent]:
    return sorted(punches, key=lambda p: p.sort_key)


@dataclass(frozen=True)
class PunchMeta:
    """Optional request metadata attached to a new punch."""

    source: PunchSource = PunchSource.WEB
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_remote_work: bool = False
    device_info: Optional[str] = None
    notes: Optional[str] = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@dataclass(frozen=True)
class PunchChanges:
    """Fields an administrator may amend on an existing punch."""

    punch_type: Optional[PunchType] = None
    timestamp: Optional[datetime] = None
    location: Optional[str] = None
    device_info: Optional[str] = None
    notes: Optional[str] = None

    def is_empty(self) -> bool:
        return all(
            v is None for v in (self.punch_type, self.timestamp, self.location, self.device_info, self.notes)
        )


@dataclass(frozen=True)
class BulkPunchEntry:
    employee_id: int
    punch_type: PunchType
    timestamp: datetime
    source: PunchSource = PunchSource.ADMIN
    location: Optional[str] = None
    device_info: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class EditLogEntry:
    """Append-only audit record of an edit or deletion."""

    log_id: int
    punch_id: int
    actor_id: int
    old_timestamp: datetime
    new_timestamp: datetime
    reason: str
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.log_id,
            "punchId": self.punch_id,
            "actorId": self.actor_id,
            "oldTimestamp": self.old_timestamp.isoformat(),
            "newTimestamp": self.new_timestamp.isoformat(),
            "reason": self.reason,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class PunchFilters:
    employee_id: Optional[int] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    punch_type: Optional[PunchType] = None
    source: Optional[PunchSource] = None
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_PAGE_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class PunchPage:
    items: list[PunchEvent] = field(default_factory=list)
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_PAGE_LIMIT
    total: int = 0

    @property
    def pages(self) -> int:
        return -(-self.total // self.limit) if self.limit else 0

    def to_dict(self) -> dict:
        return {
            "entries": [p.to_dict() for p in self.items],
            "pagination": {"page": self.page, "limit": self.limit, "total": self.total, "pages": self.pages},
        }
