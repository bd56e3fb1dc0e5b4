from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Employee:
    """Domain entity: an employee as seen from one company."""

    employee_id: int
    name: str
    surname: Optional[str] = None
    dni: Optional[str] = None
    active: bool = True


@dataclass(frozen=True)
class Company:
    """Domain entity: company with its optional geofence."""

    company_id: int
    name: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    geofence_radius_m: Optional[int] = None
    require_geolocation: bool = False

    @property
    def has_geofence(self) -> bool:
        return self.require_geolocation and self.latitude is not None and self.longitude is not None
