from __future__ import annotations

from dataclasses import dataclass
from datetime import date

import pytest

from src.timekeeping.timekeeping.common.cache import MemoryCache, SafeCache
from src.timekeeping.timekeeping.common.locks import LocalLockManager
from src.timekeeping.timekeeping.container import Container, wire_services
from src.timekeeping.timekeeping.employees.model import Company
from tests.fakes import (
    InMemoryAssignments,
    InMemoryCompanies,
    InMemoryEditLogs,
    InMemoryEmployees,
    InMemoryPunches,
    InMemoryShifts,
    InMemoryTemplates,
    InMemoryWorkDays,
)

COMPANY_ID = 1
OTHER_COMPANY_ID = 2
MONDAY = date(2025, 3, 3)


@dataclass
class Stores:
    employees: InMemoryEmployees
    companies: InMemoryCompanies
    punches: InMemoryPunches
    edit_logs: InMemoryEditLogs
    work_days: InMemoryWorkDays
    shifts: InMemoryShifts
    assignments: InMemoryAssignments
    templates: InMemoryTemplates
    cache: SafeCache


@pytest.fixture
def stores() -> Stores:
    employees = InMemoryEmployees()
    employees.add(COMPANY_ID, 10, "Ana")
    employees.add(COMPANY_ID, 11, "Bruno")
    employees.add(COMPANY_ID, 12, "Carla")
    employees.add(OTHER_COMPANY_ID, 20, "Dario")

    companies = InMemoryCompanies(
        companies={
            COMPANY_ID: Company(
                company_id=COMPANY_ID,
                name="Acme",
                latitude=40.4168,
                longitude=-3.7038,
                geofence_radius_m=100,
                require_geolocation=True,
            ),
            OTHER_COMPANY_ID: Company(company_id=OTHER_COMPANY_ID, name="Other"),
        }
    )
    assignments = InMemoryAssignments()
    return Stores(
        employees=employees,
        companies=companies,
        punches=InMemoryPunches(),
        edit_logs=InMemoryEditLogs(),
        work_days=InMemoryWorkDays(),
        shifts=InMemoryShifts(assignments),
        assignments=assignments,
        templates=InMemoryTemplates(),
        cache=SafeCache(MemoryCache()),
    )


@pytest.fixture
def container(stores: Stores) -> Container:
    return wire_services(
        punches=stores.punches,
        edit_logs=stores.edit_logs,
        employees=stores.employees,
        companies=stores.companies,
        work_days=stores.work_days,
        shifts=stores.shifts,
        assignments=stores.assignments,
        templates=stores.templates,
        locks=LocalLockManager(timeout_seconds=1),
        cache=stores.cache,
    )


@pytest.fixture
def client(container: Container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    from src.timekeeping.timekeeping.main import create_app

    app = create_app(container)
    return app.test_client()
