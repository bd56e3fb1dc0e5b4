from __future__ import annotations

from datetime import date

import pytest

from src.timekeeping.timekeeping.core.exceptions import ConflictError, NotFoundError, ValidationError
from src.timekeeping.timekeeping.schedules.model import TemplateSlot

COMPANY_ID = 1
MONDAY = date(2025, 3, 3)
NEXT_MONDAY = date(2025, 3, 10)


@pytest.fixture
def shifts(stores):
    return {
        "morning": stores.shifts.add(COMPANY_ID, "Morning", "09:00", "13:00"),
        "afternoon": stores.shifts.add(COMPANY_ID, "Afternoon", "13:00", "17:00"),
        "midday": stores.shifts.add(COMPANY_ID, "Midday", "12:00", "17:00"),
        "night": stores.shifts.add(COMPANY_ID, "Night", "22:00", "06:00", break_minutes=30),
        "early": stores.shifts.add(COMPANY_ID, "Early", "05:00", "09:00"),
        "foreign": stores.shifts.add(2, "Foreign", "09:00", "13:00"),
    }


def _assign(container, shift_id, *, employee_id=10, day=0, week=MONDAY, notes=None):
    return container.weekly_schedule_service.upsert_weekly_assignment(
        company_id=COMPANY_ID,
        employee_id=employee_id,
        week_start=week,
        day_of_week=day,
        shift_id=shift_id,
        notes=notes,
    )


def test_adjacent_shifts_are_both_kept(container, shifts):
    _assign(container, shifts["morning"].shift_id)
    _assign(container, shifts["afternoon"].shift_id)

    rows = container.weekly_schedule_service.get_weekly_assignments(
        company_id=COMPANY_ID, employee_id=10, week_start=MONDAY
    )
    assert [r.shift.name for r in rows] == ["Morning", "Afternoon"]
    assert rows[0].to_dict()["date"] == "2025-03-03"


def test_overlapping_shift_is_rejected(container, shifts):
    _assign(container, shifts["morning"].shift_id)

    with pytest.raises(ConflictError, match="overlaps"):
        _assign(container, shifts["midday"].shift_id)


def test_night_shift_overlap_uses_wrapped_intervals(container, shifts):
    _assign(container, shifts["night"].shift_id, day=2)

    with pytest.raises(ConflictError):
        _assign(container, shifts["early"].shift_id, day=2)


def test_same_shift_twice_is_a_duplicate(container, shifts):
    _assign(container, shifts["morning"].shift_id)

    with pytest.raises(ConflictError, match="already assigned"):
        _assign(container, shifts["morning"].shift_id)


def test_same_shift_on_other_day_or_employee_is_fine(container, shifts):
    _assign(container, shifts["morning"].shift_id)
    _assign(container, shifts["morning"].shift_id, day=1)
    _assign(container, shifts["morning"].shift_id, employee_id=11)


def test_rest_day_replaces_the_whole_day(container, stores, shifts):
    _assign(container, shifts["morning"].shift_id)
    _assign(container, shifts["afternoon"].shift_id)

    rest = _assign(container, None)

    assert rest.is_rest_day
    assert rest.notes == "Rest day"
    assert stores.assignments.list_for_slot(
        company_id=COMPANY_ID, employee_id=10, week_start=MONDAY, day_of_week=0
    ) == [rest]


@pytest.mark.parametrize(
    "kwargs,error",
    [
        ({"employee_id": 20}, NotFoundError),
        ({"week": date(2025, 3, 4)}, ValidationError),
        ({"day": 7}, ValidationError),
    ],
)
def test_upsert_validation(container, shifts, kwargs, error):
    with pytest.raises(error):
        _assign(container, shifts["morning"].shift_id, **kwargs)


def test_shift_from_another_company_is_not_found(container, shifts):
    with pytest.raises(NotFoundError):
        _assign(container, shifts["foreign"].shift_id)


def test_delete_assignment_invalidates_view(container, shifts):
    service = container.weekly_schedule_service
    created = _assign(container, shifts["morning"].shift_id)
    assert len(service.get_weekly_assignments(company_id=COMPANY_ID, employee_id=10, week_start=MONDAY)) == 1

    service.delete_weekly_assignment(company_id=COMPANY_ID, assignment_id=created.assignment_id)

    assert service.get_weekly_assignments(company_id=COMPANY_ID, employee_id=10, week_start=MONDAY) == []
    with pytest.raises(NotFoundError):
        service.delete_weekly_assignment(company_id=COMPANY_ID, assignment_id=created.assignment_id)


def test_copy_week_skips_duplicates_and_overlaps(container, shifts, caplog):
    _assign(container, shifts["morning"].shift_id)
    _assign(container, shifts["afternoon"].shift_id)
    _assign(container, shifts["morning"].shift_id, employee_id=11, day=3)
    _assign(container, shifts["morning"].shift_id, week=NEXT_MONDAY)
    _assign(container, shifts["midday"].shift_id, employee_id=11, day=3, week=NEXT_MONDAY)

    created = container.weekly_schedule_service.copy_week(
        company_id=COMPANY_ID, from_week_start=MONDAY, to_week_start=NEXT_MONDAY
    )

    # Morning for employee 10 already exists, employee 11's morning overlaps midday.
    assert [(a.employee_id, a.shift_id) for a in created] == [(10, shifts["afternoon"].shift_id)]
    assert all(a.week_start == NEXT_MONDAY for a in created)
    assert "Dropped overlapping shift" in caplog.text


def test_copy_week_can_be_limited_to_employees(container, shifts):
    _assign(container, shifts["morning"].shift_id)
    _assign(container, shifts["morning"].shift_id, employee_id=11)

    created = container.weekly_schedule_service.copy_week(
        company_id=COMPANY_ID, from_week_start=MONDAY, to_week_start=NEXT_MONDAY, employee_ids=[11]
    )

    assert [a.employee_id for a in created] == [11]


def test_copy_empty_week_fails(container):
    with pytest.raises(NotFoundError):
        container.weekly_schedule_service.copy_week(
            company_id=COMPANY_ID, from_week_start=MONDAY, to_week_start=NEXT_MONDAY
        )


def test_template_round_trip_and_apply(container, shifts):
    service = container.weekly_schedule_service
    template = service.create_template(
        company_id=COMPANY_ID,
        name="Standard week",
        week_data={
            0: [TemplateSlot(shift_id=shifts["morning"].shift_id), TemplateSlot(shift_id=shifts["midday"].shift_id)],
            5: [TemplateSlot(shift_id=None, notes="Weekend")],
        },
    )
    assert [t.name for t in service.list_templates(company_id=COMPANY_ID)] == ["Standard week"]

    created = service.apply_template(
        company_id=COMPANY_ID, template_id=template.template_id, week_start=MONDAY, employee_ids=[10, 11]
    )

    # Midday overlaps morning within the same template day and is dropped.
    assert sorted((a.employee_id, a.day_of_week, a.shift_id) for a in created) == [
        (10, 0, shifts["morning"].shift_id),
        (10, 5, None),
        (11, 0, shifts["morning"].shift_id),
        (11, 5, None),
    ]


def test_template_with_unknown_shift_is_rejected(container, shifts):
    with pytest.raises(NotFoundError, match=str(shifts["foreign"].shift_id)):
        container.weekly_schedule_service.create_template(
            company_id=COMPANY_ID,
            name="Bad",
            week_data={0: [TemplateSlot(shift_id=shifts["foreign"].shift_id)]},
        )


def test_apply_template_validation(container, shifts):
    service = container.weekly_schedule_service
    template = service.create_template(
        company_id=COMPANY_ID, name="Mornings", week_data={0: [TemplateSlot(shift_id=shifts["morning"].shift_id)]}
    )

    with pytest.raises(ValidationError):
        service.apply_template(
            company_id=COMPANY_ID, template_id=template.template_id, week_start=MONDAY, employee_ids=[]
        )
    with pytest.raises(NotFoundError, match="Template"):
        service.apply_template(company_id=COMPANY_ID, template_id=999, week_start=MONDAY, employee_ids=[10])
    with pytest.raises(NotFoundError, match="employees"):
        service.apply_template(
            company_id=COMPANY_ID, template_id=template.template_id, week_start=MONDAY, employee_ids=[10, 20]
        )


def test_weekly_hours_summary(container, shifts):
    _assign(container, shifts["morning"].shift_id)
    _assign(container, shifts["afternoon"].shift_id)
    _assign(container, shifts["night"].shift_id, employee_id=11, day=4)
    _assign(container, None, employee_id=12, day=6)

    summary = container.weekly_schedule_service.get_weekly_hours_summary(company_id=COMPANY_ID, week_start=MONDAY)

    assert summary.total_employees == 3
    assert summary.employees_with_schedule == 2
    assert summary.total_assigned_hours == 16.0
    monday, friday, sunday = summary.daily_breakdown[0], summary.daily_breakdown[4], summary.daily_breakdown[6]
    assert (monday.day_name, monday.total_hours, monday.employee_count) == ("Monday", 8.0, 1)
    assert (friday.total_hours, friday.employee_count) == (8.0, 1)
    assert (sunday.total_hours, sunday.employee_count) == (0.0, 0)
