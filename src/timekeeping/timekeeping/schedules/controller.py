from __future__ import annotations

from flask import Flask, g, request

from ..common.http import company_required, company_user_required, json_body, ok, optional_int, require_date_arg
from ..core.exceptions import ValidationError
from ..container import Container
from .model import TemplateSlot


def _employee_ids(value) -> list[int]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError("employeeIds must be a list")
    return [optional_int(v, "employeeIds") for v in value]


def _week_data(value) -> dict[int, list[TemplateSlot]]:
    if not isinstance(value, dict):
        raise ValidationError("weekData must be an object keyed by day of week")
    week_data: dict[int, list[TemplateSlot]] = {}
    for day, slots in value.items():
        if not isinstance(slots, list):
            raise ValidationError("Each day of weekData must be a list")
        if not all(isinstance(s, dict) for s in slots):
            raise ValidationError("Each template slot must be an object")
        week_data[optional_int(day, "dayOfWeek")] = [
            TemplateSlot(shift_id=optional_int(s.get("shiftId"), "shiftId"), notes=s.get("notes")) for s in slots
        ]
    return week_data


def register(app: Flask, container: Container) -> None:
    weekly = container.weekly_schedule_service

    @app.route("/api/weekly-schedules", methods=["GET"], endpoint="api_weekly_schedules")
    @company_required
    def api_weekly_schedules():
        week_start = require_date_arg(request.args.get("weekStart"), "weekStart")
        employee_id = optional_int(request.args.get("employeeId"), "employeeId") or g.employee_id
        if employee_id is None:
            rows = weekly.get_company_weekly_assignments(company_id=g.company_id, week_start=week_start)
        else:
            rows = weekly.get_weekly_assignments(
                company_id=g.company_id, employee_id=employee_id, week_start=week_start
            )
        return ok([r.to_dict() for r in rows])

    @app.route("/api/weekly-schedules", methods=["POST"], endpoint="api_weekly_schedule_upsert")
    @company_user_required
    def api_weekly_schedule_upsert():
        data = json_body()
        employee_id = optional_int(data.get("employeeId"), "employeeId")
        day_of_week = optional_int(data.get("dayOfWeek"), "dayOfWeek")
        if employee_id is None or day_of_week is None:
            raise ValidationError("employeeId, weekStart and dayOfWeek are required")
        assignment = weekly.upsert_weekly_assignment(
            company_id=g.company_id,
            employee_id=employee_id,
            week_start=require_date_arg(data.get("weekStart"), "weekStart"),
            day_of_week=day_of_week,
            shift_id=optional_int(data.get("shiftId"), "shiftId"),
            notes=data.get("notes"),
        )
        return ok(assignment.to_dict(), 201)

    @app.route("/api/weekly-schedules/<int:assignment_id>", methods=["DELETE"], endpoint="api_weekly_schedule_delete")
    @company_user_required
    def api_weekly_schedule_delete(assignment_id: int):
        weekly.delete_weekly_assignment(company_id=g.company_id, assignment_id=assignment_id)
        return ok(None, message="Weekly assignment deleted")

    @app.route("/api/weekly-schedules/copy", methods=["POST"], endpoint="api_weekly_copy")
    @company_user_required
    def api_weekly_copy():
        data = json_body()
        created = weekly.copy_week(
            company_id=g.company_id,
            from_week_start=require_date_arg(data.get("fromWeekStart"), "fromWeekStart"),
            to_week_start=require_date_arg(data.get("toWeekStart"), "toWeekStart"),
            employee_ids=_employee_ids(data.get("employeeIds")) or None,
        )
        return ok([a.to_dict() for a in created], 201)

    @app.route("/api/weekly-schedules/templates", methods=["GET"], endpoint="api_weekly_templates")
    @company_required
    def api_weekly_templates():
        return ok([t.to_dict() for t in weekly.list_templates(company_id=g.company_id)])

    @app.route("/api/weekly-schedules/templates", methods=["POST"], endpoint="api_weekly_template_create")
    @company_user_required
    def api_weekly_template_create():
        data = json_body()
        template = weekly.create_template(
            company_id=g.company_id,
            name=data.get("name") or "",
            description=data.get("description"),
            week_data=_week_data(data.get("weekData")),
        )
        return ok(template.to_dict(), 201)

    @app.route(
        "/api/weekly-schedules/templates/<int:template_id>/apply",
        methods=["POST"],
        endpoint="api_weekly_template_apply",
    )
    @company_user_required
    def api_weekly_template_apply(template_id: int):
        data = json_body()
        created = weekly.apply_template(
            company_id=g.company_id,
            template_id=template_id,
            week_start=require_date_arg(data.get("weekStart"), "weekStart"),
            employee_ids=_employee_ids(data.get("employeeIds")),
        )
        return ok([a.to_dict() for a in created], 201)

    @app.route("/api/weekly-schedules/summary", methods=["GET"], endpoint="api_weekly_hours_summary")
    @company_required
    def api_weekly_hours_summary():
        week_start = require_date_arg(request.args.get("weekStart"), "weekStart")
        return ok(weekly.get_weekly_hours_summary(company_id=g.company_id, week_start=week_start).to_dict())
