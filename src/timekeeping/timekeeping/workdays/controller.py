from __future__ import annotations

from flask import Flask, g, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import company_required, company_user_required, ok, require_date_arg
from ..container import Container


def register(app: Flask, container: Container) -> None:
    work_days = container.work_day_service

    @app.route("/api/work-days/summary", methods=["GET"], endpoint="api_daily_summary")
    @company_required
    def api_daily_summary():
        day = require_date_arg(request.args.get("date"), "date")
        return ok(work_days.get_daily_summary(company_id=g.company_id, work_date=day).to_dict())

    @app.route("/api/work-days/<int:employee_id>/<work_date>", methods=["GET"], endpoint="api_work_day")
    @company_required
    def api_work_day(employee_id: int, work_date: str):
        work_day = work_days.get_work_day(
            company_id=g.company_id, employee_id=employee_id, work_date=parse_iso_date(work_date)
        )
        return ok(work_day.to_dict())

    @app.route(
        "/api/work-days/<int:employee_id>/<work_date>/recompute",
        methods=["POST"],
        endpoint="api_work_day_recompute",
    )
    @company_user_required
    def api_work_day_recompute(employee_id: int, work_date: str):
        work_day = work_days.recompute_work_day(
            company_id=g.company_id, employee_id=employee_id, work_date=parse_iso_date(work_date)
        )
        return ok(work_day.to_dict() if work_day else None)
