from __future__ import annotations

from flask import Flask, g, request

from ..common.http import company_required, company_user_required, json_body, ok, optional_bool, optional_int
from ..container import Container
from .model import ShiftChanges


def register(app: Flask, container: Container) -> None:
    shifts = container.shift_service

    @app.route("/api/shifts", methods=["GET"], endpoint="api_shifts")
    @company_required
    def api_shifts():
        rows = shifts.list_shifts(
            company_id=g.company_id,
            active=optional_bool(request.args.get("active")),
            search=request.args.get("search"),
        )
        return ok([s.to_dict() for s in rows])

    @app.route("/api/shifts", methods=["POST"], endpoint="api_shift_create")
    @company_user_required
    def api_shift_create():
        data = json_body()
        shift = shifts.create_shift(
            company_id=g.company_id,
            name=data.get("name") or "",
            start_time=data.get("startTime"),
            end_time=data.get("endTime"),
            break_minutes=optional_int(data.get("breakMinutes"), "breakMinutes"),
            flexible=bool(optional_bool(data.get("flexible"))),
            color=data.get("color"),
        )
        return ok(shift.to_dict(), 201, message="Shift created")

    @app.route("/api/shifts/<int:shift_id>", methods=["GET"], endpoint="api_shift_get")
    @company_required
    def api_shift_get(shift_id: int):
        return ok(shifts.get_shift(company_id=g.company_id, shift_id=shift_id).to_dict())

    @app.route("/api/shifts/<int:shift_id>", methods=["PUT"], endpoint="api_shift_update")
    @company_user_required
    def api_shift_update(shift_id: int):
        data = json_body()
        changes = ShiftChanges(
            name=data.get("name"),
            start_time=data.get("startTime"),
            end_time=data.get("endTime"),
            break_minutes=optional_int(data.get("breakMinutes"), "breakMinutes"),
            flexible=optional_bool(data.get("flexible")),
            color=data.get("color"),
            active=optional_bool(data.get("active")),
        )
        shift = shifts.update_shift(company_id=g.company_id, shift_id=shift_id, changes=changes)
        return ok(shift.to_dict(), message="Shift updated")

    @app.route("/api/shifts/<int:shift_id>", methods=["DELETE"], endpoint="api_shift_delete")
    @company_user_required
    def api_shift_delete(shift_id: int):
        force = bool(optional_bool(request.args.get("force")))
        removed = shifts.delete_shift(company_id=g.company_id, shift_id=shift_id, force=force)
        return ok({"removedAssignments": removed}, message="Shift deleted")
