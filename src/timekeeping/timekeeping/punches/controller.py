from __future__ import annotations

from flask import Flask, g, request

from ..common.datetime_utils import parse_iso_datetime
from ..common.http import (
    company_required,
    company_user_required,
    employee_required,
    json_body,
    ok,
    optional_bool,
    optional_datetime,
    optional_float,
    optional_int,
)
from ..core.constants import DEFAULT_PAGE, DEFAULT_PAGE_LIMIT
from ..core.enums import PunchSource
from ..core.exceptions import ValidationError
from ..container import Container
from .model import BulkPunchEntry, PunchChanges, PunchFilters, PunchMeta
from .service import coerce_punch_source, coerce_punch_type


def _meta_from(data: dict, *, default_source: PunchSource = PunchSource.WEB) -> PunchMeta:
    return PunchMeta(
        source=coerce_punch_source(data["source"]) if data.get("source") else default_source,
        location=data.get("location"),
        latitude=optional_float(data.get("latitude"), "latitude"),
        longitude=optional_float(data.get("longitude"), "longitude"),
        is_remote_work=bool(optional_bool(data.get("isRemoteWork"))),
        device_info=data.get("deviceInfo"),
        notes=data.get("notes"),
    )


def register(app: Flask, container: Container) -> None:
    punches = container.punch_service

    @app.route("/api/punches/punch", methods=["POST"], endpoint="api_punch")
    @employee_required
    def api_punch():
        data = json_body()
        if not data.get("type"):
            raise ValidationError("Punch type is required")
        punch = punches.punch(
            company_id=g.company_id,
            employee_id=g.employee_id,
            punch_type=coerce_punch_type(data["type"]),
            timestamp=optional_datetime(data.get("timestamp")),
            meta=_meta_from(data),
        )
        return ok(punch.to_dict(), 201, message="Punch recorded")

    @app.route("/api/punches/state", methods=["GET"], endpoint="api_punch_state")
    @employee_required
    def api_punch_state():
        state = punches.get_current_punch_state(
            company_id=g.company_id,
            employee_id=g.employee_id,
            now=optional_datetime(request.args.get("at")),
        )
        data = state.to_dict()
        data["lastEntry"] = state.last_entry.to_dict() if state.last_entry else None
        data["todayEntries"] = [p.to_dict() for p in state.today_entries]
        return ok(data)

    @app.route("/api/punches/geolocation", methods=["GET"], endpoint="api_company_geolocation")
    @company_required
    def api_company_geolocation():
        company = punches.get_company_geolocation(g.company_id)
        return ok(
            {
                "latitude": company.latitude,
                "longitude": company.longitude,
                "geofenceRadius": company.geofence_radius_m,
                "requireGeolocation": company.require_geolocation,
            }
        )

    @app.route("/api/punches", methods=["POST"], endpoint="api_punch_create")
    @company_user_required
    def api_punch_create():
        data = json_body()
        employee_id = optional_int(data.get("employeeId"), "employeeId")
        if employee_id is None or not data.get("type") or not data.get("timestamp"):
            raise ValidationError("employeeId, type and timestamp are required")
        punch = punches.validate_and_record_punch(
            company_id=g.company_id,
            employee_id=employee_id,
            punch_type=coerce_punch_type(data["type"]),
            timestamp=parse_iso_datetime(data["timestamp"]),
            meta=_meta_from(data),
        )
        return ok(punch.to_dict(), 201)

    @app.route("/api/punches", methods=["GET"], endpoint="api_punch_list")
    @company_user_required
    def api_punch_list():
        args = request.args
        filters = PunchFilters(
            employee_id=optional_int(args.get("employeeId"), "employeeId"),
            start=optional_datetime(args.get("startDate")),
            end=optional_datetime(args.get("endDate")),
            punch_type=coerce_punch_type(args["type"]) if args.get("type") else None,
            source=coerce_punch_source(args["source"]) if args.get("source") else None,
            page=optional_int(args.get("page"), "page") or DEFAULT_PAGE,
            limit=optional_int(args.get("limit"), "limit") or DEFAULT_PAGE_LIMIT,
        )
        return ok(punches.list_punches(company_id=g.company_id, filters=filters).to_dict())

    @app.route("/api/punches/bulk", methods=["POST"], endpoint="api_punch_bulk")
    @company_user_required
    def api_punch_bulk():
        data = json_body()
        raw_entries = data.get("entries")
        if not isinstance(raw_entries, list) or not raw_entries:
            raise ValidationError("At least one entry is required")

        entries = []
        for raw in raw_entries:
            if not isinstance(raw, dict):
                raise ValidationError("Each entry must be an object")
            employee_id = optional_int(raw.get("employeeId"), "employeeId")
            if employee_id is None or not raw.get("type") or not raw.get("timestamp"):
                raise ValidationError("Each entry needs employeeId, type and timestamp")
            entries.append(
                BulkPunchEntry(
                    employee_id=employee_id,
                    punch_type=coerce_punch_type(raw["type"]),
                    timestamp=parse_iso_datetime(raw["timestamp"]),
                    source=coerce_punch_source(raw["source"]) if raw.get("source") else PunchSource.ADMIN,
                    location=raw.get("location"),
                    device_info=raw.get("deviceInfo"),
                    notes=raw.get("notes"),
                )
            )

        created = punches.bulk_create_punches(company_id=g.company_id, entries=entries)
        return ok([p.to_dict() for p in created], 201, message=f"{len(created)} punches created")

    @app.route("/api/punches/<int:punch_id>", methods=["GET"], endpoint="api_punch_get")
    @company_required
    def api_punch_get(punch_id: int):
        return ok(punches.get_punch(company_id=g.company_id, punch_id=punch_id).to_dict())

    @app.route("/api/punches/<int:punch_id>", methods=["PUT"], endpoint="api_punch_update")
    @company_user_required
    def api_punch_update(punch_id: int):
        data = json_body()
        changes = PunchChanges(
            punch_type=coerce_punch_type(data["type"]) if data.get("type") else None,
            timestamp=optional_datetime(data.get("timestamp")),
            location=data.get("location"),
            device_info=data.get("deviceInfo"),
            notes=data.get("notes"),
        )
        punch = punches.update_punch(
            company_id=g.company_id,
            punch_id=punch_id,
            actor_id=g.company_user_id,
            changes=changes,
            reason=data.get("reason") or "",
        )
        return ok(punch.to_dict(), message="Punch updated")

    @app.route("/api/punches/<int:punch_id>", methods=["DELETE"], endpoint="api_punch_delete")
    @company_user_required
    def api_punch_delete(punch_id: int):
        reason = json_body().get("reason") or request.args.get("reason") or ""
        punches.delete_punch(
            company_id=g.company_id, punch_id=punch_id, actor_id=g.company_user_id, reason=reason
        )
        return ok(None, message="Punch deleted")

    @app.route("/api/punches/<int:punch_id>/edits", methods=["GET"], endpoint="api_punch_edits")
    @company_user_required
    def api_punch_edits(punch_id: int):
        logs = punches.get_edit_log(company_id=g.company_id, punch_id=punch_id)
        return ok([e.to_dict() for e in logs])
