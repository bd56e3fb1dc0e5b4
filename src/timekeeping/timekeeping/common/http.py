"""Shared Flask helpers: identity headers, JSON parsing, error mapping.

Identity is supplied by the upstream auth layer through headers and is
trusted as-is.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from functools import wraps
from typing import Any, Optional

from flask import Flask, g, jsonify, request

from ..core.exceptions import (
    ConflictError,
    DomainError,
    GeofenceError,
    NotFoundError,
    PunchSequenceError,
    ValidationError,
)
from .datetime_utils import parse_iso_date, parse_iso_datetime

logger = logging.getLogger(__name__)

COMPANY_HEADER = "X-Company-Id"
EMPLOYEE_HEADER = "X-Employee-Id"
COMPANY_USER_HEADER = "X-Company-User-Id"

_STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (ValidationError, 400),
    (GeofenceError, 403),
    (NotFoundError, 404),
    (PunchSequenceError, 409),
    (ConflictError, 409),
)


def _header_id(name: str) -> Optional[int]:
    raw = request.headers.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"Header {name} must be an integer")


def _identity_required(*, employee: bool = False, company_user: bool = False):
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            company_id = _header_id(COMPANY_HEADER)
            if company_id is None:
                return jsonify({"success": False, "message": "Missing company identity"}), 401
            g.company_id = company_id
            g.employee_id = _header_id(EMPLOYEE_HEADER)
            g.company_user_id = _header_id(COMPANY_USER_HEADER)

            if employee and g.employee_id is None:
                return jsonify({"success": False, "message": "Employee identity required"}), 401
            if company_user and g.company_user_id is None:
                return jsonify({"success": False, "message": "Company user identity required"}), 401
            return view(*args, **kwargs)

        return wrapper

    return decorator


def company_required(view):
    return _identity_required()(view)


def employee_required(view):
    return _identity_required(employee=True)(view)


def company_user_required(view):
    return _identity_required(company_user=True)(view)


def json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def optional_int(value, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")


def optional_float(value, field_name: str) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")


def optional_bool(value) -> Optional[bool]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def require_date_arg(value, field_name: str) -> date:
    if not value:
        raise ValidationError(f"{field_name} is required")
    return parse_iso_date(value)


def optional_datetime(value) -> Optional[datetime]:
    return parse_iso_datetime(value) if value else None


def ok(data=None, status: int = 200, **extra):
    payload = {"success": True, "data": data}
    payload.update(extra)
    return jsonify(payload), status


def register_error_handlers(app: Flask) -> None:
    def make_handler(status: int):
        def handle(err: DomainError):
            body = {"success": False, "message": str(err)}
            if isinstance(err, GeofenceError):
                body["distance"] = round(err.distance_m)
                body["radius"] = round(err.radius_m)
            return jsonify(body), status

        return handle

    for error_type, status in _STATUS_BY_ERROR:
        app.register_error_handler(error_type, make_handler(status))

    @app.errorhandler(500)
    def internal_error(err):
        logger.error("Unhandled error on %s %s", request.method, request.path, exc_info=True)
        return jsonify({"success": False, "message": "Internal server error"}), 500
