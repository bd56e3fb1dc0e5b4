from __future__ import annotations

from enum import Enum


class PunchType(str, Enum):
    """Kind of clock event recorded for an employee."""

    IN = "IN"
    OUT = "OUT"
    BREAK = "BREAK"
    RESUME = "RESUME"


class PunchSource(str, Enum):
    """Where a punch came from."""

    WEB = "WEB"
    MOBILE = "MOBILE"
    KIOSK = "KIOSK"
    ADMIN = "ADMIN"


class WorkDayStatus(str, Enum):
    """Review state of a derived WorkDay."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
