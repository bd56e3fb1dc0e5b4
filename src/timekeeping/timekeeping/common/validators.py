from __future__ import annotations

import re
from typing import Optional

from ..core.exceptions import ValidationError

_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value.strip()) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value.strip()


def require_color(value: str) -> str:
    if not isinstance(value, str) or not _COLOR_PATTERN.match(value):
        raise ValidationError("Invalid colour (expected #RRGGBB)")
    return value


def require_day_of_week(value) -> int:
    try:
        day = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Day of week is invalid")
    if not 0 <= day <= 6:
        raise ValidationError("Day of week must be between 0 and 6")
    return day


def clean_note(value: Optional[str]) -> Optional[str]:
    return value.strip() if value and value.strip() else None
