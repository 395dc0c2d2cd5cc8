from __future__ import annotations

import re
from typing import Any, Optional

from ..core.exceptions import ValidationError

_IDENTIFIER_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters long")
    return value


def require_identifier(value: str, field_name: str, *, min_len: int = 3, max_len: int = 19) -> str:
    """Letters, digits, hyphens and underscores only (student ids, roll numbers)."""

    value = require_non_empty(value, field_name)
    if not _IDENTIFIER_RE.match(value):
        raise ValidationError(f"{field_name} can only contain letters, numbers, hyphens, and underscores")
    require_min_length(value, field_name, min_len)
    if len(value) > max_len:
        raise ValidationError(f"{field_name} must be less than {max_len + 1} characters long")
    return value


def require_location(value: Any, field_name: str = "location") -> dict[str, float]:
    """Validate a ``{latitude, longitude}`` mapping and return it normalized."""

    if not isinstance(value, dict):
        raise ValidationError(f"{field_name} is required")

    lat = value.get("latitude")
    lon = value.get("longitude")
    # bool is an int subclass; reject it explicitly
    if not isinstance(lat, (int, float)) or isinstance(lat, bool):
        raise ValidationError(f"{field_name}.latitude must be a number")
    if not isinstance(lon, (int, float)) or isinstance(lon, bool):
        raise ValidationError(f"{field_name}.longitude must be a number")
    if not -90 <= lat <= 90:
        raise ValidationError(f"{field_name}.latitude out of range")
    if not -180 <= lon <= 180:
        raise ValidationError(f"{field_name}.longitude out of range")

    return {"latitude": float(lat), "longitude": float(lon)}


def optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None
