from __future__ import annotations

import math
from typing import Any, Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required.")
    return value.strip()


def optional_text(value: Any, field_name: str, *, max_len: int = 255) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string.")
    value = value.strip()
    if len(value) > max_len:
        raise ValidationError(f"{field_name} must be at most {max_len} characters.")
    return value or None


def optional_coordinate(value: Any, field_name: str, *, limit: float) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number.") from None
    if not math.isfinite(number) or abs(number) > limit:
        raise ValidationError(f"{field_name} must be between -{limit:g} and {limit:g}.")
    return number
