from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Optional

from ..core.constants import HOURS_DECIMAL_PLACES, MAX_HOURS_VALUE, NOT_AVAILABLE
from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_hours(value: object, field_name: str = "Hours") -> Decimal:
    """Coerce an hour value to Decimal that fits the stored column exactly."""
    try:
        hours = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not hours.is_finite() or hours < 0:
        raise ValidationError(f"{field_name} must be a non-negative number")
    if hours > MAX_HOURS_VALUE:
        raise ValidationError(f"{field_name} cannot exceed {MAX_HOURS_VALUE}")
    if hours != round(hours, HOURS_DECIMAL_PLACES):
        raise ValidationError(f"{field_name} allows at most {HOURS_DECIMAL_PLACES} decimal places")
    return hours


def or_not_available(value: Optional[str]) -> str:
    v = (value or "").strip()
    return v or NOT_AVAILABLE
