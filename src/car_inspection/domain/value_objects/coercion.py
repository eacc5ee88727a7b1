"""Helpers turning raw field values into validated domain values."""

from enum import Enum
from typing import Any, Optional, Type, TypeVar

from ..exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def coerce_enum(enum_cls: Type[E], value: Any, field_name: str) -> E:
    """Return the enum member for value or raise ValidationError."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(str(member.value) for member in enum_cls)
        raise ValidationError(f"{field_name} must be one of: {allowed} (got {value!r})")


def coerce_optional_enum(enum_cls: Type[E], value: Any, field_name: str) -> Optional[E]:
    if value is None or value == "":
        return None
    return coerce_enum(enum_cls, value, field_name)


def coerce_score(value: Any, field_name: str, minimum: float = 0, maximum: float = 10) -> float:
    """Parse a numeric score and check it lies within [minimum, maximum]."""
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    try:
        score = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number between {minimum:g} and {maximum:g}")
    if score != score or not (minimum <= score <= maximum):
        raise ValidationError(f"{field_name} must be a number between {minimum:g} and {maximum:g}")
    return score


def coerce_optional_amount(value: Any, field_name: str) -> Optional[float]:
    """Parse an optional non-negative money amount."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if amount < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    return amount
