"""Small validation helpers shared by the entities."""

from __future__ import annotations

from enum import Enum
from typing import Any, TypeVar

from .errors import ValidationError

E = TypeVar("E", bound=Enum)


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) == 0
    return False


def require_text(value: Any, message: str, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message, field=field, value=value)
    return value.strip()


def coerce_enum(enum_cls: type[E], value: Any, message: str, field: str) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(message, field=field, value=value) from None


def coerce_optional_enum(enum_cls: type[E], value: Any, message: str, field: str) -> E | None:
    if value is None or value == "":
        return None
    return coerce_enum(enum_cls, value, message, field)


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def check_rating(value: Any, message: str, field: str) -> None:
    """Ratings are optional but always within [1, 5] when given."""
    if value is None:
        return
    if not is_number(value) or not 1 <= value <= 5:
        raise ValidationError(message, field=field, value=value)


def check_non_negative(value: Any, message: str, field: str) -> None:
    if value is None:
        return
    if not is_number(value) or value < 0:
        raise ValidationError(message, field=field, value=value)


def enum_value(value: Enum | None) -> Any:
    return value.value if value is not None else None
