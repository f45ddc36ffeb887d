from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, TypeVar

from ..core.exceptions import InvalidInput

E = TypeVar("E", bound=Enum)


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise InvalidInput(f"{field_name} is required")
    return str(value).strip()


def require_float(value: Any, field_name: str) -> float:
    """Coerce to a finite float; bools and NaN/inf are rejected."""
    if isinstance(value, bool):
        raise InvalidInput(f"{field_name} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"{field_name} must be a number")
    if not math.isfinite(number):
        raise InvalidInput(f"{field_name} must be a finite number")
    return number


def require_decimal(value: Any, field_name: str) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise InvalidInput(f"{field_name} must be a number")
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidInput(f"{field_name} must be a number")
    if not number.is_finite():
        raise InvalidInput(f"{field_name} must be a finite number")
    return number


def require_bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise InvalidInput(f"{field_name} must be true or false")
    return value


def require_positive_int(value: Any, field_name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"{field_name} must be an integer")
    if number <= 0:
        raise InvalidInput(f"{field_name} must be positive")
    return number


def parse_enum(enum_cls: type[E], value: Any, field_name: str) -> E:
    """Closed enumerations only: unknown values are a validation error."""
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(str(m.value) for m in enum_cls)
        raise InvalidInput(f"{field_name} must be one of: {allowed}")
