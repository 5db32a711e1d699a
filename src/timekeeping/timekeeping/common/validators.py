from __future__ import annotations

import re
from typing import Optional

from ..core.exceptions import ValidationError

_INT_PATTERN = re.compile(r"-?\d+")


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} must not be empty")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_max_length(value: str, field_name: str, max_len: int) -> str:
    if len(value) > max_len:
        raise ValidationError(f"Max size of {field_name} is {max_len}")
    return value


def require_in_range(value: int, field_name: str, low: int, high: int) -> int:
    if not low <= value <= high:
        raise ValidationError(f"{field_name} must be between {low} and {high}, got {value}")
    return value


def parse_int(value: Optional[str], field_name: str = "value") -> int:
    """Strictly parse a base-10 integer.

    Unlike int(), surrounding whitespace, underscores and a leading '+' are rejected.
    """
    if value is None:
        raise ValidationError(f"{field_name} must not be null")
    if not value.strip():
        raise ValidationError(f"{field_name} must not be blank")
    if not _INT_PATTERN.fullmatch(value):
        raise ValidationError(f"Must be able to parse {value!r} as integer")
    return int(value)
