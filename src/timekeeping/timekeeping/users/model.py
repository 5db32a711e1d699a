from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.validators import require_in_range
from ..core.constants import MAX_USER_COUNT
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class User:
    """Domain entity: a login account, optionally tied to an employee.

    Note: Plain data object, it holds no database access code.
    """

    user_id: int
    name: str
    password_hash: str
    salt: str
    employee_id: Optional[int] = None

    def __post_init__(self):
        require_in_range(self.user_id, "User id", 1, MAX_USER_COUNT - 1)
        if not self.name:
            raise ValidationError("All users must have a non-empty name")


NO_USER = User(MAX_USER_COUNT - 1, "THIS REPRESENTS NO USER", "", "")


@dataclass(frozen=True)
class Session:
    """An authenticated user and when they logged in."""

    user: User
    created_at: datetime
