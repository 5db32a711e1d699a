from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta

from ..common.validators import require_in_range, require_max_length, require_non_empty
from ..core.constants import (
    MAX_DETAILS_LENGTH,
    MAX_EMPLOYEE_COUNT,
    MAX_EMPLOYEE_NAME_SIZE,
    MAX_PROJECT_COUNT,
    MAX_PROJECT_NAME_SIZE,
    MINUTES_PER_DAY,
)
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class Employee:
    """Domain entity: a person whose time is recorded."""

    employee_id: int
    name: str

    def __post_init__(self):
        require_in_range(self.employee_id, "Employee id", 1, MAX_EMPLOYEE_COUNT - 1)
        if not self.name:
            raise ValidationError("All employees must have a non-empty name")
        require_max_length(self.name, "employee name", MAX_EMPLOYEE_NAME_SIZE)


@dataclass(frozen=True)
class Project:
    """Domain entity: something time is recorded against."""

    project_id: int
    name: str

    def __post_init__(self):
        require_in_range(self.project_id, "Project id", 1, MAX_PROJECT_COUNT - 1)
        if not self.name:
            raise ValidationError("All projects must have a non-empty name")
        require_max_length(self.name, "project name", MAX_PROJECT_NAME_SIZE)


# Typed stand-ins for "nothing found", so lookups never return None.
NO_EMPLOYEE = Employee(MAX_EMPLOYEE_COUNT - 1, "THIS REPRESENTS NO EMPLOYEE")
NO_PROJECT = Project(MAX_PROJECT_COUNT - 1, "THIS REPRESENTS NO PROJECT")


def _validate_entry_fields(minutes: int, details: str) -> None:
    require_in_range(minutes, "Minutes", 0, MINUTES_PER_DAY)
    if len(details) > MAX_DETAILS_LENGTH:
        raise ValidationError(
            f"No reason why details should be more than {MAX_DETAILS_LENGTH} characters"
        )


@dataclass(frozen=True)
class NewTimeEntry:
    """A time entry before the database has given it an id."""

    employee: Employee
    project: Project
    minutes: int
    date: date
    details: str = ""

    def __post_init__(self):
        _validate_entry_fields(self.minutes, self.details)


@dataclass(frozen=True)
class TimeEntry:
    """Domain entity: minutes an employee spent on a project on one day.

    entry_id is unique within the employee's entries, not globally.
    """

    entry_id: int
    employee: Employee
    project: Project
    minutes: int
    date: date
    details: str = ""

    def __post_init__(self):
        require_in_range(self.entry_id, "Time entry id", 1, MAX_EMPLOYEE_COUNT - 1)
        _validate_entry_fields(self.minutes, self.details)


@dataclass(frozen=True)
class TimePeriod:
    """Biweekly period: the 1st to the 15th, or the 16th to the end of the month."""

    start: date
    end: date

    def __post_init__(self):
        if self.end < self.start:
            raise ValidationError(f"Time period end {self.end} is before start {self.start}")

    @classmethod
    def for_date(cls, value: date) -> "TimePeriod":
        if value.day <= 15:
            return cls(value.replace(day=1), value.replace(day=15))
        last_day = calendar.monthrange(value.year, value.month)[1]
        return cls(value.replace(day=16), value.replace(day=last_day))

    def previous(self) -> "TimePeriod":
        return TimePeriod.for_date(self.start - timedelta(days=1))

    def next(self) -> "TimePeriod":
        return TimePeriod.for_date(self.end + timedelta(days=1))

    def contains(self, value: date) -> bool:
        return self.start <= value <= self.end


def require_employee_name(name: str) -> str:
    name = require_non_empty(name, "Employee name")
    return require_max_length(name, "employee name", MAX_EMPLOYEE_NAME_SIZE)


def require_project_name(name: str) -> str:
    name = require_non_empty(name, "Project name")
    return require_max_length(name, "project name", MAX_PROJECT_NAME_SIZE)
