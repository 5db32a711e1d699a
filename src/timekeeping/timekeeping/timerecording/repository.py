from __future__ import annotations

from datetime import date
from typing import Protocol, Sequence

from .model import Employee, NewTimeEntry, Project, TimeEntry


class TimeEntryRepository(Protocol):
    """Repository interface for time recording.

    Note (DIP): the service layer depends on this interface, not on a concrete store.
    """

    def add_employee(self, name: str) -> Employee:
        raise NotImplementedError

    def add_project(self, name: str) -> Project:
        raise NotImplementedError

    def add_time_entry(self, entry: NewTimeEntry) -> TimeEntry:
        raise NotImplementedError

    def get_employee_by_id(self, employee_id: int) -> Employee:
        raise NotImplementedError

    def get_project_by_id(self, project_id: int) -> Project:
        raise NotImplementedError

    def get_project_by_name(self, name: str) -> Project:
        raise NotImplementedError

    def list_employees(self) -> Sequence[Employee]:
        raise NotImplementedError

    def list_projects(self) -> Sequence[Project]:
        raise NotImplementedError

    def get_minutes_recorded_on_date(self, employee: Employee, on_date: date) -> int:
        raise NotImplementedError

    def get_entries_for_employee(self, employee: Employee) -> dict[date, set[TimeEntry]]:
        raise NotImplementedError

    def get_entries_for_employee_on_date(self, employee: Employee, on_date: date) -> set[TimeEntry]:
        raise NotImplementedError
