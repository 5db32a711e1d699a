from __future__ import annotations

from datetime import date
from typing import Sequence

from ..persistence.memory_database import MemoryDatabase
from .model import Employee, NewTimeEntry, Project, TimeEntry
from .repository import TimeEntryRepository


class MemoryTimeEntryRepository(TimeEntryRepository):
    def __init__(self, database: MemoryDatabase):
        self._db = database

    def add_employee(self, name: str) -> Employee:
        new_id = self._db.add_new_employee(name)
        return Employee(new_id, name)

    def add_project(self, name: str) -> Project:
        new_id = self._db.add_new_project(name)
        return Project(new_id, name)

    def add_time_entry(self, entry: NewTimeEntry) -> TimeEntry:
        return self._db.add_time_entry(entry)

    def get_employee_by_id(self, employee_id: int) -> Employee:
        return self._db.get_employee_by_id(employee_id)

    def get_project_by_id(self, project_id: int) -> Project:
        return self._db.get_project_by_id(project_id)

    def get_project_by_name(self, name: str) -> Project:
        return self._db.get_project_by_name(name)

    def list_employees(self) -> Sequence[Employee]:
        return self._db.get_all_employees()

    def list_projects(self) -> Sequence[Project]:
        return self._db.get_all_projects()

    def get_minutes_recorded_on_date(self, employee: Employee, on_date: date) -> int:
        return self._db.get_minutes_recorded_on_date(employee, on_date)

    def get_entries_for_employee(self, employee: Employee) -> dict[date, set[TimeEntry]]:
        return self._db.get_all_time_entries_for_employee(employee)

    def get_entries_for_employee_on_date(self, employee: Employee, on_date: date) -> set[TimeEntry]:
        return self._db.get_all_time_entries_for_employee_on_date(employee, on_date)
