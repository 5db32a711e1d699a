from __future__ import annotations

import logging
import threading
from datetime import date

from ..core.constants import MINUTES_PER_DAY
from ..core.exceptions import ExceededDailyHoursAmountError, ValidationError
from .model import (
    NO_EMPLOYEE,
    NO_PROJECT,
    Employee,
    NewTimeEntry,
    Project,
    TimeEntry,
    TimePeriod,
    require_employee_name,
    require_project_name,
)
from .repository import TimeEntryRepository

logger = logging.getLogger(__name__)


class TimeRecordingService:
    """Use cases: manage employees and projects, record and view time."""

    def __init__(self, entries: TimeEntryRepository):
        self._entries = entries
        self._project_lock = threading.Lock()

    def create_employee(self, name: str) -> Employee:
        employee = self._entries.add_employee(require_employee_name(name))
        logger.info("Created employee %s (id %d)", employee.name, employee.employee_id)
        return employee

    def create_project(self, name: str) -> Project:
        name = require_project_name(name)
        with self._project_lock:
            if self._entries.get_project_by_name(name) != NO_PROJECT:
                raise ValidationError(f"A project named {name!r} already exists")
            project = self._entries.add_project(name)
        logger.info("Created project %s (id %d)", project.name, project.project_id)
        return project

    def create_time_entry(self, entry: NewTimeEntry) -> TimeEntry:
        """Record time after checking both references and the daily limit."""
        if self._entries.get_project_by_id(entry.project.project_id) != entry.project:
            raise ValidationError(f"Project {entry.project.project_id} does not exist")
        if self._entries.get_employee_by_id(entry.employee.employee_id) != entry.employee:
            raise ValidationError(f"Employee {entry.employee.employee_id} does not exist")

        already_recorded = self._entries.get_minutes_recorded_on_date(entry.employee, entry.date)
        if already_recorded + entry.minutes > MINUTES_PER_DAY:
            raise ExceededDailyHoursAmountError()

        return self._entries.add_time_entry(entry)

    def list_all_projects(self) -> list[Project]:
        return sorted(self._entries.list_projects(), key=lambda p: p.name)

    def list_all_employees(self) -> list[Employee]:
        return sorted(self._entries.list_employees(), key=lambda e: e.employee_id)

    def find_employee(self, employee_id: int) -> Employee:
        employee = self._entries.get_employee_by_id(employee_id)
        if employee == NO_EMPLOYEE:
            raise ValidationError(f"Employee {employee_id} does not exist")
        return employee

    def get_entries_for_employee_on_date(self, employee: Employee, on_date: date) -> list[TimeEntry]:
        return sorted(self._entries.get_entries_for_employee_on_date(employee, on_date), key=lambda e: e.entry_id)

    def get_time_entries_for_time_period(self, employee: Employee, period: TimePeriod) -> list[TimeEntry]:
        by_date = self._entries.get_entries_for_employee(employee)
        entries = [e for day, day_entries in by_date.items() if period.contains(day) for e in day_entries]
        return sorted(entries, key=lambda e: (e.date, e.entry_id))

    def total_minutes_for_time_period(self, employee: Employee, period: TimePeriod) -> int:
        return sum(e.minutes for e in self.get_time_entries_for_time_period(employee, period))
