from __future__ import annotations

import threading
import time
from datetime import date

import pytest

from src.timekeeping.timekeeping.core.exceptions import ExceededDailyHoursAmountError, ValidationError
from src.timekeeping.timekeeping.persistence.lifecycle import create_empty_database
from src.timekeeping.timekeeping.timerecording.memory_time_entry_repository import MemoryTimeEntryRepository
from src.timekeeping.timekeeping.timerecording.model import (
    NO_EMPLOYEE,
    NO_PROJECT,
    Employee,
    NewTimeEntry,
    Project,
    TimeEntry,
    TimePeriod,
)
from src.timekeeping.timekeeping.timerecording.service import TimeRecordingService

A_DATE = date(2021, 2, 10)


class InMemoryEntries:
    """Bare fake: no locking, no persistence, just dicts."""

    def __init__(self):
        self.employees: dict[int, Employee] = {}
        self.projects: dict[int, Project] = {}
        self.entries: list[TimeEntry] = []

    def add_employee(self, name: str) -> Employee:
        employee = Employee(len(self.employees) + 1, name)
        self.employees[employee.employee_id] = employee
        return employee

    def add_project(self, name: str) -> Project:
        project = Project(len(self.projects) + 1, name)
        self.projects[project.project_id] = project
        return project

    def add_time_entry(self, entry: NewTimeEntry) -> TimeEntry:
        saved = TimeEntry(len(self.entries) + 1, entry.employee, entry.project, entry.minutes, entry.date, entry.details)
        self.entries.append(saved)
        return saved

    def get_employee_by_id(self, employee_id: int) -> Employee:
        return self.employees.get(employee_id, NO_EMPLOYEE)

    def get_project_by_id(self, project_id: int) -> Project:
        return self.projects.get(project_id, NO_PROJECT)

    def get_project_by_name(self, name: str) -> Project:
        return next((p for p in self.projects.values() if p.name == name), NO_PROJECT)

    def list_employees(self):
        return list(self.employees.values())

    def list_projects(self):
        return list(self.projects.values())

    def get_minutes_recorded_on_date(self, employee: Employee, on_date: date) -> int:
        return sum(e.minutes for e in self.entries if e.employee == employee and e.date == on_date)

    def get_entries_for_employee(self, employee: Employee):
        by_date: dict[date, set[TimeEntry]] = {}
        for e in self.entries:
            if e.employee == employee:
                by_date.setdefault(e.date, set()).add(e)
        return by_date

    def get_entries_for_employee_on_date(self, employee: Employee, on_date: date):
        return {e for e in self.entries if e.employee == employee and e.date == on_date}


@pytest.fixture
def fake_service():
    return TimeRecordingService(InMemoryEntries())


@pytest.fixture
def service():
    return TimeRecordingService(MemoryTimeEntryRepository(create_empty_database()))


def test_record_time(fake_service):
    employee = fake_service.create_employee("Alice")
    project = fake_service.create_project("Default_Project")

    entry = fake_service.create_time_entry(NewTimeEntry(employee, project, 60, A_DATE, "worked"))

    assert entry.minutes == 60
    assert fake_service.get_entries_for_employee_on_date(employee, A_DATE) == [entry]


def test_record_time_for_unknown_project(fake_service):
    employee = fake_service.create_employee("Alice")

    with pytest.raises(ValidationError):
        fake_service.create_time_entry(NewTimeEntry(employee, Project(1, "Nowhere"), 60, A_DATE))


def test_record_time_for_unknown_employee(fake_service):
    project = fake_service.create_project("Default_Project")

    with pytest.raises(ValidationError):
        fake_service.create_time_entry(NewTimeEntry(Employee(1, "Ghost"), project, 60, A_DATE))


def test_project_with_mismatched_name_is_rejected(fake_service):
    employee = fake_service.create_employee("Alice")
    fake_service.create_project("Default_Project")

    with pytest.raises(ValidationError):
        fake_service.create_time_entry(NewTimeEntry(employee, Project(1, "Renamed"), 60, A_DATE))


def test_full_day_is_allowed_but_not_more(fake_service):
    employee = fake_service.create_employee("Alice")
    project = fake_service.create_project("Default_Project")

    fake_service.create_time_entry(NewTimeEntry(employee, project, 24 * 60, A_DATE))

    with pytest.raises(ExceededDailyHoursAmountError) as ex:
        fake_service.create_time_entry(NewTimeEntry(employee, project, 1, A_DATE))

    assert str(ex.value) == "Exceeded number of hours in a day on this time entry"


def test_limit_applies_to_the_sum_for_the_day(service):
    employee = service.create_employee("Alice")
    project = service.create_project("Default_Project")
    service.create_time_entry(NewTimeEntry(employee, project, 23 * 60, A_DATE))

    with pytest.raises(ExceededDailyHoursAmountError):
        service.create_time_entry(NewTimeEntry(employee, project, 2 * 60, A_DATE))

    service.create_time_entry(NewTimeEntry(employee, project, 2 * 60, date(2021, 2, 11)))


def test_duplicate_project_name(service):
    service.create_project("Default_Project")

    with pytest.raises(ValidationError):
        service.create_project("Default_Project")


@pytest.mark.parametrize("name", ["", "   ", "x" * 31])
def test_invalid_employee_name(service, name):
    with pytest.raises(ValidationError):
        service.create_employee(name)


def test_listing(service):
    service.create_project("Zeta")
    service.create_project("Alpha")
    alice = service.create_employee("Alice")

    assert [p.name for p in service.list_all_projects()] == ["Alpha", "Zeta"]
    assert service.list_all_employees() == [alice]
    assert service.find_employee(alice.employee_id) == alice
    with pytest.raises(ValidationError):
        service.find_employee(99)


def test_entries_for_time_period(service):
    employee = service.create_employee("Alice")
    project = service.create_project("Default_Project")
    inside = service.create_time_entry(NewTimeEntry(employee, project, 60, date(2021, 2, 3)))
    last_day = service.create_time_entry(NewTimeEntry(employee, project, 30, date(2021, 2, 15)))
    service.create_time_entry(NewTimeEntry(employee, project, 45, date(2021, 2, 16)))

    period = TimePeriod.for_date(A_DATE)

    assert service.get_time_entries_for_time_period(employee, period) == [inside, last_day]
    assert service.total_minutes_for_time_period(employee, period) == 90
    assert service.total_minutes_for_time_period(employee, period.next()) == 45


def test_time_period_boundaries():
    first_half = TimePeriod.for_date(date(2021, 2, 10))
    second_half = TimePeriod.for_date(date(2021, 2, 20))

    assert first_half == TimePeriod(date(2021, 2, 1), date(2021, 2, 15))
    assert second_half == TimePeriod(date(2021, 2, 16), date(2021, 2, 28))
    assert first_half.next() == second_half
    assert second_half.previous() == first_half
    assert TimePeriod.for_date(date(2021, 3, 1)).previous() == second_half
    assert second_half.next() == TimePeriod(date(2021, 3, 1), date(2021, 3, 15))


def test_time_period_end_before_start():
    with pytest.raises(ValidationError):
        TimePeriod(date(2021, 2, 15), date(2021, 2, 1))


@pytest.mark.parametrize(
    "build",
    [
        lambda: Employee(0, "Alice"),
        lambda: Employee(1, ""),
        lambda: Employee(1, "x" * 31),
        lambda: Project(0, "Default_Project"),
        lambda: NewTimeEntry(Employee(1, "Alice"), Project(1, "P"), 24 * 60 + 1, A_DATE),
        lambda: NewTimeEntry(Employee(1, "Alice"), Project(1, "P"), -1, A_DATE),
        lambda: NewTimeEntry(Employee(1, "Alice"), Project(1, "P"), 60, A_DATE, "x" * 501),
    ],
)
def test_invalid_entities(build):
    with pytest.raises(ValidationError):
        build()


def test_longest_allowed_values():
    entry = NewTimeEntry(Employee(1, "x" * 30), Project(1, "y" * 30), 24 * 60, A_DATE, "z" * 500)

    assert entry.minutes == 1440


class SlowLookupEntries(InMemoryEntries):
    """Widens the gap between the name check and the insert."""

    def get_project_by_name(self, name: str) -> Project:
        project = super().get_project_by_name(name)
        time.sleep(0.01)
        return project


def test_concurrent_creation_of_one_project():
    entries = SlowLookupEntries()
    service = TimeRecordingService(entries)
    outcomes = []

    def create():
        try:
            service.create_project("Default_Project")
            outcomes.append("created")
        except ValidationError:
            outcomes.append("rejected")

    threads = [threading.Thread(target=create) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(outcomes) == ["created"] + ["rejected"] * 7
    assert len(entries.projects) == 1
