from __future__ import annotations

import threading
from datetime import date, datetime, timezone

import pytest

from src.timekeeping.timekeeping.core.exceptions import (
    DatabaseStoppedError,
    EmployeeNotRegisteredError,
    SessionAlreadyExistsError,
    SessionNotFoundError,
)
from src.timekeeping.timekeeping.persistence.memory_database import MemoryDatabase
from src.timekeeping.timekeeping.timerecording.model import NO_EMPLOYEE, NO_PROJECT, Employee, NewTimeEntry
from src.timekeeping.timekeeping.users.model import NO_USER

A_DATE = date(2020, 6, 25)
CREATED_AT = datetime(2020, 1, 1, 12, 0, tzinfo=timezone.utc)


def _run_concurrently(count, action):
    threads = [threading.Thread(target=action, args=(i,)) for i in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()


@pytest.fixture
def db():
    return MemoryDatabase()


def test_add_and_get_project(db):
    new_id = db.add_new_project("Default_Project")

    project = db.get_project_by_id(new_id)

    assert new_id == 1
    assert project.name == "Default_Project"
    assert db.get_project_by_name("Default_Project") == project


def test_add_and_get_employee(db):
    new_id = db.add_new_employee("Alice")

    assert db.get_employee_by_id(new_id) == Employee(1, "Alice")
    assert db.get_all_employees() == [Employee(1, "Alice")]


def test_missing_lookups_return_sentinels(db):
    assert db.get_employee_by_id(5) == NO_EMPLOYEE
    assert db.get_project_by_id(5) == NO_PROJECT
    assert db.get_project_by_name("nothing") == NO_PROJECT
    assert db.get_user_by_id(5) == NO_USER
    assert db.get_user_by_name("nobody") == NO_USER
    assert db.get_user_by_session_token("no such token") == NO_USER


def test_add_and_get_user(db):
    new_id = db.add_new_user("alice", "hash", "salt", None)

    user = db.get_user_by_name("alice")

    assert user.user_id == new_id
    assert user.employee_id is None
    assert db.get_user_by_id(new_id) == user


def test_add_time_entry(db):
    employee = db.get_employee_by_id(db.add_new_employee("Alice"))
    project = db.get_project_by_id(db.add_new_project("Default_Project"))

    entry = db.add_time_entry(NewTimeEntry(employee, project, 60, A_DATE, "worked"))

    assert entry.entry_id == 1
    assert db.get_all_time_entries_for_employee_on_date(employee, A_DATE) == {entry}
    assert db.get_all_time_entries_for_employee(employee) == {A_DATE: {entry}}


def test_time_entry_ids_are_per_employee(db):
    alice = db.get_employee_by_id(db.add_new_employee("Alice"))
    bob = db.get_employee_by_id(db.add_new_employee("Bob"))
    project = db.get_project_by_id(db.add_new_project("Default_Project"))

    first = db.add_time_entry(NewTimeEntry(alice, project, 60, A_DATE))
    second = db.add_time_entry(NewTimeEntry(alice, project, 60, A_DATE))
    other = db.add_time_entry(NewTimeEntry(bob, project, 60, A_DATE))

    assert (first.entry_id, second.entry_id, other.entry_id) == (1, 2, 1)


def test_minutes_recorded_on_date(db):
    employee = db.get_employee_by_id(db.add_new_employee("Alice"))
    project = db.get_project_by_id(db.add_new_project("Default_Project"))
    db.add_time_entry(NewTimeEntry(employee, project, 60, A_DATE))
    db.add_time_entry(NewTimeEntry(employee, project, 90, A_DATE))
    db.add_time_entry(NewTimeEntry(employee, project, 30, date(2020, 6, 26)))

    assert db.get_minutes_recorded_on_date(employee, A_DATE) == 150


def test_minutes_for_registered_employee_without_entries(db):
    employee = db.get_employee_by_id(db.add_new_employee("Alice"))

    assert db.get_minutes_recorded_on_date(employee, A_DATE) == 0
    assert db.get_all_time_entries_for_employee_on_date(employee, A_DATE) == set()
    assert db.get_all_time_entries_for_employee(employee) == {}


def test_minutes_for_unregistered_employee(db):
    with pytest.raises(EmployeeNotRegisteredError):
        db.get_minutes_recorded_on_date(Employee(1, "Ghost"), A_DATE)


def test_query_results_are_snapshots(db):
    employee = db.get_employee_by_id(db.add_new_employee("Alice"))
    project = db.get_project_by_id(db.add_new_project("Default_Project"))
    db.add_time_entry(NewTimeEntry(employee, project, 60, A_DATE))

    snapshot = db.get_all_time_entries_for_employee_on_date(employee, A_DATE)
    db.add_time_entry(NewTimeEntry(employee, project, 60, A_DATE))

    assert len(snapshot) == 1
    assert len(db.get_all_time_entries_for_employee_on_date(employee, A_DATE)) == 2


def test_sessions(db):
    user = db.get_user_by_id(db.add_new_user("alice", "hash", "salt", None))

    db.add_new_session("abc123", user, CREATED_AT)

    assert db.get_user_by_session_token("abc123") == user
    assert db.get_all_sessions()["abc123"].created_at == CREATED_AT

    db.remove_session_by_token("abc123")

    assert db.get_user_by_session_token("abc123") == NO_USER
    assert db.get_all_sessions() == {}


def test_duplicate_session_is_rejected(db):
    user = db.get_user_by_id(db.add_new_user("alice", "hash", "salt", None))
    db.add_new_session("abc123", user, CREATED_AT)

    with pytest.raises(SessionAlreadyExistsError):
        db.add_new_session("abc123", user, CREATED_AT)


def test_removing_missing_session_is_rejected(db):
    with pytest.raises(SessionNotFoundError):
        db.remove_session_by_token("abc123")


def test_concurrent_employee_adds_get_distinct_ids(db):
    _run_concurrently(20, lambda i: db.add_new_employee(f"Employee{i}"))

    employees = db.get_all_employees()

    assert len(employees) == 20
    assert {e.employee_id for e in employees} == set(range(1, 21))


def test_concurrent_project_adds_get_distinct_ids(db):
    _run_concurrently(20, lambda i: db.add_new_project(f"Project{i}"))

    assert {p.project_id for p in db.get_all_projects()} == set(range(1, 21))


def test_concurrent_user_adds_get_distinct_ids(db):
    _run_concurrently(20, lambda i: db.add_new_user(f"user{i}", "hash", "salt", None))

    assert {u.user_id for u in db.get_all_users()} == set(range(1, 21))


def test_concurrent_time_entry_adds_get_distinct_ids(db):
    employee = db.get_employee_by_id(db.add_new_employee("Alice"))
    project = db.get_project_by_id(db.add_new_project("Default_Project"))

    _run_concurrently(20, lambda i: db.add_time_entry(NewTimeEntry(employee, project, 1, A_DATE, f"entry {i}")))

    entries = db.get_all_time_entries_for_employee_on_date(employee, A_DATE)
    assert {e.entry_id for e in entries} == set(range(1, 21))
    assert db.get_minutes_recorded_on_date(employee, A_DATE) == 20


def test_copy_is_equal_and_independent(db):
    employee = db.get_employee_by_id(db.add_new_employee("Alice"))
    project = db.get_project_by_id(db.add_new_project("Default_Project"))
    user = db.get_user_by_id(db.add_new_user("alice", "hash", "salt", employee.employee_id))
    db.add_new_session("abc123", user, CREATED_AT)
    db.add_time_entry(NewTimeEntry(employee, project, 60, A_DATE))

    duplicate = db.copy()

    assert duplicate == db
    assert duplicate is not db
    assert duplicate.db_directory is None

    duplicate.add_new_employee("Bob")

    assert duplicate != db
    assert len(db.get_all_employees()) == 1


def test_copy_continues_time_entry_ids(db):
    employee = db.get_employee_by_id(db.add_new_employee("Alice"))
    project = db.get_project_by_id(db.add_new_project("Default_Project"))
    db.add_time_entry(NewTimeEntry(employee, project, 60, A_DATE))

    entry = db.copy().add_time_entry(NewTimeEntry(employee, project, 60, A_DATE))

    assert entry.entry_id == 2


def test_databases_built_the_same_way_are_equal():
    first, second = MemoryDatabase(), MemoryDatabase()
    for db in (first, second):
        db.add_new_employee("Alice")
        db.add_new_project("Default_Project")

    assert first == second

    second.add_new_project("Another")

    assert first != second


def test_no_writes_after_stop(db):
    db.add_new_employee("Alice")

    db.stop()

    with pytest.raises(DatabaseStoppedError):
        db.add_new_employee("Bob")
    with pytest.raises(DatabaseStoppedError):
        db.add_new_project("Default_Project")
    assert db.get_employee_by_id(1).name == "Alice"


def test_stop_is_idempotent(db):
    db.stop()
    db.stop()
