"""The in-process database: plain collections, one lock per collection.

Why use a heavy database server when the data fits in memory? Everything is
held in dicts and sets. When a directory is configured, each write also
serializes the affected collection and hands the text to a background queue
that writes it to disk (see disk.py).
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, Mapping, Optional

from ..common.datetime_utils import from_epoch_millis, to_epoch_millis
from ..core.constants import DEFAULT_WRITE_QUEUE_SIZE
from ..core.exceptions import (
    DatabaseStoppedError,
    EmployeeNotRegisteredError,
    SessionAlreadyExistsError,
    SessionNotFoundError,
)
from ..timerecording.model import NO_EMPLOYEE, NO_PROJECT, Employee, NewTimeEntry, Project, TimeEntry
from ..users.model import NO_USER, Session, User
from . import surrogates
from .disk import EMPLOYEES, PROJECTS, SESSIONS, USERS, DiskPersistence

logger = logging.getLogger(__name__)

TimeEntriesByEmployee = dict[Employee, dict[date, set[TimeEntry]]]


class MemoryDatabase:
    """Thread-safe store for employees, projects, users, sessions and time entries.

    Lookups return the NO_EMPLOYEE / NO_PROJECT / NO_USER sentinels instead of
    None. Only contract violations raise: a duplicate session, removing a
    missing session, or asking for minutes of an unregistered employee.

    Ids come from a counter per collection. Reading the counter, inserting and
    serializing the collection all happen under that collection's lock, so
    concurrent callers never share an id and writes reach the disk queue in
    the same order they were applied in memory.
    """

    def __init__(
        self,
        *,
        employees: Iterable[Employee] = (),
        projects: Iterable[Project] = (),
        users: Iterable[User] = (),
        sessions: Optional[Mapping[str, Session]] = None,
        db_directory: Optional[str | Path] = None,
        write_queue_size: int = DEFAULT_WRITE_QUEUE_SIZE,
    ):
        self._employees: dict[int, Employee] = {e.employee_id: e for e in employees}
        self._projects: dict[int, Project] = {p.project_id: p for p in projects}
        self._users: dict[int, User] = {u.user_id: u for u in users}
        self._sessions: dict[str, Session] = dict(sessions or {})
        self._time_entries: TimeEntriesByEmployee = {}

        self._employee_count = max(self._employees, default=0)
        self._project_count = max(self._projects, default=0)
        self._user_count = max(self._users, default=0)
        self._time_entry_counts: dict[int, int] = {}

        self._employee_lock = threading.Lock()
        self._project_lock = threading.Lock()
        self._user_lock = threading.Lock()
        self._session_lock = threading.Lock()
        self._time_entry_lock = threading.Lock()

        self._accepting_writes = True
        self._disk: Optional[DiskPersistence] = (
            DiskPersistence(db_directory, queue_size=write_queue_size) if db_directory is not None else None
        )

    @property
    def db_directory(self) -> Optional[Path]:
        return self._disk.db_directory if self._disk else None

    @property
    def disk(self) -> Optional[DiskPersistence]:
        return self._disk

    def _all_locks(self):
        # Fixed order everywhere several locks are held at once.
        return (
            self._employee_lock,
            self._project_lock,
            self._user_lock,
            self._session_lock,
            self._time_entry_lock,
        )

    def _check_accepting_writes(self) -> None:
        if not self._accepting_writes:
            raise DatabaseStoppedError("The database is stopping; no further writes are accepted")

    # employees

    def add_new_employee(self, name: str) -> int:
        with self._employee_lock:
            self._check_accepting_writes()
            self._employee_count += 1
            new_id = self._employee_count
            self._employees[new_id] = Employee(new_id, name)
            if self._disk:
                self._disk.write_collection(EMPLOYEES, [surrogates.serialize(e) for e in self._employees.values()])
        return new_id

    def get_employee_by_id(self, employee_id: int) -> Employee:
        with self._employee_lock:
            return self._employees.get(employee_id, NO_EMPLOYEE)

    def get_all_employees(self) -> list[Employee]:
        with self._employee_lock:
            return list(self._employees.values())

    # projects

    def add_new_project(self, name: str) -> int:
        with self._project_lock:
            self._check_accepting_writes()
            self._project_count += 1
            new_id = self._project_count
            self._projects[new_id] = Project(new_id, name)
            if self._disk:
                self._disk.write_collection(PROJECTS, [surrogates.serialize(p) for p in self._projects.values()])
        return new_id

    def get_project_by_id(self, project_id: int) -> Project:
        with self._project_lock:
            return self._projects.get(project_id, NO_PROJECT)

    def get_project_by_name(self, name: str) -> Project:
        with self._project_lock:
            return next((p for p in self._projects.values() if p.name == name), NO_PROJECT)

    def get_all_projects(self) -> list[Project]:
        with self._project_lock:
            return list(self._projects.values())

    # users

    def add_new_user(self, name: str, password_hash: str, salt: str, employee_id: Optional[int]) -> int:
        with self._user_lock:
            self._check_accepting_writes()
            self._user_count += 1
            new_id = self._user_count
            self._users[new_id] = User(new_id, name, password_hash, salt, employee_id)
            if self._disk:
                self._disk.write_collection(USERS, [surrogates.serialize(u) for u in self._users.values()])
        return new_id

    def get_user_by_name(self, name: str) -> User:
        with self._user_lock:
            return next((u for u in self._users.values() if u.name == name), NO_USER)

    def get_user_by_id(self, user_id: int) -> User:
        with self._user_lock:
            return self._users.get(user_id, NO_USER)

    def get_all_users(self) -> list[User]:
        with self._user_lock:
            return list(self._users.values())

    # sessions

    def add_new_session(self, session_token: str, user: User, created_at: datetime) -> None:
        # Kept at the precision the sessions file stores: UTC, whole milliseconds.
        created_at = from_epoch_millis(to_epoch_millis(created_at))
        with self._session_lock:
            self._check_accepting_writes()
            if session_token in self._sessions:
                raise SessionAlreadyExistsError(
                    f"There must not already exist a session for ({user.name}) if we are to create one"
                )
            self._sessions[session_token] = Session(user, created_at)
            self._persist_sessions()

    def get_user_by_session_token(self, session_token: str) -> User:
        with self._session_lock:
            session = self._sessions.get(session_token)
            return session.user if session else NO_USER

    def remove_session_by_token(self, session_token: str) -> None:
        with self._session_lock:
            self._check_accepting_writes()
            if session_token not in self._sessions:
                raise SessionNotFoundError(
                    f"There must exist a session in the database for ({session_token}) in order to delete it"
                )
            del self._sessions[session_token]
            self._persist_sessions()

    def get_all_sessions(self) -> dict[str, Session]:
        with self._session_lock:
            return dict(self._sessions)

    def _persist_sessions(self) -> None:
        if self._disk:
            self._disk.write_collection(
                SESSIONS, [surrogates.serialize_session(token, s) for token, s in self._sessions.items()]
            )

    # time entries

    def add_time_entry(self, new_entry: NewTimeEntry) -> TimeEntry:
        with self._time_entry_lock:
            self._check_accepting_writes()
            entry = self._insert_time_entry(
                new_entry.employee,
                new_entry.project,
                new_entry.minutes,
                new_entry.date,
                new_entry.details,
            )
            self._persist_month(entry.employee, entry.date)
        return entry

    def replay_time_entry(self, entry: TimeEntry) -> None:
        """Insert an entry read back from disk, keeping its id and writing nothing."""
        with self._time_entry_lock:
            self._insert_time_entry(entry.employee, entry.project, entry.minutes, entry.date, entry.details, entry.entry_id)

    def _insert_time_entry(
        self,
        employee: Employee,
        project: Project,
        minutes: int,
        entry_date: date,
        details: str,
        entry_id: Optional[int] = None,
    ) -> TimeEntry:
        # caller holds self._time_entry_lock
        count = self._time_entry_counts.get(employee.employee_id, 0)
        if entry_id is None:
            entry_id = count + 1
        self._time_entry_counts[employee.employee_id] = max(count, entry_id)

        entry = TimeEntry(entry_id, employee, project, minutes, entry_date, details)
        by_date = self._time_entries.setdefault(employee, {})
        by_date.setdefault(entry_date, set()).add(entry)
        return entry

    def _persist_month(self, employee: Employee, entry_date: date) -> None:
        """Write only this employee's entries for the month of entry_date."""
        if not self._disk:
            return
        month_entries = sorted(
            (
                entry
                for day, entries in self._time_entries.get(employee, {}).items()
                if (day.year, day.month) == (entry_date.year, entry_date.month)
                for entry in entries
            ),
            key=lambda e: e.entry_id,
        )
        self._disk.write_time_entries(
            employee.employee_id,
            entry_date.year,
            entry_date.month,
            [surrogates.serialize(e) for e in month_entries],
        )

    def get_minutes_recorded_on_date(self, employee: Employee, on_date: date) -> int:
        """Minutes an employee recorded on a date.

        Raises EmployeeNotRegisteredError if the employee isn't known.
        """
        with self._employee_lock:
            registered = self._employees.get(employee.employee_id) == employee
        if not registered:
            raise EmployeeNotRegisteredError(f"Employee {employee.employee_id} is not registered")

        with self._time_entry_lock:
            entries = self._time_entries.get(employee, {}).get(on_date, set())
            return sum(e.minutes for e in entries)

    def get_all_time_entries_for_employee(self, employee: Employee) -> dict[date, set[TimeEntry]]:
        with self._time_entry_lock:
            return {day: set(entries) for day, entries in self._time_entries.get(employee, {}).items()}

    def get_all_time_entries_for_employee_on_date(self, employee: Employee, on_date: date) -> set[TimeEntry]:
        with self._time_entry_lock:
            return set(self._time_entries.get(employee, {}).get(on_date, set()))

    # lifecycle

    def copy(self) -> "MemoryDatabase":
        """An independent, memory-only copy with freshly allocated entities."""
        with self._employee_lock, self._project_lock, self._user_lock, self._session_lock, self._time_entry_lock:
            duplicate = MemoryDatabase(
                employees=[replace(e) for e in self._employees.values()],
                projects=[replace(p) for p in self._projects.values()],
                users=[replace(u) for u in self._users.values()],
                sessions={token: replace(s, user=replace(s.user)) for token, s in self._sessions.items()},
            )
            for by_date in self._time_entries.values():
                for entries in by_date.values():
                    for entry in entries:
                        duplicate._insert_time_entry(
                            replace(entry.employee),
                            replace(entry.project),
                            entry.minutes,
                            entry.date,
                            entry.details,
                            entry.entry_id,
                        )
            duplicate._time_entry_counts = dict(self._time_entry_counts)
        return duplicate

    def stop(self) -> None:
        """Stop accepting writes, then block until every queued disk write is done."""
        locks = self._all_locks()
        for lock in locks:
            lock.acquire()
        try:
            already_stopped = not self._accepting_writes
            self._accepting_writes = False
        finally:
            for lock in reversed(locks):
                lock.release()
        if already_stopped:
            return
        if self._disk:
            logger.info("Stopping database at %s; draining pending writes", self._disk.db_directory)
            self._disk.stop()

    def _snapshot(self):
        with self._employee_lock, self._project_lock, self._user_lock, self._session_lock, self._time_entry_lock:
            return (
                dict(self._employees),
                dict(self._projects),
                dict(self._users),
                dict(self._sessions),
                {e: {d: set(s) for d, s in by_date.items()} for e, by_date in self._time_entries.items()},
            )

    def __eq__(self, other):
        if self is other:
            return True
        if not isinstance(other, MemoryDatabase):
            return NotImplemented
        return self._snapshot() == other._snapshot()

    __hash__ = None

    def __repr__(self) -> str:
        return (
            f"MemoryDatabase(employees={len(self._employees)}, projects={len(self._projects)}, "
            f"users={len(self._users)}, sessions={len(self._sessions)}, "
            f"employees_with_time={len(self._time_entries)}, db_directory={self.db_directory})"
        )
