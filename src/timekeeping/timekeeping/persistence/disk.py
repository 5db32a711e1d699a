"""Mapping between the in-memory collections and a directory on disk.

Layout under the database directory:

    version.txt
    employees.db, projects.db, users.db, sessions.db
    timeentries/<employee id>/<year>_<month>.db

Every .db file holds one serialized surrogate per line. Writes go through an
ActionQueue so callers never wait on the disk; reads happen once, at startup.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Callable, Iterable, Mapping, Optional, TypeVar

from ..core.constants import (
    DATABASE_FILE_SUFFIX,
    DATABASE_VERSION,
    DEFAULT_WRITE_QUEUE_SIZE,
    TIME_ENTRIES_DIRECTORY,
    VERSION_FILENAME,
)
from ..core.exceptions import DatabaseCorruptedError, DeserializationError, ValidationError
from ..timerecording.model import Employee, Project, TimeEntry
from ..users.model import Session, User
from .action_queue import ActionQueue
from .surrogates import SessionSurrogate, TimeEntrySurrogate

logger = logging.getLogger(__name__)

EMPLOYEES = "employees"
PROJECTS = "projects"
USERS = "users"
SESSIONS = "sessions"

_TIME_ENTRY_FILE_PATTERN = re.compile(r"(\d+)_(\d+)" + re.escape(DATABASE_FILE_SUFFIX))

T = TypeVar("T")


def time_entry_filename(year: int, month: int) -> str:
    return f"{year}_{month}{DATABASE_FILE_SUFFIX}"


def _write_file(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(text, encoding="utf-8")
    os.replace(tmp, path)


def _join_lines(lines: Iterable[str]) -> str:
    return "".join(f"{line}\n" for line in lines)


def _split_lines(text: str) -> list[str]:
    return [line for line in text.split("\n") if line]


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as ex:
        raise DatabaseCorruptedError(f"Unable to read {path} as UTF-8 text: {ex}") from ex


class DiskPersistence:
    """Writes serialized collections under db_directory on a background queue."""

    def __init__(self, db_directory: str | Path, *, queue_size: int = DEFAULT_WRITE_QUEUE_SIZE):
        self.db_directory = Path(db_directory)
        self._queue = ActionQueue("database-writes", maxsize=queue_size)

    def write_version(self) -> None:
        """Written synchronously: it is what marks the directory as ours."""
        self.db_directory.mkdir(parents=True, exist_ok=True)
        (self.db_directory / VERSION_FILENAME).write_text(str(DATABASE_VERSION), encoding="utf-8")

    def write_collection(self, name: str, lines: Iterable[str]) -> None:
        path = self.db_directory / f"{name}{DATABASE_FILE_SUFFIX}"
        text = _join_lines(lines)
        self._queue.enqueue(lambda: _write_file(path, text))

    def write_time_entries(self, employee_id: int, year: int, month: int, lines: Iterable[str]) -> None:
        path = self.db_directory / TIME_ENTRIES_DIRECTORY / str(employee_id) / time_entry_filename(year, month)
        text = _join_lines(lines)
        self._queue.enqueue(lambda: _write_file(path, text))

    def stop(self) -> None:
        self._queue.stop()


def is_missing_or_empty(db_directory: str | Path) -> bool:
    root = Path(db_directory)
    return not root.exists() or not any(root.iterdir())


def check_version(db_directory: Path) -> None:
    version_file = db_directory / VERSION_FILENAME
    if not version_file.is_file():
        raise DatabaseCorruptedError(f"No version file found at {version_file}; the directory is not a database")
    version = _read_text(version_file).strip()
    if version != str(DATABASE_VERSION):
        raise DatabaseCorruptedError(
            f"Database version {version!r} at {version_file} is not supported (expected {DATABASE_VERSION})"
        )


def _read_collection_lines(db_directory: Path, name: str) -> list[str]:
    path = db_directory / f"{name}{DATABASE_FILE_SUFFIX}"
    if not path.is_file():
        # Nothing of this kind was ever added, e.g. no user has registered yet.
        logger.info("%s file missing, starting with an empty collection", name)
        return []
    return _split_lines(_read_text(path))


def read_collection(db_directory: Path, name: str, parse: Callable[[str], T]) -> list[T]:
    """Parse every line of a collection file; any bad line means corruption."""
    result = []
    for line in _read_collection_lines(db_directory, name):
        try:
            result.append(parse(line))
        except DeserializationError as ex:
            raise DatabaseCorruptedError(str(ex)) from ex
    return result


def read_sessions(db_directory: Path, users: Mapping[int, User]) -> dict[str, Session]:
    sessions: dict[str, Session] = {}
    for line in _read_collection_lines(db_directory, SESSIONS):
        try:
            surrogate = SessionSurrogate.deserialize(line)
        except DeserializationError as ex:
            raise DatabaseCorruptedError(str(ex)) from ex
        user = users.get(surrogate.user_id)
        if user is None:
            raise DatabaseCorruptedError(
                f"Unable to find a user with the id of {surrogate.user_id}.  User set size: {len(users)}"
            )
        sessions[surrogate.session_token] = Session(user, surrogate.created_at())
    return sessions


def _employee_directories(time_entries_root: Path) -> list[tuple[int, Path]]:
    directories = []
    for path in time_entries_root.iterdir():
        if not path.is_dir():
            continue
        if not path.name.isdigit():
            raise DatabaseCorruptedError(f"Unexpected directory in time entries: {path}")
        directories.append((int(path.name), path))
    return sorted(directories)


def _time_entry_files(employee_directory: Path) -> list[Path]:
    files = []
    for path in employee_directory.iterdir():
        if not path.is_file() or not path.name.endswith(DATABASE_FILE_SUFFIX):
            continue
        match = _TIME_ENTRY_FILE_PATTERN.fullmatch(path.name)
        if not match:
            raise DatabaseCorruptedError(f"Unexpected file in time entries: {path}")
        files.append(((int(match.group(1)), int(match.group(2))), path))
    if not files:
        raise DatabaseCorruptedError(f"no time entry files found in employees directory at {employee_directory}")
    return [path for _, path in sorted(files)]


def _read_time_entry_file(
    path: Path,
    employee: Employee,
    projects: Mapping[int, Project],
) -> list[TimeEntry]:
    entries = []
    for line in _split_lines(_read_text(path)):
        try:
            surrogate = TimeEntrySurrogate.deserialize(line)
        except DeserializationError as ex:
            raise DatabaseCorruptedError(f"Could not deserialize time entry file {path.name}.  {ex}") from ex
        if surrogate.employee_id != employee.employee_id:
            raise DatabaseCorruptedError(
                f"Could not deserialize time entry file {path.name}.  "
                f"Entry belongs to employee {surrogate.employee_id} but is stored under {path.parent}"
            )
        project = projects.get(surrogate.project_id)
        if project is None:
            raise DatabaseCorruptedError(
                f"Could not deserialize time entry file {path.name}.  "
                f"Unable to find a project with the id of {surrogate.project_id}.  Project set size: {len(projects)}"
            )
        try:
            entries.append(surrogate.to_entity(employee, project))
        except ValidationError as ex:
            raise DatabaseCorruptedError(
                f"Could not deserialize time entry file {path.name}.  "
                f"Unable to deserialize this text as time entry data: {line}"
            ) from ex
    return entries


def read_time_entries(
    db_directory: Path,
    employees: Mapping[int, Employee],
    projects: Mapping[int, Project],
) -> list[TimeEntry]:
    """Read every time entry file, in employee id then (year, month) order.

    Employees and projects must already be loaded: each entry is resolved
    against them and a dangling reference is corruption.
    """
    root = db_directory / TIME_ENTRIES_DIRECTORY
    if not root.is_dir():
        logger.info("%s directory missing, no time has been recorded yet", TIME_ENTRIES_DIRECTORY)
        return []

    entries: list[TimeEntry] = []
    for employee_id, employee_directory in _employee_directories(root):
        employee = employees.get(employee_id)
        if employee is None:
            raise DatabaseCorruptedError(
                f"Unable to find an employee with the id of {employee_id} based on entry in "
                f"{TIME_ENTRIES_DIRECTORY}/{employee_id}.  Employee set size: {len(employees)}"
            )
        for path in _time_entry_files(employee_directory):
            entries.extend(_read_time_entry_file(path, employee, projects))
    return entries
