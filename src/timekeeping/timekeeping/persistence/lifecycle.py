from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from ..core.constants import ADMINISTRATOR_NAME, DEFAULT_WRITE_QUEUE_SIZE
from ..core.exceptions import DatabaseCorruptedError
from . import surrogates
from .disk import (
    EMPLOYEES,
    PROJECTS,
    USERS,
    check_version,
    is_missing_or_empty,
    read_collection,
    read_sessions,
    read_time_entries,
)
from .memory_database import MemoryDatabase

logger = logging.getLogger(__name__)


def create_empty_database() -> MemoryDatabase:
    """A memory-only database, nothing is written to disk."""
    return MemoryDatabase()


def start(db_directory: str | Path, *, write_queue_size: int = DEFAULT_WRITE_QUEUE_SIZE) -> MemoryDatabase:
    """Start a disk-backed database.

    Restores the database found in db_directory. When there is nothing there
    yet, creates the directory, records the version and seeds the
    Administrator employee. Raises DatabaseCorruptedError when the directory
    holds data that cannot be trusted.
    """
    restored = deserialize_from_disk(db_directory, write_queue_size=write_queue_size)
    if restored is not None:
        return restored

    logger.info("No database found at %s, creating a new one", db_directory)
    database = MemoryDatabase(db_directory=db_directory, write_queue_size=write_queue_size)
    database.disk.write_version()
    database.add_new_employee(ADMINISTRATOR_NAME)
    return database


def deserialize_from_disk(
    db_directory: str | Path,
    *,
    write_queue_size: int = DEFAULT_WRITE_QUEUE_SIZE,
) -> Optional[MemoryDatabase]:
    """Rebuild the database from db_directory, or None if there is nothing to read.

    Employees and projects are loaded before time entries, and users before
    sessions, because the later collections refer to the earlier ones by id.
    """
    root = Path(db_directory)
    if is_missing_or_empty(root):
        return None

    try:
        check_version(root)
        employees = read_collection(root, EMPLOYEES, surrogates.deserialize_employee)
        projects = read_collection(root, PROJECTS, surrogates.deserialize_project)
        users = read_collection(root, USERS, surrogates.deserialize_user)
        sessions = read_sessions(root, {u.user_id: u for u in users})
        time_entries = read_time_entries(
            root,
            {e.employee_id: e for e in employees},
            {p.project_id: p for p in projects},
        )
    except DatabaseCorruptedError as ex:
        logger.warning("database files missing / corrupted: %s", ex)
        logger.warning("Highly recommend you wipe out %s", root)
        logger.warning("Program cannot proceed.  Halting.")
        raise

    database = MemoryDatabase(
        employees=employees,
        projects=projects,
        users=users,
        sessions=sessions,
        db_directory=root,
        write_queue_size=write_queue_size,
    )
    for entry in time_entries:
        database.replay_time_entry(entry)

    logger.info(
        "Restored database from %s: %d employees, %d projects, %d users, %d sessions, %d time entries",
        root, len(employees), len(projects), len(users), len(sessions), len(time_entries),
    )
    return database
