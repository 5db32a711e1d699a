from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .core.constants import DEFAULT_SESSION_TOKEN_LENGTH, DEFAULT_WRITE_QUEUE_SIZE
from .persistence import lifecycle
from .persistence.memory_database import MemoryDatabase
from .timerecording.memory_time_entry_repository import MemoryTimeEntryRepository
from .timerecording.service import TimeRecordingService
from .users.memory_user_repository import MemoryUserRepository
from .users.service import AuthService


@dataclass(frozen=True)
class Container:
    database: MemoryDatabase

    time_entries_repo: MemoryTimeEntryRepository
    users_repo: MemoryUserRepository

    time_recording_service: TimeRecordingService
    auth_service: AuthService

    def shutdown(self) -> None:
        self.database.stop()


def build_container(
    *,
    db_directory: Optional[str | Path] = None,
    session_token_length: int = DEFAULT_SESSION_TOKEN_LENGTH,
    write_queue_size: int = DEFAULT_WRITE_QUEUE_SIZE,
) -> Container:
    """Wire the database, repositories and services together.

    Without db_directory the database lives in memory only.
    """
    if db_directory:
        database = lifecycle.start(db_directory, write_queue_size=write_queue_size)
    else:
        database = lifecycle.create_empty_database()

    time_entries_repo = MemoryTimeEntryRepository(database)
    users_repo = MemoryUserRepository(database)

    return Container(
        database=database,
        time_entries_repo=time_entries_repo,
        users_repo=users_repo,
        time_recording_service=TimeRecordingService(time_entries_repo),
        auth_service=AuthService(users_repo, token_length=session_token_length),
    )
