from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..persistence.memory_database import MemoryDatabase
from .model import Session, User
from .repository import UserRepository


class MemoryUserRepository(UserRepository):
    def __init__(self, database: MemoryDatabase):
        self._db = database

    def get_by_name(self, name: str) -> User:
        return self._db.get_user_by_name(name)

    def get_by_id(self, user_id: int) -> User:
        return self._db.get_user_by_id(user_id)

    def create_user(self, *, name: str, password_hash: str, salt: str, employee_id: Optional[int]) -> User:
        new_id = self._db.add_new_user(name, password_hash, salt, employee_id)
        return User(new_id, name, password_hash, salt, employee_id)

    def list_users(self) -> Sequence[User]:
        return self._db.get_all_users()

    def add_session(self, *, session_token: str, user: User, created_at: datetime) -> None:
        self._db.add_new_session(session_token, user, created_at)

    def get_user_for_session(self, session_token: str) -> User:
        return self._db.get_user_by_session_token(session_token)

    def remove_session(self, session_token: str) -> None:
        self._db.remove_session_by_token(session_token)

    def list_sessions(self) -> dict[str, Session]:
        return self._db.get_all_sessions()
