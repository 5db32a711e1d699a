from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Session, User


class UserRepository(Protocol):
    """Repository interface for users and their sessions.

    Note (DIP): the service layer depends on this interface, not on a concrete store.
    """

    def get_by_name(self, name: str) -> User:
        raise NotImplementedError

    def get_by_id(self, user_id: int) -> User:
        raise NotImplementedError

    def create_user(self, *, name: str, password_hash: str, salt: str, employee_id: Optional[int]) -> User:
        raise NotImplementedError

    def list_users(self) -> Sequence[User]:
        raise NotImplementedError

    def add_session(self, *, session_token: str, user: User, created_at: datetime) -> None:
        raise NotImplementedError

    def get_user_for_session(self, session_token: str) -> User:
        raise NotImplementedError

    def remove_session(self, session_token: str) -> None:
        raise NotImplementedError

    def list_sessions(self) -> dict[str, Session]:
        raise NotImplementedError
