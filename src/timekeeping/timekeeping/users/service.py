from __future__ import annotations

import logging
import secrets
import threading
from datetime import datetime
from typing import Callable, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import now_utc
from ..common.validators import require_min_length, require_non_empty
from ..core.constants import DEFAULT_SESSION_TOKEN_LENGTH, MIN_PASSWORD_LENGTH
from ..core.exceptions import AuthenticationError, ValidationError
from .model import NO_USER, User
from .repository import UserRepository

logger = logging.getLogger(__name__)


class AuthService:
    """Use cases: register, log in, look up and end sessions.

    Passwords are hashed with werkzeug over password + a per-user salt; the
    salt is stored beside the hash so the user record stays self-describing.
    """

    def __init__(
        self,
        users: UserRepository,
        *,
        token_length: int = DEFAULT_SESSION_TOKEN_LENGTH,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._users = users
        self._token_length = int(token_length)
        self._clock = clock
        # name check and insert happen together
        self._register_lock = threading.Lock()

    def is_user_registered(self, username: str) -> bool:
        return self._users.get_by_name(username) != NO_USER

    def register(self, username: str, password: str, employee_id: Optional[int] = None) -> User:
        username = require_non_empty(username, "Username")
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)

        salt = secrets.token_hex(16)
        password_hash = generate_password_hash(password + salt)

        with self._register_lock:
            if self.is_user_registered(username):
                raise ValidationError("Username already exists")
            user = self._users.create_user(
                name=username,
                password_hash=password_hash,
                salt=salt,
                employee_id=employee_id,
            )
        logger.info("Registered user %s (id %d)", user.name, user.user_id)
        return user

    def login(self, username: str, password: str) -> tuple[str, User]:
        user = self._users.get_by_name(username)
        if user == NO_USER or not check_password_hash(user.password_hash, password + user.salt):
            logger.info("Failed login for %s", username)
            raise AuthenticationError("Wrong username or password")

        # one active session per user
        for token, session in self._users.list_sessions().items():
            if session.user.user_id == user.user_id:
                self._users.remove_session(token)

        session_token = self._new_token()
        self._users.add_session(session_token=session_token, user=user, created_at=self._clock())
        logger.info("User %s logged in", user.name)
        return session_token, user

    def get_user_for_session(self, session_token: str) -> User:
        return self._users.get_user_for_session(session_token)

    def logout(self, session_token: str) -> None:
        self._users.remove_session(session_token)

    def _new_token(self) -> str:
        # token_urlsafe takes bytes; trim to the configured character count
        return secrets.token_urlsafe(self._token_length)[: self._token_length]
