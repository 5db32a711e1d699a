"""Line-oriented serialization of domain entities.

Each entity is written as a "surrogate": a flat record holding only ids and
primitive values, rendered as

    { key1: value1 , key2: value2 }

with a fixed key order per entity type. Free-text values are percent-encoded
(spaces become '+'), so neither " , " nor a newline can appear inside a value
and the record can be split on its delimiters.

Surrogates of time entries and sessions refer to employees, projects and
users by id; turning them back into entities needs those collections, which
is why the disk reader resolves them rather than this module.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional, Sequence
from urllib.parse import quote_plus, unquote_plus

from ..common.datetime_utils import from_epoch_day, from_epoch_millis, to_epoch_day, to_epoch_millis
from ..common.validators import parse_int
from ..core.exceptions import DeserializationError, ValidationError
from ..timerecording.model import Employee, Project, TimeEntry
from ..users.model import Session, User

NULL_TOKEN = "null"

_RECORD_PATTERN = re.compile(r"\{ (.*) \}", re.DOTALL)


def encode(value: str) -> str:
    return quote_plus(value, safe="")


def decode(value: str) -> str:
    """Reverse encode(); a malformed escape raises UnicodeDecodeError."""
    return unquote_plus(value, errors="strict")


def _render(pairs: Sequence[tuple[str, str]]) -> str:
    return "{ " + " , ".join(f"{key}: {value}" for key, value in pairs) + " }"


def _parse(text: str, keys: Sequence[str], kind: str) -> dict[str, str]:
    """Split a rendered record into its raw (still encoded) values."""
    error = DeserializationError(f"Unable to deserialize this text as {kind} data: {text}")
    match = _RECORD_PATTERN.fullmatch(text)
    if not match:
        raise error
    parts = match.group(1).split(" , ")
    if len(parts) != len(keys):
        raise error
    values: dict[str, str] = {}
    for part, expected_key in zip(parts, keys):
        key, sep, value = part.partition(": ")
        if key != expected_key or not sep:
            raise error
        values[key] = value
    return values


def _int_field(values: Mapping[str, str], key: str, text: str, kind: str) -> int:
    try:
        return parse_int(values[key], key)
    except ValidationError as ex:
        raise DeserializationError(f"Unable to deserialize this text as {kind} data: {text}") from ex


def _text_field(values: Mapping[str, str], key: str, text: str, kind: str) -> str:
    try:
        return decode(values[key])
    except UnicodeDecodeError as ex:
        raise DeserializationError(f"Unable to deserialize this text as {kind} data: {text}") from ex


def _checked(convert, value: int, text: str, kind: str):
    # epoch values that parse as integers can still be outside what datetime can represent
    try:
        return convert(value)
    except (ValueError, OverflowError, OSError) as ex:
        raise DeserializationError(f"Unable to deserialize this text as {kind} data: {text}") from ex


@dataclass(frozen=True)
class EmployeeSurrogate:
    id: int
    name: str

    KEYS = ("id", "name")
    KIND = "employee"

    def serialize(self) -> str:
        return _render([("id", str(self.id)), ("name", encode(self.name))])

    @classmethod
    def deserialize(cls, text: str) -> "EmployeeSurrogate":
        values = _parse(text, cls.KEYS, cls.KIND)
        return cls(_int_field(values, "id", text, cls.KIND), _text_field(values, "name", text, cls.KIND))

    @classmethod
    def from_entity(cls, employee: Employee) -> "EmployeeSurrogate":
        return cls(employee.employee_id, employee.name)

    def to_entity(self) -> Employee:
        return Employee(self.id, self.name)


@dataclass(frozen=True)
class ProjectSurrogate:
    id: int
    name: str

    KEYS = ("id", "name")
    KIND = "project"

    def serialize(self) -> str:
        return _render([("id", str(self.id)), ("name", encode(self.name))])

    @classmethod
    def deserialize(cls, text: str) -> "ProjectSurrogate":
        values = _parse(text, cls.KEYS, cls.KIND)
        return cls(_int_field(values, "id", text, cls.KIND), _text_field(values, "name", text, cls.KIND))

    @classmethod
    def from_entity(cls, project: Project) -> "ProjectSurrogate":
        return cls(project.project_id, project.name)

    def to_entity(self) -> Project:
        return Project(self.id, self.name)


@dataclass(frozen=True)
class UserSurrogate:
    id: int
    name: str
    hash: str
    salt: str
    emp_id: Optional[int]

    KEYS = ("id", "name", "hash", "salt", "empId")
    KIND = "user"

    def serialize(self) -> str:
        return _render([
            ("id", str(self.id)),
            ("name", encode(self.name)),
            ("hash", encode(self.hash)),
            ("salt", encode(self.salt)),
            ("empId", NULL_TOKEN if self.emp_id is None else str(self.emp_id)),
        ])

    @classmethod
    def deserialize(cls, text: str) -> "UserSurrogate":
        values = _parse(text, cls.KEYS, cls.KIND)
        emp_id = None if values["empId"] == NULL_TOKEN else _int_field(values, "empId", text, cls.KIND)
        return cls(
            _int_field(values, "id", text, cls.KIND),
            _text_field(values, "name", text, cls.KIND),
            _text_field(values, "hash", text, cls.KIND),
            _text_field(values, "salt", text, cls.KIND),
            emp_id,
        )

    @classmethod
    def from_entity(cls, user: User) -> "UserSurrogate":
        return cls(user.user_id, user.name, user.password_hash, user.salt, user.employee_id)

    def to_entity(self) -> User:
        return User(self.id, self.name, self.hash, self.salt, self.emp_id)


@dataclass(frozen=True)
class SessionSurrogate:
    session_token: str
    user_id: int
    epoch_millis: int

    KEYS = ("s", "id", "e")
    KIND = "session"

    def serialize(self) -> str:
        return _render([
            ("s", encode(self.session_token)),
            ("id", str(self.user_id)),
            ("e", str(self.epoch_millis)),
        ])

    @classmethod
    def deserialize(cls, text: str) -> "SessionSurrogate":
        values = _parse(text, cls.KEYS, cls.KIND)
        epoch_millis = _int_field(values, "e", text, cls.KIND)
        _checked(from_epoch_millis, epoch_millis, text, cls.KIND)
        return cls(
            _text_field(values, "s", text, cls.KIND),
            _int_field(values, "id", text, cls.KIND),
            epoch_millis,
        )

    @classmethod
    def from_entity(cls, session_token: str, session: Session) -> "SessionSurrogate":
        return cls(session_token, session.user.user_id, to_epoch_millis(session.created_at))

    def created_at(self) -> datetime:
        return from_epoch_millis(self.epoch_millis)


@dataclass(frozen=True)
class TimeEntrySurrogate:
    id: int
    employee_id: int
    project_id: int
    minutes: int
    epoch_day: int
    details: str

    KEYS = ("i", "e", "p", "t", "d", "dtl")
    KIND = "time entry"

    def serialize(self) -> str:
        return _render([
            ("i", str(self.id)),
            ("e", str(self.employee_id)),
            ("p", str(self.project_id)),
            ("t", str(self.minutes)),
            ("d", str(self.epoch_day)),
            ("dtl", encode(self.details)),
        ])

    @classmethod
    def deserialize(cls, text: str) -> "TimeEntrySurrogate":
        values = _parse(text, cls.KEYS, cls.KIND)
        epoch_day = _int_field(values, "d", text, cls.KIND)
        _checked(from_epoch_day, epoch_day, text, cls.KIND)
        return cls(
            _int_field(values, "i", text, cls.KIND),
            _int_field(values, "e", text, cls.KIND),
            _int_field(values, "p", text, cls.KIND),
            _int_field(values, "t", text, cls.KIND),
            epoch_day,
            _text_field(values, "dtl", text, cls.KIND),
        )

    @classmethod
    def from_entity(cls, entry: TimeEntry) -> "TimeEntrySurrogate":
        return cls(
            entry.entry_id,
            entry.employee.employee_id,
            entry.project.project_id,
            entry.minutes,
            to_epoch_day(entry.date),
            entry.details,
        )

    def to_entity(self, employee: Employee, project: Project) -> TimeEntry:
        return TimeEntry(self.id, employee, project, self.minutes, from_epoch_day(self.epoch_day), self.details)


def serialize(entity) -> str:
    """Serialize an Employee, Project, User or TimeEntry to one line."""
    if isinstance(entity, Employee):
        return EmployeeSurrogate.from_entity(entity).serialize()
    if isinstance(entity, Project):
        return ProjectSurrogate.from_entity(entity).serialize()
    if isinstance(entity, User):
        return UserSurrogate.from_entity(entity).serialize()
    if isinstance(entity, TimeEntry):
        return TimeEntrySurrogate.from_entity(entity).serialize()
    raise TypeError(f"Cannot serialize {type(entity).__name__}")


def serialize_session(session_token: str, session: Session) -> str:
    return SessionSurrogate.from_entity(session_token, session).serialize()


def _to_entity(surrogate_cls, text: str):
    surrogate = surrogate_cls.deserialize(text)
    try:
        return surrogate.to_entity()
    except ValidationError as ex:
        raise DeserializationError(
            f"Unable to deserialize this text as {surrogate_cls.KIND} data: {text}"
        ) from ex


def deserialize_employee(text: str) -> Employee:
    return _to_entity(EmployeeSurrogate, text)


def deserialize_project(text: str) -> Project:
    return _to_entity(ProjectSurrogate, text)


def deserialize_user(text: str) -> User:
    return _to_entity(UserSurrogate, text)
