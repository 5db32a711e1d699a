from __future__ import annotations

from datetime import date, datetime, timezone

_EPOCH_ORDINAL = date(1970, 1, 1).toordinal()


def now_utc() -> datetime:
    """Current time in UTC.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(timezone.utc)


def to_epoch_day(value: date) -> int:
    return value.toordinal() - _EPOCH_ORDINAL


def from_epoch_day(days: int) -> date:
    return date.fromordinal(days + _EPOCH_ORDINAL)


def to_epoch_millis(value: datetime) -> int:
    """Milliseconds since the epoch; naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    delta = value - datetime(1970, 1, 1, tzinfo=timezone.utc)
    return (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000


def from_epoch_millis(millis: int) -> datetime:
    seconds, ms = divmod(millis, 1000)
    return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(microsecond=ms * 1000)
