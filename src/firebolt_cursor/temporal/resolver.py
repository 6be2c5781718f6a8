"""Timezone resolution for temporal column values.

A value that carries its own offset on the wire (``timestamptz``, or a
timestamp whose type tag names a zone) is authoritative: the caller's zone is
ignored. A naive value is wall-clock time and is read in the caller's zone,
UTC when none is given.
"""

from datetime import UTC, date, datetime, time, tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

EPOCH_DATE = date(1970, 1, 1)

TimezoneLike = tzinfo | str | None


@lru_cache(maxsize=64)
def _zone_from_name(name: str) -> tzinfo:
    if name.upper() == "UTC":
        return UTC
    return ZoneInfo(name)


def resolve_zone(tz: TimezoneLike) -> tzinfo:
    """Turn a caller-supplied zone into a ``tzinfo``; None means UTC."""
    if tz is None:
        return UTC
    if isinstance(tz, tzinfo):
        return tz
    try:
        return _zone_from_name(tz.strip())
    except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
        # Keys naming a tzdata directory (e.g. "America") raise IsADirectoryError
        raise ValueError(f"Unknown timezone {tz!r}") from exc


def resolve_timestamp(value: datetime, tz: TimezoneLike = None) -> datetime:
    """Return the instant ``value`` denotes, as an aware datetime in UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=resolve_zone(tz))
    return value.astimezone(UTC)


def resolve_time(value: time | datetime, tz: TimezoneLike = None) -> time:
    """Return the UTC time of day for ``value``.

    A bare ``time`` is anchored on 1970-01-01 before being shifted.
    """
    if not isinstance(value, datetime):
        value = datetime.combine(EPOCH_DATE, value)
    return resolve_timestamp(value, tz).timetz()


def resolve_date(value: date, tz: TimezoneLike = None) -> date:
    """Return the calendar date of ``value`` in its own frame.

    Naive timestamps keep their wall-clock date, zoned ones the date at
    their own offset. ``tz`` is validated but cannot move a calendar date.
    """
    resolve_zone(tz)
    if isinstance(value, datetime):
        return value.date()
    return value
