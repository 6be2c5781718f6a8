"""Conversions from a decoded value to the type an accessor asks for.

Each ``to_*`` function takes the decoded (non-null) value and returns it as
the requested Python type, or raises ``ValueFormatError`` when the
conversion is not supported. Text values are parsed strictly.
"""

from __future__ import annotations

import copy
import math
from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from firebolt_cursor.decode.decoder import decode_scalar
from firebolt_cursor.errors import ValueFormatError
from firebolt_cursor.models.types import TypeDescriptor, TypeKind
from firebolt_cursor.temporal.resolver import (
    TimezoneLike,
    resolve_date,
    resolve_time,
    resolve_timestamp,
)

_INTEGER = TypeDescriptor(kind=TypeKind.INTEGER, width=64)
_FLOAT = TypeDescriptor(kind=TypeKind.FLOAT, width=64)
_DECIMAL = TypeDescriptor(kind=TypeKind.DECIMAL)
_DATE = TypeDescriptor(kind=TypeKind.DATE)
_TIME = TypeDescriptor(kind=TypeKind.TIME)
_TIMESTAMP = TypeDescriptor(kind=TypeKind.TIMESTAMP)
_TIMESTAMPTZ = TypeDescriptor(kind=TypeKind.TIMESTAMPTZ)

_TEXT_BOOLEANS: dict[str, bool] = {
    "t": True,
    "true": True,
    "1": True,
    "f": False,
    "false": False,
    "0": False,
}


def _unsupported(value: Any, target: str) -> ValueFormatError:
    return ValueFormatError(f"Cannot convert {type(value).__name__} value {value!r} to {target}")


def to_int(value: Any) -> int:
    """Integers as-is, booleans as 1/0, floats and decimals truncated."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise _unsupported(value, "int")
        return int(value)
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise _unsupported(value, "int")
        return int(value)
    if isinstance(value, str):
        return decode_scalar(value.strip(), _INTEGER)
    raise _unsupported(value, "int")


def to_float(value: Any) -> float:
    if isinstance(value, (bool, int, float, Decimal)):
        return float(value)
    if isinstance(value, str):
        return decode_scalar(value.strip(), _FLOAT)
    raise _unsupported(value, "float")


def to_decimal(value: Any, scale: int | None = None) -> Decimal:
    """Convert to ``Decimal``, rescaling with HALF_UP rounding if ``scale`` is given."""
    if isinstance(value, bool):
        result = Decimal(int(value))
    elif isinstance(value, (int, Decimal)):
        result = Decimal(value)
    elif isinstance(value, float):
        if not math.isfinite(value):
            raise _unsupported(value, "decimal")
        result = Decimal(repr(value))
    elif isinstance(value, str):
        result = decode_scalar(value.strip(), _DECIMAL)
    else:
        raise _unsupported(value, "decimal")
    if scale is None:
        return result
    try:
        return result.quantize(Decimal(1).scaleb(-scale), rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise ValueFormatError(f"Cannot rescale {result} to {scale} digits") from exc


def to_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, Decimal)):
        return value != 0
    if isinstance(value, str):
        try:
            return _TEXT_BOOLEANS[value.strip().lower()]
        except KeyError:
            raise _unsupported(value, "boolean") from None
    raise _unsupported(value, "boolean")


def to_bytes(value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode("utf-8")
    raise _unsupported(value, "bytes")


def to_date(value: Any, tz: TimezoneLike = None) -> date:
    if isinstance(value, str):
        value = decode_scalar(value.strip(), _DATE)
    if isinstance(value, date):
        return resolve_date(value, tz)
    raise _unsupported(value, "date")


def to_time(value: Any, tz: TimezoneLike = None) -> time:
    if isinstance(value, str):
        value = decode_scalar(value.strip(), _TIME)
    if isinstance(value, (time, datetime)):
        return resolve_time(value, tz)
    raise _unsupported(value, "time")


def to_timestamp(value: Any, tz: TimezoneLike = None) -> datetime:
    """Timestamps and dates (at midnight) as an aware UTC ``datetime``."""
    if isinstance(value, str):
        value = _parse_text_timestamp(value.strip())
    if isinstance(value, datetime):
        return resolve_timestamp(value, tz)
    if isinstance(value, date):
        return resolve_timestamp(datetime.combine(value, time()), tz)
    raise _unsupported(value, "timestamp")


def _parse_text_timestamp(text: str) -> datetime:
    try:
        return decode_scalar(text, _TIMESTAMP)
    except ValueFormatError:
        return decode_scalar(text, _TIMESTAMPTZ)


def to_array(value: Any) -> list[Any]:
    """Return a copy of an array value so callers never share the row cache."""
    if isinstance(value, list):
        return copy.deepcopy(value)
    raise _unsupported(value, "array")


def snapshot(value: Any) -> Any:
    """Copy mutable decoded values before handing them out."""
    if isinstance(value, list):
        return copy.deepcopy(value)
    return value
