"""Decoding of raw field tokens into typed Python values.

``decode`` is one recursive function over the ``TypeDescriptor`` variant:
arrays split their literal and recurse per element, scalars are unescaped
and handed to the parser registered for their kind. Null is the sentinel
token at any depth; the empty token is never null.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import UTC, date, datetime, time, timedelta, timezone
from decimal import Context, Decimal, InvalidOperation
from typing import Any

from firebolt_cursor.decode.arrays import split_array_literal
from firebolt_cursor.errors import ValueFormatError
from firebolt_cursor.models.types import TypeDescriptor, TypeKind
from firebolt_cursor.temporal.resolver import resolve_zone
from firebolt_cursor.wire.format import (
    ARRAY_NULL_ELEMENTS,
    BOOLEAN_LITERALS,
    BYTEA_PREFIX,
    NULL_SENTINEL,
    unescape,
)

_INTEGER_RE = re.compile(r"[+-]?\d+", re.ASCII)
_FLOAT_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)
_FLOAT_SPECIALS: dict[str, float] = {
    "inf": float("inf"),
    "+inf": float("inf"),
    "-inf": float("-inf"),
    "infinity": float("inf"),
    "+infinity": float("inf"),
    "-infinity": float("-inf"),
    "nan": float("nan"),
    "+nan": float("nan"),
    "-nan": float("nan"),
}
_HEX_RE = re.compile(r"(?:[0-9a-fA-F]{2})*", re.ASCII)
_DATE_RE = re.compile(r"(\d{4})-(\d{2})-(\d{2})", re.ASCII)
_TIME_RE = re.compile(r"(\d{2}):(\d{2}):(\d{2})(?:\.(\d{1,9}))?", re.ASCII)
_TIMESTAMP_RE = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})[ T](\d{2}):(\d{2}):(\d{2})(?:\.(\d{1,9}))?"
    r"(?P<offset>Z|[+-]\d{2}(?::?\d{2}(?::?\d{2})?)?)?",
    re.ASCII,
)


def decode(raw: str, descriptor: TypeDescriptor, null_sentinel: str = NULL_SENTINEL) -> Any:
    """Decode one raw (still escaped) token against its type descriptor.

    Returns None for the null sentinel, a list for arrays (with None for null
    elements), or the scalar value. Raises ``ValueFormatError`` when the
    token does not parse.
    """
    if raw == null_sentinel:
        return None
    if descriptor.kind is TypeKind.ARRAY:
        element = descriptor.element
        if element is None:
            raise _fail(raw, descriptor, "array type has no element type")
        values: list[Any] = []
        for token, quoted in split_array_literal(raw):
            if quoted:
                values.append(decode_scalar(unescape(token), element))
            elif token == null_sentinel or token in ARRAY_NULL_ELEMENTS:
                values.append(None)
            else:
                values.append(decode(token, element, null_sentinel))
        return values
    return decode_scalar(unescape(raw), descriptor)


def decode_scalar(text: str, descriptor: TypeDescriptor) -> Any:
    """Parse already-unescaped text as a scalar of ``descriptor``'s kind."""
    if descriptor.kind is TypeKind.ARRAY:
        # A quoted nested literal, e.g. ClickHouse ['[1,2]']
        return decode(text, descriptor)
    parser = _SCALAR_PARSERS[descriptor.kind]
    return parser(text, descriptor)


def _fail(text: str, descriptor: TypeDescriptor, reason: str | None = None) -> ValueFormatError:
    message = f"Cannot decode {text!r} as {descriptor.name}"
    if reason:
        message = f"{message}: {reason}"
    return ValueFormatError(message)


def _parse_integer(text: str, descriptor: TypeDescriptor) -> int:
    if not _INTEGER_RE.fullmatch(text):
        raise _fail(text, descriptor)
    value = int(text)
    width = descriptor.width or 64
    if descriptor.signed:
        low, high = -(1 << (width - 1)), (1 << (width - 1)) - 1
    else:
        low, high = 0, (1 << width) - 1
    if not low <= value <= high:
        raise _fail(text, descriptor, f"out of range {low}..{high}")
    return value


def _parse_float(text: str, descriptor: TypeDescriptor) -> float:
    special = _FLOAT_SPECIALS.get(text.lower())
    if special is not None:
        return special
    if not _FLOAT_RE.fullmatch(text):
        raise _fail(text, descriptor)
    return float(text)


def _parse_decimal(text: str, descriptor: TypeDescriptor) -> Decimal:
    if not _FLOAT_RE.fullmatch(text):
        raise _fail(text, descriptor)
    value = Decimal(text)
    if descriptor.scale is None:
        return value
    # The token grammar admits only finite values, so the exponent is an int
    exponent = value.as_tuple().exponent
    if isinstance(exponent, int) and -exponent > descriptor.scale:
        raise _fail(text, descriptor, f"more than {descriptor.scale} fractional digits")
    try:
        return value.quantize(
            Decimal(1).scaleb(-descriptor.scale),
            context=Context(prec=descriptor.precision or len(value.as_tuple().digits)),
        )
    except InvalidOperation as exc:
        raise _fail(text, descriptor, f"exceeds precision {descriptor.precision}") from exc


def _parse_text(text: str, descriptor: TypeDescriptor) -> str:
    return text


def _parse_boolean(text: str, descriptor: TypeDescriptor) -> bool:
    try:
        return BOOLEAN_LITERALS[text]
    except KeyError:
        raise _fail(text, descriptor) from None


def _parse_bytea(text: str, descriptor: TypeDescriptor) -> bytes:
    if not text:
        return b""
    if not text.startswith(BYTEA_PREFIX):
        raise _fail(text, descriptor, f"missing {BYTEA_PREFIX!r} prefix")
    digits = text[len(BYTEA_PREFIX) :]
    if not _HEX_RE.fullmatch(digits):
        raise _fail(text, descriptor, "not an even run of hex digits")
    return bytes.fromhex(digits)


def _microseconds(fraction: str | None) -> int:
    if not fraction:
        return 0
    # Digits past microseconds are truncated
    return int(fraction[:6].ljust(6, "0"))


def _parse_date(text: str, descriptor: TypeDescriptor) -> date:
    match = _DATE_RE.fullmatch(text)
    if match is None:
        raise _fail(text, descriptor)
    try:
        return date(int(match[1]), int(match[2]), int(match[3]))
    except ValueError as exc:
        raise _fail(text, descriptor, str(exc)) from exc


def _parse_time(text: str, descriptor: TypeDescriptor) -> time:
    match = _TIME_RE.fullmatch(text)
    if match is None:
        raise _fail(text, descriptor)
    try:
        return time(int(match[1]), int(match[2]), int(match[3]), _microseconds(match[4]))
    except ValueError as exc:
        raise _fail(text, descriptor, str(exc)) from exc


def _parse_offset(offset: str) -> timezone:
    if offset == "Z":
        return UTC
    sign = -1 if offset[0] == "-" else 1
    digits = offset[1:].replace(":", "")
    hours = int(digits[0:2])
    minutes = int(digits[2:4] or 0)
    seconds = int(digits[4:6] or 0)
    delta = timedelta(hours=hours, minutes=minutes, seconds=seconds)
    return timezone(sign * delta)


def _parse_timestamp(text: str, descriptor: TypeDescriptor) -> datetime:
    """Naive timestamps must not carry an offset; zoned ones take the wire
    offset, else the zone named by the type tag, else UTC."""
    match = _TIMESTAMP_RE.fullmatch(text)
    if match is None:
        raise _fail(text, descriptor)
    offset = match["offset"]
    zoned = descriptor.kind is TypeKind.TIMESTAMPTZ
    if offset and not zoned:
        raise _fail(text, descriptor, "unexpected timezone offset")
    try:
        value = datetime(
            int(match[1]),
            int(match[2]),
            int(match[3]),
            int(match[4]),
            int(match[5]),
            int(match[6]),
            _microseconds(match[7]),
        )
        if not zoned:
            return value
        if offset:
            return value.replace(tzinfo=_parse_offset(offset))
        return value.replace(tzinfo=resolve_zone(descriptor.timezone))
    except ValueError as exc:
        raise _fail(text, descriptor, str(exc)) from exc


_SCALAR_PARSERS: dict[TypeKind, Callable[[str, TypeDescriptor], Any]] = {
    TypeKind.INTEGER: _parse_integer,
    TypeKind.FLOAT: _parse_float,
    TypeKind.DECIMAL: _parse_decimal,
    TypeKind.TEXT: _parse_text,
    TypeKind.BOOLEAN: _parse_boolean,
    TypeKind.BYTEA: _parse_bytea,
    TypeKind.DATE: _parse_date,
    TypeKind.TIME: _parse_time,
    TypeKind.TIMESTAMP: _parse_timestamp,
    TypeKind.TIMESTAMPTZ: _parse_timestamp,
}
