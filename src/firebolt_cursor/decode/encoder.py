"""Rendering of decoded values back into wire tokens.

Used to write canned responses and to check that decoding is stable on
canonical tokens.
"""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from firebolt_cursor.errors import ValueFormatError
from firebolt_cursor.models.types import TypeDescriptor, TypeKind
from firebolt_cursor.wire.format import BYTEA_PREFIX, NULL_SENTINEL, escape

_ARRAY_NULL = "NULL"


def encode(value: Any, descriptor: TypeDescriptor) -> str:
    """Render ``value`` as a field token of type ``descriptor``."""
    if value is None:
        return NULL_SENTINEL
    if descriptor.kind is TypeKind.ARRAY:
        return _encode_array(value, descriptor)
    return escape(_render_scalar(value, descriptor))


def encode_row(values: list[Any], descriptors: list[TypeDescriptor]) -> str:
    """Render one record, without its line terminator."""
    return "\t".join(encode(v, d) for v, d in zip(values, descriptors, strict=True))


def _encode_array(values: Any, descriptor: TypeDescriptor) -> str:
    # Elements carry a single escape layer, quotes inside text are escaped too
    element = descriptor.element
    if element is None or not isinstance(values, list):
        raise ValueFormatError(f"Cannot encode {values!r} as {descriptor.name}")
    parts: list[str] = []
    for value in values:
        if value is None:
            parts.append(_ARRAY_NULL)
        elif element.kind is TypeKind.ARRAY:
            parts.append(_encode_array(value, element))
        elif element.kind is TypeKind.TEXT:
            quoted = escape(_render_scalar(value, element)).replace('"', '\\"')
            parts.append(f'"{quoted}"')
        else:
            parts.append(escape(_render_scalar(value, element)))
    return "{" + ",".join(parts) + "}"


def _render_scalar(value: Any, descriptor: TypeDescriptor) -> str:
    expected = _SCALAR_TYPES[descriptor.kind]
    if not isinstance(value, expected) or (isinstance(value, bool) and bool not in expected):
        raise ValueFormatError(
            f"Cannot encode {type(value).__name__} value {value!r} as {descriptor.name}"
        )
    match descriptor.kind:
        case TypeKind.BOOLEAN:
            return "t" if value else "f"
        case TypeKind.FLOAT:
            return repr(float(value))
        case TypeKind.DECIMAL:
            return format(Decimal(value), "f")
        case TypeKind.BYTEA:
            return f"{BYTEA_PREFIX}{bytes(value).hex()}" if value else ""
        case TypeKind.DATE:
            if isinstance(value, datetime):
                value = value.date()
            return value.isoformat()
        case TypeKind.TIME:
            return value.replace(tzinfo=None).isoformat()
        case TypeKind.TIMESTAMP | TypeKind.TIMESTAMPTZ:
            return value.isoformat(" ")
        case _:
            return str(value)


# Python types accepted for each scalar kind; bool is an int but only a boolean here
_SCALAR_TYPES: dict[TypeKind, tuple[type, ...]] = {
    TypeKind.BOOLEAN: (bool,),
    TypeKind.INTEGER: (int,),
    TypeKind.FLOAT: (int, float),
    TypeKind.DECIMAL: (int, Decimal),
    TypeKind.TEXT: (str,),
    TypeKind.BYTEA: (bytes, bytearray),
    TypeKind.DATE: (date,),
    TypeKind.TIME: (time,),
    TypeKind.TIMESTAMP: (datetime,),
    TypeKind.TIMESTAMPTZ: (datetime,),
}
