"""Typed, forward-only cursor over Firebolt tab-separated result streams."""

from firebolt_cursor.cursor.result_cursor import ResultCursor
from firebolt_cursor.cursor.statement import OwningStatement
from firebolt_cursor.datatypes.registry import parse_type_tag
from firebolt_cursor.decode.decoder import decode
from firebolt_cursor.decode.encoder import encode
from firebolt_cursor.errors import (
    ColumnLookupError,
    CursorError,
    FormatError,
    StateError,
    StreamError,
    UnsupportedTypeError,
    ValueFormatError,
)
from firebolt_cursor.models.column import ColumnDescriptor
from firebolt_cursor.models.types import TypeDescriptor, TypeKind
from firebolt_cursor.wire.source import ByteSource, as_byte_source

__all__ = [
    "ByteSource",
    "ColumnDescriptor",
    "ColumnLookupError",
    "CursorError",
    "FormatError",
    "OwningStatement",
    "ResultCursor",
    "StateError",
    "StreamError",
    "TypeDescriptor",
    "TypeKind",
    "UnsupportedTypeError",
    "ValueFormatError",
    "as_byte_source",
    "decode",
    "encode",
    "parse_type_tag",
]
