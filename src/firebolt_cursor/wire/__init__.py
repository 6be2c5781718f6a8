"""Wire format: byte sources and the record tokenizer."""

from firebolt_cursor.wire.source import (
    AsyncIteratorSource,
    ByteSource,
    BytesSource,
    FileSource,
    HttpxResponseSource,
    LoggingSource,
    as_byte_source,
)
from firebolt_cursor.wire.tokenizer import Header, WireTokenizer

__all__ = [
    "AsyncIteratorSource",
    "ByteSource",
    "BytesSource",
    "FileSource",
    "Header",
    "HttpxResponseSource",
    "LoggingSource",
    "WireTokenizer",
    "as_byte_source",
]
