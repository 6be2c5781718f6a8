"""Incremental tokenizer for tab-separated response streams.

Bytes are pulled from a ``ByteSource`` one chunk at a time and cut into
records at unescaped line terminators. Records are split into raw tokens but
not unescaped: that is left to the decoder, so escaped delimiters inside
array literals survive tokenizing intact.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from firebolt_cursor.errors import CursorError, FormatError, StreamError
from firebolt_cursor.wire.format import LINE_TERMINATOR, split_fields, unescape
from firebolt_cursor.wire.source import ByteSource

logger = logging.getLogger(__name__)

_TERMINATOR = LINE_TERMINATOR.encode("ascii")
_BACKSLASH = ord("\\")


@dataclass(frozen=True)
class Header:
    """Column names and type tags from the first two lines of a response."""

    names: tuple[str, ...]
    type_tags: tuple[str, ...]

    @property
    def column_count(self) -> int:
        """Number of columns described by the header."""
        return len(self.names)


class WireTokenizer:
    """Splits a byte stream into a header followed by data records.

    Only the bytes of the record being assembled are buffered, plus whatever
    part of the following record arrived in the same chunk.
    """

    def __init__(self, source: ByteSource) -> None:
        """Initialize with the byte source to read from."""
        self._source = source
        self._buffer = bytearray()
        self._scan_from = 0
        self._eof = False
        self._header: Header | None = None
        self._peeked: list[str] | None = None
        self._has_peeked = False
        self.records_read = 0

    @property
    def header(self) -> Header | None:
        """The header, once ``read_header()`` has run."""
        return self._header

    async def read_header(self) -> Header:
        """Read the names line and the type line.

        An empty stream yields an empty header (a result with no columns).
        """
        if self._header is not None:
            return self._header
        names_line = await self._read_line()
        if names_line is None:
            self._header = Header(names=(), type_tags=())
            logger.debug("Empty response stream, no columns")
            return self._header
        types_line = await self._read_line()
        if types_line is None:
            raise FormatError("Response ended after the column names, type line missing")
        names = tuple(unescape(name) for name in split_fields(names_line))
        tags = tuple(unescape(tag) for tag in split_fields(types_line))
        if len(names) != len(tags):
            raise FormatError(
                f"Header has {len(names)} column names but {len(tags)} type tags"
            )
        self._header = Header(names=names, type_tags=tags)
        logger.debug("Read header with %d columns", len(names))
        return self._header

    async def next_record(self) -> list[str] | None:
        """Consume and return the next record, or None at end of stream."""
        if self._has_peeked:
            record = self._peeked
            self._peeked = None
            self._has_peeked = False
        else:
            record = await self._read_record(self.records_read + 1)
        if record is not None:
            self.records_read += 1
        return record

    async def peek_record(self) -> list[str] | None:
        """Return the next record without consuming it."""
        if not self._has_peeked:
            self._peeked = await self._read_record(self.records_read + 1)
            self._has_peeked = True
        return self._peeked

    async def _read_record(self, row_number: int) -> list[str] | None:
        header = await self.read_header()
        line = await self._read_line()
        if line is None:
            return None
        fields = split_fields(line)
        if len(fields) != header.column_count:
            raise FormatError(
                f"Row {row_number} has {len(fields)} fields, expected {header.column_count}"
            )
        return fields

    async def _read_line(self) -> str | None:
        """Return the next line without its terminator, or None at a clean EOF."""
        while True:
            idx = self._buffer.find(_TERMINATOR, self._scan_from)
            if idx != -1:
                if _is_escaped(self._buffer, idx):
                    self._scan_from = idx + 1
                    continue
                raw = bytes(self._buffer[:idx])
                del self._buffer[: idx + 1]
                self._scan_from = 0
                try:
                    return raw.decode("utf-8")
                except UnicodeDecodeError as exc:
                    raise FormatError(f"Record is not valid UTF-8: {exc}") from exc
            self._scan_from = len(self._buffer)
            if self._eof:
                if self._buffer:
                    raise FormatError(
                        f"Response ended mid-record ({len(self._buffer)} bytes unterminated)"
                    )
                return None
            chunk = await self._read_chunk()
            if chunk:
                self._buffer.extend(chunk)
            else:
                self._eof = True

    async def _read_chunk(self) -> bytes:
        try:
            return await self._source.read()
        except CursorError:
            raise
        except Exception as exc:
            raise StreamError(f"Failed to read response stream: {exc}") from exc


def _is_escaped(buffer: bytearray, idx: int) -> bool:
    """True if the byte at ``idx`` follows an odd run of backslashes."""
    count = 0
    pos = idx - 1
    while pos >= 0 and buffer[pos] == _BACKSLASH:
        count += 1
        pos -= 1
    return count % 2 == 1
