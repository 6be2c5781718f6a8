"""Forward-only cursor over a streamed result.

The cursor holds one row of raw tokens (plus at most one peeked record) and
decodes a field the first time it is read in the current row. Positioning
follows the usual result-set states: before-first, on a row, after-last,
and closed.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from datetime import date, datetime, time
from decimal import Decimal
from enum import StrEnum
from types import TracebackType
from typing import Any

import httpx

from firebolt_cursor.config import is_stream_logging_enabled
from firebolt_cursor.cursor import coercion
from firebolt_cursor.cursor.statement import OwningStatement
from firebolt_cursor.datatypes.registry import parse_type_tag
from firebolt_cursor.decode.decoder import decode
from firebolt_cursor.errors import ColumnLookupError, CursorError, StateError
from firebolt_cursor.models.column import ColumnDescriptor
from firebolt_cursor.temporal.resolver import TimezoneLike
from firebolt_cursor.wire.format import NULL_SENTINEL, unescape
from firebolt_cursor.wire.source import ByteSource, LoggingSource, as_byte_source
from firebolt_cursor.wire.tokenizer import Header, WireTokenizer

logger = logging.getLogger(__name__)

ColumnRef = int | str


class CursorState(StrEnum):
    """Position of a cursor in its result."""

    BEFORE_FIRST = "before_first"
    ON_ROW = "on_row"
    AFTER_LAST = "after_last"
    CLOSED = "closed"


class ResultCursor:
    """Typed, forward-only access to the rows of one query result.

    Open one with ``await ResultCursor.open(source)``, then call
    ``await cursor.advance()`` until it returns False, reading columns with
    the ``get_*`` accessors. Columns are referenced by 1-based position or
    by case-sensitive name.
    """

    def __init__(
        self,
        source: ByteSource,
        tokenizer: WireTokenizer,
        columns: list[ColumnDescriptor],
        statement: OwningStatement | None = None,
    ) -> None:
        """Initialize from an already-read header; prefer ``open()``."""
        self._source = source
        self._tokenizer = tokenizer
        self._columns = columns
        self._by_name: dict[str, int] = {}
        for index, column in enumerate(columns):
            self._by_name.setdefault(column.name, index)
        self._statement = statement
        self._statement_notified = False
        self._state = CursorState.BEFORE_FIRST
        self._failed = False
        self._row: list[str] | None = None
        self._cache: dict[int, Any] = {}
        self._row_number = 0
        self._was_null: bool | None = None

    @classmethod
    async def open(
        cls,
        source: Any,
        *,
        statement: OwningStatement | None = None,
        table_name: str = "",
        catalog_name: str = "",
        buffer_size: int | None = None,
        log_stream: bool | None = None,
    ) -> ResultCursor:
        """Read the header from ``source`` and resolve every column type.

        ``source`` is anything ``as_byte_source`` accepts. If the header is
        malformed or names an unsupported type, the source is closed before
        the error propagates.
        """
        byte_source = as_byte_source(source, buffer_size)
        if log_stream is None:
            log_stream = is_stream_logging_enabled()
        if log_stream:
            byte_source = LoggingSource(byte_source)
        tokenizer = WireTokenizer(byte_source)
        try:
            header = await tokenizer.read_header()
            columns = _build_columns(header, table_name, catalog_name)
        except BaseException:
            await _close_source(byte_source)
            raise
        logger.debug("Opened cursor with %d columns", len(columns))
        return cls(byte_source, tokenizer, columns, statement=statement)

    @classmethod
    async def from_response(cls, response: httpx.Response, **kwargs: Any) -> ResultCursor:
        """Open a cursor over a streamed httpx response body."""
        return await cls.open(response, **kwargs)

    # -- metadata -----------------------------------------------------------

    @property
    def columns(self) -> list[ColumnDescriptor]:
        """Column descriptors in result order."""
        self._check_open()
        return list(self._columns)

    @property
    def column_count(self) -> int:
        self._check_open()
        return len(self._columns)

    @property
    def row_number(self) -> int:
        """1-based number of the current row, 0 when not on a row."""
        self._check_open()
        return self._row_number if self._state is CursorState.ON_ROW else 0

    @property
    def closed(self) -> bool:
        return self._state is CursorState.CLOSED

    @property
    def failed(self) -> bool:
        """True once an error during ``advance()`` ended the result early."""
        return self._failed

    def column(self, column: ColumnRef) -> ColumnDescriptor:
        """Return the descriptor for a position or name."""
        self._check_open()
        return self._columns[self._index(column)]

    def find_column(self, name: str) -> int:
        """Return the 1-based position of column ``name``."""
        self._check_open()
        return self._index(name) + 1

    # -- positioning --------------------------------------------------------

    async def advance(self) -> bool:
        """Move to the next row; False once the result is exhausted.

        Any error while reading the next record leaves the cursor after the
        last row; ``close()`` still works.
        """
        self._check_open()
        if self._state is CursorState.AFTER_LAST:
            return False
        try:
            record = await self._tokenizer.next_record()
        except CursorError:
            self._failed = True
            self._move_after_last()
            raise
        if record is None:
            self._move_after_last()
            logger.debug("Result exhausted after %d rows", self._row_number)
            return False
        self._row = record
        self._cache = {}
        self._row_number += 1
        self._state = CursorState.ON_ROW
        return True

    def is_before_first(self) -> bool:
        self._check_open()
        return self._state is CursorState.BEFORE_FIRST

    def is_first(self) -> bool:
        self._check_open()
        return self._state is CursorState.ON_ROW and self._row_number == 1

    def is_after_last(self) -> bool:
        self._check_open()
        return self._state is CursorState.AFTER_LAST

    async def is_last(self) -> bool:
        """True when on a row and no record follows it.

        Peeks one record ahead; the peeked record is kept for the next
        ``advance()``. A read error while peeking ends the result the same
        way it would in ``advance()``.
        """
        self._check_open()
        if self._state is not CursorState.ON_ROW:
            return False
        try:
            return await self._tokenizer.peek_record() is None
        except CursorError:
            self._failed = True
            self._move_after_last()
            raise

    # -- column access ------------------------------------------------------

    def was_null(self) -> bool:
        """Whether the most recent column read returned null."""
        self._check_open()
        if self._was_null is None:
            raise StateError("No column value has been read successfully yet")
        return self._was_null

    def get_object(self, column: ColumnRef) -> Any:
        """The decoded value in its natural Python type, or None."""
        return coercion.snapshot(self._value(column))

    def get_string(self, column: ColumnRef) -> str | None:
        """The field as text: the raw token with escapes resolved."""
        index = self._index(column)
        if self._read(index) is None:
            return None
        return unescape(self._current_row()[index])

    def get_int(self, column: ColumnRef) -> int:
        value = self._value(column)
        return 0 if value is None else coercion.to_int(value)

    def get_float(self, column: ColumnRef) -> float:
        value = self._value(column)
        return 0.0 if value is None else coercion.to_float(value)

    def get_decimal(self, column: ColumnRef, scale: int | None = None) -> Decimal | None:
        """The field as ``Decimal``, rescaled HALF_UP when ``scale`` is given."""
        value = self._value(column)
        return None if value is None else coercion.to_decimal(value, scale)

    def get_boolean(self, column: ColumnRef) -> bool:
        value = self._value(column)
        return False if value is None else coercion.to_boolean(value)

    def get_bytes(self, column: ColumnRef) -> bytes | None:
        value = self._value(column)
        return None if value is None else coercion.to_bytes(value)

    def get_date(self, column: ColumnRef, tz: TimezoneLike = None) -> date | None:
        value = self._value(column)
        return None if value is None else coercion.to_date(value, tz)

    def get_time(self, column: ColumnRef, tz: TimezoneLike = None) -> time | None:
        """The time of day in UTC; naive values are read in ``tz``."""
        value = self._value(column)
        return None if value is None else coercion.to_time(value, tz)

    def get_timestamp(self, column: ColumnRef, tz: TimezoneLike = None) -> datetime | None:
        """The instant as an aware UTC datetime.

        Naive values are wall time in ``tz`` (UTC when omitted); values that
        carry their own offset ignore ``tz``.
        """
        value = self._value(column)
        return None if value is None else coercion.to_timestamp(value, tz)

    def get_array(self, column: ColumnRef) -> list[Any] | None:
        value = self._value(column)
        return None if value is None else coercion.to_array(value)

    def row(self) -> dict[str, Any]:
        """Snapshot of the current row keyed by column name."""
        self._current_row()
        values: dict[str, Any] = {}
        for index, column in enumerate(self._columns):
            values.setdefault(column.name, coercion.snapshot(self._read(index)))
        return values

    # -- lifecycle ----------------------------------------------------------

    async def close(self) -> None:
        """Release the stream and notify the owning statement; idempotent."""
        if self._state is CursorState.CLOSED:
            return
        self._state = CursorState.CLOSED
        self._row = None
        self._cache = {}
        await _close_source(self._source)
        if (
            self._statement is not None
            and not self._statement_notified
            and self._statement.close_on_completion
        ):
            self._statement_notified = True
            await self._statement.close()
        logger.debug("Closed cursor after %d rows", self._row_number)

    async def __aenter__(self) -> ResultCursor:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    def __aiter__(self) -> AsyncIterator[dict[str, Any]]:
        return self._iter_rows()

    async def _iter_rows(self) -> AsyncIterator[dict[str, Any]]:
        while await self.advance():
            yield self.row()

    # -- internals ----------------------------------------------------------

    def _check_open(self) -> None:
        if self._state is CursorState.CLOSED:
            raise StateError("Cursor is closed")

    def _move_after_last(self) -> None:
        self._state = CursorState.AFTER_LAST
        self._row = None
        self._cache = {}

    def _index(self, column: ColumnRef) -> int:
        if isinstance(column, bool):
            raise ColumnLookupError(f"Invalid column reference {column!r}")
        if isinstance(column, int):
            if not 1 <= column <= len(self._columns):
                raise ColumnLookupError(
                    f"Column index {column} out of range 1..{len(self._columns)}"
                )
            return column - 1
        try:
            return self._by_name[column]
        except KeyError:
            raise ColumnLookupError(f"No column named {column!r}") from None

    def _value(self, column: ColumnRef) -> Any:
        return self._read(self._index(column))

    def _current_row(self) -> list[str]:
        self._check_open()
        if self._state is CursorState.BEFORE_FIRST:
            raise StateError("Cursor is before the first row; call advance() first")
        if self._state is CursorState.AFTER_LAST or self._row is None:
            raise StateError("Cursor is after the last row")
        return self._row

    def _read(self, index: int) -> Any:
        row = self._current_row()
        # A failed decode leaves no null result to report
        self._was_null = None
        if index not in self._cache:
            self._cache[index] = decode(row[index], self._columns[index].type, NULL_SENTINEL)
        value = self._cache[index]
        self._was_null = value is None
        return value


def _build_columns(header: Header, table_name: str, catalog_name: str) -> list[ColumnDescriptor]:
    return [
        ColumnDescriptor(
            name=name,
            position=position,
            type=parse_type_tag(tag),
            type_tag=tag,
            table_name=table_name,
            catalog_name=catalog_name,
        )
        for position, (name, tag) in enumerate(
            zip(header.names, header.type_tags, strict=True), start=1
        )
    ]


async def _close_source(source: ByteSource) -> None:
    try:
        await source.aclose()
    except Exception:
        logger.warning("Failed to close the result stream", exc_info=True)
