"""Byte sources: a thin abstraction over wherever the response bytes come from.

The cursor programs against the ``ByteSource`` protocol. Adapters cover
in-memory payloads, blocking file objects, async chunk iterators and
streamed httpx responses. The engine never opens or retries a connection;
it only reads until the source reports end of stream.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterable, AsyncIterator
from typing import IO, Any, Protocol, runtime_checkable

import httpx

from firebolt_cursor.config import get_buffer_size

logger = logging.getLogger(__name__)


@runtime_checkable
class ByteSource(Protocol):
    """Sequential byte stream read in chunks."""

    async def read(self) -> bytes:
        """Return the next chunk, or ``b""`` at end of stream."""
        ...

    async def aclose(self) -> None:
        """Release the underlying resource."""
        ...


class BytesSource:
    """Serves an in-memory payload in ``chunk_size`` slices."""

    def __init__(self, data: bytes, chunk_size: int | None = None) -> None:
        """Initialize with the full payload."""
        self._data = memoryview(data)
        self._offset = 0
        self._chunk_size = chunk_size or get_buffer_size()
        self.closed = False

    async def read(self) -> bytes:
        """Return the next slice of the payload."""
        if self.closed:
            return b""
        chunk = bytes(self._data[self._offset : self._offset + self._chunk_size])
        self._offset += len(chunk)
        return chunk

    async def aclose(self) -> None:
        """Mark the source closed."""
        self.closed = True


class FileSource:
    """Reads a blocking binary file object in a worker thread."""

    def __init__(self, fileobj: IO[bytes], chunk_size: int | None = None) -> None:
        """Initialize with an open binary file object."""
        self._file = fileobj
        self._chunk_size = chunk_size or get_buffer_size()

    async def read(self) -> bytes:
        """Read the next chunk from the file."""
        chunk = await asyncio.to_thread(self._file.read, self._chunk_size)
        return bytes(chunk) if chunk else b""

    async def aclose(self) -> None:
        """Close the file object."""
        await asyncio.to_thread(self._file.close)


class AsyncIteratorSource:
    """Adapts an async iterable of byte chunks (e.g. ``aiter_bytes()``)."""

    def __init__(self, chunks: AsyncIterable[bytes]) -> None:
        """Initialize with an async iterable of chunks."""
        self._iterator: AsyncIterator[bytes] = aiter(chunks)
        self._done = False

    async def read(self) -> bytes:
        """Return the next non-empty chunk, or ``b""`` once exhausted."""
        while not self._done:
            try:
                chunk = await anext(self._iterator)
            except StopAsyncIteration:
                self._done = True
                break
            if chunk:
                return bytes(chunk)
        return b""

    async def aclose(self) -> None:
        """Close the iterator if it supports it."""
        self._done = True
        closer = getattr(self._iterator, "aclose", None)
        if closer is not None:
            await closer()


class HttpxResponseSource:
    """Streams the body of an httpx response opened with ``stream=True``.

    The response is expected to have been checked for HTTP errors by the
    transport layer; this adapter only reads the body.
    """

    def __init__(self, response: httpx.Response, chunk_size: int | None = None) -> None:
        """Initialize with a streaming httpx response."""
        self._response = response
        self._chunks = AsyncIteratorSource(
            response.aiter_bytes(chunk_size=chunk_size or get_buffer_size())
        )

    async def read(self) -> bytes:
        """Return the next chunk of the decoded body."""
        return await self._chunks.read()

    async def aclose(self) -> None:
        """Close the response, returning its connection to the pool."""
        await self._chunks.aclose()
        await self._response.aclose()


class LoggingSource:
    """Tee that echoes every chunk read from ``inner`` to the debug log."""

    def __init__(self, inner: ByteSource) -> None:
        """Initialize with the source being observed."""
        self._inner = inner
        self.bytes_read = 0

    async def read(self) -> bytes:
        """Read from the wrapped source and log the chunk."""
        chunk = await self._inner.read()
        if chunk:
            self.bytes_read += len(chunk)
            logger.debug("Response chunk: %s", chunk.decode("utf-8", errors="replace"))
        else:
            logger.debug("Response stream ended after %d bytes", self.bytes_read)
        return chunk

    async def aclose(self) -> None:
        """Close the wrapped source."""
        await self._inner.aclose()


def as_byte_source(obj: Any, chunk_size: int | None = None) -> ByteSource:
    """Wrap ``obj`` in the matching ``ByteSource`` adapter.

    Accepts an existing source, ``bytes``/``bytearray``, an httpx response,
    an async iterable of chunks, or a binary file object.
    """
    # httpx.Response also has read/aclose, so it is matched before the protocol
    if isinstance(obj, httpx.Response):
        return HttpxResponseSource(obj, chunk_size)
    if isinstance(obj, (bytes, bytearray, memoryview)):
        return BytesSource(bytes(obj), chunk_size)
    if isinstance(obj, ByteSource):
        return obj
    if hasattr(obj, "__aiter__"):
        return AsyncIteratorSource(obj)
    if hasattr(obj, "read"):
        return FileSource(obj, chunk_size)
    raise TypeError(f"Cannot read a result stream from {type(obj).__name__}")
