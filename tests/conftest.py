"""Shared test fixtures and canned responses."""

import httpx
import pytest

from firebolt_cursor.wire.source import BytesSource


def tsv(*lines: list[str] | tuple[str, ...]) -> bytes:
    """Build a response body from rows of raw (already escaped) tokens."""
    return "".join("\t".join(fields) + "\n" for fields in lines).encode("utf-8")


TAGS_RESPONSE = tsv(
    ["id", "tags"],
    ["int32", "array(text)"],
    ["1", "{a,b}"],
    ["2", "\\N"],
    ["3", "{}"],
)

ALL_TYPES_RESPONSE = tsv(
    [
        "i",
        "big",
        "f",
        "d",
        "s",
        "b",
        "bin",
        "day",
        "tod",
        "ts",
        "tstz",
        "nested",
    ],
    [
        "int32",
        "uint64",
        "double",
        "decimal(10, 2)",
        "text",
        "boolean",
        "bytea",
        "date",
        "time",
        "timestamp",
        "timestamptz",
        "array(array(int32 null))",
    ],
    [
        "-7",
        "18446744073709551615",
        "2.5",
        "12.3",
        "tab\\there",
        "t",
        "\\\\xdeadbeef",
        "2024-02-29",
        "13:45:30.5",
        "2024-01-15 10:30:00",
        "2024-01-15 10:30:00+02",
        "{{1,NULL},{}}",
    ],
    ["\\N"] * 12,
)


class FakeStatement:
    """Owning statement that records how often it was closed."""

    def __init__(self, close_on_completion: bool = True):
        self._close_on_completion = close_on_completion
        self.close_calls = 0

    @property
    def close_on_completion(self) -> bool:
        return self._close_on_completion

    async def close(self) -> None:
        self.close_calls += 1


class FailingSource:
    """Byte source that serves ``data`` and then raises."""

    def __init__(self, data: bytes, error: Exception | None = None):
        self._data = data
        self._error = error or ConnectionResetError("connection reset by peer")
        self.closed = False

    async def read(self) -> bytes:
        if self._data:
            data, self._data = self._data, b""
            return data
        raise self._error

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def tags_source():
    """Tiny chunks so records straddle chunk boundaries."""
    return BytesSource(TAGS_RESPONSE, chunk_size=3)


@pytest.fixture
def statement():
    return FakeStatement()


def mock_client(body: bytes) -> httpx.AsyncClient:
    """httpx client whose every request returns ``body``."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            content=body,
            headers={"content-type": "text/tab-separated-values"},
        )

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))
