"""Exception hierarchy for the result-stream engine.

Every error raised by the engine derives from ``CursorError``. Where a
builtin exception already names the failure (``ValueError``,
``LookupError``), the engine's class inherits from it too, so callers can
catch either.
"""


class CursorError(Exception):
    """Base class of all errors raised by this package."""


class FormatError(CursorError):
    """The response stream is structurally malformed.

    Raised for field-count mismatches, truncated records, a header without
    its type line, and bytes that are not valid UTF-8.
    """


class UnsupportedTypeError(CursorError):
    """A column type tag is unknown or malformed."""

    def __init__(self, tag: str, reason: str | None = None) -> None:
        """Initialize with the offending tag and an optional reason."""
        self.tag = tag
        message = f"Unsupported type tag {tag!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ValueFormatError(CursorError, ValueError):
    """A field token does not parse under its declared or requested type."""


class StateError(CursorError):
    """The operation is not valid in the cursor's current state."""


class ColumnLookupError(CursorError, LookupError):
    """Unknown column name or out-of-range column index."""


class StreamError(CursorError):
    """The underlying byte source failed while being read."""
