"""Splitting of array literals into element tokens."""

from firebolt_cursor.errors import ValueFormatError
from firebolt_cursor.wire.format import (
    ARRAY_BRACKETS,
    ARRAY_QUOTES,
    ARRAY_SEPARATOR,
    ESCAPE,
)


def split_array_literal(raw: str) -> list[tuple[str, bool]]:
    """Split ``{a,b,...}`` or ``[a,b,...]`` into ``(token, quoted)`` pairs.

    Tokens keep their escapes; quoted tokens lose their surrounding quotes,
    unquoted ones lose surrounding whitespace. Nested literals are returned
    whole, to be split again by the caller. Separators inside quotes, nested
    brackets or escape sequences do not split.
    """
    if len(raw) < 2 or raw[0] not in ARRAY_BRACKETS or raw[-1] != ARRAY_BRACKETS[raw[0]]:
        raise ValueFormatError(f"Not an array literal: {raw!r}")
    body = raw[1:-1]
    if not body.strip():
        return []

    elements: list[str] = []
    closers: list[str] = []
    quote: str | None = None
    start = 0
    i = 0
    length = len(body)
    while i < length:
        ch = body[i]
        if ch == ESCAPE:
            i += 2
            continue
        if quote is not None:
            if ch == quote:
                quote = None
        elif ch in ARRAY_QUOTES:
            quote = ch
        elif ch in ARRAY_BRACKETS:
            closers.append(ARRAY_BRACKETS[ch])
        elif closers and ch == closers[-1]:
            closers.pop()
        elif ch == ARRAY_SEPARATOR and not closers:
            elements.append(body[start:i])
            start = i + 1
        i += 1
    if quote is not None:
        raise ValueFormatError(f"Unterminated quote in array literal: {raw!r}")
    if closers:
        raise ValueFormatError(f"Unbalanced brackets in array literal: {raw!r}")
    elements.append(body[start:])
    return [_unquote(element) for element in elements]


def _unquote(element: str) -> tuple[str, bool]:
    stripped = element.strip()
    if len(stripped) >= 2 and stripped[0] in ARRAY_QUOTES and stripped[-1] == stripped[0]:
        return stripped[1:-1], True
    return stripped, False
