"""Resolution of wire type tags into type descriptors.

Tags are matched case-insensitively after trimming; quoted arguments (zone
names) keep their case. Arrays and ``nullable(...)`` wrappers recurse, and
trailing ``null`` / ``not null`` markers set nullability, so tags such as
``array(array(text null)) null``, ``Array(Nullable(String))`` or
``decimal(38, 9)`` all resolve.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from functools import lru_cache

from firebolt_cursor.errors import UnsupportedTypeError
from firebolt_cursor.models.types import TypeDescriptor, TypeKind
from firebolt_cursor.temporal.resolver import resolve_zone

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(
    r"\s*(?:(?P<quoted>'(?:[^'\\]|\\.)*')|(?P<number>\d+)"
    r"|(?P<word>[A-Za-z_][A-Za-z0-9_]*)|(?P<punct>[(),]))"
)
_SIZED_INT_RE = re.compile(r"^(u?)int(8|16|32|64|128|256)$")

_WRAPPERS = frozenset({"array", "nullable"})

_INT_ALIASES: dict[str, int] = {
    "int": 32,
    "integer": 32,
    "int4": 32,
    "bigint": 64,
    "long": 64,
    "smallint": 16,
    "tinyint": 8,
}
_FLOAT_ALIASES: dict[str, int] = {
    "float32": 32,
    "real": 32,
    "float4": 32,
    "float64": 64,
    "double": 64,
    "double precision": 64,
    "float8": 64,
    "float": 64,
}
_DECIMAL_NAMES = frozenset({"decimal", "numeric"})
_TEXT_NAMES = frozenset({"text", "string", "varchar", "char"})
_NAIVE_TIMESTAMP_NAMES = frozenset(
    {"timestamp", "timestampntz", "timestamp without time zone", "datetime", "datetime64"}
)
_ZONED_TIMESTAMP_NAMES = frozenset({"timestamptz", "timestamp with time zone"})
_SIMPLE_NAMES: dict[str, TypeKind] = {
    "boolean": TypeKind.BOOLEAN,
    "bool": TypeKind.BOOLEAN,
    "bytea": TypeKind.BYTEA,
    "date": TypeKind.DATE,
    "pgdate": TypeKind.DATE,
    "date32": TypeKind.DATE,
    "time": TypeKind.TIME,
    # type of a bare NULL literal
    "nothing": TypeKind.TEXT,
}

MAX_DECIMAL_PRECISION = 76
DEFAULT_DECIMAL_PRECISION = 38

Arg = int | str


@lru_cache(maxsize=512)
def parse_type_tag(tag: str) -> TypeDescriptor:
    """Resolve a type tag string into a ``TypeDescriptor``.

    Raises ``UnsupportedTypeError`` naming the tag if it is unknown or
    malformed.
    """
    tokens = _tokenize(tag)
    if not tokens:
        raise UnsupportedTypeError(tag, "empty type tag")
    parser = _TagParser(tag, tokens)
    descriptor = parser.parse_type()
    if not parser.at_end():
        raise UnsupportedTypeError(tag, f"unexpected {parser.peek()[1]!r}")
    logger.debug("Resolved type tag %r as %s", tag, descriptor.name)
    return descriptor


def _tokenize(tag: str) -> list[tuple[str, str]]:
    tokens: list[tuple[str, str]] = []
    text = tag.strip()
    pos = 0
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None or match.end() == pos:
            raise UnsupportedTypeError(tag, f"unexpected character {text[pos]!r}")
        group, value = next((k, v) for k, v in match.groupdict().items() if v is not None)
        if group == "word":
            value = value.lower()
        elif group == "quoted":
            value = value[1:-1].replace("\\'", "'")
        tokens.append((group, value))
        pos = match.end()
    return tokens


class _TagParser:
    """Recursive-descent parser over the tokens of one tag."""

    def __init__(self, tag: str, tokens: list[tuple[str, str]]) -> None:
        self.tag = tag
        self.tokens = tokens
        self.pos = 0

    def at_end(self) -> bool:
        return self.pos >= len(self.tokens)

    def peek(self) -> tuple[str, str]:
        if self.at_end():
            return ("end", "")
        return self.tokens[self.pos]

    def take(self) -> tuple[str, str]:
        token = self.peek()
        self.pos += 1
        return token

    def expect(self, value: str) -> None:
        kind, got = self.take()
        if kind != "punct" or got != value:
            raise UnsupportedTypeError(self.tag, f"expected {value!r}, got {got or 'end'!r}")

    def parse_type(self) -> TypeDescriptor:
        words: list[str] = []
        while self.peek()[0] == "word":
            words.append(self.take()[1])
        if not words:
            raise UnsupportedTypeError(self.tag, "missing type name")
        words, nullable = _strip_null_markers(words)
        name = " ".join(words)
        if not name:
            raise UnsupportedTypeError(self.tag, "missing type name")

        has_args = nullable is None and self.peek() == ("punct", "(")
        if name in _WRAPPERS:
            if not has_args:
                raise UnsupportedTypeError(self.tag, f"{name} needs a type argument")
            self.take()
            inner = self.parse_type()
            self.expect(")")
            if name == "array":
                descriptor = TypeDescriptor(kind=TypeKind.ARRAY, element=inner)
            else:
                descriptor = inner.model_copy(update={"nullable": True})
        else:
            args = self._parse_args() if has_args else []
            descriptor = _build_scalar(self.tag, name, args)

        trailing: list[str] = []
        while self.peek()[0] == "word":
            trailing.append(self.take()[1])
        if trailing:
            rest, trailing_nullable = _strip_null_markers(trailing)
            if rest or nullable is not None:
                raise UnsupportedTypeError(self.tag, f"unexpected {' '.join(trailing)!r}")
            nullable = trailing_nullable
        if nullable is not None:
            descriptor = descriptor.model_copy(update={"nullable": nullable})
        return descriptor

    def _parse_args(self) -> list[Arg]:
        self.expect("(")
        args: list[Arg] = []
        while True:
            kind, value = self.take()
            if kind == "number":
                args.append(int(value))
            elif kind == "quoted":
                args.append(value)
            else:
                raise UnsupportedTypeError(self.tag, f"bad type argument {value or 'end'!r}")
            kind, value = self.take()
            if (kind, value) == ("punct", ")"):
                return args
            if (kind, value) != ("punct", ","):
                raise UnsupportedTypeError(
                    self.tag, f"expected ',' or ')', got {value or 'end'!r}"
                )


def _strip_null_markers(words: list[str]) -> tuple[list[str], bool | None]:
    """Remove trailing ``null`` / ``not null``; return remaining words and nullability."""
    nullable: bool | None = None
    if words and words[-1] == "null":
        if len(words) >= 2 and words[-2] == "not":
            return words[:-2], False
        return words[:-1], True
    return words, nullable


def _build_scalar(tag: str, name: str, args: list[Arg]) -> TypeDescriptor:
    builder = _scalar_builder(name)
    if builder is None:
        raise UnsupportedTypeError(tag, f"unknown type {name!r}")
    try:
        return builder(name, args)
    except (TypeError, ValueError) as exc:
        raise UnsupportedTypeError(tag, str(exc)) from exc


def _scalar_builder(name: str) -> Callable[[str, list[Arg]], TypeDescriptor] | None:
    if _SIZED_INT_RE.match(name) or name in _INT_ALIASES:
        return _build_integer
    if name in _FLOAT_ALIASES:
        return _build_float
    if name in _DECIMAL_NAMES:
        return _build_decimal
    if name in _TEXT_NAMES:
        return _build_text
    if name in _SIMPLE_NAMES:
        return _build_simple
    if name in _NAIVE_TIMESTAMP_NAMES or name in _ZONED_TIMESTAMP_NAMES:
        return _build_timestamp
    return None


def _no_args(name: str, args: list[Arg]) -> None:
    if args:
        raise ValueError(f"{name} takes no arguments")


def _int_args(name: str, args: list[Arg]) -> list[int]:
    if not all(isinstance(a, int) for a in args):
        raise ValueError(f"{name} arguments must be integers")
    return [int(a) for a in args]


def _build_integer(name: str, args: list[Arg]) -> TypeDescriptor:
    _no_args(name, args)
    match = _SIZED_INT_RE.match(name)
    if match:
        return TypeDescriptor(
            kind=TypeKind.INTEGER, width=int(match.group(2)), signed=not match.group(1)
        )
    return TypeDescriptor(kind=TypeKind.INTEGER, width=_INT_ALIASES[name])


def _build_float(name: str, args: list[Arg]) -> TypeDescriptor:
    _no_args(name, args)
    return TypeDescriptor(kind=TypeKind.FLOAT, width=_FLOAT_ALIASES[name])


def _build_decimal(name: str, args: list[Arg]) -> TypeDescriptor:
    values = _int_args(name, args)
    if len(values) > 2:
        raise ValueError(f"{name} takes at most precision and scale")
    if not values:
        return TypeDescriptor(kind=TypeKind.DECIMAL, precision=DEFAULT_DECIMAL_PRECISION)
    precision = values[0]
    scale = values[1] if len(values) == 2 else 0
    if not 1 <= precision <= MAX_DECIMAL_PRECISION:
        raise ValueError(f"precision {precision} out of range 1..{MAX_DECIMAL_PRECISION}")
    if not 0 <= scale <= precision:
        raise ValueError(f"scale {scale} out of range 0..{precision}")
    return TypeDescriptor(kind=TypeKind.DECIMAL, precision=precision, scale=scale)


def _build_text(name: str, args: list[Arg]) -> TypeDescriptor:
    # varchar(n) / char(n): the length is not enforced on read
    values = _int_args(name, args)
    if len(values) > 1:
        raise ValueError(f"{name} takes at most a length")
    return TypeDescriptor(kind=TypeKind.TEXT)


def _build_simple(name: str, args: list[Arg]) -> TypeDescriptor:
    _no_args(name, args)
    return TypeDescriptor(kind=_SIMPLE_NAMES[name])


def _build_timestamp(name: str, args: list[Arg]) -> TypeDescriptor:
    """Naive and zoned timestamps, with optional precision and zone arguments.

    ``datetime64(6, 'Europe/Berlin')`` values are printed as wall time in the
    named zone, so a zone argument makes the column zoned.
    """
    precision = [a for a in args if isinstance(a, int)]
    zones = [a for a in args if isinstance(a, str)]
    if len(precision) > 1 or len(zones) > 1 or (args and isinstance(args[0], str) and precision):
        raise ValueError(f"bad arguments for {name}: {args}")
    if precision and not 0 <= precision[0] <= 9:
        raise ValueError(f"timestamp precision {precision[0]} out of range 0..9")
    zone = zones[0] if zones else None
    if zone is not None:
        resolve_zone(zone)
        return TypeDescriptor(kind=TypeKind.TIMESTAMPTZ, timezone=zone)
    if name in _ZONED_TIMESTAMP_NAMES:
        return TypeDescriptor(kind=TypeKind.TIMESTAMPTZ)
    return TypeDescriptor(kind=TypeKind.TIMESTAMP)


def describe(tags: list[str] | tuple[str, ...]) -> list[TypeDescriptor]:
    """Resolve several tags at once, e.g. the type line of a header."""
    return [parse_type_tag(tag) for tag in tags]
