"""Constants and escaping rules of the tab-separated response format.

Responses are Firebolt's ``TabSeparatedWithNamesAndTypes``: a line of column
names, a line of type tags, then one line per row. Fields are separated by
TAB, records by LF, and a backslash escapes the next character.
"""

FIELD_DELIMITER = "\t"
LINE_TERMINATOR = "\n"
ESCAPE = "\\"
NULL_SENTINEL = "\\N"

# Array literals: opening bracket -> closing bracket
ARRAY_BRACKETS: dict[str, str] = {"{": "}", "[": "]"}
ARRAY_SEPARATOR = ","
ARRAY_QUOTES = frozenset({'"', "'"})
# Unquoted element tokens that mean a null element
ARRAY_NULL_ELEMENTS = frozenset({NULL_SENTINEL, "NULL"})

BOOLEAN_LITERALS: dict[str, bool] = {"t": True, "f": False}

BYTEA_PREFIX = "\\x"

# Character following the escape -> literal character
UNESCAPE_MAP: dict[str, str] = {
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "0": "\0",
    "\\": "\\",
    "'": "'",
    '"': '"',
    "\t": "\t",
    "\n": "\n",
    # Array punctuation
    ",": ",",
    "{": "{",
    "}": "}",
    "[": "[",
    "]": "]",
}

# Literal character -> escaped form, used when rendering tokens
ESCAPE_MAP: dict[str, str] = {
    "\\": "\\\\",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
    "\0": "\\0",
    "'": "\\'",
}


def unescape(token: str) -> str:
    """Resolve escape sequences in a token.

    Sequences missing from ``UNESCAPE_MAP`` are kept verbatim, backslash
    included, so that literals such as ``\\xdeadbeef`` survive unchanged.
    """
    if ESCAPE not in token:
        return token
    out: list[str] = []
    i = 0
    length = len(token)
    while i < length:
        ch = token[i]
        if ch != ESCAPE:
            out.append(ch)
            i += 1
            continue
        if i + 1 >= length:
            # Trailing backslash, keep as-is
            out.append(ch)
            break
        nxt = token[i + 1]
        mapped = UNESCAPE_MAP.get(nxt)
        if mapped is None:
            out.append(ch)
            out.append(nxt)
        else:
            out.append(mapped)
        i += 2
    return "".join(out)


def escape(text: str) -> str:
    """Escape a literal string so it can be written as a single field."""
    return "".join(ESCAPE_MAP.get(ch, ch) for ch in text)


def split_fields(line: str) -> list[str]:
    """Split a record on unescaped field delimiters, keeping tokens escaped."""
    if ESCAPE not in line:
        return line.split(FIELD_DELIMITER)
    fields: list[str] = []
    start = 0
    i = 0
    length = len(line)
    while i < length:
        ch = line[i]
        if ch == ESCAPE:
            i += 2
            continue
        if ch == FIELD_DELIMITER:
            fields.append(line[start:i])
            start = i + 1
        i += 1
    fields.append(line[start:])
    return fields
