"""Decode a captured result stream and print one JSON object per row.

Usage: ``python -m firebolt_cursor response.tsv [--tz Europe/Berlin]``
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import date, time
from decimal import Decimal
from pathlib import Path
from typing import Any

from firebolt_cursor.config import get_log_level
from firebolt_cursor.cursor.result_cursor import ResultCursor
from firebolt_cursor.errors import CursorError
from firebolt_cursor.models.types import TypeKind

logger = logging.getLogger(__name__)


def _to_json(value: Any) -> Any:
    if isinstance(value, bytes):
        return "\\x" + value.hex()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, time)):
        return value.isoformat()
    raise TypeError(f"Cannot serialize {type(value).__name__}")


async def dump(path: Path, tz: str | None, table: str) -> int:
    """Print every row of the response in ``path``; return the row count."""
    with path.open("rb") as fileobj:
        async with await ResultCursor.open(fileobj, table_name=table) as cursor:
            timestamp_columns = [
                c.name
                for c in cursor.columns
                if c.type.kind in (TypeKind.TIMESTAMP, TypeKind.TIMESTAMPTZ)
            ]
            count = 0
            while await cursor.advance():
                row = cursor.row()
                for name in timestamp_columns:
                    row[name] = cursor.get_timestamp(name, tz)
                print(json.dumps(row, default=_to_json))
                count += 1
    logger.info("Decoded %d rows from %s", count, path)
    return count


def main(argv: list[str] | None = None) -> int:
    """Run the dump tool."""
    parser = argparse.ArgumentParser(prog="firebolt_cursor", description=__doc__.splitlines()[0])
    parser.add_argument("file", type=Path, help="captured TabSeparatedWithNamesAndTypes response")
    parser.add_argument("--tz", default=None, help="zone for naive timestamps (default UTC)")
    parser.add_argument("--table", default="", help="table name reported in column metadata")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, get_log_level()),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )
    try:
        asyncio.run(dump(args.file, args.tz, args.table))
    except (CursorError, ValueError, OSError) as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
