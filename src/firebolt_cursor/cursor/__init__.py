"""Result cursor and its collaborators."""

from firebolt_cursor.cursor.result_cursor import CursorState, ResultCursor
from firebolt_cursor.cursor.statement import OwningStatement

__all__ = ["CursorState", "OwningStatement", "ResultCursor"]
