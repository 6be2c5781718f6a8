"""Owning-statement protocol, the cursor's only upward dependency.

A cursor may be produced by a statement that wants to be closed once its
result has been consumed. The cursor notifies it at most once, on close.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class OwningStatement(Protocol):
    """Statement that produced a cursor."""

    @property
    def close_on_completion(self) -> bool:
        """Whether closing the cursor should close the statement too."""
        ...

    async def close(self) -> None:
        """Close the statement."""
        ...
