"""SnapshotStore protocol - caches the projected snapshot across restarts."""

from __future__ import annotations

from typing import Protocol


class SnapshotStore(Protocol):
    """Persists the flat snapshot and the event cursor."""

    async def initialize(self) -> None:
        """Create tables if they don't exist."""
        ...

    async def close(self) -> None:
        ...

    async def load_snapshot(self) -> dict | None:
        ...

    async def save_snapshot(self, snapshot: dict) -> None:
        ...

    async def get_cursor(self) -> int | None:
        ...

    async def set_cursor(self, block: int) -> None:
        ...
