"""EventSource protocol - delivers ordered projector events."""

from __future__ import annotations

from typing import Protocol

from token_request_projector.models.events import ProjectorEvent


class EventSource(Protocol):
    """Polls for new app events in delivery order."""

    @property
    def cursor(self) -> int | None:
        """Last fully scanned block, None before the first poll."""
        ...

    def set_cursor(self, block: int) -> None:
        """Restore cursor from persisted state."""
        ...

    async def poll(self) -> list[ProjectorEvent]:
        """Fetch new events since the cursor."""
        ...
