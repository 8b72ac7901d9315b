"""Event pipeline - the single ordered path through which state changes."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from token_request_projector.models.events import BlockObserved, ProjectorEvent
from token_request_projector.models.snapshots import AppSnapshot
from token_request_projector.projector.reducer import StateReducer

log = logging.getLogger(__name__)

Listener = Callable[[AppSnapshot], None]


class EventPipeline:
    """Applies events one at a time, in delivery order.

    Each event is fully resolved (including its metadata lookups) before the
    resulting snapshot is committed and the next event is taken. Producers
    (log poller, block ticker, account feed) only ever ``submit``.
    """

    def __init__(self, reducer: StateReducer, snapshot: AppSnapshot | None = None) -> None:
        self._reducer = reducer
        self._snapshot = snapshot or AppSnapshot()
        self._queue: asyncio.Queue[ProjectorEvent] = asyncio.Queue()
        self._lock = asyncio.Lock()
        self._listeners: list[Listener] = []
        self._task: asyncio.Task | None = None
        self._applied = 0

    @property
    def snapshot(self) -> AppSnapshot:
        return self._snapshot

    @property
    def applied_count(self) -> int:
        return self._applied

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with every newly committed snapshot."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    async def reset(self, snapshot: AppSnapshot) -> None:
        """Replace the snapshot wholesale (initialization)."""
        async with self._lock:
            self._commit(snapshot)

    def submit(self, event: ProjectorEvent) -> None:
        self._queue.put_nowait(event)

    async def apply_now(self, event: ProjectorEvent) -> AppSnapshot:
        """Apply ``event`` immediately, still serialized against the consumer."""
        async with self._lock:
            await self._apply(event)
            return self._snapshot

    async def join(self) -> None:
        """Wait until every submitted event has been applied."""
        await self._queue.join()

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.ensure_future(self._consume())

    async def stop(self) -> None:
        """Cancel the consumer and discard events it never took, so ``join`` cannot hang."""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        dropped = 0
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()
            dropped += 1
        if dropped:
            log.warning("Pipeline stopped with %d unapplied events", dropped)

    async def _consume(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                async with self._lock:
                    await self._apply(event)
            finally:
                self._queue.task_done()

    async def _apply(self, event: ProjectorEvent) -> None:
        try:
            next_snapshot = await self._reducer.apply(self._snapshot, event)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            log.error("Failed to apply %s: %s", type(event).__name__, exc, exc_info=True)
            return
        self._applied += 1
        if next_snapshot is not self._snapshot:
            self._commit(next_snapshot)

    def _commit(self, snapshot: AppSnapshot) -> None:
        self._snapshot = snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as exc:
                log.warning("Snapshot listener failed: %s", exc)


class BlockTicker:
    """Turns a stream of head block numbers into BlockObserved events.

    Repeated block numbers are suppressed so downstream pricing is not
    recomputed for nothing.
    """

    def __init__(self, pipeline: EventPipeline) -> None:
        self._pipeline = pipeline
        self._previous: int | None = None

    @property
    def previous(self) -> int | None:
        return self._previous

    def observe(self, block_number: int) -> bool:
        """Submit ``block_number`` if new. Returns True when an event was emitted."""
        if block_number == self._previous:
            return False
        self._previous = block_number
        self._pipeline.submit(BlockObserved(block_number=block_number))
        return True
