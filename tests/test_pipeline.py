"""Event pipeline: ordered, serialized application of events."""

from __future__ import annotations

import asyncio

from token_request_projector.models.events import BlockObserved
from token_request_projector.projector.pipeline import BlockTicker, EventPipeline
from token_request_projector.projector.reducer import StateReducer

from tests.factories import make_block, make_created, make_finalised, make_snapshot


class SlowTimestampChain:
    """Wraps a chain so the first timestamp lookup is slow."""

    def __init__(self, chain, delay: float) -> None:
        self._chain = chain
        self._delay = delay

    def __getattr__(self, name):
        return getattr(self._chain, name)

    async def get_block_timestamp(self, block_number: int):
        if self._delay:
            delay, self._delay = self._delay, 0
            await asyncio.sleep(delay)
        return await self._chain.get_block_timestamp(block_number)


async def test_events_apply_in_delivery_order(pipeline):
    await pipeline.reset(make_snapshot())

    pipeline.submit(make_created(request_id=1))
    pipeline.submit(make_finalised(request_id=1))
    await pipeline.join()

    assert pipeline.snapshot.requests[0].status.value == "approved"
    assert pipeline.applied_count == 2


async def test_slow_enrichment_does_not_let_later_events_overtake(chain, resolver):
    slow = SlowTimestampChain(chain, delay=0.05)
    pipeline = EventPipeline(StateReducer(resolver, slow), make_snapshot())
    pipeline.start()
    try:
        pipeline.submit(make_created(request_id=1, block_number=100))
        pipeline.submit(make_created(request_id=2, block_number=101))
        pipeline.submit(make_finalised(request_id=1))
        await pipeline.join()
    finally:
        await pipeline.stop()

    assert [r.request_id for r in pipeline.snapshot.requests] == [1, 2]
    assert pipeline.snapshot.requests[0].status.value == "approved"


async def test_listeners_see_each_committed_snapshot(pipeline):
    seen = []
    unsubscribe = pipeline.subscribe(seen.append)

    await pipeline.reset(make_snapshot())
    pipeline.submit(make_block(10))
    pipeline.submit(make_block(10))  # no change, no notification
    await pipeline.join()
    unsubscribe()
    pipeline.submit(make_block(11))
    await pipeline.join()

    assert [s.block_ticker for s in seen] == [0, 10]


async def test_reducer_error_keeps_previous_snapshot(pipeline, resolver):
    await pipeline.reset(make_snapshot())
    before = pipeline.snapshot

    class Boom(Exception):
        pass

    async def explode(*args):
        raise Boom("resolver crashed")

    resolver.resolve = explode
    pipeline.submit(make_created())
    pipeline.submit(make_block(5))
    await pipeline.join()

    assert pipeline.snapshot.requests == before.requests
    assert pipeline.snapshot.block_ticker == 5


async def test_apply_now_is_serialized_with_queue(pipeline):
    await pipeline.reset(make_snapshot())
    snapshot = await pipeline.apply_now(make_created(request_id=9))
    assert snapshot.requests[0].request_id == 9
    assert pipeline.snapshot is snapshot


async def test_block_ticker_suppresses_repeats():
    submitted = []

    class Recorder:
        def submit(self, event):
            submitted.append(event)

    ticker = BlockTicker(Recorder())
    assert ticker.observe(5)
    assert not ticker.observe(5)
    assert ticker.observe(6)
    assert ticker.observe(5)  # only consecutive repeats are suppressed
    assert submitted == [BlockObserved(5), BlockObserved(6), BlockObserved(5)]


async def test_stop_discards_queued_events_so_join_returns(chain, resolver):
    slow = SlowTimestampChain(chain, delay=0.2)
    pipeline = EventPipeline(StateReducer(resolver, slow), make_snapshot())
    pipeline.start()
    pipeline.submit(make_created(request_id=1, block_number=100))
    pipeline.submit(make_created(request_id=2, block_number=101))
    pipeline.submit(make_block(7))
    await asyncio.sleep(0.01)

    await pipeline.stop()

    await asyncio.wait_for(pipeline.join(), timeout=1)
    assert pipeline.snapshot.requests == ()
    assert pipeline.applied_count == 0


async def test_stop_without_start_clears_queue(reducer):
    pipeline = EventPipeline(reducer, make_snapshot())
    pipeline.submit(make_block(3))

    await pipeline.stop()

    await asyncio.wait_for(pipeline.join(), timeout=1)
    assert pipeline.snapshot.block_ticker == 0
