"""Main daemon loop - wires all components together."""

from __future__ import annotations

import asyncio
import logging
import signal

from token_request_projector.api.data_api import ProjectorDataAPI
from token_request_projector.evm.poller import ContractLogPoller
from token_request_projector.evm.rpc import EthRpcClient
from token_request_projector.interfaces.chain import ChainReader
from token_request_projector.interfaces.poller import EventSource
from token_request_projector.interfaces.store import SnapshotStore
from token_request_projector.metadata.resolver import TokenMetadataResolver
from token_request_projector.models.config import ProjectorConfig
from token_request_projector.models.events import SyncFinished
from token_request_projector.projector.bootstrap import Bootstrapper, rehydrate
from token_request_projector.projector.pipeline import BlockTicker, EventPipeline
from token_request_projector.projector.reducer import StateReducer
from token_request_projector.storage.sqlite import SQLiteSnapshotStore

log = logging.getLogger(__name__)


class ProjectorDaemon:
    """Token-request state projector.

    Bootstraps from the cached snapshot and the app configuration, then polls
    contract logs and the chain head, feeding every change through the event
    pipeline and persisting the result.
    """

    def __init__(
        self,
        cfg: ProjectorConfig,
        chain: ChainReader | None = None,
        source: EventSource | None = None,
        store: SnapshotStore | None = None,
    ) -> None:
        self._cfg = cfg
        self._running = False
        self._caught_up = False

        self.rpc: EthRpcClient | None = None
        if chain is None:
            self.rpc = EthRpcClient(
                cfg.rpc_url,
                app_address=cfg.app_address,
                agent_address=cfg.agent_address,
                timeout=cfg.request_timeout,
            )
            chain = self.rpc
        self.chain = chain

        # Core components
        self.store = store or SQLiteSnapshotStore(cfg.db_path)
        self.resolver = TokenMetadataResolver(chain, cfg.network, timeout=cfg.request_timeout)
        self.reducer = StateReducer(self.resolver, chain, cfg.auction)
        self.pipeline = EventPipeline(self.reducer)
        self.ticker = BlockTicker(self.pipeline)
        self.bootstrapper = Bootstrapper(
            chain,
            self.resolver,
            backoff_initial=cfg.init_backoff_initial,
            backoff_max=cfg.init_backoff_max,
        )
        if source is None:
            if self.rpc is None:
                raise ValueError("an event source is required with a custom chain reader")
            source = ContractLogPoller(
                self.rpc,
                [cfg.app_address, cfg.agent_address],
                start_block=cfg.start_block,
                chunk_size=cfg.log_chunk_size,
            )
        self.source = source
        self.data_api = ProjectorDataAPI(self.pipeline)

    async def start(self) -> None:
        """Initialize components and run the main loop."""
        log.info("Starting token-request projector")
        log.info("  Network: %s", self._cfg.network)
        log.info("  App: %s", self._cfg.app_address or "(unset)")
        log.info("  RPC: %s", self._cfg.rpc_url)

        await self.store.initialize()
        self._running = True
        try:
            await self.bootstrap()
            await self._main_loop()
        finally:
            await self.pipeline.stop()
            await self.store.close()
            if self.rpc is not None:
                await self.rpc.close()
            log.info("Projector shut down cleanly")

    async def stop(self) -> None:
        """Signal the daemon to stop gracefully."""
        log.info("Stop requested")
        self._running = False

    async def bootstrap(self) -> None:
        """Rehydrate the cache, discover the app configuration and build the initial state."""
        cached = rehydrate(await self.store.load_snapshot())
        await self.pipeline.reset(cached)
        self.pipeline.start()

        configuration = await self.bootstrapper.discover()
        if isinstance(self.source, ContractLogPoller):
            self.source.set_addresses([self._cfg.app_address, configuration.agent_address])

        await self.pipeline.reset(await self.bootstrapper.initialize(cached, configuration))

        # Restore cursor from last run
        saved_block = await self.store.get_cursor()
        if saved_block is not None:
            self.source.set_cursor(saved_block)
            log.info("Restored cursor: block %d", saved_block)

    async def tick(self) -> None:
        """One poll: observe the head, apply new events, persist the snapshot."""
        self.ticker.observe(await self.chain.block_number())

        events = await self.source.poll()
        for event in events:
            self.pipeline.submit(event)

        if not self._caught_up:
            # The first successful poll ends the initial sync
            self._caught_up = True
            self.pipeline.submit(SyncFinished(block_number=self.source.cursor or 0))

        await self.pipeline.join()

        await self.store.save_snapshot(self.pipeline.snapshot.to_dict())
        if (block := self.source.cursor) is not None:
            await self.store.set_cursor(block)

    async def _main_loop(self) -> None:
        """The core polling loop."""
        while self._running:
            try:
                await self.tick()
                await asyncio.sleep(self._cfg.poll_interval)

            except asyncio.CancelledError:
                log.info("Main loop cancelled")
                break
            except Exception as exc:
                log.error("Main loop error: %s", exc, exc_info=True)
                await asyncio.sleep(self._cfg.error_backoff)


async def run_daemon(cfg: ProjectorConfig) -> None:
    """Entry point for running the daemon."""
    daemon = ProjectorDaemon(cfg)

    loop = asyncio.get_event_loop()

    def _signal_handler():
        asyncio.ensure_future(daemon.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

    await daemon.start()
