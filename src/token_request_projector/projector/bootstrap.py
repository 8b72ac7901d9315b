"""One-time initialization: contract configuration discovery and initial state."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from enum import Enum
from typing import Any, Awaitable, Callable, TypeVar

from token_request_projector.interfaces.chain import ChainReader
from token_request_projector.metadata.fallbacks import ETHER_DATA, ETHER_TOKEN_FAKE_ADDRESS, is_ether
from token_request_projector.metadata.resolver import TokenMetadataResolver
from token_request_projector.models.records import ContractConfiguration
from token_request_projector.models.snapshots import AppSnapshot, NFTToken, TokenInfo

log = logging.getLogger(__name__)

T = TypeVar("T")


class Phase(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


async def retry_every(
    fn: Callable[[], Awaitable[T]],
    *,
    initial: float = 1.0,
    maximum: float = 60.0,
    factor: float = 2.0,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """Await ``fn()`` until it succeeds, backing off exponentially up to ``maximum``."""
    delay = initial
    attempt = 1
    while True:
        try:
            return await fn()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            log.warning("Attempt %d failed: %s (retrying in %.1fs)", attempt, exc, delay)
        await sleep(delay)
        delay = min(delay * factor, maximum)
        attempt += 1


def rehydrate(raw: dict | None) -> AppSnapshot:
    """Cached snapshot as a valid partial state; never ready until re-initialized."""
    return replace(AppSnapshot.from_dict(raw), ready=False)


class Bootstrapper:
    """Drives the uninitialized -> initializing -> ready transition."""

    def __init__(
        self,
        chain: ChainReader,
        resolver: TokenMetadataResolver,
        backoff_initial: float = 1.0,
        backoff_max: float = 60.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._chain = chain
        self._resolver = resolver
        self._backoff_initial = backoff_initial
        self._backoff_max = backoff_max
        self._sleep = sleep
        self._phase = Phase.UNINITIALIZED
        self._configuration: ContractConfiguration | None = None

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def configuration(self) -> ContractConfiguration | None:
        return self._configuration

    async def discover(self) -> ContractConfiguration:
        """Read the app configuration, retrying until the contract answers."""
        log.info("Discovering token-request app configuration")
        configuration = await retry_every(
            self._chain.read_configuration,
            initial=self._backoff_initial,
            maximum=self._backoff_max,
            sleep=self._sleep,
        )
        self._configuration = configuration
        self._phase = Phase.INITIALIZING
        log.info(
            "Configuration loaded: %d token managers, %d accepted tokens",
            len(configuration.token_managers), len(configuration.accepted_tokens),
        )
        return configuration

    async def initialize(
        self,
        cached: AppSnapshot | None,
        configuration: ContractConfiguration | None = None,
    ) -> AppSnapshot:
        """Resolve initial token metadata and merge it over the cached snapshot."""
        if configuration is None:
            configuration = self._configuration or await self.discover()
        self._phase = Phase.INITIALIZING
        base = cached or AppSnapshot()

        org_tokens = await self._load_org_tokens(configuration.token_managers)
        accepted_tokens = await self._load_accepted_tokens(configuration.accepted_tokens)

        if configuration.held_nfts is None:
            nft_tokens = base.nft_tokens
        else:
            nft_tokens = await self._load_nfts(configuration.held_nfts)

        snapshot = replace(
            base,
            ready=True,
            is_syncing=True,
            org_tokens=org_tokens,
            accepted_tokens=accepted_tokens,
            nft_tokens=nft_tokens,
            auction_status=configuration.auction_status,
            last_sold_block=max(base.last_sold_block, configuration.last_sold_block),
            total_sold_nft=max(base.total_sold_nft, configuration.total_sold_nft),
        )
        self._phase = Phase.READY
        log.info(
            "Initial state ready: %d org tokens, %d accepted tokens, %d NFTs",
            len(org_tokens), len(accepted_tokens), len(nft_tokens),
        )
        return snapshot

    async def _load_org_tokens(self, token_managers: tuple[str, ...]) -> tuple[TokenInfo, ...]:
        tokens = []
        for manager in token_managers:
            try:
                address = await self._chain.token_manager_token(manager)
            except Exception as exc:
                log.error("Could not read token of manager %s: %s", manager, exc)
                continue
            metadata = await self._resolver.resolve(address)
            tokens.append(TokenInfo(address, metadata.decimals, metadata.name, metadata.symbol))
        return tuple(tokens)

    async def _load_accepted_tokens(self, addresses: tuple[str, ...]) -> tuple[TokenInfo, ...]:
        others = [a for a in addresses if not is_ether(a)]
        resolved = await asyncio.gather(*(self._resolver.resolve(a) for a in others))
        tokens = [
            TokenInfo(address, m.decimals, m.name, m.symbol)
            for address, m in zip(others, resolved)
        ]
        if any(is_ether(a) for a in addresses):
            tokens.insert(0, TokenInfo(ETHER_TOKEN_FAKE_ADDRESS, **ETHER_DATA))
        return tuple(tokens)

    async def _load_nfts(self, held: tuple[tuple[str, int], ...]) -> tuple[NFTToken, ...]:
        tokens: dict[tuple[str, int], NFTToken] = {}
        for address, token_id in held:
            metadata = await self._resolver.resolve(address)
            uri = await self._resolver.resolve_uri(address, token_id)
            token = NFTToken(address, token_id, metadata.name, metadata.symbol, uri.value_or(""))
            tokens.setdefault(token.key, token)
        return tuple(tokens.values())
