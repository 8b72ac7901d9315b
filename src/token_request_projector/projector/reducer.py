"""State reducer - folds one event into the application snapshot."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Awaitable, Callable

from token_request_projector.auction.pricing import quote
from token_request_projector.interfaces.chain import ChainReader
from token_request_projector.ledger.inventory import NFTInventory
from token_request_projector.ledger.requests import RequestLedger
from token_request_projector.metadata.resolver import TokenMetadataResolver
from token_request_projector.models.config import AuctionConfig
from token_request_projector.models.events import (
    AccountChanged,
    AssetReceived,
    AuctionToggled,
    BlockObserved,
    RequestCreated,
    RequestFinalised,
    RequestRefunded,
    SyncFinished,
    SyncStarted,
)
from token_request_projector.models.records import TokenMetadata
from token_request_projector.models.snapshots import (
    AppSnapshot,
    NFTToken,
    PriceQuote,
    RequestStatus,
    TokenRequest,
)

log = logging.getLogger(__name__)

Handler = Callable[[AppSnapshot, Any], Awaitable[AppSnapshot]]


class BlockTimestampUnavailable(Exception):
    """The confirming block of a request could not be read."""

    def __init__(self, block_number: int, reason: str) -> None:
        super().__init__(f"timestamp for block {block_number} unavailable: {reason}")
        self.block_number = block_number


def marshall_date(timestamp: int | str) -> int:
    """Block timestamp (seconds) to milliseconds since epoch."""
    return int(timestamp) * 1000


class StateReducer:
    """Applies projector events to immutable snapshots.

    All collaborators are passed in explicitly; the reducer keeps no state of
    its own between events, so replaying the same events against the same
    chain answers yields the same snapshots.
    """

    def __init__(
        self,
        resolver: TokenMetadataResolver,
        chain: ChainReader,
        auction: AuctionConfig | None = None,
    ) -> None:
        self._resolver = resolver
        self._chain = chain
        self._auction = auction or AuctionConfig()
        self._handlers: dict[type, Handler] = {
            AccountChanged: self._on_account_changed,
            SyncStarted: self._on_sync_started,
            SyncFinished: self._on_sync_finished,
            RequestCreated: self._on_request_created,
            RequestRefunded: self._on_request_refunded,
            RequestFinalised: self._on_request_finalised,
            AssetReceived: self._on_asset_received,
            AuctionToggled: self._on_auction_toggled,
            BlockObserved: self._on_block_observed,
        }

    @property
    def handled_kinds(self) -> frozenset[type]:
        return frozenset(self._handlers)

    async def apply(self, snapshot: AppSnapshot, event: object) -> AppSnapshot:
        """Return the snapshot after ``event``; unknown kinds return ``snapshot`` itself."""
        handler = self._handlers.get(type(event))
        if handler is None:
            log.debug("No handler for %s, snapshot unchanged", type(event).__name__)
            return snapshot
        try:
            return await handler(snapshot, event)
        except BlockTimestampUnavailable as exc:
            log.error("Dropping %s: %s", type(event).__name__, exc)
            return snapshot

    # ── Host events ────────────────────────────────────────

    async def _on_account_changed(self, snapshot: AppSnapshot, event: AccountChanged) -> AppSnapshot:
        if snapshot.account == event.account:
            return snapshot
        return replace(snapshot, account=event.account)

    async def _on_sync_started(self, snapshot: AppSnapshot, event: SyncStarted) -> AppSnapshot:
        if snapshot.is_syncing:
            return snapshot
        return replace(snapshot, is_syncing=True)

    async def _on_sync_finished(self, snapshot: AppSnapshot, event: SyncFinished) -> AppSnapshot:
        if not snapshot.is_syncing:
            return snapshot
        return replace(snapshot, is_syncing=False)

    # ── Requests ───────────────────────────────────────────

    async def _on_request_created(self, snapshot: AppSnapshot, event: RequestCreated) -> AppSnapshot:
        ledger = RequestLedger(snapshot.requests)
        if ledger.get(event.request_id) is not None:
            log.debug("Request #%d replayed, already projected", event.request_id)
            return snapshot

        inventory = NFTInventory(snapshot.nft_tokens)
        nft = inventory.get(event.request_token, event.request_token_id)
        is_nft = nft is not None or event.request_token_id != 0

        deposit = await self._resolver.resolve(event.deposit_token)
        if nft is not None:
            requested = TokenMetadata(decimals=0, name=nft.name, symbol=nft.symbol)
        else:
            requested = await self._resolver.resolve(event.request_token)

        timestamp = await self._block_timestamp(event.block_number)

        request = TokenRequest(
            request_id=event.request_id,
            requester_address=event.requester_address,
            deposit_token=event.deposit_token,
            deposit_amount=event.deposit_amount,
            deposit_decimals=deposit.decimals,
            deposit_name=deposit.name,
            deposit_symbol=deposit.symbol,
            request_token=event.request_token,
            request_amount=event.request_amount,
            request_decimals=requested.decimals,
            request_name=requested.name,
            request_symbol=requested.symbol,
            request_token_id=event.request_token_id,
            request_is_nft=is_nft,
            reference=event.reference,
            status=RequestStatus.PENDING,
            date=marshall_date(timestamp),
        )
        log.info(
            "Request #%d created: %d %s for %d %s",
            request.request_id, request.deposit_amount, request.deposit_symbol,
            request.request_amount, request.request_symbol,
        )

        if is_nft:
            inventory = inventory.remove(event.request_token, event.request_token_id)
        return replace(
            snapshot,
            requests=ledger.append(request).entries,
            nft_tokens=inventory.tokens,
        )

    async def _on_request_refunded(self, snapshot: AppSnapshot, event: RequestRefunded) -> AppSnapshot:
        ledger = RequestLedger(snapshot.requests)
        request = ledger.get(event.request_id)
        if not ledger.can_transition(event.request_id):
            # Logged by the ledger; unknown ids and settled requests are no-ops
            ledger.transition(event.request_id, RequestStatus.WITHDRAWN)
            return snapshot

        nft_tokens = snapshot.nft_tokens
        if request.request_is_nft:
            uri = await self._resolver.resolve_uri(request.request_token, request.request_token_id)
            restored = NFTToken(
                address=request.request_token,
                token_id=request.request_token_id,
                name=request.request_name,
                symbol=request.request_symbol,
                uri=uri.value_or(""),
            )
            nft_tokens = NFTInventory(nft_tokens).restore(restored).tokens

        log.info("Request #%d refunded", event.request_id)
        return replace(
            snapshot,
            requests=ledger.transition(event.request_id, RequestStatus.WITHDRAWN).entries,
            nft_tokens=nft_tokens,
        )

    async def _on_request_finalised(self, snapshot: AppSnapshot, event: RequestFinalised) -> AppSnapshot:
        ledger = RequestLedger(snapshot.requests)
        request = ledger.get(event.request_id)
        if not ledger.can_transition(event.request_id):
            ledger.transition(event.request_id, RequestStatus.APPROVED)
            return snapshot

        next_snapshot = replace(
            snapshot,
            requests=ledger.transition(event.request_id, RequestStatus.APPROVED).entries,
        )
        if request.request_is_nft:
            inventory = NFTInventory(snapshot.nft_tokens).remove(
                request.request_token, request.request_token_id,
            )
            next_snapshot = replace(
                next_snapshot,
                nft_tokens=inventory.tokens,
                last_sold_block=max(snapshot.last_sold_block, event.block_number),
                block_ticker=max(snapshot.block_ticker, event.block_number),
                total_sold_nft=snapshot.total_sold_nft + 1,
            )
            next_snapshot = self._requote(next_snapshot)
            log.info(
                "NFT %s #%d sold at block %d (%d sold)",
                request.request_token, request.request_token_id,
                event.block_number, next_snapshot.total_sold_nft,
            )
        else:
            log.info("Request #%d finalised", event.request_id)
        return next_snapshot

    # ── NFT inventory ──────────────────────────────────────

    async def _on_asset_received(self, snapshot: AppSnapshot, event: AssetReceived) -> AppSnapshot:
        metadata = await self._resolver.resolve(event.token)
        uri = await self._resolver.resolve_uri(event.token, event.token_id)
        token = NFTToken(
            address=event.token,
            token_id=event.token_id,
            name=metadata.name,
            symbol=metadata.symbol,
            uri=uri.value_or(""),
        )
        inventory = NFTInventory(snapshot.nft_tokens).receive(token)
        if inventory.tokens is snapshot.nft_tokens:
            return snapshot
        log.info("Received NFT %s #%d", event.token, event.token_id)
        return replace(snapshot, nft_tokens=inventory.tokens)

    # ── Auction ────────────────────────────────────────────

    async def _on_auction_toggled(self, snapshot: AppSnapshot, event: AuctionToggled) -> AppSnapshot:
        """Switch the auction and snapshot its quote at the toggle block.

        ``last_sold_block`` is left alone: the pricing clock only restarts on a
        sale. Switching off freezes the current quote so the gallery keeps
        showing the price the auction stopped at.
        """
        active = (not snapshot.auction_status) if event.active is None else event.active
        block = max(snapshot.block_ticker, event.block_number)
        current = self._quote_at(snapshot, block)
        log.info("Auction %s at block %d", "started" if active else "stopped", block)
        return replace(
            snapshot,
            auction_status=active,
            auction_quote=current if active else current.frozen(),
        )

    async def _on_block_observed(self, snapshot: AppSnapshot, event: BlockObserved) -> AppSnapshot:
        if event.block_number <= snapshot.block_ticker:
            return snapshot
        return self._requote(replace(snapshot, block_ticker=event.block_number))

    # ── Helpers ────────────────────────────────────────────

    def _quote_at(self, snapshot: AppSnapshot, block: int) -> PriceQuote:
        return quote(
            self._auction.base_price,
            block,
            snapshot.last_sold_block,
            snapshot.total_sold_nft,
            self._auction.depreciation_interval,
        )

    def _requote(self, snapshot: AppSnapshot) -> AppSnapshot:
        """Refresh the live quote; an inactive auction keeps its frozen price."""
        if snapshot.auction_status:
            return replace(snapshot, auction_quote=self._quote_at(snapshot, snapshot.block_ticker))
        if snapshot.auction_quote is None:
            frozen = self._quote_at(snapshot, snapshot.block_ticker).frozen()
            return replace(snapshot, auction_quote=frozen)
        return snapshot

    async def _block_timestamp(self, block_number: int) -> int:
        try:
            timestamp = await self._chain.get_block_timestamp(block_number)
        except Exception as exc:
            raise BlockTimestampUnavailable(block_number, str(exc)) from exc
        if timestamp is None:
            raise BlockTimestampUnavailable(block_number, "block not found")
        return int(timestamp)
