"""Data API aggregator - builds JSON-ready views from the projected snapshot."""

from __future__ import annotations

import logging
from dataclasses import asdict

from token_request_projector.api.amounts import from_decimals
from token_request_projector.ledger.requests import RequestLedger
from token_request_projector.models.snapshots import AppSnapshot, TokenRequest
from token_request_projector.projector.pipeline import EventPipeline
from token_request_projector.projector.view import is_loading, present

log = logging.getLogger(__name__)


def _request_view(request: TokenRequest) -> dict:
    view = asdict(request)
    view["status"] = request.status.value
    view["deposit_amount_display"] = from_decimals(request.deposit_amount, request.deposit_decimals)
    view["request_amount_display"] = from_decimals(request.request_amount, request.request_decimals)
    return view


class ProjectorDataAPI:
    """Read-only views for a UI client.

    Every view is computed from the pipeline's current snapshot; nothing here
    mutates state.
    """

    def __init__(self, pipeline: EventPipeline) -> None:
        self._pipeline = pipeline

    @property
    def snapshot(self) -> AppSnapshot:
        return present(self._pipeline.snapshot)

    def get_state(self) -> dict:
        """Full presented snapshot plus the loading flag."""
        state = self.snapshot.to_dict()
        state["loading"] = is_loading(self._pipeline.snapshot)
        return state

    def get_requests(self, own_only: bool = False) -> list[dict]:
        """Requests newest first; ``own_only`` keeps the connected account's requests."""
        snapshot = self.snapshot
        ledger = RequestLedger(snapshot.requests)
        if own_only:
            if not snapshot.account:
                return []
            ledger = RequestLedger(ledger.for_requester(snapshot.account))
        return [_request_view(r) for r in ledger.by_date()]

    def get_gallery(self) -> dict:
        """NFT inventory with the current auction quote."""
        snapshot = self.snapshot
        quote = snapshot.auction_quote
        return {
            "nft_tokens": [asdict(t) for t in snapshot.nft_tokens],
            "auction_status": snapshot.auction_status,
            "price": str(quote.price) if quote else None,
            "blocks_until_depreciation": quote.blocks_until_depreciation if quote else None,
            "last_sold_block": snapshot.last_sold_block,
            "total_sold_nft": snapshot.total_sold_nft,
            "block_ticker": snapshot.block_ticker,
        }

    def is_loading(self) -> bool:
        return is_loading(self._pipeline.snapshot)
