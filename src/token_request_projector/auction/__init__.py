"""Auction pricing engine."""

from token_request_projector.auction.pricing import (
    BASE_NFT_VALUE,
    DEPRECIATE_BLOCK_INTERVAL,
    evaluate_price,
    quote,
)

__all__ = ["BASE_NFT_VALUE", "DEPRECIATE_BLOCK_INTERVAL", "evaluate_price", "quote"]
