"""Request ledger and NFT inventory."""

from token_request_projector.ledger.inventory import NFTInventory
from token_request_projector.ledger.requests import RequestLedger

__all__ = ["NFTInventory", "RequestLedger"]
