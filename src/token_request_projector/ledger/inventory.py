"""NFT inventory - tokens held by the agent, keyed by (address, token id)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from token_request_projector.models.snapshots import NFTToken

log = logging.getLogger(__name__)


def _matches(token: NFTToken, address: str, token_id: int | None) -> bool:
    if token.address.lower() != address.lower():
        return False
    return token_id is None or token.token_id == token_id


@dataclass(frozen=True)
class NFTInventory:
    """Immutable inventory; ``receive`` and ``restore`` never create duplicates."""

    tokens: tuple[NFTToken, ...] = ()

    def __len__(self) -> int:
        return len(self.tokens)

    def contains(self, address: str, token_id: int | None = None) -> bool:
        return any(_matches(t, address, token_id) for t in self.tokens)

    def get(self, address: str, token_id: int) -> NFTToken | None:
        for token in self.tokens:
            if _matches(token, address, token_id):
                return token
        return None

    def receive(self, token: NFTToken) -> NFTInventory:
        """Insert ``token`` or replace the entry with the same key in place."""
        for index, current in enumerate(self.tokens):
            if current.key != token.key:
                continue
            if not token.uri and current.uri:
                token = replace(token, uri=current.uri)
            if token == current:
                return self
            tokens = list(self.tokens)
            tokens[index] = token
            log.debug("Updated NFT %s #%d", token.address, token.token_id)
            return NFTInventory(tuple(tokens))
        return NFTInventory(self.tokens + (token,))

    def remove(self, address: str, token_id: int | None = None) -> NFTInventory:
        kept = tuple(t for t in self.tokens if not _matches(t, address, token_id))
        if len(kept) == len(self.tokens):
            return self
        return NFTInventory(kept)

    def restore(self, token: NFTToken) -> NFTInventory:
        """Re-append a token released by a refund; no-op if already present."""
        if self.contains(token.address, token.token_id):
            return self
        return NFTInventory(self.tokens + (token,))
