"""Token metadata resolver - decimals/name/symbol with per-field fallbacks."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from token_request_projector.interfaces.chain import ChainReader
from token_request_projector.metadata.fallbacks import (
    ETHER_DATA,
    is_ether,
    token_data_fallback,
)
from token_request_projector.models.records import (
    Lookup,
    MetadataResolution,
    TokenMetadata,
)

log = logging.getLogger(__name__)

_DEFAULTS: dict[str, Any] = {"decimals": 0, "name": "", "symbol": ""}


def _coerce_decimals(value: Any) -> int:
    return int(value)


def _coerce_text(value: Any) -> str:
    return str(value).strip("\x00").strip()


class TokenMetadataResolver:
    """Resolves ERC-20/721 metadata against a ChainReader.

    Each field is read independently and concurrently. A failed, timed-out or
    empty read is replaced by the network fallback table, or by an empty
    default, so a missing symbol never blocks decimals or name.

    Complete resolutions are memoized per address. Resolutions that needed a
    fallback are not, so a later call gets another chance at the chain.
    """

    def __init__(self, chain: ChainReader, network: str, timeout: float = 10.0) -> None:
        self._chain = chain
        self._network = network
        self._timeout = timeout
        self._cache: dict[str, MetadataResolution] = {}

    @property
    def network(self) -> str:
        return self._network

    def forget(self, address: str) -> None:
        self._cache.pop(address.lower(), None)

    async def resolve(self, address: str) -> TokenMetadata:
        return (await self.resolve_detailed(address)).metadata

    async def resolve_detailed(self, address: str) -> MetadataResolution:
        if is_ether(address):
            return MetadataResolution(
                address=address,
                decimals=Lookup.success(ETHER_DATA["decimals"]),
                name=Lookup.success(ETHER_DATA["name"]),
                symbol=Lookup.success(ETHER_DATA["symbol"]),
            )

        cached = self._cache.get(address.lower())
        if cached is not None:
            return cached

        decimals, name, symbol = await asyncio.gather(
            self._load_field(address, "decimals", self._chain.token_decimals, _coerce_decimals),
            self._load_field(address, "name", self._chain.token_name, _coerce_text),
            self._load_field(address, "symbol", self._chain.token_symbol, _coerce_text),
        )
        resolution = MetadataResolution(address, decimals, name, symbol)
        if resolution.complete:
            self._cache[address.lower()] = resolution
        else:
            log.debug(
                "Token %s resolved with fallbacks (decimals=%s name=%s symbol=%s)",
                address, decimals.status.value, name.status.value, symbol.status.value,
            )
        return resolution

    async def resolve_uri(self, address: str, token_id: int) -> Lookup[str]:
        """Best-effort tokenURI lookup; a failed read carries no value."""
        try:
            uri = await asyncio.wait_for(self._chain.token_uri(address, token_id), self._timeout)
        except Exception as exc:
            log.debug("tokenURI(%s, %d) failed: %s", address, token_id, exc)
            return Lookup.failure(f"tokenURI failed: {exc}")
        return Lookup.success(_coerce_text(uri or ""))

    async def load_balance(self, token: str, account: str) -> Lookup[int]:
        """Balance of ``account`` in ``token`` (native for the sentinel).

        There is no static fallback for a balance, so a failed read has no value.
        """
        try:
            if is_ether(token):
                balance = self._chain.native_balance(account)
            else:
                balance = self._chain.token_balance(token, account)
            return Lookup.success(int(await asyncio.wait_for(balance, self._timeout)))
        except Exception as exc:
            log.debug("Balance lookup for %s in %s failed: %s", account, token, exc)
            return Lookup.failure(f"balance failed: {exc}")

    async def _load_field(
        self,
        address: str,
        field: str,
        fetch: Callable[[str], Awaitable[Any]],
        coerce: Callable[[Any], Any],
    ) -> Lookup:
        static = token_data_fallback(address, field, self._network)
        fallback_value = coerce(static) if static is not None else _DEFAULTS[field]
        try:
            raw = await asyncio.wait_for(fetch(address), self._timeout)
            value = coerce(raw)
        except Exception as exc:
            # The field is optional for display; degrade to the static table
            return Lookup.fallback(fallback_value, f"{field}() failed: {exc}")
        if value == "":
            return Lookup.fallback(fallback_value, f"{field}() returned empty")
        return Lookup.success(value)
