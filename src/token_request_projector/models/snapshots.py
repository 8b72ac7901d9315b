"""Immutable application snapshot and its JSON-safe flat form."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

log = logging.getLogger(__name__)


class RequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    WITHDRAWN = "withdrawn"
    REJECTED = "rejected"


@dataclass(frozen=True)
class TokenInfo:
    """An org or accepted deposit token with resolved metadata."""

    address: str
    decimals: int = 0
    name: str = ""
    symbol: str = ""


@dataclass(frozen=True)
class NFTToken:
    """An ERC-721 token currently held by the agent and offered in the auction."""

    address: str
    token_id: int
    name: str = ""
    symbol: str = ""
    uri: str = ""

    @property
    def key(self) -> tuple[str, int]:
        return (self.address.lower(), self.token_id)


@dataclass(frozen=True)
class TokenRequest:
    """One token-exchange proposal as mirrored from the app contract."""

    request_id: int
    requester_address: str
    deposit_token: str
    deposit_amount: int
    deposit_decimals: int
    deposit_name: str
    deposit_symbol: str
    request_token: str
    request_amount: int
    request_decimals: int
    request_name: str
    request_symbol: str
    request_token_id: int
    request_is_nft: bool
    reference: str
    status: RequestStatus
    date: int  # ms since epoch


@dataclass(frozen=True)
class PriceQuote:
    """Auction price evaluated at ``block``.

    ``blocks_until_depreciation`` is None while the auction is off.
    """

    price: Decimal
    blocks_until_depreciation: int | None
    block: int = 0

    def frozen(self) -> PriceQuote:
        return PriceQuote(self.price, None, self.block)


@dataclass(frozen=True)
class AppSnapshot:
    """Complete projected state in one immutable object."""

    ready: bool = False
    is_syncing: bool = False
    account: str = ""
    org_tokens: tuple[TokenInfo, ...] = ()
    accepted_tokens: tuple[TokenInfo, ...] = ()
    requests: tuple[TokenRequest, ...] = ()
    nft_tokens: tuple[NFTToken, ...] = ()
    auction_status: bool = False
    last_sold_block: int = 0
    total_sold_nft: int = 0
    block_ticker: int = 0
    auction_quote: PriceQuote | None = None

    def to_dict(self) -> dict:
        raw = asdict(self)
        for request in raw["requests"]:
            request["status"] = request["status"].value
        if self.auction_quote is not None:
            raw["auction_quote"]["price"] = str(self.auction_quote.price)
        return raw

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> AppSnapshot:
        """Rehydrate a cached snapshot; missing or malformed fields default safely."""
        if not raw:
            return cls()
        return cls(
            ready=bool(raw.get("ready", False)),
            is_syncing=bool(raw.get("is_syncing", False)),
            account=str(raw.get("account") or ""),
            org_tokens=_tuple_of(TokenInfo, raw.get("org_tokens")),
            accepted_tokens=_tuple_of(TokenInfo, raw.get("accepted_tokens")),
            requests=_tuple_of(TokenRequest, raw.get("requests"), _request_from_dict),
            nft_tokens=_tuple_of(NFTToken, raw.get("nft_tokens")),
            auction_status=bool(raw.get("auction_status", False)),
            last_sold_block=_safe_int(raw.get("last_sold_block")),
            total_sold_nft=_safe_int(raw.get("total_sold_nft")),
            block_ticker=_safe_int(raw.get("block_ticker")),
            auction_quote=_quote_from_dict(raw.get("auction_quote")),
        )


def _safe_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _known_fields(cls: type, item: dict) -> dict:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in item.items() if k in names}


_REQUEST_INT_FIELDS = frozenset({
    "deposit_amount",
    "deposit_decimals",
    "request_amount",
    "request_decimals",
    "request_token_id",
    "date",
})


def _request_status(value: Any) -> RequestStatus:
    if value is None:
        return RequestStatus.PENDING
    try:
        return RequestStatus(str(value).lower())
    except ValueError:
        log.warning("Unknown cached request status %r, treating as pending", value)
        return RequestStatus.PENDING


def _request_from_dict(item: dict) -> TokenRequest:
    """Rebuild a cached request; only a missing or invalid ``request_id`` is fatal."""
    if item.get("request_id") is None:
        raise ValueError("cached request has no request_id")
    data: dict[str, Any] = {"request_id": int(item["request_id"])}
    for f in fields(TokenRequest):
        if f.name in data:
            continue
        value = item.get(f.name)
        if f.name == "status":
            data[f.name] = _request_status(value)
        elif f.name == "request_is_nft":
            # older caches predate the flag
            nft_id = _safe_int(item.get("request_token_id"))
            data[f.name] = bool(value) if value is not None else nft_id != 0
        elif f.name in _REQUEST_INT_FIELDS:
            data[f.name] = _safe_int(value)
        else:
            data[f.name] = "" if value is None else str(value)
    return TokenRequest(**data)


def _tuple_of(cls: type, items: Any, build=None) -> tuple:
    if not isinstance(items, list | tuple):
        return ()
    out = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            out.append(build(item) if build else cls(**_known_fields(cls, item)))
        except (TypeError, ValueError) as exc:
            log.warning("Dropping malformed cached %s: %s", cls.__name__, exc)
    return tuple(out)


def _quote_from_dict(raw: Any) -> PriceQuote | None:
    if not isinstance(raw, dict):
        return None
    try:
        blocks = raw.get("blocks_until_depreciation")
        return PriceQuote(
            price=Decimal(str(raw["price"])),
            blocks_until_depreciation=None if blocks is None else int(blocks),
            block=_safe_int(raw.get("block")),
        )
    except (KeyError, InvalidOperation, TypeError, ValueError):
        return None
