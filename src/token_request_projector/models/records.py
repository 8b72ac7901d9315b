"""Result types for lookups, contract configuration and user intents."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class LookupStatus(str, Enum):
    """How an enrichment value was obtained."""

    SUCCESS = "success"  # read from chain
    FALLBACK = "fallback"  # chain read failed, static/default value used
    FAILURE = "failure"  # no value at all


@dataclass(frozen=True)
class Lookup(Generic[T]):
    """Outcome of a single best-effort external read."""

    status: LookupStatus
    value: T | None = None
    reason: str | None = None

    @classmethod
    def success(cls, value: T) -> Lookup[T]:
        return cls(LookupStatus.SUCCESS, value)

    @classmethod
    def fallback(cls, value: T, reason: str) -> Lookup[T]:
        return cls(LookupStatus.FALLBACK, value, reason)

    @classmethod
    def failure(cls, reason: str) -> Lookup[T]:
        return cls(LookupStatus.FAILURE, None, reason)

    @property
    def ok(self) -> bool:
        return self.status is LookupStatus.SUCCESS

    def value_or(self, default: T) -> T:
        return default if self.value is None else self.value


@dataclass(frozen=True)
class TokenMetadata:
    decimals: int
    name: str
    symbol: str


@dataclass(frozen=True)
class MetadataResolution:
    """Per-field lookups for one token address."""

    address: str
    decimals: Lookup[int]
    name: Lookup[str]
    symbol: Lookup[str]

    @property
    def complete(self) -> bool:
        """True when every field came from the chain."""
        return self.decimals.ok and self.name.ok and self.symbol.ok

    @property
    def metadata(self) -> TokenMetadata:
        return TokenMetadata(
            decimals=self.decimals.value_or(0),
            name=self.name.value_or(""),
            symbol=self.symbol.value_or(""),
        )


@dataclass(frozen=True)
class ContractConfiguration:
    """Token-request app configuration read once at start-up."""

    token_managers: tuple[str, ...] = ()
    accepted_tokens: tuple[str, ...] = ()
    agent_address: str = ""
    last_sold_block: int = 0
    total_sold_nft: int = 0
    auction_status: bool = False
    # (address, token_id) pairs held by the agent; None if the contract can't list them
    held_nfts: tuple[tuple[str, int], ...] | None = None


@dataclass(frozen=True)
class Intent:
    """A write transaction the UI wants forwarded to the app contract."""

    action: str  # "request" | "submit" | "withdraw" | "toggleAuction"
    args: tuple[Any, ...] = ()
    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class ActionResult:
    """Result of a frontend-initiated action."""

    success: bool
    message: str
