"""Contract and host events consumed by the state reducer."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Union

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountChanged:
    """The connected wallet account changed."""

    account: str
    block_number: int = 0


@dataclass(frozen=True)
class SyncStarted:
    block_number: int = 0


@dataclass(frozen=True)
class SyncFinished:
    block_number: int = 0


@dataclass(frozen=True)
class RequestCreated:
    """Emitted when a requester deposits funds and opens a token request."""

    request_id: int
    requester_address: str
    deposit_token: str  # address or the native sentinel
    deposit_amount: int  # smallest unit
    request_token: str
    request_amount: int
    request_token_id: int  # non-zero only for NFT requests
    reference: str
    block_number: int


@dataclass(frozen=True)
class RequestRefunded:
    """Emitted when a pending request is withdrawn by its requester."""

    request_id: int
    block_number: int


@dataclass(frozen=True)
class RequestFinalised:
    """Emitted when a request is approved and the requested asset released."""

    request_id: int
    block_number: int


@dataclass(frozen=True)
class AssetReceived:
    """Emitted when the agent receives an ERC-721 token."""

    token: str
    token_id: int
    block_number: int


@dataclass(frozen=True)
class AuctionToggled:
    """Emitted when the NFT auction is switched on or off.

    ``active`` is None when the contract only signals a flip.
    """

    block_number: int
    active: bool | None = None


@dataclass(frozen=True)
class BlockObserved:
    """A new chain head was seen by the block ticker."""

    block_number: int


ProjectorEvent = Union[
    AccountChanged,
    SyncStarted,
    SyncFinished,
    RequestCreated,
    RequestRefunded,
    RequestFinalised,
    AssetReceived,
    AuctionToggled,
    BlockObserved,
]


def _int(value: Any, default: int = 0) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, str) and value.startswith("0x"):
        return int(value, 16)
    return int(value)


def event_from_raw(
    kind: str,
    return_values: dict[str, Any],
    block_number: int | str | None = None,
) -> ProjectorEvent | None:
    """Build a typed event from the transport's ``{kind, returnValues, blockNumber}`` shape.

    Returns None if the kind is unrecognized or the payload is malformed.
    """
    block = _int(block_number)
    values = return_values or {}
    try:
        if kind == "TokenRequestCreated":
            return RequestCreated(
                request_id=_int(values["requestId"]),
                requester_address=str(values.get("requesterAddress", "")),
                deposit_token=str(values["depositToken"]),
                deposit_amount=_int(values.get("depositAmount")),
                request_token=str(values["requestToken"]),
                request_amount=_int(values.get("requestAmount")),
                request_token_id=_int(values.get("requestTokenId")),
                reference=str(values.get("reference") or ""),
                block_number=block,
            )
        elif kind == "TokenRequestRefunded":
            return RequestRefunded(request_id=_int(values["requestId"]), block_number=block)
        elif kind == "TokenRequestFinalised":
            return RequestFinalised(request_id=_int(values["requestId"]), block_number=block)
        elif kind == "ReceiveERC721":
            return AssetReceived(
                token=str(values["token"]),
                token_id=_int(values["tokenId"]),
                block_number=block,
            )
        elif kind == "AuctionToggled":
            status = values.get("status")
            return AuctionToggled(
                block_number=block,
                active=None if status is None else bool(status),
            )
        elif kind == "ACCOUNTS_TRIGGER":
            return AccountChanged(account=str(values.get("account") or ""), block_number=block)
        elif kind == "SYNC_STATUS_SYNCING":
            return SyncStarted(block_number=block)
        elif kind == "SYNC_STATUS_SYNCED":
            return SyncFinished(block_number=block)
        elif kind == "IncrementTicker":
            return BlockObserved(block_number=_int(values.get("blockNumber"), block))
        else:
            log.debug("Ignoring event kind: %s", kind)
            return None
    except (KeyError, TypeError, ValueError) as exc:
        log.warning("Failed to parse %s event at block %s: %s", kind, block_number, exc)
        return None
