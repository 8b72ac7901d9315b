"""Contract log poller - turns eth_getLogs pages into projector events."""

from __future__ import annotations

import logging
from typing import Sequence

from token_request_projector.evm.abi import AbiDecodeError, EventDeclaration
from token_request_projector.evm.rpc import EthRpcClient
from token_request_projector.models.events import (
    ProjectorEvent,
    SyncFinished,
    SyncStarted,
    event_from_raw,
)

log = logging.getLogger(__name__)

# Events emitted by the token-request app (and the agent for ERC-721 receipts)
EVENT_DECLARATIONS = [
    EventDeclaration.parse(
        "TokenRequestCreated(uint256 requestId, address requesterAddress, address depositToken, "
        "uint256 depositAmount, address requestToken, uint256 requestAmount, "
        "uint256 requestTokenId, string reference)"
    ),
    EventDeclaration.parse(
        "TokenRequestRefunded(uint256 requestId, address refundToAddress, "
        "address refundToken, uint256 refundAmount)"
    ),
    EventDeclaration.parse(
        "TokenRequestFinalised(uint256 requestId, address requester, address depositToken, "
        "uint256 depositAmount, address requestToken, uint256 requestAmount)"
    ),
    EventDeclaration.parse("ReceiveERC721(address token, uint256 tokenId)"),
    EventDeclaration.parse("AuctionToggled(bool status)"),
]

_BY_TOPIC = {decl.topic0: decl for decl in EVENT_DECLARATIONS}


def _log_position(entry: dict) -> tuple[int, int]:
    return (int(entry.get("blockNumber") or "0x0", 16), int(entry.get("logIndex") or "0x0", 16))


def parse_log(entry: dict) -> ProjectorEvent | None:
    """Decode one raw log into an event.

    Returns None if the topic is unknown or the payload does not decode.
    """
    topics = entry.get("topics") or []
    if not topics:
        return None
    decl = _BY_TOPIC.get(topics[0].lower())
    if decl is None:
        log.debug("Ignoring log with unknown topic %s", topics[0])
        return None
    try:
        values = decl.decode(topics, entry.get("data", "0x"))
    except AbiDecodeError as exc:
        log.warning("Failed to decode %s log in tx %s: %s", decl.name, entry.get("transactionHash"), exc)
        return None
    block, _ = _log_position(entry)
    return event_from_raw(decl.name, values, block)


class ContractLogPoller:
    """Polls the node for app and agent logs, chunked by block range.

    The cursor is the last fully scanned block. It only advances once every
    chunk of a poll has been fetched, so a failed poll is retried from the
    same place.
    """

    def __init__(
        self,
        rpc: EthRpcClient,
        addresses: Sequence[str],
        start_block: int = 0,
        chunk_size: int = 5000,
    ) -> None:
        self._rpc = rpc
        self._addresses = [a for a in addresses if a]
        self._start_block = start_block
        self._chunk_size = max(1, chunk_size)
        self._cursor: int | None = None

    @property
    def cursor(self) -> int | None:
        return self._cursor

    def set_cursor(self, block: int) -> None:
        """Restore cursor from persisted state."""
        self._cursor = block

    def set_addresses(self, addresses: Sequence[str]) -> None:
        self._addresses = [a for a in addresses if a]

    async def poll(self) -> list[ProjectorEvent]:
        """Fetch and decode every log between the cursor and the chain head."""
        head = await self._rpc.block_number()
        first = self._start_block if self._cursor is None else self._cursor + 1
        if first > head or not self._addresses:
            return []

        topics = [[decl.topic0 for decl in EVENT_DECLARATIONS]]
        entries: list[dict] = []
        for lo in range(first, head + 1, self._chunk_size):
            hi = min(lo + self._chunk_size - 1, head)
            try:
                entries.extend(await self._rpc.get_logs(self._addresses, lo, hi, topics))
            except Exception as exc:
                log.error("Log poll failed for blocks %d-%d: %s", lo, hi, exc)
                raise

        entries = sorted((e for e in entries if not e.get("removed")), key=_log_position)
        events: list[ProjectorEvent] = []
        for entry in entries:
            parsed = parse_log(entry)
            if parsed is not None:
                events.append(parsed)
                log.debug("Parsed %s at block %s", type(parsed).__name__, entry.get("blockNumber"))

        if head - first + 1 > self._chunk_size:
            log.info("Caught up %d blocks (%d-%d), %d events", head - first + 1, first, head, len(events))
            events = [SyncStarted(block_number=first), *events, SyncFinished(block_number=head)]
        elif events:
            log.info("Polled %d new events", len(events))

        self._cursor = head
        return events
