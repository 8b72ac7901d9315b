"""Request ledger - append-only collection of token requests."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from token_request_projector.models.snapshots import RequestStatus, TokenRequest

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestLedger:
    """Immutable view over the snapshot's requests, in insertion order.

    Every operation returns a ledger; a rejected operation returns ``self``.
    """

    entries: tuple[TokenRequest, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, request_id: int) -> TokenRequest | None:
        for request in self.entries:
            if request.request_id == request_id:
                return request
        return None

    def can_transition(self, request_id: int) -> bool:
        request = self.get(request_id)
        return request is not None and request.status is RequestStatus.PENDING

    def append(self, request: TokenRequest) -> RequestLedger:
        if self.get(request.request_id) is not None:
            log.debug("Request #%d already in ledger, skipping", request.request_id)
            return self
        if request.status is not RequestStatus.PENDING:
            request = replace(request, status=RequestStatus.PENDING)
        return RequestLedger(self.entries + (request,))

    def transition(self, request_id: int, next_status: RequestStatus) -> RequestLedger:
        for index, request in enumerate(self.entries):
            if request.request_id != request_id:
                continue
            if request.status is not RequestStatus.PENDING:
                log.warning(
                    "Ignoring %s for request #%d already %s",
                    next_status.value, request_id, request.status.value,
                )
                return self
            entries = list(self.entries)
            entries[index] = replace(request, status=next_status)
            return RequestLedger(tuple(entries))

        log.error("Tried to update request #%d that shouldn't exist!", request_id)
        return self

    def by_date(self) -> tuple[TokenRequest, ...]:
        """Requests sorted by date, newest first."""
        return tuple(sorted(self.entries, key=lambda r: r.date, reverse=True))

    def for_requester(self, address: str) -> tuple[TokenRequest, ...]:
        address = address.lower()
        return tuple(r for r in self.entries if r.requester_address.lower() == address)
