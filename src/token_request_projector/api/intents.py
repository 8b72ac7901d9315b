"""Write intents - forwarded to the app contract, never awaited by the core."""

from __future__ import annotations

import asyncio
import logging
import math

from token_request_projector.interfaces.intents import IntentSink
from token_request_projector.metadata.fallbacks import is_ether
from token_request_projector.models.records import ActionResult, Intent

log = logging.getLogger(__name__)

# Token deposits carry a fixed gas limit so the wallet does not estimate
# against a not-yet-mined approve() and report a failing transaction.
DEPOSIT_GAS_BASE = 400_000
DEPOSIT_GAS_PER_32_CHARS = 20_000
DEPOSIT_GAS_PERIOD_TRANSITION = 80_000


def deposit_gas(requested_amount: str) -> int:
    return (
        DEPOSIT_GAS_BASE
        + DEPOSIT_GAS_PER_32_CHARS * math.ceil(len(requested_amount) / 32)
        + DEPOSIT_GAS_PERIOD_TRANSITION
    )


def request_params(deposit_token: str, deposit_amount: str, requested_amount: str) -> dict:
    if is_ether(deposit_token):
        return {"value": deposit_amount}
    return {
        "token": {"address": deposit_token, "value": deposit_amount},
        "gas": deposit_gas(requested_amount),
    }


def _is_amount(value: str) -> bool:
    return isinstance(value, str) and value.isdigit()


class IntentDispatcher:
    """Schedules intents on the event loop and returns immediately.

    Outcomes are observed only through the events the contract emits. Sink
    failures are logged from a done-callback.
    """

    def __init__(self, sink: IntentSink) -> None:
        self._sink = sink
        self._pending: set[asyncio.Future] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def create_request(
        self,
        deposit_token: str,
        deposit_amount: str,
        request_token: str,
        requested_amount: str,
        token_id: int = 0,
        reference: str = "",
    ) -> ActionResult:
        if not _is_amount(deposit_amount) or not _is_amount(requested_amount):
            return ActionResult(
                success=False,
                message="Amounts must be integer strings in the token's smallest unit",
            )
        params = request_params(deposit_token, deposit_amount, requested_amount)
        return self._dispatch(Intent(
            action="request",
            args=(deposit_token, deposit_amount, request_token, requested_amount, token_id, reference),
            params=params,
        ))

    def submit_request(self, request_id: int) -> ActionResult:
        return self._dispatch(Intent(action="submit", args=(request_id,)))

    def withdraw_request(self, request_id: int) -> ActionResult:
        return self._dispatch(Intent(action="withdraw", args=(request_id,)))

    def toggle_auction(self) -> ActionResult:
        return self._dispatch(Intent(action="toggleAuction"))

    async def drain(self) -> None:
        """Wait for every scheduled intent to be handed to the sink."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    def _dispatch(self, intent: Intent) -> ActionResult:
        future = asyncio.ensure_future(self._sink.send(intent))
        self._pending.add(future)
        future.add_done_callback(lambda f: self._on_done(intent, f))
        log.info("Dispatched %s intent %s", intent.action, intent.args)
        return ActionResult(success=True, message=f"{intent.action} intent sent")

    def _on_done(self, intent: Intent, future: asyncio.Future) -> None:
        self._pending.discard(future)
        if future.cancelled():
            log.warning("%s intent cancelled", intent.action)
            return
        exc = future.exception()
        if exc is not None:
            log.error("%s intent failed: %s", intent.action, exc)
