"""IntentSink protocol - forwards user intents as write transactions."""

from __future__ import annotations

from typing import Protocol

from token_request_projector.models.records import Intent


class IntentSink(Protocol):
    """Hands an intent to the wallet/transport layer.

    The projector never waits for confirmation; results arrive as events.
    """

    async def send(self, intent: Intent) -> None:
        ...
