"""Protocol interfaces for the projector's external collaborators."""

from token_request_projector.interfaces.chain import ChainReader
from token_request_projector.interfaces.intents import IntentSink
from token_request_projector.interfaces.poller import EventSource
from token_request_projector.interfaces.store import SnapshotStore

__all__ = [
    "ChainReader",
    "EventSource",
    "IntentSink",
    "SnapshotStore",
]
