"""Event reducer, initialization and the serialized event pipeline."""

from token_request_projector.projector.bootstrap import Bootstrapper, Phase, rehydrate, retry_every
from token_request_projector.projector.pipeline import BlockTicker, EventPipeline
from token_request_projector.projector.reducer import BlockTimestampUnavailable, StateReducer
from token_request_projector.projector.view import has_loaded_settings, is_loading, present

__all__ = [
    "BlockTicker",
    "BlockTimestampUnavailable",
    "Bootstrapper",
    "EventPipeline",
    "Phase",
    "StateReducer",
    "has_loaded_settings",
    "is_loading",
    "present",
    "rehydrate",
    "retry_every",
]
