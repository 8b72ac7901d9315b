"""Data models for the token-request projector."""

from token_request_projector.models.events import (
    AccountChanged,
    AssetReceived,
    AuctionToggled,
    BlockObserved,
    ProjectorEvent,
    RequestCreated,
    RequestFinalised,
    RequestRefunded,
    SyncFinished,
    SyncStarted,
    event_from_raw,
)
from token_request_projector.models.records import (
    ActionResult,
    ContractConfiguration,
    Intent,
    Lookup,
    LookupStatus,
    MetadataResolution,
    TokenMetadata,
)
from token_request_projector.models.config import AuctionConfig, ProjectorConfig
from token_request_projector.models.snapshots import (
    AppSnapshot,
    NFTToken,
    PriceQuote,
    RequestStatus,
    TokenInfo,
    TokenRequest,
)

__all__ = [
    "AccountChanged", "AssetReceived", "AuctionToggled", "BlockObserved",
    "ProjectorEvent", "RequestCreated", "RequestFinalised", "RequestRefunded",
    "SyncFinished", "SyncStarted", "event_from_raw",
    "ActionResult", "ContractConfiguration", "Intent", "Lookup", "LookupStatus",
    "MetadataResolution", "TokenMetadata",
    "AuctionConfig", "ProjectorConfig",
    "AppSnapshot", "NFTToken", "PriceQuote", "RequestStatus", "TokenInfo",
    "TokenRequest",
]
