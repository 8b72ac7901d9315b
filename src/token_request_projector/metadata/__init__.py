"""Token metadata resolution."""

from token_request_projector.metadata.fallbacks import (
    ETHER_DATA,
    ETHER_TOKEN_FAKE_ADDRESS,
    is_ether,
    token_data_fallback,
)
from token_request_projector.metadata.resolver import TokenMetadataResolver

__all__ = [
    "ETHER_DATA",
    "ETHER_TOKEN_FAKE_ADDRESS",
    "TokenMetadataResolver",
    "is_ether",
    "token_data_fallback",
]
