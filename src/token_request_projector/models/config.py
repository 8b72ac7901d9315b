"""Configuration models for the projector."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass
class AuctionConfig:
    """NFT auction pricing parameters."""

    base_price: Decimal = Decimal(1)  # in ETH
    depreciation_interval: int = 10_000  # blocks

    def __post_init__(self) -> None:
        self.base_price = Decimal(str(self.base_price))
        if self.depreciation_interval <= 0:
            raise ValueError(
                f"depreciation_interval must be positive, got {self.depreciation_interval}"
            )


@dataclass
class ProjectorConfig:
    """Complete projector configuration."""

    # Daemon
    poll_interval: int = 5  # seconds
    error_backoff: int = 30  # seconds
    init_backoff_initial: float = 1.0  # seconds, first retry of config discovery
    init_backoff_max: float = 60.0
    log_level: str = "info"

    # Chain
    network: str = "main"  # "main" | "rinkeby" | "xdai" ...
    rpc_url: str = "http://127.0.0.1:8545"
    app_address: str = ""  # token-request app contract
    agent_address: str = ""  # discovered via agentOrVault() when empty
    start_block: int = 0
    request_timeout: float = 10.0  # seconds per RPC call
    log_chunk_size: int = 5_000  # blocks per eth_getLogs call

    # Auction
    auction: AuctionConfig = field(default_factory=AuctionConfig)

    # Storage
    db_path: str = "~/.token_request_projector/state.db"
