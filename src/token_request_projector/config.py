"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
from decimal import Decimal
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from token_request_projector.models.config import AuctionConfig, ProjectorConfig


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "TREQ_PROJECTOR_",
) -> ProjectorConfig:
    """Load projector configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (TREQ_PROJECTOR_RPC_URL, etc.)
        2. TOML config file
        3. Defaults from ProjectorConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = ProjectorConfig()

    # ── Daemon section ─────────────────────────────────────
    daemon = raw.get("daemon", {})
    if v := daemon.get("poll_interval"):
        cfg.poll_interval = int(v)
    if v := daemon.get("error_backoff"):
        cfg.error_backoff = int(v)
    if v := daemon.get("init_backoff_initial"):
        cfg.init_backoff_initial = float(v)
    if v := daemon.get("init_backoff_max"):
        cfg.init_backoff_max = float(v)
    if v := daemon.get("log_level"):
        cfg.log_level = str(v)

    # ── Chain section ──────────────────────────────────────
    chain = raw.get("chain", {})
    if v := chain.get("network"):
        cfg.network = str(v)
    if v := chain.get("rpc_url"):
        cfg.rpc_url = str(v)
    if v := chain.get("app_address"):
        cfg.app_address = str(v)
    if v := chain.get("agent_address"):
        cfg.agent_address = str(v)
    if (v := chain.get("start_block")) is not None:
        cfg.start_block = int(v)
    if v := chain.get("request_timeout"):
        cfg.request_timeout = float(v)
    if v := chain.get("log_chunk_size"):
        cfg.log_chunk_size = int(v)

    # ── Auction section ────────────────────────────────────
    auction = raw.get("auction", {})
    cfg.auction = AuctionConfig(
        base_price=Decimal(str(auction.get("base_price", cfg.auction.base_price))),
        depreciation_interval=int(
            auction.get("depreciation_interval", cfg.auction.depreciation_interval)
        ),
    )

    # ── Storage section ────────────────────────────────────
    storage = raw.get("storage", {})
    if v := storage.get("db_path"):
        cfg.db_path = str(v)

    # ── Environment variable overrides (highest priority) ──
    if rpc := os.environ.get(f"{env_prefix}RPC_URL"):
        cfg.rpc_url = rpc
    if app := os.environ.get(f"{env_prefix}APP_ADDRESS"):
        cfg.app_address = app
    if net := os.environ.get(f"{env_prefix}NETWORK"):
        cfg.network = net
    if db := os.environ.get(f"{env_prefix}DB_PATH"):
        cfg.db_path = db

    # Expand ~ in paths
    cfg.db_path = str(Path(cfg.db_path).expanduser())

    return cfg
