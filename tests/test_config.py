"""Config loading from TOML and environment."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pytest

from token_request_projector.config import load_config

from tests.factories import APP_ADDRESS

ENV_VARS = ("RPC_URL", "APP_ADDRESS", "NETWORK", "DB_PATH")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(f"TREQ_PROJECTOR_{name}", raising=False)


def _write(tmp_path, text: str) -> Path:
    path = tmp_path / "projector.toml"
    path.write_text(text)
    return path


def test_defaults_without_file():
    cfg = load_config(None)
    assert cfg.network == "main"
    assert cfg.poll_interval == 5
    assert cfg.auction.base_price == Decimal(1)
    assert cfg.db_path == str(Path("~/.token_request_projector/state.db").expanduser())


def test_missing_file_uses_defaults(tmp_path):
    cfg = load_config(tmp_path / "nope.toml")
    assert cfg.rpc_url == "http://127.0.0.1:8545"


def test_toml_sections(tmp_path):
    path = _write(tmp_path, f"""
[daemon]
poll_interval = 12
log_level = "debug"

[chain]
network = "rinkeby"
rpc_url = "https://rinkeby.example/rpc"
app_address = "{APP_ADDRESS}"
start_block = 0
log_chunk_size = 2000

[auction]
base_price = "0.5"
depreciation_interval = 500

[storage]
db_path = "{tmp_path / 'state.db'}"
""")

    cfg = load_config(path)

    assert cfg.poll_interval == 12
    assert cfg.log_level == "debug"
    assert cfg.network == "rinkeby"
    assert cfg.app_address == APP_ADDRESS
    assert cfg.start_block == 0
    assert cfg.log_chunk_size == 2000
    assert cfg.auction.base_price == Decimal("0.5")
    assert cfg.auction.depreciation_interval == 500
    assert cfg.db_path == str(tmp_path / "state.db")


def test_env_overrides_file(tmp_path, monkeypatch):
    path = _write(tmp_path, '[chain]\nrpc_url = "http://file:8545"\nnetwork = "xdai"\n')
    monkeypatch.setenv("TREQ_PROJECTOR_RPC_URL", "http://env:8545")
    monkeypatch.setenv("TREQ_PROJECTOR_APP_ADDRESS", APP_ADDRESS)
    monkeypatch.setenv("TREQ_PROJECTOR_DB_PATH", ":memory:")

    cfg = load_config(path)

    assert cfg.rpc_url == "http://env:8545"
    assert cfg.app_address == APP_ADDRESS
    assert cfg.network == "xdai"
    assert cfg.db_path == ":memory:"


def test_non_positive_interval_is_rejected(tmp_path):
    path = _write(tmp_path, "[auction]\ndepreciation_interval = 0\n")
    with pytest.raises(ValueError, match="depreciation_interval"):
        load_config(path)
