"""Shared fixtures for token_request_projector tests."""

from __future__ import annotations

import pytest
from pytest_metadata.plugin import metadata_key

from token_request_projector.daemon import ProjectorDaemon
from token_request_projector.metadata.resolver import TokenMetadataResolver
from token_request_projector.models.config import AuctionConfig, ProjectorConfig
from token_request_projector.models.records import ContractConfiguration
from token_request_projector.projector.pipeline import EventPipeline
from token_request_projector.projector.reducer import StateReducer
from token_request_projector.storage.sqlite import SQLiteSnapshotStore

from tests.factories import (
    AGENT_ADDRESS,
    APP_ADDRESS,
    DAI,
    NFT_CONTRACT,
    NFT_DATA,
    ORG_TOKEN,
    ORG_TOKEN_DATA,
)
from tests.fakenode import start_fake_node
from tests.mocks import MockChain, MockIntentSink, MockSource

TOKEN_MANAGER = "0x7777777777777777777777777777777777777777"

# Block 100 is the canonical "request created" block
BLOCK_TIMESTAMPS = {100: 1_700_000_000, 101: 1_700_000_012, 102: 1_700_000_024, 150: 1_700_000_600}


# ── Report metadata ──────────────────────────────────────────────


def pytest_configure(config):
    """Add projector info to the report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Chain"] = "mocked EVM (in-memory ChainReader)"
    meta["App Contract"] = APP_ADDRESS
    meta["Agent"] = AGENT_ADDRESS


def make_test_config(**overrides) -> ProjectorConfig:
    """Build a ProjectorConfig suitable for testing."""
    defaults = dict(
        poll_interval=1,
        error_backoff=1,
        init_backoff_initial=0.01,
        init_backoff_max=0.05,
        network="main",
        rpc_url="http://127.0.0.1:8545",
        app_address=APP_ADDRESS,
        agent_address=AGENT_ADDRESS,
        request_timeout=1.0,
        auction=AuctionConfig(base_price=1, depreciation_interval=10_000),
        db_path=":memory:",
    )
    defaults.update(overrides)
    return ProjectorConfig(**defaults)


def make_chain(**overrides) -> MockChain:
    """A MockChain knowing the org token, the NFT contract and DAI."""
    chain = MockChain(
        tokens={
            ORG_TOKEN: dict(ORG_TOKEN_DATA),
            NFT_CONTRACT: dict(NFT_DATA),
            DAI: {"decimals": 18, "name": "Dai Stablecoin", "symbol": "DAI"},
        },
        timestamps=dict(BLOCK_TIMESTAMPS),
        configuration=ContractConfiguration(
            token_managers=(TOKEN_MANAGER,),
            accepted_tokens=("0x0000000000000000000000000000000000000000", DAI),
            agent_address=AGENT_ADDRESS,
        ),
        **overrides,
    )
    chain.managers[TOKEN_MANAGER] = ORG_TOKEN
    return chain


@pytest.fixture
def test_config():
    """Default ProjectorConfig for tests."""
    return make_test_config()


@pytest.fixture
def chain():
    return make_chain()


@pytest.fixture
def resolver(chain):
    return TokenMetadataResolver(chain, "main", timeout=1.0)


@pytest.fixture
def reducer(resolver, chain):
    return StateReducer(resolver, chain, AuctionConfig(base_price=1, depreciation_interval=10_000))


@pytest.fixture
async def pipeline(reducer):
    p = EventPipeline(reducer)
    p.start()
    yield p
    await p.stop()


@pytest.fixture
async def store():
    """Initialized in-memory SQLiteSnapshotStore."""
    s = SQLiteSnapshotStore(":memory:")
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def mock_source():
    return MockSource()


@pytest.fixture
def mock_sink():
    return MockIntentSink()


@pytest.fixture
async def daemon(test_config, chain, mock_source, store):
    """ProjectorDaemon wired to mocked chain, source and an in-memory store."""
    d = ProjectorDaemon(test_config, chain=chain, source=mock_source, store=store)
    yield d
    await d.pipeline.stop()


@pytest.fixture
async def fake_node():
    """aiohttp JSON-RPC node on an ephemeral local port."""
    node, runner = await start_fake_node()
    yield node
    await runner.cleanup()
