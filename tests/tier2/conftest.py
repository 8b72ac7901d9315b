"""Tier 2 fixtures: a live JSON-RPC node.

Set TREQ_PROJECTOR_TEST_RPC_URL to run these, and optionally
TREQ_PROJECTOR_TEST_APP_ADDRESS for the app contract checks.
"""

from __future__ import annotations

import os

import httpx
import pytest

from token_request_projector.evm.rpc import EthRpcClient

RPC_URL = os.environ.get("TREQ_PROJECTOR_TEST_RPC_URL", "")
APP_ADDRESS = os.environ.get("TREQ_PROJECTOR_TEST_APP_ADDRESS", "")


@pytest.fixture(scope="session")
def node_available():
    """Skip tier2 tests unless the configured node answers eth_blockNumber."""
    if not RPC_URL:
        pytest.skip("TREQ_PROJECTOR_TEST_RPC_URL not set")
    try:
        r = httpx.post(
            RPC_URL,
            json={"jsonrpc": "2.0", "id": 1, "method": "eth_blockNumber", "params": []},
            timeout=5,
        )
        if r.status_code == 200 and "result" in r.json():
            return True
        pytest.skip(f"Node at {RPC_URL} answered HTTP {r.status_code}")
    except (httpx.ConnectError, httpx.TimeoutException, ValueError):
        pytest.skip(f"Node not available at {RPC_URL}")


@pytest.fixture
async def live_rpc(node_available):
    client = EthRpcClient(RPC_URL, app_address=APP_ADDRESS, timeout=15.0)
    yield client
    await client.close()


@pytest.fixture
def app_address(node_available):
    if not APP_ADDRESS:
        pytest.skip("TREQ_PROJECTOR_TEST_APP_ADDRESS not set")
    return APP_ADDRESS
