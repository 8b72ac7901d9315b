"""Token metadata resolver: per-field fallbacks, ETH short-circuit, memoization."""

from __future__ import annotations

from token_request_projector.metadata.fallbacks import (
    ETHER_TOKEN_FAKE_ADDRESS,
    token_data_fallback,
)
from token_request_projector.metadata.resolver import TokenMetadataResolver
from token_request_projector.models.records import LookupStatus, TokenMetadata

from tests.conftest import make_chain
from tests.factories import DAI, NFT_CONTRACT, ORG_TOKEN, REQUESTER

MKR = "0x9f8f72aa9304c8b593d555f12ef6589cc3a579a2"
UNKNOWN = "0x8888888888888888888888888888888888888888"


# ── Native sentinel ───────────────────────────────────────────────


async def test_ether_sentinel_needs_no_chain_calls(chain, resolver):
    metadata = await resolver.resolve(ETHER_TOKEN_FAKE_ADDRESS)
    assert metadata == TokenMetadata(decimals=18, name="Ether", symbol="ETH")
    assert chain.calls == {}


# ── Successful reads and caching ──────────────────────────────────


async def test_complete_resolution_is_memoized(chain, resolver):
    first = await resolver.resolve(ORG_TOKEN)
    second = await resolver.resolve(ORG_TOKEN.upper().replace("0X", "0x"))

    assert first == TokenMetadata(decimals=18, name="Org Token", symbol="ORG")
    assert second == first
    assert chain.calls["token_symbol"] == 1


async def test_forget_drops_cached_entry(chain, resolver):
    await resolver.resolve(ORG_TOKEN)
    resolver.forget(ORG_TOKEN)
    await resolver.resolve(ORG_TOKEN)
    assert chain.calls["token_symbol"] == 2


# ── Fallbacks ─────────────────────────────────────────────────────


async def test_one_failed_field_does_not_block_the_others(chain, resolver):
    chain.fail.add(("token_symbol", ORG_TOKEN))

    detail = await resolver.resolve_detailed(ORG_TOKEN)

    assert detail.decimals.status is LookupStatus.SUCCESS
    assert detail.name.status is LookupStatus.SUCCESS
    assert detail.symbol.status is LookupStatus.FALLBACK
    assert detail.metadata == TokenMetadata(decimals=18, name="Org Token", symbol="")


async def test_fallback_results_are_not_cached(chain, resolver):
    chain.fail.add(("token_symbol", ORG_TOKEN))
    assert (await resolver.resolve(ORG_TOKEN)).symbol == ""

    chain.fail.clear()
    assert (await resolver.resolve(ORG_TOKEN)).symbol == "ORG"


async def test_static_table_used_when_chain_fails():
    chain = make_chain()
    resolver = TokenMetadataResolver(chain, "main", timeout=1.0)

    metadata = await resolver.resolve(MKR)

    assert metadata == TokenMetadata(decimals=18, name="Maker", symbol="MKR")
    assert token_data_fallback(MKR.upper().replace("0X", "0x"), "symbol", "main") == "MKR"


async def test_static_table_is_network_specific():
    resolver = TokenMetadataResolver(make_chain(), "rinkeby", timeout=1.0)
    assert await resolver.resolve(MKR) == TokenMetadata(decimals=0, name="", symbol="")


async def test_empty_symbol_uses_fallback(chain, resolver):
    chain.tokens[DAI.lower()]["symbol"] = ""
    detail = await resolver.resolve_detailed(DAI)
    assert detail.symbol.status is LookupStatus.FALLBACK
    assert detail.symbol.value == "DAI"


async def test_zero_decimals_is_a_real_value(chain, resolver):
    detail = await resolver.resolve_detailed(NFT_CONTRACT)
    assert detail.decimals.status is LookupStatus.SUCCESS
    assert detail.decimals.value == 0


async def test_slow_field_times_out_to_fallback(chain):
    chain.delays[ORG_TOKEN.lower()] = 0.5
    resolver = TokenMetadataResolver(chain, "main", timeout=0.05)

    metadata = await resolver.resolve(ORG_TOKEN)

    assert metadata == TokenMetadata(decimals=0, name="", symbol="")


async def test_unknown_token_resolves_to_defaults(resolver):
    assert await resolver.resolve(UNKNOWN) == TokenMetadata(decimals=0, name="", symbol="")


# ── URIs and balances ─────────────────────────────────────────────


async def test_token_uri_success_and_failure(chain, resolver):
    chain.uris[(NFT_CONTRACT.lower(), 7)] = "ipfs://piece-7"

    found = await resolver.resolve_uri(NFT_CONTRACT, 7)
    missing = await resolver.resolve_uri(NFT_CONTRACT, 8)

    assert found.ok and found.value == "ipfs://piece-7"
    assert missing.status is LookupStatus.FAILURE
    assert missing.value is None
    assert missing.value_or("") == ""


async def test_balances_native_and_token(chain, resolver):
    chain.native_balances[REQUESTER] = 3 * 10**18
    chain.token_balances[(DAI.lower(), REQUESTER)] = 42

    native = await resolver.load_balance(ETHER_TOKEN_FAKE_ADDRESS, REQUESTER)
    dai = await resolver.load_balance(DAI, REQUESTER)
    unknown = await resolver.load_balance(ORG_TOKEN, REQUESTER)

    assert native.value == 3 * 10**18
    assert dai.value == 42
    assert unknown.status is LookupStatus.FAILURE
    assert unknown.value_or(-1) == -1
