"""Static token metadata used when on-chain reads fail.

Some widely held tokens predate the ERC-20 metadata extension (e.g. MKR and
SAI return ``bytes32`` names) or sit behind proxies that revert on ``name()``.
"""

from __future__ import annotations

from typing import Any

ETHER_TOKEN_FAKE_ADDRESS = "0x0000000000000000000000000000000000000000"

ETHER_DATA = {
    "decimals": 18,
    "name": "Ether",
    "symbol": "ETH",
}

TOKEN_FALLBACK_INFO: dict[str, dict[str, dict[str, Any]]] = {
    "main": {
        "0x89d24a6b4ccb1b6faa2625fe562bdd9a23260359": {
            "symbol": "SAI",
            "name": "Sai Stablecoin v1.0",
            "decimals": 18,
        },
        "0x6b175474e89094c44da98b954eedeac495271d0f": {
            "symbol": "DAI",
            "name": "Dai Stablecoin",
            "decimals": 18,
        },
        "0x9f8f72aa9304c8b593d555f12ef6589cc3a579a2": {
            "symbol": "MKR",
            "name": "Maker",
            "decimals": 18,
        },
    },
}


def is_ether(address: str) -> bool:
    return address.lower() == ETHER_TOKEN_FAKE_ADDRESS


def token_data_fallback(address: str, field: str, network: str) -> Any | None:
    """Return the static value of ``field`` for ``address`` on ``network``, if known."""
    entry = TOKEN_FALLBACK_INFO.get(network, {}).get(address.lower())
    if entry is None:
        return None
    return entry.get(field)
