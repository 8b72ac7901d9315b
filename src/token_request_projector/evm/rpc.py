"""EVM JSON-RPC client - implements ChainReader over HTTP."""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Any

import httpx

from token_request_projector.evm.abi import decode_abi, decode_text, encode_call
from token_request_projector.models.records import ContractConfiguration

log = logging.getLogger(__name__)

RETRYABLE_HTTP_CODES = {429, 502, 503, 504}


class RpcError(Exception):
    """The node answered with an error, or could not be reached."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


def _to_hex(number: int) -> str:
    return hex(number)


class EthRpcClient:
    """Read-only JSON-RPC access to an EVM node.

    Covers the calls the projector needs: block metadata, ERC-20/721
    metadata, balances, log queries, and the token-request app's
    configuration getters.
    """

    def __init__(
        self,
        rpc_url: str,
        app_address: str = "",
        agent_address: str = "",
        timeout: float = 10.0,
        retries: int = 2,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._rpc_url = rpc_url
        self._app_address = app_address
        self._agent_address = agent_address
        self._timeout = timeout
        self._retries = retries
        self._client = client
        self._ids = itertools.count(1)

    @property
    def agent_address(self) -> str:
        return self._agent_address

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout, connect=5))
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ── Transport ──────────────────────────────────────────

    async def request(self, method: str, params: list[Any]) -> Any:
        """Send one JSON-RPC request, retrying timeouts and transient HTTP errors."""
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}

        for attempt in range(1, self._retries + 2):
            try:
                resp = await self._http().post(self._rpc_url, json=payload)
                resp.raise_for_status()
                body = resp.json()
                break
            except (httpx.TimeoutException, httpx.HTTPStatusError, httpx.TransportError) as exc:
                retryable = not isinstance(exc, httpx.HTTPStatusError) or (
                    exc.response.status_code in RETRYABLE_HTTP_CODES
                )
                if retryable and attempt <= self._retries:
                    log.debug("%s failed (attempt %d): %s", method, attempt, exc)
                    await asyncio.sleep(0.15 * attempt)
                    continue
                if isinstance(exc, httpx.HTTPStatusError):
                    raise RpcError(f"{method}: HTTP {exc.response.status_code}") from exc
                raise RpcError(f"{method}: {type(exc).__name__}: {exc}") from exc
            except ValueError as exc:
                raise RpcError(f"{method}: non-JSON response") from exc

        if "error" in body and body["error"]:
            error = body["error"]
            raise RpcError(f"{method}: {error.get('message', error)}", error.get("code"))
        return body.get("result")

    async def eth_call(self, to: str, data: str) -> str:
        result = await self.request("eth_call", [{"to": to, "data": data}, "latest"])
        if not result or result == "0x":
            raise RpcError(f"eth_call to {to} returned no data")
        return result

    async def call(self, to: str, signature: str, *args: Any, returns: list[str]) -> list[Any]:
        return decode_abi(returns, await self.eth_call(to, encode_call(signature, *args)))

    # ── Blocks & balances ──────────────────────────────────

    async def block_number(self) -> int:
        return int(await self.request("eth_blockNumber", []), 16)

    async def get_block_timestamp(self, block_number: int) -> int | None:
        block = await self.request("eth_getBlockByNumber", [_to_hex(block_number), False])
        if not block:
            return None
        return int(block["timestamp"], 16)

    async def native_balance(self, account: str) -> int:
        return int(await self.request("eth_getBalance", [account, "latest"]), 16)

    async def token_balance(self, token: str, account: str) -> int:
        (balance,) = await self.call(token, "balanceOf(address)", account, returns=["uint256"])
        return balance

    async def get_logs(
        self,
        addresses: list[str],
        from_block: int,
        to_block: int,
        topics: list[Any] | None = None,
    ) -> list[dict]:
        params: dict[str, Any] = {
            "address": addresses,
            "fromBlock": _to_hex(from_block),
            "toBlock": _to_hex(to_block),
        }
        if topics:
            params["topics"] = topics
        return await self.request("eth_getLogs", [params]) or []

    # ── Token metadata ─────────────────────────────────────

    async def token_decimals(self, address: str) -> int:
        (decimals,) = await self.call(address, "decimals()", returns=["uint8"])
        return decimals

    async def token_name(self, address: str) -> str:
        return decode_text(await self.eth_call(address, encode_call("name()")))

    async def token_symbol(self, address: str) -> str:
        return decode_text(await self.eth_call(address, encode_call("symbol()")))

    async def token_uri(self, address: str, token_id: int) -> str:
        (uri,) = await self.call(address, "tokenURI(uint256)", token_id, returns=["string"])
        return uri

    async def token_manager_token(self, token_manager: str) -> str:
        (token,) = await self.call(token_manager, "token()", returns=["address"])
        return token

    # ── App configuration ──────────────────────────────────

    async def read_configuration(self) -> ContractConfiguration:
        """Read token managers, accepted tokens and auction counters from the app."""
        if not self._app_address:
            raise RpcError("no app address configured")
        app = self._app_address

        (managers,), (accepted,), (last_sold,), (total_sold,) = await asyncio.gather(
            self.call(app, "getTokenManagers()", returns=["address[]"]),
            self.call(app, "getAcceptedDepositTokens()", returns=["address[]"]),
            self.call(app, "lastSoldBlock()", returns=["uint256"]),
            self.call(app, "totalSoldNFT()", returns=["uint256"]),
        )
        if not self._agent_address:
            (self._agent_address,) = await self.call(app, "agentOrVault()", returns=["address"])

        try:
            (auction_status,) = await self.call(app, "auctionStatus()", returns=["bool"])
        except RpcError as exc:
            # Older app versions have no auction switch
            log.debug("auctionStatus() unavailable: %s", exc)
            auction_status = False

        return ContractConfiguration(
            token_managers=tuple(managers),
            accepted_tokens=tuple(accepted),
            agent_address=self._agent_address,
            last_sold_block=last_sold,
            total_sold_nft=total_sold,
            auction_status=auction_status,
        )
