"""ChainReader protocol - read-only access to the chain and the app contract."""

from __future__ import annotations

from typing import Protocol

from token_request_projector.models.records import ContractConfiguration


class ChainReader(Protocol):
    """Read calls the projector needs from an EVM node.

    Every method may raise on transport or contract errors; callers decide
    whether that is fatal.
    """

    async def block_number(self) -> int:
        ...

    async def get_block_timestamp(self, block_number: int) -> int | None:
        """Seconds since epoch, or None if the block is unknown."""
        ...

    async def token_decimals(self, address: str) -> int:
        ...

    async def token_name(self, address: str) -> str:
        ...

    async def token_symbol(self, address: str) -> str:
        ...

    async def token_uri(self, address: str, token_id: int) -> str:
        ...

    async def token_manager_token(self, token_manager: str) -> str:
        """Address of the MiniMe token controlled by a token manager."""
        ...

    async def native_balance(self, account: str) -> int:
        ...

    async def token_balance(self, token: str, account: str) -> int:
        ...

    async def read_configuration(self) -> ContractConfiguration:
        ...
