"""UI selection state and the guarded token-data loader for the new-request panel."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable

from token_request_projector.api.amounts import from_decimals, to_decimals
from token_request_projector.ledger.inventory import NFTInventory
from token_request_projector.ledger.requests import RequestLedger
from token_request_projector.metadata.fallbacks import ETHER_DATA, is_ether
from token_request_projector.metadata.resolver import TokenMetadataResolver
from token_request_projector.models.snapshots import AppSnapshot, NFTToken, TokenRequest

log = logging.getLogger(__name__)


class DepositError(str, Enum):
    NONE = "none"
    BALANCE_NOT_ENOUGH = "balance_not_enough"
    DECIMALS_TOO_MANY = "decimals_too_many"


DEPOSIT_ERROR_MESSAGES = {
    DepositError.BALANCE_NOT_ENOUGH: "Amount is greater than balance held",
    DepositError.DECIMALS_TOO_MANY: "Amount contains too many decimal places",
}


@dataclass(frozen=True)
class TokenData:
    """Deposit-token details shown next to the amount field."""

    address: str
    decimals: int = 0
    symbol: str = ""
    user_balance: int = -1  # -1 when the balance could not be read
    loading: bool = True


@dataclass(frozen=True)
class DepositSelection:
    index: int
    token: TokenData


def validate_deposit(amount: str, token: TokenData) -> DepositError:
    """Check an entered amount against the token's precision and the user's balance.

    Raises ValueError if ``amount`` is not a decimal number.
    """
    if not amount or token.loading:
        return DepositError.NONE
    adjusted = to_decimals(amount, token.decimals, truncate=False)
    if "." in adjusted:
        return DepositError.DECIMALS_TOO_MANY
    if token.user_balance >= 0 and int(adjusted) > token.user_balance:
        return DepositError.BALANCE_NOT_ENOUGH
    return DepositError.NONE


def balance_message(token: TokenData) -> str:
    if token.loading:
        return ""
    if token.user_balance < 0:
        return f"Your balance could not be found for {token.symbol}"
    available = "no" if token.user_balance == 0 else from_decimals(token.user_balance, token.decimals)
    return f"You have {available} {token.symbol} available"


class SelectionState:
    """Holds the selected request, the selected NFT and the deposit token.

    Token data loads are guarded by a generation counter: a load that finishes
    after the selection changed, or after the panel was closed, is discarded
    instead of overwriting newer data.
    """

    def __init__(
        self,
        resolver: TokenMetadataResolver,
        snapshot: Callable[[], AppSnapshot],
    ) -> None:
        self._resolver = resolver
        self._snapshot = snapshot
        self._generation = 0
        self._request_id: int | None = None
        self._nft: NFTToken | None = None
        self._deposit: DepositSelection | None = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def selected_request(self) -> TokenRequest | None:
        if self._request_id is None:
            return None
        # Always read through to the latest snapshot so status changes show up
        return RequestLedger(self._snapshot().requests).get(self._request_id)

    @property
    def selected_nft(self) -> NFTToken | None:
        return self._nft

    @property
    def deposit(self) -> DepositSelection | None:
        return self._deposit

    def select_request(self, request_id: int | None) -> TokenRequest | None:
        """Open the detail view of ``request_id``; None (or an unknown id) clears it."""
        if request_id is None:
            self._request_id = None
            return None
        request = RequestLedger(self._snapshot().requests).get(request_id)
        if request is None:
            log.warning("Cannot select unknown request #%d", request_id)
        self._request_id = request.request_id if request else None
        return request

    def select_nft(self, address: str | None, token_id: int = 0) -> NFTToken | None:
        if address is None:
            self._nft = None
            return None
        self._nft = NFTInventory(self._snapshot().nft_tokens).get(address, token_id)
        if self._nft is None:
            log.warning("NFT %s #%d is not in the inventory", address, token_id)
        return self._nft

    def close(self) -> None:
        """Panel closed: drop the deposit selection and abandon in-flight loads."""
        self._generation += 1
        self._deposit = None
        self._nft = None

    async def select_deposit_token(self, index: int, account: str) -> TokenData | None:
        """Select the accepted token at ``index`` and load its data for ``account``.

        Returns the loaded data, or None when the index is out of range or the
        load was superseded.
        """
        accepted = self._snapshot().accepted_tokens
        if not 0 <= index < len(accepted):
            log.warning("Deposit token index %d out of range (%d tokens)", index, len(accepted))
            return None

        self._generation += 1
        generation = self._generation
        address = accepted[index].address
        self._deposit = DepositSelection(index, TokenData(address=address))

        data = await self.load_token_data(address, account)

        current = self._deposit
        if generation != self._generation or current is None or current.token.address != address:
            log.debug("Discarding stale token data for %s", address)
            return None
        self._deposit = replace(current, token=data)
        return data

    async def load_token_data(self, address: str, account: str) -> TokenData:
        balance = await self._resolver.load_balance(address, account)
        if is_ether(address):
            return TokenData(
                address=address,
                decimals=ETHER_DATA["decimals"],
                symbol=ETHER_DATA["symbol"],
                user_balance=balance.value_or(-1),
                loading=False,
            )
        metadata = await self._resolver.resolve(address)
        return TokenData(
            address=address,
            decimals=metadata.decimals,
            symbol=metadata.symbol,
            user_balance=balance.value_or(-1),
            loading=False,
        )

    def validate(self, amount: str) -> DepositError:
        if self._deposit is None:
            return DepositError.NONE
        return validate_deposit(amount, self._deposit.token)

    def validation_message(self, amount: str) -> str:
        return DEPOSIT_ERROR_MESSAGES.get(self.validate(amount), "")
