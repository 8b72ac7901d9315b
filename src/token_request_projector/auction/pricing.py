"""NFT auction pricing - stepwise depreciation since the last sale.

Each sale raises the price ceiling by one base unit. Every full
``interval`` blocks without a sale steps the price down one base unit,
never below ``base``. The clock restarts at ``last_sold_block``.
"""

from __future__ import annotations

from decimal import Decimal

from token_request_projector.models.snapshots import PriceQuote

BASE_NFT_VALUE = Decimal(1)
DEPRECIATE_BLOCK_INTERVAL = 10_000


def _clamp(value: Decimal) -> Decimal:
    return value if value > 0 else Decimal(0)


def evaluate_price(
    base: Decimal | int | str,
    current_block: int,
    last_sold_block: int,
    total_sold: int,
    interval: int = DEPRECIATE_BLOCK_INTERVAL,
) -> tuple[Decimal, int]:
    """Return ``(current_price, blocks_until_next_depreciation)``."""
    base = Decimal(str(base))
    peak = base * (1 + max(total_sold, 0))

    if last_sold_block <= 0:
        return _clamp(base), interval
    if interval <= 0:
        return _clamp(peak), 0

    elapsed = max(current_block - last_sold_block, 0)
    steps = elapsed // interval
    blocks_left = interval - elapsed % interval

    price = max(peak - base * steps, base)
    return _clamp(price), blocks_left


def quote(
    base: Decimal | int | str,
    current_block: int,
    last_sold_block: int,
    total_sold: int,
    interval: int = DEPRECIATE_BLOCK_INTERVAL,
) -> PriceQuote:
    price, blocks_left = evaluate_price(base, current_block, last_sold_block, total_sold, interval)
    return PriceQuote(price=price, blocks_until_depreciation=blocks_left, block=current_block)
