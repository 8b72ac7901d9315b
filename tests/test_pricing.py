"""Auction pricing: stepwise depreciation since the last sale."""

from __future__ import annotations

from decimal import Decimal

import pytest

from token_request_projector.auction.pricing import (
    BASE_NFT_VALUE,
    DEPRECIATE_BLOCK_INTERVAL,
    evaluate_price,
    quote,
)


# ── Reference values ──────────────────────────────────────────────


def test_no_sale_yet_returns_base_and_full_interval():
    assert evaluate_price(1, 0, 0, 0, 10_000) == (Decimal(1), 10_000)


def test_blocks_until_next_depreciation():
    price, blocks = evaluate_price(1, 15_000, 10_000, 3, 10_000)
    assert blocks == 5_000
    # Three sales raise the ceiling to 4; no full interval has passed yet
    assert price == Decimal(4)


def test_defaults_match_app_constants():
    assert BASE_NFT_VALUE == Decimal(1)
    assert DEPRECIATE_BLOCK_INTERVAL == 10_000


# ── Depreciation steps ────────────────────────────────────────────


@pytest.mark.parametrize(
    "current, expected_price, expected_blocks",
    [
        (10_000, Decimal(4), 10_000),  # sold this block
        (19_999, Decimal(4), 1),
        (20_000, Decimal(3), 10_000),  # first full interval
        (30_000, Decimal(2), 10_000),
        (40_000, Decimal(1), 10_000),  # back at base
        (90_000, Decimal(1), 10_000),  # never below base
    ],
)
def test_price_steps_down_one_base_per_interval(current, expected_price, expected_blocks):
    assert evaluate_price(1, current, 10_000, 3, 10_000) == (expected_price, expected_blocks)


def test_fractional_base_price():
    price, _ = evaluate_price("0.25", 25_000, 10_000, 2, 10_000)
    # peak 0.75, one step down
    assert price == Decimal("0.50")


def test_block_before_last_sale_counts_as_no_elapsed_time():
    assert evaluate_price(1, 9_000, 10_000, 1, 10_000) == (Decimal(2), 10_000)


# ── Degenerate inputs ─────────────────────────────────────────────


def test_non_positive_interval_never_divides():
    assert evaluate_price(1, 50_000, 10_000, 2, 0) == (Decimal(3), 0)
    assert evaluate_price(1, 50_000, 10_000, 2, -5) == (Decimal(3), 0)


def test_negative_base_clamps_to_zero():
    price, _ = evaluate_price(-1, 15_000, 10_000, 0, 10_000)
    assert price == Decimal(0)


def test_quote_wraps_result_and_freezes():
    q = quote(1, 15_000, 10_000, 3, 10_000)
    assert q.price == Decimal(4)
    assert q.blocks_until_depreciation == 5_000
    assert q.block == 15_000

    frozen = q.frozen()
    assert frozen.price == q.price
    assert frozen.blocks_until_depreciation is None
