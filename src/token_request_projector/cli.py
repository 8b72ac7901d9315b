"""CLI entry point for the token-request projector."""

from __future__ import annotations

import asyncio
import json
import logging
import sys

import click

from token_request_projector.api.amounts import from_decimals
from token_request_projector.auction.pricing import evaluate_price
from token_request_projector.config import load_config
from token_request_projector.daemon import run_daemon
from token_request_projector.ledger.requests import RequestLedger
from token_request_projector.models.snapshots import AppSnapshot
from token_request_projector.storage.sqlite import SQLiteSnapshotStore


def _require_app(cfg):
    """Exit with error if no app address is configured."""
    if not cfg.app_address:
        click.echo("Error: No app address configured.", err=True)
        click.echo("Set TREQ_PROJECTOR_APP_ADDRESS or app_address in [chain].", err=True)
        sys.exit(1)


async def _load_cached(db_path: str) -> dict | None:
    store = SQLiteSnapshotStore(db_path)
    await store.initialize()
    try:
        return await store.load_snapshot()
    finally:
        await store.close()


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """treq-projector - Off-chain state projector for token requests."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Daemon ─────────────────────────────────────────────


@cli.command()
@click.pass_context
def run(ctx: click.Context) -> None:
    """Start the projector daemon."""
    cfg = load_config(ctx.obj["config_path"])
    _require_app(cfg)

    click.echo(f"Starting token-request projector (network: {cfg.network})")
    asyncio.run(run_daemon(cfg))


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show projector configuration."""
    cfg = load_config(ctx.obj["config_path"])
    click.echo(f"Network:    {cfg.network}")
    click.echo(f"RPC URL:    {cfg.rpc_url}")
    click.echo(f"App:        {cfg.app_address or '(not set)'}")
    click.echo(f"Agent:      {cfg.agent_address or '(discovered)'}")
    click.echo(f"Start:      block {cfg.start_block}")
    click.echo(f"Base price: {cfg.auction.base_price} ETH")
    click.echo(f"Interval:   {cfg.auction.depreciation_interval} blocks")
    click.echo(f"DB path:    {cfg.db_path}")


@cli.command()
@click.pass_context
def snapshot(ctx: click.Context) -> None:
    """Print the cached snapshot as JSON."""
    cfg = load_config(ctx.obj["config_path"])
    raw = asyncio.run(_load_cached(cfg.db_path))
    if raw is None:
        click.echo("No cached snapshot.", err=True)
        sys.exit(1)
    click.echo(json.dumps(AppSnapshot.from_dict(raw).to_dict(), indent=2))


@cli.command()
@click.option("--account", default=None, help="Only show requests made by this address")
@click.pass_context
def requests(ctx: click.Context, account: str | None) -> None:
    """List cached requests, newest first."""
    cfg = load_config(ctx.obj["config_path"])
    cached = AppSnapshot.from_dict(asyncio.run(_load_cached(cfg.db_path)))
    ledger = RequestLedger(cached.requests)
    if account:
        ledger = RequestLedger(ledger.for_requester(account))

    if not len(ledger):
        click.echo("No requests.")
        return
    for r in ledger.by_date():
        deposit = from_decimals(r.deposit_amount, r.deposit_decimals)
        wanted = from_decimals(r.request_amount, r.request_decimals)
        click.echo(
            f"#{r.request_id:<5} {r.status.value:<10} {deposit} {r.deposit_symbol}"
            f" -> {wanted} {r.request_symbol}  {r.requester_address}"
        )


@cli.command()
@click.option("--block", "current_block", type=int, required=True, help="Current block number")
@click.option("--last-sold", type=int, default=0, help="Block of the last NFT sale")
@click.option("--total-sold", type=int, default=0, help="NFTs sold so far")
@click.pass_context
def price(ctx: click.Context, current_block: int, last_sold: int, total_sold: int) -> None:
    """Evaluate the NFT auction price at a block."""
    cfg = load_config(ctx.obj["config_path"])
    value, blocks = evaluate_price(
        cfg.auction.base_price,
        current_block,
        last_sold,
        total_sold,
        cfg.auction.depreciation_interval,
    )
    click.echo(f"Price:      {value} ETH")
    click.echo(f"Next drop:  {blocks} blocks")
