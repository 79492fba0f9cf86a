"""CLI entry point for the ETF tracker."""

from __future__ import annotations

import asyncio
import json
import os
import sys
from pathlib import Path

import click

from etftracker import __version__, create_tracker_from_env, load_config_from_env
from etftracker.log import configure_logging, get_logger

logger = get_logger(__name__)


@click.group()
@click.version_option(version=__version__)
@click.pass_context
def cli(ctx: click.Context):
    """Crypto ETF Tracker - crypto exposure of exchange-traded funds."""
    config = load_config_from_env()
    configure_logging(config.log_level, config.log_format)
    ctx.obj = config


# -------------------------------------------------------------------------
# Sync / serve
# -------------------------------------------------------------------------


@cli.command()
def sync():
    """Run one full sync and write the snapshot."""

    async def _run():
        tracker = create_tracker_from_env()
        try:
            return await tracker.sync()
        finally:
            await tracker.aclose()

    snapshot = asyncio.run(_run())
    click.echo(f"Synced {snapshot.count} ETFs")


@cli.command()
@click.option("--host", default="0.0.0.0", help="Host to bind to")
@click.option("--port", default=lambda: int(os.getenv("PORT", "3001")), type=int, help="Port to bind to")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
def serve(host: str, port: int, reload: bool):
    """Start the API server."""
    import uvicorn

    click.echo(f"Starting API server on {host}:{port}")
    uvicorn.run(
        "etftracker.api:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_config=None,
    )


# -------------------------------------------------------------------------
# Inspection
# -------------------------------------------------------------------------


@cli.command()
@click.option("--snapshot", "snapshot_path", type=click.Path(dir_okay=False), help="Snapshot file")
@click.option("--limit", "-n", default=20, show_default=True, help="Rows to show")
@click.option("--summary", is_flag=True, help="Group by exposure label")
@click.pass_obj
def show(config, snapshot_path: str | None, limit: int, summary: bool):
    """Print the stored snapshot as a table."""
    from etftracker.frames import exposure_summary, snapshot_to_frame
    from etftracker.store import JsonSnapshotStore

    snap = JsonSnapshotStore(snapshot_path or config.snapshot_path).load()
    if snap.count == 0:
        click.echo("No snapshot stored. Run `etftracker sync` first.")
        return

    click.echo(f"Synced at: {snap.synced_at.isoformat() if snap.synced_at else 'never'}")
    df = exposure_summary(snap) if summary else snapshot_to_frame(snap).head(limit)
    click.echo(df.to_string(index=False))


@cli.command()
@click.argument("ticker")
@click.option("--limit", "-n", default=15, show_default=True, help="Rows to show")
def holdings(ticker: str, limit: int):
    """Fetch live holdings for TICKER and print the largest positions."""
    from etftracker.frames import holdings_to_frame
    from etftracker.reconcile import crypto_weight_from_holdings

    async def _run():
        tracker = create_tracker_from_env()
        try:
            return await tracker.source.get_holdings(ticker)
        finally:
            await tracker.aclose()

    rows = asyncio.run(_run())
    if not rows:
        click.echo(f"No holdings returned for {ticker.upper()}")
        return

    click.echo(f"Crypto weight from holdings: {crypto_weight_from_holdings(rows):.2f}%")
    click.echo(holdings_to_frame(rows).head(limit).to_string(index=False))


# -------------------------------------------------------------------------
# CUSIP backfill
# -------------------------------------------------------------------------


@cli.command("backfill-cusips")
@click.argument("symbols", nargs=-1)
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write the JSON map here")
@click.option("--delay", default=0.25, show_default=True, help="Seconds between lookups")
@click.pass_obj
def backfill_cusips_cmd(config, symbols: tuple[str, ...], output: str | None, delay: float):
    """Look up CUSIPs for SYMBOLS (default: the built-in crypto ETF list)."""
    from etftracker.cusip_backfill import BACKFILL_SYMBOLS, FmpCusipLookup, backfill_cusips

    if not config.fmp_key_set:
        click.echo("Missing FMP_API_KEY", err=True)
        sys.exit(1)

    lookup = FmpCusipLookup(config.fmp_api_key, timeout=config.request_timeout_seconds)
    results = backfill_cusips(
        lookup,
        symbols or BACKFILL_SYMBOLS,
        delay_seconds=delay,
        on_result=lambda sym, cusip: click.echo(f"{sym}: {cusip}"),
    )

    text = json.dumps(results, indent=2, ensure_ascii=False)
    if output:
        Path(output).write_text(text + "\n", encoding="utf-8")
        click.echo(f"Wrote {len(results)} CUSIPs to {output}")
    else:
        click.echo(text)


if __name__ == "__main__":
    cli()
