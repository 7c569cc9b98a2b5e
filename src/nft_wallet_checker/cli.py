"""
NFT Wallet Checker CLI entrypoint
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .checker import WalletChecker
from .clients.opensea import OpenSeaClient
from .config import config
from .models import AddressCheckResult, summarize
from .utils import parse_address_input

app = typer.Typer(help="NFT Wallet Checker - check wallets for tokens of a collection")
console = Console()


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def _status(result: AddressCheckResult) -> str:
    if result.is_error:
        return f"[red]{escape(result.error_message)}[/red]"
    if result.has_token:
        if result.degraded:
            return f"[yellow]Holder ({escape(result.error_message)})[/yellow]"
        return "[green]Holder[/green]"
    return "[dim]No tokens[/dim]"


def _results_table(results: List[AddressCheckResult]) -> Table:
    table = Table(title="Wallet check results")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Address", style="cyan")
    table.add_column("Status")
    table.add_column("Count", justify="right")
    table.add_column("Token IDs", style="yellow")
    table.add_column("Source", style="magenta")

    for index, result in enumerate(results, start=1):
        token_ids = ", ".join(result.token_ids or [])
        if len(token_ids) > 40:
            token_ids = token_ids[:40] + "..."
        table.add_row(
            str(index),
            result.address,
            _status(result),
            "" if result.token_count is None else str(result.token_count),
            token_ids,
            str(result.source),
        )
    return table


@app.command()
def check(
    addresses: Optional[List[str]] = typer.Argument(None, help="Wallet addresses (comma or space separated)"),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="File with one address per line"),
    contract: Optional[str] = typer.Option(None, "--contract", help="Collection contract address"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Output file (JSON)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """Check whether wallets hold tokens from the collection"""
    _configure_logging(verbose)

    wallet_list: List[str] = []
    for item in addresses or []:
        wallet_list.extend(parse_address_input(item))
    if file:
        wallet_list.extend(parse_address_input(file.read_text(encoding="utf-8")))

    if not wallet_list:
        console.print("[red]No wallet addresses given[/red]")
        raise typer.Exit(code=1)

    async def run_check() -> List[AddressCheckResult]:
        checker = WalletChecker()
        results: List[AddressCheckResult] = []
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            console=console,
        ) as progress:
            task = progress.add_task("Checking wallets...", total=len(wallet_list))
            async for completed, total, result in checker.iter_check_addresses(wallet_list, contract):
                results.append(result)
                progress.update(task, completed=completed, total=total)
        return results

    results = asyncio.run(run_check())

    console.print(_results_table(results))
    summary = summarize(results)
    console.print(
        f"\n[bold]{summary.holders}[/bold] holders, "
        f"[bold]{summary.non_holders}[/bold] non-holders, "
        f"[bold]{summary.errors}[/bold] errors"
    )

    if output:
        with open(output, "w") as f:
            json.dump([result.model_dump() for result in results], f, indent=2, default=str)
        console.print(f"\n[green]Saved to {output}[/green]")


@app.command()
def stats(
    slug: Optional[str] = typer.Option(None, "--slug", help="OpenSea collection slug"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """Show collection market statistics"""
    _configure_logging(verbose)
    slug = slug or config.collection_slug

    if not config.index_api_enabled:
        console.print("[red]OPENSEA_API_KEY is not configured[/red]")
        raise typer.Exit(code=1)

    async def fetch_stats():
        async with OpenSeaClient(
            api_key=config.opensea_api_key,
            base_url=config.opensea_base_url,
            marketplace_url=config.marketplace_url,
            chain=config.chain,
            timeout=config.timeout,
        ) as client:
            return await client.get_collection_stats(slug)

    collection_stats = asyncio.run(fetch_stats())

    table = Table(title=f"Collection: {collection_stats.name or slug}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")
    symbol = collection_stats.floor_price_symbol
    rows = [
        ("Total supply", collection_stats.total_supply),
        ("Owners", collection_stats.num_owners),
        ("Floor price", f"{collection_stats.floor_price} {symbol}" if collection_stats.floor_price is not None else None),
        ("Best offer", f"{collection_stats.best_offer} {symbol}" if collection_stats.best_offer is not None else None),
        ("Average price", collection_stats.average_price),
        ("Total volume", collection_stats.total_volume),
        ("Total sales", collection_stats.num_sales),
        ("Market cap", collection_stats.market_cap),
    ]
    for label, value in rows:
        table.add_row(label, "-" if value is None else str(value))
    console.print(table)

    if collection_stats.intervals:
        intervals = Table(title="Intervals")
        intervals.add_column("Interval", style="cyan")
        intervals.add_column("Volume", justify="right")
        intervals.add_column("Change", justify="right")
        intervals.add_column("Sales", justify="right")
        for item in collection_stats.intervals:
            intervals.add_row(
                item.interval,
                "-" if item.volume is None else f"{item.volume:.4f}",
                "-" if item.volume_change is None else f"{item.volume_change:+.2%}",
                "-" if item.sales is None else str(item.sales),
            )
        console.print(intervals)


@app.command()
def serve(
    port: int = typer.Option(config.web_port, "--port", "-p", help="Port to run the web server on"),
    host: str = typer.Option("0.0.0.0", "--host", "-h", help="Host to bind to"),
):
    """Start the web API server"""
    import uvicorn
    from .web.app import app as web_app

    console.print(f"[bold green]Starting web server on {host}:{port}[/bold green]")
    console.print("[dim]Endpoints:[/dim]")
    console.print("  POST /api/check")
    console.print("  GET  /api/stats")
    console.print("  WS   /ws")
    console.print("  GET  /health")

    uvicorn.run(web_app, host=host, port=port)


if __name__ == "__main__":
    app()
