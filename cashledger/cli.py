"""
Command-Line Interface for CashLedger.

Purpose
-------
Runs the three engines on JSON input files without writing Python code:
FIFO lot matching, rental cash-flow schedules, and XIRR.

Commands
--------
- fifo: Match one instrument's trades and report realized/open positions
- schedule: Generate the monthly schedule of every contract in a file
- xirr: Solve the annualized return of a dated cashflow stream
- config: Display the effective application settings

Example Usage
-------------
    # Realized gains plus valuation at a market price
    $ cashledger fifo --file trades.json --market-price 120

    # Rent schedules, written to JSON
    $ cashledger schedule --file contracts.json --output schedules.json

    # Money-weighted return
    $ cashledger xirr --file flows.json

    # Show version
    $ cashledger --version
"""

from __future__ import annotations

import sys
from datetime import date
from pathlib import Path
from typing import Optional

import click

from .config import AppSettings, configure_logging
from .exceptions import CashLedgerError


# Lazy imports for performance
def _import_rich():
    """Lazy import Rich for better startup time."""
    from rich.console import Console
    from rich.table import Table
    return Console(), Table


def _get_console():
    console, *_ = _import_rich()
    return console


def _fmt(value: Optional[float], spec: str = ",.2f") -> str:
    """Format a number, rendering missing values as N/A."""
    return "N/A" if value is None else format(value, spec)


def _fmt_pct(value: Optional[float]) -> str:
    return "N/A" if value is None else f"{value * 100:.2f}%"


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


# Version
__version__ = "0.1.0"


@click.group()
@click.version_option(version=__version__, prog_name="cashledger")
@click.option("--quiet", "-q", is_flag=True, help="Suppress tables; print plain results only")
@click.pass_context
def main(ctx: click.Context, quiet: bool) -> None:
    """
    CashLedger - Position & Cash-Flow Accounting Engine.

    FIFO realized gains, inflation-indexed rent schedules and
    money-weighted returns for a personal portfolio ledger.

    Use 'cashledger COMMAND --help' for command-specific help.
    """
    settings = AppSettings()
    configure_logging(settings)
    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    ctx.obj["settings"] = settings
    ctx.obj["console"] = None if quiet else _get_console()


@main.command()
@click.option(
    "--file", "-f", "file",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Transactions file (JSON)"
)
@click.option(
    "--market-price", "-p",
    type=float,
    default=None,
    help="Current price; adds unrealized P&L and XIRR"
)
@click.option(
    "--as-of",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Valuation date for XIRR (default: today)"
)
@click.option(
    "--strict",
    is_flag=True,
    help="Fail when a SELL exceeds the inventory instead of partially filling it"
)
@click.option(
    "--output", "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Output file for the FIFO result (JSON)"
)
@click.pass_context
def fifo(
    ctx: click.Context,
    file: Path,
    market_price: Optional[float],
    as_of,
    strict: bool,
    output: Optional[Path],
) -> None:
    """
    Match SELLs against the oldest BUY lots.

    Example:
        cashledger fifo -f trades.json --market-price 120 --as-of 2024-06-30
    """
    console = ctx.obj.get("console")
    settings: AppSettings = ctx.obj["settings"]

    # Import here to avoid slow startup
    from .fifo import match_lots
    from .positions import summarize_position
    from .serialization import fifo_result_to_dict, load_transactions, save_json
    from .xirr import CashflowStream

    policy = "raise" if strict else settings.oversell_policy
    try:
        instrument, transactions = load_transactions(file)
        result = match_lots(transactions, oversell=policy)
        summary = None
        rate = None
        if market_price is not None:
            summary = summarize_position(result, market_price, instrument=instrument)
            valuation_date = as_of.date() if as_of is not None else date.today()
            stream = CashflowStream.from_transactions(
                transactions, market_value=summary.market_value, valuation_date=valuation_date
            )
            rate = stream.xirr()
    except CashLedgerError as e:
        _fail(str(e))
        return

    title = f"FIFO - {instrument}" if instrument else "FIFO"
    if console:
        from rich.table import Table

        realized = Table(title=f"{title}: realized", show_header=True)
        for col in ("Sale date", "Qty", "Price", "Avg cost", "Gain", "Gain %"):
            realized.add_column(col, justify="right" if col != "Sale date" else "left")
        for g in result.realized_gains:
            realized.add_row(
                g.sale_date.isoformat(), _fmt(g.quantity_sold, "g"), _fmt(g.sell_unit_price),
                _fmt(g.weighted_avg_cost_basis_price), _fmt(g.gain_absolute), f"{g.gain_percent:.2f}%",
            )
        console.print(realized)

        lots = Table(title=f"{title}: open lots", show_header=True)
        for col in ("Origin", "Qty", "Price", "Commission"):
            lots.add_column(col, justify="right" if col != "Origin" else "left")
        for p in result.open_positions:
            lots.add_row(
                p.origin_date.isoformat(), _fmt(p.quantity, "g"), _fmt(p.unit_price),
                _fmt(p.prorated_commission),
            )
        console.print(lots)

        for w in result.oversells:
            console.print(
                f"[yellow]Oversell on {w.sale_date}: requested {w.quantity_requested:g}, "
                f"unfilled {w.quantity_unfilled:g}[/yellow]"
            )
        console.print(f"[bold]Total realized gain:[/bold] {_fmt(result.total_realized_gain)}")
        if summary is not None:
            console.print(f"[bold]Unrealized gain:[/bold] {_fmt(summary.unrealized_gain)}")
            console.print(f"[bold]XIRR:[/bold] {_fmt_pct(rate)}")
    else:
        click.echo(f"Realized events: {len(result.realized_gains)}")
        click.echo(f"Open quantity: {result.open_quantity:g}")
        click.echo(f"Total realized gain: {_fmt(result.total_realized_gain)}")
        if result.oversells:
            click.echo(f"Oversells: {len(result.oversells)}")
        if summary is not None:
            click.echo(f"Unrealized gain: {_fmt(summary.unrealized_gain)}")
            click.echo(f"XIRR: {_fmt_pct(rate)}")

    if output:
        save_json(fifo_result_to_dict(result, instrument=instrument), output)
        if console:
            console.print(f"FIFO result saved to {output}")


@main.command()
@click.option(
    "--file", "-f", "file",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Contracts and indicators file (JSON)"
)
@click.option(
    "--contract-id", "-c",
    type=str,
    default=None,
    help="Only generate this contract"
)
@click.option(
    "--output", "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Output file for the schedules (JSON)"
)
@click.pass_context
def schedule(
    ctx: click.Context,
    file: Path,
    contract_id: Optional[str],
    output: Optional[Path],
) -> None:
    """
    Generate monthly rent schedules.

    Example:
        cashledger schedule -f contracts.json -o schedules.json
    """
    console = ctx.obj.get("console")
    settings: AppSettings = ctx.obj["settings"]

    from .cashflows import generate_schedule
    from .schedule_store import InMemoryScheduleStore, regenerate_all
    from .serialization import load_contracts, save_json, schedule_to_records

    try:
        contracts, indicators = load_contracts(file)
        if contract_id is not None:
            contracts = [c for c in contracts if c.contract_id == contract_id]
            if not contracts:
                raise CashLedgerError(f"No contract with id {contract_id!r} in {file}.")
        store = InMemoryScheduleStore()
        regenerate_all(
            [c for c in contracts if c.contract_id],
            indicators,
            store,
            max_workers=settings.regeneration_workers,
            local_currency=settings.local_currency,
        )
        schedules = [
            (c, store.get_schedule(c.contract_id) if c.contract_id
             else generate_schedule(c, indicators, local_currency=settings.local_currency))
            for c in contracts
        ]
    except CashLedgerError as e:
        _fail(str(e))
        return

    for i, (contract, entries) in enumerate(schedules):
        label = contract.contract_id or f"contract #{i}"
        if console:
            from rich.table import Table

            table = Table(title=f"{label} ({contract.currency}, {contract.adjustment_mode.value})")
            for col in ("Date", "#", "Local", "Foreign", "Index", "Infl. acc.", "Deval. acc."):
                table.add_column(col, justify="right" if col != "Date" else "left")
            for e in entries:
                table.add_row(
                    e.date.isoformat(), str(e.month_index), _fmt(e.amount_local),
                    _fmt(e.amount_foreign), _fmt_pct(e.monthly_index_rate),
                    _fmt_pct(e.accumulated_inflation_since_start),
                    _fmt_pct(e.accumulated_devaluation_since_start),
                )
            console.print(table)
        else:
            last = entries[-1]
            click.echo(f"{label}: {len(entries)} entries, last amount {_fmt(last.amount_local)}")

    if output:
        payload = {
            "schedules": [
                {"contract_id": c.contract_id, "entries": schedule_to_records(entries)}
                for c, entries in schedules
            ]
        }
        save_json(payload, output)
        if console:
            console.print(f"Schedules saved to {output}")


@main.command()
@click.option(
    "--file", "-f", "file",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Cashflow stream file (JSON)"
)
@click.pass_context
def xirr(ctx: click.Context, file: Path) -> None:
    """
    Annualized money-weighted return of dated flows.

    Prints N/A when no rate solves the stream.

    Example:
        cashledger xirr -f flows.json
    """
    from .serialization import load_cashflow_stream

    try:
        stream = load_cashflow_stream(file)
        rate = stream.xirr()
    except CashLedgerError as e:
        _fail(str(e))
        return

    click.echo(f"XIRR: {_fmt_pct(rate)}")


@main.group()
def config() -> None:
    """
    Configuration commands.

    Settings come from CASHLEDGER_* environment variables or a .env file.
    """
    pass


@config.command("show")
@click.option("--format", "-f", "fmt", type=click.Choice(["json", "table"]), default="table")
@click.pass_context
def config_show(ctx: click.Context, fmt: str) -> None:
    """
    Display the effective application settings.

    Example:
        cashledger config show --format json
    """
    console = ctx.obj.get("console")
    settings: AppSettings = ctx.obj["settings"]

    if fmt == "json" or not console:
        click.echo(settings.model_dump_json(indent=2))
        return

    from rich.table import Table

    table = Table(title="Settings", show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    for key, value in settings.model_dump().items():
        table.add_row(key, "default" if value is None else str(value))
    console.print(table)


if __name__ == "__main__":
    main()
