#!/usr/bin/env python3
"""Portfolio exposure viewer.

This script prints the analysis of a template or an exported portfolio:
- Holdings with lock/disable state
- Exposure breakdown by asset class, region, factor style or size
- Leverage summary and U.S. vs ex-U.S. equity split
- Construction warnings

Examples:
    # List templates
    python scripts/view_portfolio.py templates

    # Analyze a template
    python scripts/view_portfolio.py show "HFEA"

    # Analyze an exported portfolio by region
    python scripts/view_portfolio.py show --file my_portfolio.json -d market_region

    # List the ETF catalog
    python scripts/view_portfolio.py etfs
"""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from stackfolio.analysis.exposure import DIMENSIONS
from stackfolio.analysis.warnings import WarningLevel
from stackfolio.api.portfolio_api import PortfolioAPI
from stackfolio.portfolio.base import Portfolio
from stackfolio.utils.exceptions import StackfolioError
from stackfolio.utils.logging import setup_logging_from_config
from stackfolio.utils.config import load_config


console = Console()

LEVEL_STYLES = {
    WarningLevel.ERROR: "bold red",
    WarningLevel.WARNING: "yellow",
    WarningLevel.INFO: "cyan",
}


def create_holdings_table(api: PortfolioAPI, portfolio: Portfolio) -> Table:
    """Create holdings table."""
    table = Table(title=f"📋 {portfolio.name}", show_header=True, header_style="bold magenta")
    table.add_column("Ticker", style="cyan", no_wrap=True)
    table.add_column("Allocation", justify="right")
    table.add_column("Leverage", justify="right")
    table.add_column("Type")
    table.add_column("State")

    details = {d.ticker: d for d in api.template_details(portfolio).etf_details}

    for ticker, holding in portfolio.holdings.items():
        state = []
        if holding.locked:
            state.append("locked")
        if holding.disabled:
            state.append("disabled")

        detail = details.get(ticker)
        leverage = f"{detail.leverage_amount:.1f}x" if detail else "-"
        leverage_type = detail.leverage_type.value if detail else "-"

        table.add_row(
            ticker,
            f"{holding.display_percentage:.1f}%",
            leverage,
            leverage_type,
            ", ".join(state),
            style="dim" if holding.disabled else None,
        )

    total = api.total_allocation(portfolio)
    total_style = "green" if api.is_valid(portfolio) else "red"
    table.add_row("", "", "", "", "", end_section=True)
    table.add_row("Total", f"[{total_style}]{total:.2f}%[/{total_style}]", "", "", "")
    return table


def create_exposure_table(api: PortfolioAPI, portfolio: Portfolio, dimension: str) -> Table:
    """Create exposure breakdown table."""
    title = dimension.replace("_", " ").title()
    table = Table(title=f"📊 Exposure by {title}", show_header=True, header_style="bold magenta")
    table.add_column(title, style="cyan", no_wrap=True)
    table.add_column("Absolute", justify="right")
    table.add_column("Relative", justify="right")

    df = api.exposure_table(portfolio, dimension)
    if df.empty:
        table.add_row("No exposure", "", "")
        return table

    for name, row in df.iterrows():
        table.add_row(
            str(name),
            f"{row['absolute_percent']:.1f}%",
            f"{row['relative_percent']:.1f}%",
        )
    return table


def create_summary_table(api: PortfolioAPI, portfolio: Portfolio) -> Table:
    """Create leverage summary table."""
    table = Table(title="⚖️  Summary", show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")

    details = api.template_details(portfolio)
    table.add_row("Total Leverage", f"{details.total_leverage:.2f}x")
    table.add_row("Levered", "yes" if details.is_levered else "no")
    table.add_row(
        "Dominant Asset Classes",
        ", ".join(a.value for a in details.dominant_asset_classes) or "-",
    )
    for leverage_type, amount in details.leverage_types_with_amounts.items():
        table.add_row(f"{leverage_type.value} Leverage", f"{amount:.1f}x")

    breakdown = details.equity_breakdown
    if breakdown is not None:
        table.add_row("", "")  # Separator
        table.add_row("U.S. Equity", f"{breakdown.us:.1f}%")
        table.add_row("Ex-U.S. Equity", f"{breakdown.ex_us:.1f}%")
    return table


def print_warnings(api: PortfolioAPI, portfolio: Portfolio) -> None:
    warnings = api.evaluate_warnings(portfolio)
    if not warnings:
        console.print("[green]✓ No warnings[/green]")
        return

    for warning in warnings:
        style = LEVEL_STYLES[warning.level]
        console.print(f"[{style}]{warning.level.value.upper()}[/{style}] {warning.message}")
        if warning.description:
            console.print(f"    {warning.description}", style="dim")


@click.group()
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config YAML file")
@click.pass_context
def cli(ctx, config_path: Optional[str]):
    """stackfolio Portfolio Viewer"""
    config = load_config(config_path)
    setup_logging_from_config(config)
    ctx.obj = PortfolioAPI.from_config(config)


@cli.command()
@click.pass_obj
def templates(api: PortfolioAPI):
    """List example and default saved portfolios."""
    table = Table(title="📁 Templates", show_header=True, header_style="bold magenta")
    table.add_column("Name", style="cyan")
    table.add_column("ETFs", justify="right")
    table.add_column("Leverage", justify="right")
    table.add_column("Holdings")

    for portfolio in api.example_portfolios() + api.default_saved_portfolios():
        details = api.template_details(portfolio)
        table.add_row(
            portfolio.name,
            str(details.etf_count),
            f"{details.total_leverage:.2f}x",
            ", ".join(portfolio.holdings),
        )
    console.print(table)


@cli.command()
@click.pass_obj
def etfs(api: PortfolioAPI):
    """List the ETF catalog."""
    table = Table(title="📚 ETF Catalog", show_header=True, header_style="bold magenta")
    table.add_column("Ticker", style="cyan", no_wrap=True)
    table.add_column("Type")
    table.add_column("Leverage", justify="right")
    table.add_column("Asset Classes")

    for etf in api.available_etfs():
        table.add_row(
            etf.ticker,
            etf.leverage_type.value,
            f"{etf.total_leverage:.2f}x",
            ", ".join(a.value for a in etf.asset_classes),
        )
    console.print(table)


@cli.command()
@click.argument("name", required=False)
@click.option("--file", "file_path", type=click.Path(exists=True), help="Exported portfolio JSON")
@click.option(
    "--dimension", "-d",
    type=click.Choice(DIMENSIONS),
    default="asset_class",
    help="Exposure dimension",
)
@click.pass_obj
def show(api: PortfolioAPI, name: Optional[str], file_path: Optional[str], dimension: str):
    """Analyze a template (NAME) or an exported portfolio (--file)."""
    try:
        if file_path:
            portfolio = api.import_json(Path(file_path).read_text(encoding="utf-8"))
        elif name:
            portfolio = api.create_from_template(name)
        else:
            raise click.UsageError("Give a template NAME or --file")
    except StackfolioError as e:
        console.print(f"[red]✗ {e}[/red]")
        sys.exit(1)

    console.print(create_holdings_table(api, portfolio))
    console.print(create_exposure_table(api, portfolio, dimension))
    console.print(create_summary_table(api, portfolio))
    console.print()
    print_warnings(api, portfolio)


if __name__ == "__main__":
    cli()
