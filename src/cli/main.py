#!/usr/bin/env python3
"""
Odds Relay CLI - terminal interface for the odds pipeline.

Runs the same fetch -> normalize -> project pipeline as the Lambda handler and
shows the result as a rich table or as the JSON the endpoint would return.
"""

import asyncio
import atexit
import json
import os
from pathlib import Path
from typing import Annotated, Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from src.odds.config import ConfigurationError, OddsRelayConfig, load_config
from src.odds.models import FormattedMatch
from src.odds.odds_service import OddsService
from src.odds.time_helpers import InvalidTimeFormat, subtract_90_minutes

# Respect NO_COLOR env var for cleaner container logs
use_rich = os.getenv("NO_COLOR") is None
console = Console(no_color=not use_rich)
app = typer.Typer(
    name="odds-relay",
    help="Odds Relay - fetch, normalize and display upstream match odds",
    rich_markup_mode="rich",
)


def _shutdown_metrics() -> None:
    """Flush pending metrics before exit."""
    from src.utils.metrics import get_metrics

    get_metrics().shutdown(timeout_seconds=5)


atexit.register(_shutdown_metrics)


def setup_environment(verbose: bool = False) -> None:
    """Load .env and set the log level for CLI usage."""
    load_dotenv()

    log_level = "DEBUG" if verbose else "ERROR"  # Only show errors unless verbose
    os.environ["LOG_LEVEL"] = log_level

    from src.utils.logger import relay_logger

    relay_logger.get_logger().setLevel(log_level)


def handle_cli_error(e: Exception, verbose: bool = False) -> None:
    """Handle CLI errors with user-friendly messages."""
    if isinstance(e, ConfigurationError):
        console.print(
            Panel(
                f"[red]{e}[/red]\n\n"
                "Set ODDS_PARENT_URL and PROXY_URL in the environment or a .env file.",
                title="Configuration Error",
                border_style="red",
            )
        )
    else:
        console.print(f"[red]Error: {e}[/red]")

    if verbose:
        console.print("\n[dim]Full stack trace:[/dim]")
        console.print_exception()
    else:
        console.print("[dim]Use --verbose/-v to see full error details[/dim]")


def display_config(config: OddsRelayConfig) -> None:
    """Display configuration summary."""
    config_table = Table(show_header=False, box=None, padding=(0, 1))
    config_table.add_column("Setting", style="cyan")
    config_table.add_column("Value", style="white")

    config_table.add_row("Odds API", config.odds_parent_url)
    config_table.add_row("Relay", config.proxy_url)
    config_table.add_row("League ID", str(config.league_id))
    config_table.add_row("Timeout", f"{config.request_timeout}s")
    config_table.add_row("Log Level", config.log_level)

    console.print(Panel(config_table, title="Configuration", border_style="cyan"))


def display_matches_table(matches: list[FormattedMatch]) -> None:
    """Display formatted matches in a table."""
    if not matches:
        console.print(
            Panel(
                "[yellow]No matches returned by the upstream source.[/yellow]",
                title="No Results",
                border_style="yellow",
            )
        )
        return

    table = Table(show_header=True, header_style="bold magenta", box=None)
    table.add_column("League", style="blue", min_width=16)
    table.add_column("Time", style="cyan", width=8)
    table.add_column("Home Team", min_width=18)
    table.add_column("Away Team", min_width=18)
    table.add_column("Odds", style="yellow", justify="center")
    table.add_column("Goal Points", style="yellow", justify="center")

    for match in matches:
        home = match.home_team
        away = match.away_team
        if match.is_home_team_highlighted:
            home = f"[bold green]{home}[/bold green]"
        if match.is_away_team_highlighted:
            away = f"[bold green]{away}[/bold green]"
        table.add_row(
            match.league,
            match.time,
            home,
            away,
            match.odds or "-",
            match.final_goal_points or "-",
        )

    console.print(table)
    console.print(f"[dim]{len(matches)} match(es)[/dim]")


def save_matches_to_file(matches: list[FormattedMatch], file_path: Path) -> None:
    """Save matches as the JSON array the endpoint returns."""
    file_path.write_text(
        json.dumps(
            [match.to_json_dict() for match in matches], indent=2, ensure_ascii=False
        )
    )


def _resolve_config(league_id: Optional[int]) -> OddsRelayConfig:
    config = load_config()
    if league_id is not None:
        config = config.model_copy(update={"league_id": league_id})
    return config


@app.command()
def fetch(
    league_id: Annotated[
        Optional[int],
        typer.Option("--league-id", "-l", help="League ID (default: LEAGUE_ID or 1)"),
    ] = None,
    as_json: Annotated[
        bool, typer.Option("--json", help="Print the JSON array instead of a table")
    ] = False,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Also save the JSON array to this file"),
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Enable debug logging")
    ] = False,
) -> None:
    """
    Fetch, normalize and display the odds for a league.
    """
    setup_environment(verbose)

    try:
        config = _resolve_config(league_id)
        service = OddsService.from_config(config)
        matches = asyncio.run(service.get_formatted_matches(config.league_id))
    except Exception as e:
        handle_cli_error(e, verbose)
        raise typer.Exit(1) from e

    if as_json:
        console.print_json(
            json.dumps([match.to_json_dict() for match in matches], ensure_ascii=False)
        )
    else:
        display_matches_table(matches)

    if output:
        save_matches_to_file(matches, output)
        console.print(f"[green]Saved {len(matches)} match(es) to {output}[/green]")


@app.command()
def leagues(
    league_id: Annotated[
        Optional[int],
        typer.Option("--league-id", "-l", help="League ID (default: LEAGUE_ID or 1)"),
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Enable debug logging")
    ] = False,
) -> None:
    """
    List the distinct league names present in one fetch.
    """
    setup_environment(verbose)

    try:
        config = _resolve_config(league_id)
        names = asyncio.run(
            OddsService.from_config(config).get_leagues(config.league_id)
        )
    except Exception as e:
        handle_cli_error(e, verbose)
        raise typer.Exit(1) from e

    if not names:
        console.print("[yellow]No leagues found.[/yellow]")
        return

    for name in names:
        console.print(f"  {name}")


@app.command("adjust-time")
def adjust_time(
    time_str: Annotated[str, typer.Argument(help="12-hour time, e.g. 2:00PM")],
) -> None:
    """
    Show a kick-off time shifted back by 90 minutes.
    """
    try:
        console.print(subtract_90_minutes(time_str))
    except InvalidTimeFormat as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from e


@app.command("config")
def show_config() -> None:
    """
    Show the resolved configuration.
    """
    setup_environment()

    try:
        display_config(load_config())
    except ConfigurationError as e:
        handle_cli_error(e)
        raise typer.Exit(1) from e


if __name__ == "__main__":
    app()
