"""
CLI commands for syncing and inspecting NFL touchdown data.

Typical workflow:
1. nfl-touchdowns init-db                     create the tables (reset-db drops them first)
2. nfl-touchdowns sync -s 2024 -w 1           sync one week
3. nfl-touchdowns sync -s 2024 --weeks 1-18   sync a range of weeks
4. nfl-touchdowns probabilities -s 2024       print the likeliest scorers
5. nfl-touchdowns serve                       run the REST API

sync needs SPORTRADAR_API_KEY in the environment or the .env file.
"""

import asyncio
import logging
import sys

import typer
from rich.console import Console
from rich.table import Table

from ..config.settings import settings
from ..data.collection.sportradar_client import SportradarClient
from ..data.collection.touchdown_collector import TouchdownCollector
from ..data.processing.probability import estimate_touchdown_probabilities
from ..data.processing.records import SeasonType, current_nfl_season
from ..database.connection import get_session_context
from ..database.init_db import create_database, reset_database
from ..database.queries import get_player_week_rows, get_team_games
from ..exceptions import MissingApiKeyError

app = typer.Typer(help="NFL touchdown sync and probability commands")
console = Console()

logger = logging.getLogger(__name__)


def setup_logging():
    """Log to the configured file and to stdout."""
    settings.log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler(settings.log_file),
            logging.StreamHandler(sys.stdout),
        ],
    )


def parse_weeks(week: list[int], weeks: str | None, season_type: SeasonType) -> list[int]:
    """Resolve the --week / --weeks options to a sorted list of week numbers.

    --weeks accepts "3" or an inclusive range "1-5". With neither option
    every week of the season type is selected.
    """
    selected = set(week)
    if weeks:
        start, _, end = weeks.partition("-")
        try:
            first = int(start)
            last = int(end) if end else first
        except ValueError as e:
            raise typer.BadParameter(f"Invalid week range: {weeks!r}") from e
        if first > last:
            raise typer.BadParameter(f"Invalid week range: {weeks!r}")
        selected.update(range(first, last + 1))

    if not selected:
        selected = set(range(1, season_type.max_week + 1))

    invalid = sorted(w for w in selected if not season_type.is_valid_week(w))
    if invalid:
        raise typer.BadParameter(
            f"{season_type.value} weeks run from 1 to {season_type.max_week}, got {invalid}"
        )
    return sorted(selected)


# ========== DATABASE MANAGEMENT COMMANDS ==========


@app.command()
def init_db():
    """Create the touchdown tables."""
    typer.echo("Initializing database...")
    try:
        create_database()
        typer.echo("✅ Database initialized successfully!")
    except Exception as e:
        typer.echo(f"❌ Database initialization failed: {e}")
        raise typer.Exit(1) from e


@app.command()
def reset_db(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
):
    """Drop and recreate the touchdown tables. Every synced week is lost."""
    if not yes:
        typer.confirm("This deletes all stored touchdown data. Continue?", abort=True)
    try:
        reset_database()
        typer.echo("✅ Database reset")
    except Exception as e:
        typer.echo(f"❌ Database reset failed: {e}")
        raise typer.Exit(1) from e


# ========== SYNC COMMANDS ==========


async def _run_sync(season: int, season_type: SeasonType, weeks: list[int]):
    async with SportradarClient() as client:
        collector = TouchdownCollector(client)
        return await collector.sync_weeks(season, season_type, weeks)


@app.command()
def sync(
    season: int | None = typer.Option(None, "--season", "-s", help="Season year (default: current)"),
    season_type: SeasonType = typer.Option(SeasonType.REG, "--type", "-t", help="PRE, REG or POST"),
    week: list[int] = typer.Option([], "--week", "-w", help="Week to sync (repeatable)"),
    weeks: str | None = typer.Option(None, "--weeks", help='Week range, e.g. "1-5"'),
):
    """
    Fetch weeks from SportsRadar and store their touchdowns.

    Examples:
        nfl-touchdowns sync -s 2024 -w 1
        nfl-touchdowns sync -s 2024 -t POST --weeks 1-5
    """
    season = season or current_nfl_season()
    selected = parse_weeks(week, weeks, season_type)
    setup_logging()

    typer.echo(f"Syncing {season} {season_type.value} weeks {selected}...")
    try:
        create_database()
        results = asyncio.run(_run_sync(season, season_type, selected))
    except MissingApiKeyError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(1) from e
    except Exception as e:
        typer.echo(f"❌ Sync failed: {e}")
        raise typer.Exit(1) from e

    failed = [w for w, result in results.items() if result is None]
    for w, result in results.items():
        if result is None:
            typer.echo(f"  Week {w}: failed")
        elif not result.has_data:
            typer.echo(f"  Week {w}: no data")
        else:
            typer.echo(
                f"  Week {w}: {result.total_touchdowns} touchdowns, {len(result.teams)} teams, "
                f"{len(result.first_touchdown_scorers)} first scorers"
                + (f", {result.games_failed} games failed" if result.games_failed else "")
            )

    if failed:
        typer.echo(f"❌ {len(failed)} of {len(results)} weeks failed")
        raise typer.Exit(1)
    typer.echo("✅ Sync complete!")


# ========== REPORTING COMMANDS ==========


@app.command()
def probabilities(
    season: int | None = typer.Option(None, "--season", "-s", help="Season year (default: current)"),
    season_type: SeasonType = typer.Option(SeasonType.REG, "--type", "-t", help="PRE, REG or POST"),
    limit: int = typer.Option(25, "--limit", "-n", min=1, help="Number of players to show"),
    team: str | None = typer.Option(None, "--team", help="Only this team (e.g. KC)"),
):
    """Print the players most likely to score a touchdown in a given week."""
    season = season or current_nfl_season()
    with get_session_context() as session:
        estimates = estimate_touchdown_probabilities(
            get_player_week_rows(session, season, season_type),
            get_team_games(session, season, season_type),
        )

    if team:
        estimates = [p for p in estimates if p.team == team.upper()]
    if not estimates:
        typer.echo(f"No stored touchdowns for {season} {season_type.value}. Run sync first.")
        return

    table = Table(title=f"🏈 Touchdown probabilities, {season} {season_type.value}")
    table.add_column("Player", style="cyan")
    table.add_column("Pos", style="magenta")
    table.add_column("Team")
    table.add_column("TDs", justify="right")
    table.add_column("Weeks", justify="center")
    table.add_column("Prob %", justify="right", style="bright_green")

    for p in estimates[:limit]:
        table.add_row(
            p.player_name,
            p.position or "-",
            p.team,
            str(p.total_touchdowns),
            f"{p.weeks_with_touchdown}/{p.games_played}",
            f"{p.touchdown_probability:.2f}",
        )

    console.print(table)


@app.command()
def serve(
    host: str = typer.Option(settings.api_host, help="Bind address"),
    port: int = typer.Option(settings.api_port, help="Port"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
):
    """Run the REST API with uvicorn."""
    import uvicorn

    setup_logging()
    uvicorn.run("nfl_touchdowns.api.main:app", host=host, port=port, reload=reload)
