#!/usr/bin/env python3
"""
CLI for inspecting Crease matches and tournaments
"""
import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from crease.config import settings
from crease.database import init_db
from crease.engine import ScoringEngine, TournamentEngine, innings_manager
from crease.engine.scoring_engine import list_matches
from crease.errors import CreaseError
from crease.models.match import InningsData, MatchRecord
from crease.store import get_store

console = Console()


@click.group()
def cli():
    """Crease - Cricket live scoring"""
    pass


@cli.command()
def init():
    """Initialize the database"""
    console.print("[yellow]Initializing database...[/yellow]")
    init_db()
    console.print(f"[green]Database ready at {settings.DATABASE_PATH}[/green]")


@cli.command()
def matches():
    """List all matches"""
    records = list_matches(get_store())

    if not records:
        console.print("[red]No matches found.[/red]")
        return

    table = Table(title=f"Matches ({len(records)} total)")
    table.add_column("ID")
    table.add_column("Match", style="cyan")
    table.add_column("Status", style="magenta")
    table.add_column("Score", justify="right")
    table.add_column("Summary")
    table.add_column("Locked by")

    for match in records:
        table.add_row(
            match.match_id,
            f"{match.meta.team_a} vs {match.meta.team_b}",
            match.meta.status.value,
            f"{match.state.total_runs}/{match.state.total_wickets} ({match.state.overs_display})",
            innings_manager.match_summary(match),
            match.lock.holder_name or "-",
        )

    console.print(table)


@cli.command()
@click.argument("match_id")
def scorecard(match_id: str):
    """Show the full scorecard of a match"""
    try:
        match = ScoringEngine(get_store(), match_id).load()
    except CreaseError as e:
        raise click.ClickException(str(e))

    console.print(Panel(
        f"[bold]{match.meta.team_a} vs {match.meta.team_b}[/bold]\n{innings_manager.match_summary(match)}"
    ))

    for number, innings in _scorecard_innings(match):
        console.print(f"\n[bold]Innings {number}: {innings.batting_team} {innings.score_display}[/bold]")
        _print_scorecard(innings)


def _scorecard_innings(match: MatchRecord) -> list[tuple[int, InningsData]]:
    """Snapshots for finished innings, a live one for the innings in progress"""
    result = []
    for number, snapshot in ((1, match.innings1), (2, match.innings2)):
        if snapshot is None and number == match.meta.innings and match.balls:
            snapshot = innings_manager.snapshot_innings(match, number, match.balls)
        if snapshot is not None:
            result.append((number, snapshot))
    return result


def _print_scorecard(innings: InningsData):
    """Print innings scorecard"""
    # Batting
    bat_table = Table(title="Batting")
    bat_table.add_column("Batter", style="cyan")
    bat_table.add_column("Dismissal")
    bat_table.add_column("R", justify="right")
    bat_table.add_column("B", justify="right")
    bat_table.add_column("4s", justify="right")
    bat_table.add_column("6s", justify="right")
    bat_table.add_column("SR", justify="right")

    for stats in innings.batsman_stats.values():
        bat_table.add_row(
            stats.name,
            stats.how_out if stats.is_out else "not out",
            str(stats.runs),
            str(stats.balls),
            str(stats.fours),
            str(stats.sixes),
            f"{stats.strike_rate:.1f}",
        )

    console.print(bat_table)

    extras = innings.extras
    console.print(
        f"Extras: {extras.total} (wd {extras.wides}, nb {extras.no_balls}, b {extras.byes}, lb {extras.leg_byes})"
    )

    # Bowling
    bowl_table = Table(title="Bowling")
    bowl_table.add_column("Bowler", style="magenta")
    bowl_table.add_column("O", justify="right")
    bowl_table.add_column("M", justify="right")
    bowl_table.add_column("R", justify="right")
    bowl_table.add_column("W", justify="right")
    bowl_table.add_column("Econ", justify="right")

    for stats in innings.bowler_stats.values():
        bowl_table.add_row(
            stats.name,
            stats.overs_display,
            str(stats.maidens),
            str(stats.runs),
            str(stats.wickets),
            f"{stats.economy:.1f}",
        )

    console.print(bowl_table)

    if innings.fall_of_wickets:
        fow = ", ".join(
            f"{w.wicket_number}-{w.score} ({w.player_out}, {w.over_display})" for w in innings.fall_of_wickets
        )
        console.print(f"Fall of wickets: {fow}")


@cli.command()
@click.argument("tournament_id", default=settings.DEFAULT_TOURNAMENT_ID)
@click.option("--group", type=click.Choice(["A", "B"]), multiple=True, help="Group to show (default both)")
def standings(tournament_id: str, group: tuple):
    """Show group tables for a tournament"""
    engine = TournamentEngine(get_store(), tournament_id)

    for label in group or ("A", "B"):
        try:
            rows = engine.standings(label)
        except CreaseError as e:
            raise click.ClickException(str(e))

        table = Table(title=f"Group {label}")
        table.add_column("Pos", justify="right")
        table.add_column("Team", style="cyan")
        table.add_column("P", justify="right")
        table.add_column("W", justify="right")
        table.add_column("L", justify="right")
        table.add_column("T/NR", justify="right")
        table.add_column("Pts", justify="right", style="green")
        table.add_column("NRR", justify="right")

        for pos, row in enumerate(rows, 1):
            table.add_row(
                str(pos),
                row.team_id,
                str(row.played),
                str(row.won),
                str(row.lost),
                str(row.tied),
                str(row.points),
                f"{row.nrr:+.3f}",
            )

        console.print(table)


if __name__ == "__main__":
    cli()
