"""Command-line interface for parking fee estimation."""

import json
import logging
import sys
from datetime import datetime, timedelta
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import db
from .analysis import ranking
from .collectors import hygiene, supabase
from .facilities import (
    FacilityDataError,
    get_facilities,
    get_facility,
    load_facilities_from_yaml,
    save_facilities_to_db,
)
from .fees.calculator import calculate_fee, segment_breakdown
from .hours import operating_status
from .models import StayInterval, is_unavailable
from .reports.rate_summary import format_rate_summary

console = Console()


def _stay(start: str | None, minutes: int) -> StayInterval:
    if minutes <= 0:
        raise click.BadParameter("must be positive", param_hint="--minutes")
    entry = datetime.fromisoformat(start) if start else datetime.now().replace(second=0, microsecond=0)
    return StayInterval(entry=entry, exit=entry + timedelta(minutes=minutes))


def _fee_text(fee) -> str:
    if is_unavailable(fee):
        return "[yellow]unavailable[/yellow]"
    return f"¥{fee:,}"


def _load_facility(ctx, facility_id: str):
    facility = get_facility(facility_id, ctx.obj["db_path"])
    if facility is None:
        console.print(f"[red]Error: facility {facility_id} not found[/red]")
        sys.exit(1)
    return facility


@click.group()
@click.option("--db-path", type=click.Path(), help="Path to SQLite database")
@click.option("-v", "--verbose", is_flag=True, help="Log fee calculation steps")
@click.pass_context
def cli(ctx, db_path, verbose):
    """Parking fee estimation - find the cheapest place to park."""
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = Path(db_path) if db_path else None
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


# Database commands
@cli.group()
def database():
    """Database management commands."""
    pass


@database.command("init")
@click.pass_context
def db_init(ctx):
    """Initialize the database schema."""
    db.init_db(ctx.obj["db_path"])
    console.print("[green]Database initialized successfully[/green]")


@database.command("stats")
@click.pass_context
def db_stats(ctx):
    """Show database statistics."""
    stats = db.get_stats(ctx.obj["db_path"])

    table = Table(title="Database Statistics")
    table.add_column("Category", style="cyan")
    table.add_column("Count", justify="right")

    table.add_row("Facilities", str(stats["facilities"]["count"]))
    table.add_row("  └ without rates", str(stats["facilities_without_rates"]["count"]))
    for rule_type, count in stats["rates_by_type"].items():
        table.add_row(f"Rates: {rule_type}", str(count))

    console.print(table)


# Facility commands
@cli.group()
def facilities():
    """Facility import commands."""
    pass


@facilities.command("load")
@click.option("--config", type=click.Path(exists=True), help="Path to facilities.yaml")
@click.option("--clamp", is_flag=True, help="Clamp anomalous prices before saving")
@click.pass_context
def facilities_load(ctx, config, clamp):
    """Load facilities from YAML config."""
    try:
        loaded = load_facilities_from_yaml(Path(config) if config else None)
    except FacilityDataError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if clamp:
        loaded = [hygiene.clamp_facility(f) for f in loaded]
    count = save_facilities_to_db(loaded, ctx.obj["db_path"])
    console.print(f"[green]Loaded {count} facilit{'y' if count == 1 else 'ies'}[/green]")


@facilities.command("fetch")
@click.option("--limit", type=int, help="Maximum number of facilities to fetch")
@click.option("--clamp", is_flag=True, help="Clamp anomalous prices before saving")
@click.pass_context
def facilities_fetch(ctx, limit, clamp):
    """Fetch facilities from Supabase.

    Requires SUPABASE_URL and SUPABASE_KEY environment variables.
    """
    try:
        with console.status("Fetching facilities..."):
            fetched = supabase.fetch_facilities(limit=limit)
    except supabase.SupabaseError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if clamp:
        fetched = [hygiene.clamp_facility(f) for f in fetched]
    count = save_facilities_to_db(fetched, ctx.obj["db_path"])
    console.print(f"[green]Saved {count} facilities[/green]")


# Fee commands
@cli.command()
@click.option("--facility", "facility_id", required=True, help="Facility ID")
@click.option("--start", help="Entry time (ISO format), defaults to now")
@click.option("--minutes", type=int, required=True, help="Stay duration in minutes")
@click.option("--explain", is_flag=True, help="Show the per-segment breakdown")
@click.pass_context
def fee(ctx, facility_id, start, minutes, explain):
    """Calculate the parking fee for a stay at one facility."""
    facility = _load_facility(ctx, facility_id)
    stay = _stay(start, minutes)

    result = calculate_fee(facility.rules, stay)
    console.print(f"[cyan]{facility.name}[/cyan]: {_fee_text(result)}")
    console.print(f"[dim]{operating_status(facility.hours, stay)}[/dim]")

    if explain:
        table = Table(title="Segments")
        table.add_column("From")
        table.add_column("To")
        table.add_column("Minutes", justify="right")
        table.add_column("Rules")
        table.add_column("Fee", justify="right")
        for segment, segment_fee in segment_breakdown(facility.rules, stay):
            table.add_row(
                segment.start.strftime("%a %H:%M"),
                segment.end.strftime("%a %H:%M"),
                str(segment.minutes),
                ", ".join(r.kind.value for r in segment.applicable_rules) or "-",
                f"¥{segment_fee:,}",
            )
        console.print(table)


@cli.command()
@click.option("--start", help="Entry time (ISO format), defaults to now")
@click.option("--minutes", type=int, required=True, help="Stay duration in minutes")
@click.option("--open-only", is_flag=True, help="Only facilities open for the whole stay")
@click.option("--exclude-unavailable", is_flag=True, help="Drop facilities without a computable fee")
@click.option("--limit", default=20, help="Number of facilities to show")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def rank(ctx, start, minutes, open_only, exclude_unavailable, limit, as_json):
    """Rank stored facilities by fee for a stay."""
    stay = _stay(start, minutes)
    ranked = ranking.rank_facilities(
        get_facilities(ctx.obj["db_path"]),
        stay,
        require_open=open_only,
        exclude_unavailable=exclude_unavailable,
    )[:limit]

    if as_json:
        console.print(json.dumps([ranking.to_dict(item) for item in ranked], indent=2, ensure_ascii=False))
        return

    if not ranked:
        console.print("[yellow]No facilities found[/yellow]")
        return

    table = Table(title=f"Cheapest parking for {minutes} min from {stay.entry:%Y-%m-%d %H:%M}")
    table.add_column("#", justify="right")
    table.add_column("Facility", style="cyan")
    table.add_column("Fee", justify="right")
    table.add_column("Open")

    for item in ranked:
        table.add_row(
            str(item.rank),
            item.facility.name,
            _fee_text(item.fee),
            "[green]✓[/green]" if item.is_open else "[red]✗[/red]",
        )

    console.print(table)


@cli.command()
@click.option("--facility", "facility_id", required=True, help="Facility ID")
@click.pass_context
def rates(ctx, facility_id):
    """Show a facility's rate summary."""
    facility = _load_facility(ctx, facility_id)
    console.print(f"[cyan]{facility.name}[/cyan]")
    console.print(format_rate_summary(facility.rules))


# Alias for database command group
cli.add_command(database, name="db")


if __name__ == "__main__":
    cli()
