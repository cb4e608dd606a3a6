"""
Command-line interface for SmartInhale.

Provides commands for ingesting device captures, simulating events,
showing adherence and technique metrics, and exporting stored events.
"""

import json
import logging
import os

from datetime import datetime
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path

import click

from smartinhale.analysis.metrics import local_day_bounds
from smartinhale.config import (
    SETTABLE_KEYS,
    get_config_path,
    get_metrics_settings,
    load_config,
    parse_setting_value,
    set_setting,
    unset_setting,
)
from smartinhale.constants import (
    DEFAULT_CSV_FILENAME,
    RECENT_EVENTS_LIMIT,
)
from smartinhale.database.session import get_database_path, init_database
from smartinhale.export import export_events_csv
from smartinhale.logging_config import setup_logging
from smartinhale.models.event import Event
from smartinhale.pipeline import IngestionPipeline
from smartinhale.store.blob_store import SQLiteBlobStore
from smartinhale.store.event_store import EventStore
from smartinhale.store.patients import PatientRegistry
from smartinhale.transport.replay import ReplayTransport

logger = logging.getLogger(__name__)

try:
    __version__ = get_version("smartinhale")
except PackageNotFoundError:
    __version__ = "dev"

db_option = click.option("--db", type=click.Path(), help="Database path")


def open_pipeline(db: str | None) -> IngestionPipeline:
    """Initialize the database and load the stored event snapshot."""
    init_database(db)
    settings = get_metrics_settings()
    store = EventStore(SQLiteBlobStore(), capacity=settings.capacity)
    loaded = store.load_initial()
    logger.debug(f"Loaded {loaded} stored events")
    return IngestionPipeline(store, settings=settings)


def format_event_time(event: Event) -> str:
    """Local time for display; raw epoch ms if out of range."""
    try:
        return f"{event.timestamp:%Y-%m-%d %H:%M:%S}"
    except (OverflowError, OSError, ValueError):
        return str(event.ts)


def echo_event(event: Event, threshold: float) -> None:
    click.echo(
        f"{format_event_time(event):<20} "
        f"{event.strength:>8.2f} "
        f"{event.duration:>8.2f}s  "
        f"{'yes' if event.shake_ok else 'no':<6} "
        f"{'yes' if event.orientation_ok else 'no':<12} "
        f"{event.technique_label(threshold)}"
    )


@click.group()
@click.version_option(__version__, prog_name="smartinhale")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def cli(verbose: bool) -> None:
    """SmartInhale: inhaler adherence and technique tracking"""
    setup_logging(verbose=verbose, console_format="%(levelname)s: %(message)s")


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@db_option
def ingest(path: str, db: str | None) -> None:
    """Ingest a recorded device capture (JSON/hex lines or .bin records)."""
    pipeline = open_pipeline(db)
    count = pipeline.consume(ReplayTransport(Path(path)))

    click.echo(f"✓ Ingested {count} event(s) from {path}")
    if pipeline.dropped_payloads:
        click.echo(f"⚠ Dropped {pipeline.dropped_payloads} unparseable payload(s)")
    click.echo(f"Status: {pipeline.notifier.status}")


@cli.command()
@click.option("--count", "-n", type=click.IntRange(min=1), default=5, show_default=True)
@click.option("--seed", type=int, help="Seed for repeatable simulated events")
@db_option
def simulate(count: int, seed: int | None, db: str | None) -> None:
    """Store random simulated inhalation events from the last hour."""
    import random

    pipeline = open_pipeline(db)
    rng = random.Random(seed) if seed is not None else None
    pipeline.simulate(count, rng=rng)
    click.echo(f"✓ {pipeline.notifier.status}")


@cli.command("inject-test")
@db_option
def inject_test(db: str | None) -> None:
    """Store one known-good test event stamped now."""
    pipeline = open_pipeline(db)
    event = pipeline.inject_test_event()
    click.echo(
        f"✓ Injected test event at {format_event_time(event)} "
        f"({event.technique_label(pipeline.settings.strength_threshold)})"
    )


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output JSON")
@db_option
def summary(as_json: bool, db: str | None) -> None:
    """Show today's adherence and technique insights."""
    pipeline = open_pipeline(db)
    result = pipeline.summary()

    if as_json:
        click.echo(json.dumps(result.model_dump(mode="json", by_alias=True), indent=2))
        return

    click.echo("\n📊 Adherence")
    click.echo(f"{'=' * 50}")
    click.echo(f"Adherence: {result.adherence_percent}%")
    click.echo(
        f"Today's doses: {result.todays_count} of {result.expected_doses_per_day}"
    )
    if result.last_event:
        click.echo(f"Last event: {format_event_time(result.last_event)}")
    else:
        click.echo("Last event: none")
    click.echo(f"Total stored events: {result.total_events}")

    issues = result.technique_issues
    click.echo("\nTechnique Insights")
    click.echo(f"  Not shaken: {issues.not_shaken}")
    click.echo(f"  Weak inhale: {issues.weak_inhale}")
    click.echo(f"  Orientation issues: {issues.orientation_issues}")
    click.echo(f"{'=' * 50}\n")


@cli.command()
@db_option
def daily(db: str | None) -> None:
    """Show correct vs improper technique per day."""
    pipeline = open_pipeline(db)
    days = pipeline.summary().daily

    if not days:
        click.echo("No events stored")
        return

    click.echo(f"\n{'Date':<12} {'Correct':>8} {'Improper':>9}")
    click.echo("=" * 31)
    for day in days:
        click.echo(f"{day.date:<12} {day.correct:>8} {day.wrong:>9}")


@cli.command()
@click.option(
    "--limit",
    type=int,
    default=RECENT_EVENTS_LIMIT,
    show_default=True,
    help="Max events to show (use 0 for all)",
)
@click.option("--today", is_flag=True, help="Only events from today")
@db_option
def events(limit: int, today: bool, db: str | None) -> None:
    """List stored events, most recent first."""
    pipeline = open_pipeline(db)
    stored = pipeline.store.snapshot()

    if today:
        start, end = local_day_bounds(datetime.now())
        stored = tuple(e for e in stored if start <= e.ts < end)

    if not stored:
        click.echo("No events found")
        return

    shown = stored[:limit] if limit > 0 else stored
    click.echo(
        f"\n{'Time':<20} {'Strength':>8} {'Duration':>9}  {'Shake':<6} {'Orientation':<12} Technique"
    )
    click.echo("=" * 75)
    threshold = pipeline.settings.strength_threshold
    for event in shown:
        echo_event(event, threshold)

    if len(shown) < len(stored):
        click.echo(f"\nShowing {len(shown)} of {len(stored)} events (most recent first)")


@cli.command("export-csv")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    default=DEFAULT_CSV_FILENAME,
    show_default=True,
    help="Output CSV file",
)
@db_option
def export_csv(output: str, db: str | None) -> None:
    """Export all stored events to CSV."""
    pipeline = open_pipeline(db)
    rows = export_events_csv(pipeline.store.snapshot(), Path(output))
    click.echo(f"✓ Exported {rows} event(s) to {output}")


@cli.command()
@click.option("--force", is_flag=True, help="Skip confirmation prompt")
@db_option
def clear(force: bool, db: str | None) -> None:
    """Delete all stored events."""
    pipeline = open_pipeline(db)
    count = len(pipeline.store)

    if count and not force:
        click.confirm(f"Delete all {count} stored event(s)?", abort=True)

    pipeline.clear()
    click.echo(f"✓ Cleared {count} event(s)")


@cli.command()
@db_option
def patients(db: str | None) -> None:
    """List registered patients."""
    init_database(db)
    registry = PatientRegistry(SQLiteBlobStore())

    for patient in registry.load_initial():
        click.echo(f"{patient.id:<6} {patient.name:<20} {patient.device_id}")


@cli.group()
def db() -> None:
    """Database management commands."""
    pass


@db.command()
@db_option
def init(db: str | None) -> None:
    """Initialize database (creates tables if needed)."""
    init_database(db)
    click.echo(f"✓ Database initialized at {get_database_path()}")


@db.command()
@db_option
def stats(db: str | None) -> None:
    """Show database statistics."""
    pipeline = open_pipeline(db)
    db_path = Path(get_database_path())
    stored = pipeline.store.snapshot()

    size_bytes = os.path.getsize(db_path) if db_path.exists() else 0
    size_kb = size_bytes / 1024

    click.echo("\n📊 Database Statistics")
    click.echo(f"{'=' * 50}")
    click.echo(f"Database: {db_path}")
    click.echo(f"Size: {size_kb:.1f} KB")
    click.echo(f"\nEvents: {len(stored)} (capacity {pipeline.store.capacity})")

    if stored:
        newest = format_event_time(stored[0])
        oldest = format_event_time(stored[-1])
        click.echo(f"\nDate range: {oldest} to {newest}")

    click.echo(f"{'=' * 50}\n")


@cli.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command("show")
def show_config_cmd() -> None:
    """Show all configuration settings."""
    config_path = get_config_path()
    if not config_path.exists():
        click.echo(f"No config file: {config_path}")
        return

    click.echo(f"Config file: {config_path}\n")
    config_data = load_config()
    if not config_data:
        click.echo("Configuration is empty.")
        return

    click.echo("Settings:")
    for section, values in config_data.items():
        if not isinstance(values, dict):
            continue
        click.echo(f"  [{section}]")
        for key, value in values.items():
            click.echo(f"    {key} = {value!r}")


@config.command("set")
@click.argument("key", type=click.Choice(sorted(SETTABLE_KEYS)))
@click.argument("value")
def set_config_cmd(key: str, value: str) -> None:
    """Set a configuration value (e.g. metrics.expected_doses_per_day 3)."""
    try:
        typed = parse_setting_value(key, value)
    except ValueError as e:
        raise click.ClickException(f"Invalid value for {key}: {e}") from e

    set_setting(key, typed)
    click.echo(f"✓ {key} = {typed!r}")
    click.echo(f"  Config: {get_config_path()}")


@config.command("unset")
@click.argument("key", type=click.Choice(sorted(SETTABLE_KEYS)))
def unset_config_cmd(key: str) -> None:
    """Remove a configuration value (reverts to the default)."""
    if unset_setting(key):
        click.echo(f"✓ Removed {key}")
    else:
        click.echo(f"{key} was not configured.")
