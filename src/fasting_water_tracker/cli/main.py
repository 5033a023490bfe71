"""
Command-line interface for the Fasting & Water Tracker.

A thin presentation layer over TrackerEngine: every command loads the engine
from the configured state file, runs one engine command or query, and prints
plain text.
"""

import time
from datetime import datetime
from uuid import UUID

import typer

from fasting_water_tracker.domain.entries import PRESET_WINDOWS, DailyLog, FastingStatus
from fasting_water_tracker.infrastructure.storage.repository import TrackerStateRepository
from fasting_water_tracker.infrastructure.storage.store import JsonFileStore
from fasting_water_tracker.services.engine import DisplaySnapshot, TrackerEngine
from fasting_water_tracker.services.output import OutputService
from fasting_water_tracker.services.ticker import DisplayTicker
from fasting_water_tracker.utils.exceptions import TrackerError, ValidationError
from fasting_water_tracker.utils.logging_config import get_logger, setup_logging
from fasting_water_tracker.utils.parameters import ParameterLoader
from fasting_water_tracker.utils.timezone_utils import local_day, parse_datetime

app = typer.Typer(help="Fasting & Water Tracker - fasting sessions, water intake and daily logs")

logger = get_logger(__name__)


def init_config(config_path: str) -> ParameterLoader:
    """
    Initialize configuration and logging.

    Args:
        config_path: Path to configuration file.

    Returns:
        Parameter loader instance.
    """
    param_loader = ParameterLoader(config_path)
    setup_logging(param_loader.get_logging_config())
    return param_loader


def init_engine(param_loader: ParameterLoader) -> TrackerEngine:
    store = JsonFileStore(param_loader.get_storage_config().path)
    return TrackerEngine(
        param_loader.get_tracker_config(), repository=TrackerStateRepository(store)
    )


def _parse_when(value: str, timezone: str) -> datetime:
    try:
        return parse_datetime(value, None, timezone)
    except (ValueError, OverflowError) as e:
        raise ValidationError(f"Invalid date or time: {value}") from e


def _parse_id(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as e:
        raise ValidationError(f"Invalid entry id: {value}") from e


def _fail(action: str, error: TrackerError) -> typer.Exit:
    logger.error(f"{action} failed: {error}")
    typer.echo(f"Error: {error}", err=True)
    return typer.Exit(code=1)


def _echo_snapshot(snapshot: DisplaySnapshot) -> None:
    if snapshot.elapsed is not None:
        typer.echo(f"Fasting: {snapshot.elapsed_label} elapsed ({snapshot.progress:.0%})")
        typer.echo(f"  Until next meal: {snapshot.remaining_label}")
        if snapshot.end_time is not None:
            typer.echo(f"  Goal: {snapshot.end_time.strftime('%Y-%m-%d %H:%M')}")
    else:
        typer.echo(f"Not fasting ({snapshot.fasting_window_hours}:{snapshot.eating_window_hours})")
    typer.echo(
        f"Water: {snapshot.water_total_litres:.2f} / {snapshot.water_target_litres:.1f} L "
        f"({snapshot.water_progress:.0%})"
    )


def _echo_log(log: DailyLog, target_litres: float) -> None:
    typer.echo(log.date.strftime("%A, %d %B %Y"))
    goal = " (goal met)" if log.water_goal_met(target_litres) else ""
    typer.echo(f"  Water intake: {log.water_intake_litres:.2f} L{goal}")
    fasting = log.fasting_entry
    if fasting is None:
        return
    if fasting.status is FastingStatus.OPEN:
        started = fasting.start_time.strftime("%H:%M")
        typer.echo(f"  Fasting: ongoing since {started} ({fasting.id})")
    elif fasting.end_time is not None:
        typer.echo(f"  Fasting: {fasting.formatted_duration} ({fasting.id})")
        typer.echo(f"    Started: {fasting.start_time.strftime('%Y-%m-%d %H:%M')}")
        typer.echo(f"    Ended: {fasting.end_time.strftime('%Y-%m-%d %H:%M')}")


@app.command()
def status(
    config_path: str = typer.Option("config/config.yaml", help="Path to configuration file"),
) -> None:
    """Show the current fast and today's water intake."""
    try:
        param_loader = init_config(config_path)
        engine = init_engine(param_loader)
        _echo_snapshot(engine.snapshot())

        sizes = param_loader.get_tracker_config().common_water_sizes_ml
        typer.echo(f"Quick add (ml): {', '.join(f'{size:g}' for size in sizes)}")
    except TrackerError as e:
        raise _fail("Status", e) from e


@app.command()
def start(
    config_path: str = typer.Option("config/config.yaml", help="Path to configuration file"),
) -> None:
    """Start a fast now."""
    try:
        engine = init_engine(init_config(config_path))
        entry = engine.start_fasting()
        typer.echo(f"Started {entry.fasting_window_hours}h fast at {entry.start_time:%H:%M}")
    except TrackerError as e:
        raise _fail("Start", e) from e


@app.command()
def stop(
    config_path: str = typer.Option("config/config.yaml", help="Path to configuration file"),
) -> None:
    """Stop the active fast now."""
    try:
        engine = init_engine(init_config(config_path))
        entry = engine.stop_fasting()
        typer.echo(f"Fast ended after {entry.formatted_duration}")
    except TrackerError as e:
        raise _fail("Stop", e) from e


@app.command()
def window(
    fasting_hours: int = typer.Argument(..., help="Fasting hours"),
    eating_hours: int = typer.Argument(..., help="Eating hours"),
    config_path: str = typer.Option("config/config.yaml", help="Path to configuration file"),
) -> None:
    """Set a custom fasting window (hours must sum to 24)."""
    try:
        engine = init_engine(init_config(config_path))
        engine.set_fasting_window(fasting_hours, eating_hours)
        typer.echo(f"Fasting window set to {fasting_hours}:{eating_hours}")
    except TrackerError as e:
        raise _fail("Window", e) from e


@app.command()
def preset(
    name: str = typer.Argument(..., help=f"One of: {', '.join(PRESET_WINDOWS)}"),
    config_path: str = typer.Option("config/config.yaml", help="Path to configuration file"),
) -> None:
    """Apply a preset fasting window."""
    try:
        engine = init_engine(init_config(config_path))
        applied = engine.set_fasting_preset(name)
        typer.echo(f"Fasting window set to {applied.name}")
    except TrackerError as e:
        raise _fail("Preset", e) from e


@app.command()
def water(
    amount_ml: float = typer.Argument(..., help="Amount in millilitres"),
    config_path: str = typer.Option("config/config.yaml", help="Path to configuration file"),
) -> None:
    """Add water."""
    try:
        engine = init_engine(init_config(config_path))
        update = engine.add_water(amount_ml)
        typer.echo(f"Today: {update.total_litres:.2f} L ({update.progress:.0%})")
        if update.goal_reached:
            typer.echo("Congratulations! You have met your daily water goal.")
    except TrackerError as e:
        raise _fail("Add water", e) from e


@app.command("reset-water")
def reset_water(
    config_path: str = typer.Option("config/config.yaml", help="Path to configuration file"),
) -> None:
    """Remove today's water entries."""
    try:
        engine = init_engine(init_config(config_path))
        removed = engine.reset_daily_water()
        typer.echo(f"Removed {removed} water entries")
    except TrackerError as e:
        raise _fail("Reset water", e) from e


@app.command()
def log(
    day: str = typer.Argument(..., help="Date to show, e.g. 2025-12-01"),
    config_path: str = typer.Option("config/config.yaml", help="Path to configuration file"),
) -> None:
    """Show the daily log for a date."""
    try:
        param_loader = init_config(config_path)
        engine = init_engine(param_loader)
        timezone = param_loader.get_tracker_config().timezone
        daily_log = engine.get_daily_log(_parse_when(day, timezone))
        if daily_log is None:
            typer.echo("No log entry for this date")
        else:
            _echo_log(daily_log, engine.session.daily_target_litres)
    except TrackerError as e:
        raise _fail("Log", e) from e


@app.command("edit-fast")
def edit_fast(
    entry_id: str = typer.Argument(..., help="Fasting entry id"),
    start_time: str = typer.Argument(..., help="New start, e.g. '2025-12-01 20:00'"),
    end_time: str | None = typer.Argument(None, help="New end; omit to keep the fast open"),
    config_path: str = typer.Option("config/config.yaml", help="Path to configuration file"),
) -> None:
    """Edit the start and end of a recorded fast."""
    try:
        param_loader = init_config(config_path)
        engine = init_engine(param_loader)
        timezone = param_loader.get_tracker_config().timezone
        entry = engine.update_historical_fast(
            _parse_id(entry_id),
            _parse_when(start_time, timezone),
            _parse_when(end_time, timezone) if end_time else None,
        )
        typer.echo(f"Updated fast {entry.id}: {entry.formatted_duration}")
    except TrackerError as e:
        raise _fail("Edit fast", e) from e


@app.command("add-fast")
def add_fast(
    day: str = typer.Argument(..., help="Date whose log receives the fast"),
    start_time: str = typer.Argument(..., help="Start, e.g. '2025-11-30 20:00'"),
    end_time: str = typer.Argument(..., help="End, e.g. '2025-12-01 12:00'"),
    config_path: str = typer.Option("config/config.yaml", help="Path to configuration file"),
) -> None:
    """Record a completed fast that was not tracked live."""
    try:
        param_loader = init_config(config_path)
        engine = init_engine(param_loader)
        timezone = param_loader.get_tracker_config().timezone
        entry = engine.add_historical_fast(
            _parse_when(day, timezone),
            _parse_when(start_time, timezone),
            _parse_when(end_time, timezone),
        )
        typer.echo(f"Added fast {entry.id}: {entry.formatted_duration}")
    except TrackerError as e:
        raise _fail("Add fast", e) from e


@app.command("set-water")
def set_water(
    day: str = typer.Argument(..., help="Date to overwrite"),
    litres: float = typer.Argument(..., help="Total intake in litres"),
    config_path: str = typer.Option("config/config.yaml", help="Path to configuration file"),
) -> None:
    """
    Overwrite the water total of a past day.

    Today's total always follows the recorded entries, so today and later
    dates are rejected.
    """
    try:
        param_loader = init_config(config_path)
        engine = init_engine(param_loader)
        timezone = param_loader.get_tracker_config().timezone
        when = _parse_when(day, timezone)
        if local_day(when, timezone) >= engine.today():
            raise ValidationError(f"Only past days can be overwritten, got {day}")
        engine.set_historical_water_intake(when, litres)
        typer.echo(f"Water intake for {day} set to {litres:.2f} L")
    except TrackerError as e:
        raise _fail("Set water", e) from e


@app.command()
def target(
    litres: float = typer.Argument(..., help="Daily water target in litres"),
    config_path: str = typer.Option("config/config.yaml", help="Path to configuration file"),
) -> None:
    """Set the daily water target."""
    try:
        engine = init_engine(init_config(config_path))
        engine.set_daily_target(litres)
        typer.echo(f"Daily target set to {litres:.2f} L")
    except TrackerError as e:
        raise _fail("Target", e) from e


@app.command()
def rebuild(
    config_path: str = typer.Option("config/config.yaml", help="Path to configuration file"),
) -> None:
    """Rebuild every daily log from the recorded events."""
    try:
        engine = init_engine(init_config(config_path))
        logs = engine.rebuild_daily_logs()
        typer.echo(f"Rebuilt {len(logs)} daily logs")
    except TrackerError as e:
        raise _fail("Rebuild", e) from e


@app.command()
def export(
    config_path: str = typer.Option("config/config.yaml", help="Path to configuration file"),
    output_format: str | None = typer.Option(None, help="Output format: csv, json, or both"),
) -> None:
    """Export daily logs."""
    try:
        param_loader = init_config(config_path)
        output_config = param_loader.get_output_config()
        if output_format:
            if output_format == "both":
                output_config.formats = ["csv", "json"]
            else:
                output_config.formats = [output_format]

        engine = init_engine(param_loader)
        paths = OutputService(output_config).write_daily_logs(engine.daily_logs())
        typer.echo(f"Exported {len(paths)} files")
        for path in paths:
            typer.echo(f"  - {path}")
    except TrackerError as e:
        raise _fail("Export", e) from e


@app.command()
def watch(
    config_path: str = typer.Option("config/config.yaml", help="Path to configuration file"),
    seconds: float = typer.Option(10.0, help="How long to keep refreshing"),
) -> None:
    """Refresh the status display every tick for a while."""
    try:
        param_loader = init_config(config_path)
        engine = init_engine(param_loader)
        ticker = DisplayTicker(
            engine,
            _echo_snapshot,
            interval_seconds=param_loader.get_tracker_config().tick_interval_seconds,
        )
        ticker.start()
        try:
            time.sleep(seconds)
        finally:
            ticker.stop()
    except TrackerError as e:
        raise _fail("Watch", e) from e


if __name__ == "__main__":
    app()
