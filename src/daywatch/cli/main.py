"""Main CLI application."""

import asyncio
import json
import sys
from typing import Optional

import click  # type: ignore[import-not-found]
from rich.console import Console  # type: ignore[import-not-found]
from rich.live import Live  # type: ignore[import-not-found]
from rich.table import Table  # type: ignore[import-not-found]

from daywatch import __version__
from daywatch.analysis.reports import ReportGenerator
from daywatch.cli.api_commands import api
from daywatch.cli.auth_commands import auth
from daywatch.cli.config_commands import config
from daywatch.cli.context import AppContext, pass_app
from daywatch.core.buckets import day_key
from daywatch.core.formatting import format_clock, format_time, local_today
from daywatch.core.identity import share_url
from daywatch.core.log import setup_logging
from daywatch.core.models import RecordValidationError
from daywatch.core.session import MutationResult, Outcome, RecordSession, SyncStatus
from daywatch.core.stopwatch import Sampler, Stopwatch

console = Console()
error_console = Console(stderr=True)


def require_identity(app: AppContext) -> Optional[str]:
    """Current identity, printing a sign-in hint when there is none."""
    user_id = app.identity()
    if user_id is None:
        console.print("[yellow]Not signed in.[/yellow] Run: daywatch auth login --subject <id>")
    return user_id


def loaded_session(app: AppContext) -> RecordSession:
    """Record session, exiting when the store could not be read."""
    session = app.session()
    if session.status == SyncStatus.STALE:
        error_console.print(f"[red]Error:[/red] Could not load records: {session.last_error}")
        sys.exit(1)
    return session


def report_result(result: MutationResult, done: str) -> None:
    """Print the outcome of a mutation, exiting non-zero on failure."""
    if result.outcome == Outcome.SYNCED:
        console.print(f"[green]✓[/green] {done}")
        return
    if result.outcome == Outcome.FAILED:
        error_console.print(f"[red]Error:[/red] Not saved: {result.error}")
        sys.exit(1)
    console.print(f"[yellow]{result.error}[/yellow]")


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", type=click.Path(), help="Path to config file")
@click.option("--data-dir", help="Custom data directory", type=click.Path())
@click.option("--user", help="Adopt a shared anonymous identity")
@click.option("-v", "--verbose", is_flag=True, help="Log informational messages")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[str],
    data_dir: Optional[str],
    user: Optional[str],
    verbose: bool,
    no_color: bool,
) -> None:
    """Daywatch - track how long you spend each day.

    Start and stop a stopwatch or add time by hand; every record is
    grouped into local calendar days with a running total.
    """
    app = AppContext(config_path, data_dir, user)
    ctx.obj = app

    if no_color:
        console.no_color = True

    try:
        setup_logging(app.config, "INFO" if verbose else None)
        app.config.get_timezone()
    except ValueError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


cli.add_command(auth)
cli.add_command(api)
cli.add_command(config)


@cli.command()
@click.option("-d", "--detail", is_flag=True, help="List the entries of every day")
@click.option("--day", help="Show the entries of one day (YYYY-MM-DD)")
@pass_app
def today(app: AppContext, detail: bool, day: Optional[str]) -> None:
    """Show today's total and the totals of previous days.

    Example:
        daywatch today
        daywatch today --detail
        daywatch today --day 2025-11-14
    """
    if require_identity(app) is None:
        return

    session = loaded_session(app)
    reports = ReportGenerator(console, session.tz)
    if day:
        reports.day_detail(session.buckets, day)
    else:
        reports.dashboard(session.buckets, detail=detail)


@cli.command()
@pass_app
def start(app: AppContext) -> None:
    """Start the stopwatch.

    The start is kept in the local state file, so a later
    ``daywatch stop`` records the interval.
    """
    if require_identity(app) is None:
        return

    tracker = app.tracker()
    if tracker.stopwatch.is_running:
        console.print(
            f"[yellow]Stopwatch already running[/yellow] "
            f"({format_time(tracker.stopwatch.elapsed())})"
        )
        return

    started_at = tracker.start()
    if started_at is not None:
        console.print(
            f"[green]✓[/green] Started stopwatch at {format_clock(started_at, tracker.session.tz)}"
        )


@cli.command()
@pass_app
def stop(app: AppContext) -> None:
    """Stop the stopwatch and record the interval."""
    if require_identity(app) is None:
        return

    tracker = app.tracker()
    result = tracker.stop()
    if result.outcome == Outcome.SYNCED and result.record is not None:
        report_result(result, f"Recorded {format_time(result.record.duration)}")
    else:
        report_result(result, "")


@cli.command()
@pass_app
def status(app: AppContext) -> None:
    """Show the stopwatch and today's total."""
    if require_identity(app) is None:
        return

    tracker = app.tracker()
    elapsed = tracker.status()
    if elapsed is None:
        console.print("[yellow]Stopwatch is not running[/yellow]")
    else:
        console.print(f"[bold green]Running[/bold green] {format_time(elapsed)}")

    session = tracker.session
    if session.status == SyncStatus.SYNCED:
        console.print(f"Today: {format_time(session.buckets.today_total())}")


async def _sample(
    stopwatch: Stopwatch, live: Live, reports: ReportGenerator, interval: float
) -> None:
    sampler = Sampler(stopwatch, lambda s: live.update(reports.stopwatch_panel(s)), interval)
    await sampler.run()


@cli.command()
@pass_app
def watch(app: AppContext) -> None:
    """Run the stopwatch in the foreground; Ctrl+C stops and records it."""
    if require_identity(app) is None:
        return

    tracker = app.tracker()
    tracker.start()
    reports = ReportGenerator(console, tracker.session.tz)
    interval = float(app.config.get("stopwatch.interval", 1.0))

    try:
        with Live(reports.stopwatch_panel(tracker.stopwatch.elapsed()), console=console) as live:
            asyncio.run(_sample(tracker.stopwatch, live, reports, interval))
    except KeyboardInterrupt:
        pass

    result = tracker.stop()
    if result.record is not None:
        report_result(result, f"Recorded {format_time(result.record.duration)}")
    else:
        report_result(result, "")


@cli.command()
@click.argument("seconds")
@click.option("--date", "day", help="Day of the entry (YYYY-MM-DD, default: today)")
@pass_app
def add(app: AppContext, seconds: str, day: Optional[str]) -> None:
    """Add SECONDS of time to a day without a start or end.

    Example:
        daywatch add 1800
        daywatch add 3600 --date 2025-11-14
    """
    if require_identity(app) is None:
        return

    session = app.session()
    try:
        result = session.add_manual(seconds, day or local_today(session.tz))
    except RecordValidationError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    if result.record is not None:
        record_day = day_key(result.record.start, session.tz)
        report_result(result, f"Added {format_time(result.record.duration)} to {record_day}")
    else:
        report_result(result, "")


@cli.command()
@click.argument("record_id")
@click.argument("value", required=False)
@pass_app
def edit(app: AppContext, record_id: str, value: Optional[str]) -> None:
    """Change the duration of a record to VALUE seconds.

    Without VALUE you are prompted; an empty answer cancels. Record ids are
    listed by ``daywatch log`` and ``daywatch today --detail``.
    """
    if require_identity(app) is None:
        return

    session = app.session()
    pending = session.request_edit(record_id)
    if pending is None:
        return

    while True:
        if value is None:
            value = click.prompt("New duration in seconds", default="", show_default=False)
        try:
            result = session.confirm(pending, value)
            break
        except RecordValidationError as e:
            error_console.print(f"[red]Error:[/red] {e}")
            if not sys.stdin.isatty():
                session.cancel(pending)
                sys.exit(1)
            value = None

    if result.record is not None and result.outcome == Outcome.SYNCED:
        report_result(result, f"Duration set to {format_time(result.record.duration)}")
    else:
        report_result(result, "")


@cli.command()
@click.argument("record_id")
@click.option("-y", "--yes", is_flag=True, help="Do not ask for confirmation")
@pass_app
def delete(app: AppContext, record_id: str, yes: bool) -> None:
    """Delete a record."""
    if require_identity(app) is None:
        return

    session = app.session()
    pending = session.request_delete(record_id)
    if pending is None:
        return

    if not yes and not click.confirm(f"Delete record {record_id}?"):
        session.cancel(pending)
        console.print("Cancelled")
        return

    report_result(session.confirm(pending), f"Deleted record {record_id}")


@cli.command()
@click.option("-n", "--limit", type=int, default=20, help="Number of records to show")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@pass_app
def log(app: AppContext, limit: int, as_json: bool) -> None:
    """List recent records, newest first."""
    if require_identity(app) is None:
        return

    session = loaded_session(app)
    records = session.records[:limit]

    if as_json:
        print(json.dumps([r.to_dict() for r in records], indent=2))
        return

    if not records:
        console.print("[yellow]No records yet[/yellow]")
        return

    reports = ReportGenerator(console, session.tz)
    table = Table(title="Records")
    table.add_column("ID", style="dim")
    table.add_column("Date", style="cyan")
    table.add_column("Duration", style="magenta", justify="right")
    table.add_column("Time")

    for record in records:
        table.add_row(
            record.id,
            day_key(record.start, session.tz),
            format_time(record.duration),
            reports.time_range(record),
        )

    console.print(table)


@cli.command()
@pass_app
def share(app: AppContext) -> None:
    """Print the link that opens this tracker for someone else."""
    if app.authenticated:
        error_console.print("[red]Error:[/red] Sharing is only available for anonymous identities")
        sys.exit(1)

    user_id = require_identity(app)
    if user_id is None:
        return
    console.print(share_url(app.config.get("identity.share_base_url"), user_id))


@cli.command()
@pass_app
def whoami(app: AppContext) -> None:
    """Show the current identity."""
    mode = app.config.get("identity.mode", "anonymous")
    user_id = app.identity()
    if user_id is None:
        console.print(f"[yellow]Not signed in[/yellow] (mode: {mode})")
        return
    console.print(f"{user_id} (mode: {mode})")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
