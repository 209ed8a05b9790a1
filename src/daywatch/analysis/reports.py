"""Dashboard rendering for time records."""

from datetime import date, tzinfo
from typing import Optional

from rich.console import Console  # type: ignore[import-not-found]
from rich.panel import Panel  # type: ignore[import-not-found]
from rich.table import Table  # type: ignore[import-not-found]
from rich.text import Text  # type: ignore[import-not-found]

from daywatch.core.buckets import DayBuckets
from daywatch.core.formatting import format_clock, format_time
from daywatch.core.models import TimeRecord


class ReportGenerator:
    """Render today's total, the daily history and per-day entries."""

    def __init__(self, console: Optional[Console] = None, tz: Optional[tzinfo] = None):
        """Initialize report generator.

        Args:
            console: Rich console for output. Creates default if None.
            tz: Timezone for start/end times. None means system local time.
        """
        self.console = console or Console()
        self.tz = tz

    def dashboard(
        self,
        buckets: DayBuckets,
        today: Optional[date] = None,
        detail: bool = False,
    ) -> None:
        """Display the dashboard.

        Args:
            buckets: Records grouped by day
            today: Date to treat as today. Defaults to the current local date.
            detail: Also list the entries of every day
        """
        self.console.print("\n[bold cyan]Today[/bold cyan]")
        self.console.print(f"[bold]{format_time(buckets.today_total(today))}[/bold]\n")

        history = buckets.history_days(today)
        if history:
            longest = max(buckets.total(day) for day in history)

            history_table = Table(title="Previous days")
            history_table.add_column("Date", style="cyan")
            history_table.add_column("Total", style="magenta", justify="right")
            history_table.add_column("", style="blue")

            for day in history:
                total = buckets.total(day)
                pct = (total / longest) * 100 if longest > 0 else 0
                history_table.add_row(day, format_time(total), self._create_bar(pct))

            self.console.print(history_table)
            self.console.print()

        if not len(buckets):
            self.console.print("[yellow]No records yet[/yellow]")
            return

        self.console.print(f"All time: [bold]{format_time(buckets.grand_total())}[/bold]")

        if detail:
            for day in buckets.days():
                self.day_detail(buckets, day)

    def day_detail(self, buckets: DayBuckets, day: str) -> None:
        """Display the entries of one day with their ids."""
        records = buckets.records_for(day)
        if not records:
            self.console.print(f"[yellow]No records for {day}[/yellow]")
            return

        table = Table(title=f"{day} (total {format_time(buckets.total(day))})")
        table.add_column("ID", style="dim")
        table.add_column("Duration", style="magenta", justify="right")
        table.add_column("Time", style="cyan")

        for record in records:
            table.add_row(record.id, format_time(record.duration), self.time_range(record))

        self.console.print(table)
        self.console.print()

    def time_range(self, record: TimeRecord) -> str:
        """Start/end range, or a dash for manual entries."""
        if not record.has_interval:
            return "-"
        return f"{format_clock(record.start, self.tz)} → {format_clock(record.end, self.tz)}"

    def stopwatch_panel(self, elapsed: int) -> Panel:
        """Panel showing a running stopwatch."""
        content = (
            f"[bold]{format_time(elapsed)}[/bold]\n\n[dim]Press Ctrl+C to stop and record[/dim]"
        )
        return Panel(content, title="Stopwatch", border_style="green")

    def _create_bar(self, percentage: float, width: int = 20) -> Text:
        """Create a visual bar for percentage display.

        Args:
            percentage: Percentage value (0-100)
            width: Width of the bar in characters

        Returns:
            Rich Text object with colored bar
        """
        filled = int((percentage / 100) * width)
        empty = width - filled

        bar = Text()
        bar.append("█" * filled, style="blue")
        bar.append("░" * empty, style="dim")

        return bar
