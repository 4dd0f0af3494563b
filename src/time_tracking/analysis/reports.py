"""Daily summaries of tracked time."""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Optional

from rich.console import Console  # type: ignore[import-not-found]
from rich.table import Table  # type: ignore[import-not-found]
from rich.text import Text  # type: ignore[import-not-found]

from time_tracking.core.models import Task, TaskStatus


def format_hours_minutes(delta: timedelta) -> str:
    """Format a duration as zero-padded ``HH:MM`` (whole minutes, floored)."""
    total_minutes = max(0, int(delta.total_seconds() // 60))
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours:02d}:{minutes:02d}"


@dataclass
class TaskTiming:
    """Time spent on one task during a day."""

    name: str
    status: TaskStatus
    duration: timedelta

    @property
    def time(self) -> str:
        return format_hours_minutes(self.duration)


@dataclass
class DailySummary:
    """Per-task and total time for a single day.

    Attributes:
        day: The summarized date
        label: The date as shown to the user
        timings: One row per task with time on ``day``
    """

    day: date
    label: str
    timings: list[TaskTiming] = field(default_factory=list)

    @property
    def total(self) -> timedelta:
        return sum((timing.duration for timing in self.timings), timedelta())

    @property
    def total_time(self) -> str:
        return format_hours_minutes(self.total)

    @classmethod
    def build(
        cls,
        tasks: list[Task],
        day: date,
        label: str,
        now: Optional[datetime] = None,
    ) -> "DailySummary":
        """Aggregate the intervals of ``tasks`` that started on ``day``.

        Tasks without such intervals are left out. Open intervals count
        until ``now``.
        """
        now = now or datetime.now()
        timings = [
            TaskTiming(name=task.name, status=task.status, duration=task.duration_on(day, now))
            for task in tasks
            if task.intervals_on(day)
        ]
        return cls(day=day, label=label, timings=timings)


class ReportGenerator:
    """Render summaries to the terminal."""

    def __init__(self, console: Optional[Console] = None):
        """Initialize report generator.

        Args:
            console: Rich console for output. Creates default if None.
        """
        self.console = console or Console()

    def daily_report(self, summary: DailySummary) -> None:
        """Display the total for the day followed by one row per task."""
        header = Text()
        header.append(f" {summary.total_time} ", style="bold black on green")
        header.append(" ")
        header.append(f" DATE: {summary.label} ", style="reverse")

        self.console.print()
        self.console.print(header)

        table = Table(box=None, padding=(0, 2))
        table.add_column("TIME", style="magenta")
        table.add_column("STATUS", style="cyan")
        table.add_column("TASK", style="bold")

        if not summary.timings:
            table.add_row("---", "---", "---", style="dim")
        for timing in summary.timings:
            table.add_row(timing.time, timing.status.label, Text(timing.name))

        self.console.print(table)
