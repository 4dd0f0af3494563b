"""Main CLI application."""

import logging
import sys
from typing import Optional

import click
from rich.console import Console

from time_tracking import __version__
from time_tracking.cli.config_commands import config, open_store
from time_tracking.core.models import TaskStatus
from time_tracking.core.storage import StoreTaskRepository
from time_tracking.core.tracker import TimeTracker
from time_tracking.logging_setup import setup_logging

console = Console()
error_console = Console(stderr=True)


def get_tracker(store_path: Optional[str] = None) -> TimeTracker:
    """Get TimeTracker instance with optional custom store file."""
    repository = StoreTaskRepository(open_store(store_path))
    return TimeTracker(repository, console)


def _finish(ok: bool) -> None:
    if not ok:
        sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--store",
    envvar="TIME_TRACKING_STORE",
    type=click.Path(dir_okay=False),
    help="Store file (default: ~/.time-tracking/store.json)",
)
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.option("--debug", is_flag=True, help="Show debug logging")
@click.option("--log-file", type=click.Path(dir_okay=False), help="Also write logs to this file")
@click.pass_context
def cli(
    ctx: click.Context,
    store: Optional[str],
    no_color: bool,
    debug: bool,
    log_file: Optional[str],
) -> None:
    """Time Tracking - track the time you spend on your tasks.

    Start, pause and stop named tasks, add time manually, and list how
    long you worked on each task per day.
    """
    ctx.ensure_object(dict)
    ctx.obj["store"] = store

    setup_logging(logging.DEBUG if debug else logging.WARNING, log_file)

    if no_color:
        console.no_color = True
        error_console.no_color = True


cli.add_command(config)


@cli.command()
@click.argument("task_name")
@click.argument("description", required=False)
@click.option(
    "--pause-others/--no-pause-others",
    default=None,
    help="Pause other running tasks (default: pause_others_on_start setting)",
)
@click.pass_context
def start(
    ctx: click.Context,
    task_name: str,
    description: Optional[str],
    pause_others: Optional[bool],
) -> None:
    """Start or resume a task.

    Example:
        tt start "Write docs" "Usage section"
        tt start review --no-pause-others
    """
    tracker = get_tracker(ctx.obj.get("store"))
    _finish(tracker.start(task_name, description, pause_others))


@cli.command()
@click.argument("task_name", required=False)
@click.argument("time", required=False)
@click.pass_context
def stop(ctx: click.Context, task_name: Optional[str], time: Optional[str]) -> None:
    """Finish a task, or every running task when no name is given.

    TIME is H:MM for today or a full date such as "06/01/2024 17:30".

    Example:
        tt stop
        tt stop "Write docs" 17:30
    """
    tracker = get_tracker(ctx.obj.get("store"))
    _finish(tracker.stop(task_name, TaskStatus.FINISHED, time))


@cli.command()
@click.argument("task_name", required=False)
@click.argument("time", required=False)
@click.pass_context
def pause(ctx: click.Context, task_name: Optional[str], time: Optional[str]) -> None:
    """Pause a task, or every running task when no name is given.

    Example:
        tt pause
        tt pause "Write docs" 12:15
    """
    tracker = get_tracker(ctx.obj.get("store"))
    _finish(tracker.stop(task_name, TaskStatus.PAUSED, time))


@cli.command("list")
@click.argument("date", required=False)
@click.pass_context
def list_command(ctx: click.Context, date: Optional[str]) -> None:
    """Show time spent per task on a day (default: today).

    Example:
        tt list
        tt list 06/01/2024
    """
    tracker = get_tracker(ctx.obj.get("store"))
    _finish(tracker.list(date) is not None)


@cli.command()
@click.argument("task_name")
@click.argument("time_spent")
@click.argument("date", required=False)
@click.pass_context
def add(ctx: click.Context, task_name: str, time_spent: str, date: Optional[str]) -> None:
    """Add time spent on a task.

    TIME_SPENT is H:MM, Nh or Nm. DATE is the start of the entry, with an
    optional time of day (default: now).

    Example:
        tt add meeting 1:30
        tt add meeting 45m "06/01/2024 9:00"
    """
    tracker = get_tracker(ctx.obj.get("store"))
    _finish(tracker.add(task_name, time_spent, date))


@cli.command()
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def clear(ctx: click.Context, yes: bool) -> None:
    """Remove every task.

    Example:
        tt clear --yes
    """
    tracker = get_tracker(ctx.obj.get("store"))

    if not yes:
        console.print("[yellow]Warning:[/yellow] This will remove all tasks and their history.")
        if not click.confirm("Continue?"):
            console.print("Cancelled")
            return

    _finish(tracker.clear())


if __name__ == "__main__":
    cli(obj={})
