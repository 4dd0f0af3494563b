"""CLI commands for configuration management."""

import json
import sys
from pathlib import Path
from typing import Any, Optional

import click  # type: ignore[import-not-found]
from rich.console import Console  # type: ignore[import-not-found]
from rich.table import Table  # type: ignore[import-not-found]

from time_tracking.core.config import DEFAULT_CONFIG
from time_tracking.core.storage import JSONStore
from time_tracking.exceptions import StoreError

console = Console()
error_console = Console(stderr=True)


def open_store(store_path: Optional[str] = None) -> JSONStore:
    """Open the store, exiting with an error message if it is unusable."""
    try:
        return JSONStore(Path(store_path).expanduser() if store_path else None)
    except StoreError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


def _config_key(key: str) -> str:
    """Accept ``date_format`` as well as ``config.date_format``."""
    return key if key.startswith("config.") else f"config.{key}"


def convert_value(value: str) -> Any:
    """Convert a command-line string to a boolean, null or integer where it looks like one."""
    if value.lower() in ("true", "yes"):
        return True
    if value.lower() in ("false", "no"):
        return False
    if value.lower() == "null":
        return None
    try:
        return int(value)
    except ValueError:
        return value


@click.group()  # type: ignore[misc]
def config() -> None:
    """Manage tracker settings.

    Settings are stored with the tasks in the store file.
    """
    pass


@config.command("show")  # type: ignore[misc]
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_show(ctx: click.Context, as_json: bool) -> None:
    """Show all settings.

    Example:
        tt config show
        tt config show --json
    """
    store = open_store((ctx.obj or {}).get("store"))
    settings = store.get("config", {})

    if as_json:
        print(json.dumps(settings, indent=2))
        return

    table = Table(title="Time Tracking Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    for key, value in settings.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print(f"\nStore file: {store.path}")


@config.command("get")  # type: ignore[misc]
@click.argument("key")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_get(ctx: click.Context, key: str) -> None:
    """Get a setting.

    Example:
        tt config get date_format
    """
    store = open_store((ctx.obj or {}).get("store"))
    value = store.get(_config_key(key))

    if value is None:
        error_console.print(f"[red]Error:[/red] Configuration key '{key}' not found")
        sys.exit(1)

    console.print(str(value))


@config.command("set")  # type: ignore[misc]
@click.argument("key")  # type: ignore[misc]
@click.argument("value")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Set a setting.

    Use 'true'/'false' for booleans.

    Example:
        tt config set date_format DD/MM/YYYY
        tt config set pause_others_on_start false
    """
    store = open_store((ctx.obj or {}).get("store"))
    full_key = _config_key(key)

    if full_key.split(".", 1)[1] not in DEFAULT_CONFIG:
        error_console.print(f"[red]Error:[/red] Unknown setting '{key}'")
        sys.exit(1)

    converted_value = convert_value(value)
    try:
        store.set(full_key, converted_value)
    except StoreError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    console.print(f"[green]✓[/green] Set {key} = {converted_value}")


@config.command("reset")  # type: ignore[misc]
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_reset(ctx: click.Context, yes: bool) -> None:
    """Reset settings to defaults. Tasks are kept.

    Example:
        tt config reset --yes
    """
    store = open_store((ctx.obj or {}).get("store"))

    if not yes:
        console.print("[yellow]Warning:[/yellow] This will reset all settings to defaults.")
        if not click.confirm("Continue?"):
            console.print("Cancelled")
            return

    try:
        store.reset("config")
    except StoreError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    console.print("[green]✓[/green] Configuration reset to defaults")


@config.command("path")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_path(ctx: click.Context) -> None:
    """Show path to the store file.

    Example:
        tt config path
    """
    store = open_store((ctx.obj or {}).get("store"))
    console.print(str(store.path))
