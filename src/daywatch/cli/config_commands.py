"""CLI commands for configuration management."""

import json
import shutil
import sys
from typing import Any

import click  # type: ignore[import-not-found]
from rich.console import Console  # type: ignore[import-not-found]
from rich.table import Table  # type: ignore[import-not-found]

from daywatch.cli.context import AppContext, pass_app

console = Console()
error_console = Console(stderr=True)


def convert_value(value: str) -> Any:
    """Convert a command-line value to bool, None, int or float where it looks like one."""
    lowered = value.lower()
    if lowered in ("true", "yes"):
        return True
    if lowered in ("false", "no"):
        return False
    if lowered == "null":
        return None
    for cast in (int, float):
        try:
            return cast(value)
        except ValueError:
            continue
    return value


@click.group()
def config() -> None:
    """Manage Daywatch configuration.

    Configuration is stored in ~/.daywatch/config.yml unless --config is given.
    """
    pass


@config.command("show")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@pass_app
def config_show(app: AppContext, as_json: bool) -> None:
    """Show all configuration settings.

    Example:
        daywatch config show
        daywatch config show --json
    """
    config_dict = app.stored_config().to_dict()

    if as_json:
        print(json.dumps(config_dict, indent=2))
        return

    table = Table(title="Daywatch Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    def add_rows(prefix: str, data: dict[str, Any]) -> None:
        """Recursively add configuration rows."""
        for key, value in data.items():
            full_key = f"{prefix}.{key}" if prefix else key
            if isinstance(value, dict):
                add_rows(full_key, value)
            elif full_key in ("auth.secret_key", "storage.remote.api_key") and value:
                table.add_row(full_key, "********")
            else:
                table.add_row(full_key, str(value))

    add_rows("", config_dict)
    console.print(table)
    console.print(f"\nConfig file: {app.config_path or app.config.config_path}")


@config.command("get")
@click.argument("key")
@pass_app
def config_get(app: AppContext, key: str) -> None:
    """Get a specific configuration value.

    Uses dot notation to access nested values.

    Example:
        daywatch config get storage.backend
        daywatch config get general.timezone
    """
    value = app.stored_config().get(key)

    if value is None:
        error_console.print(f"[red]Error:[/red] Configuration key '{key}' not found")
        sys.exit(1)

    if isinstance(value, (dict, list)):
        console.print(json.dumps(value, indent=2))
    else:
        console.print(str(value))


@config.command("set")
@click.argument("key")
@click.argument("value")
@pass_app
def config_set(app: AppContext, key: str, value: str) -> None:
    """Set a configuration value.

    Values are automatically converted to appropriate types.
    Use 'true'/'false' for booleans and 'null' to unset.

    Example:
        daywatch config set storage.backend remote
        daywatch config set identity.mode authenticated
        daywatch config set general.timezone "Europe/Berlin"
    """
    converted_value = convert_value(value)

    try:
        app.stored_config().set(key, converted_value)
        console.print(f"[green]✓[/green] Set {key} = {converted_value}")
    except ValueError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


@config.command("reset")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@pass_app
def config_reset(app: AppContext, yes: bool) -> None:
    """Reset configuration to defaults.

    Example:
        daywatch config reset
        daywatch config reset --yes
    """
    config_mgr = app.stored_config()

    if not yes:
        console.print("[yellow]Warning:[/yellow] This will reset all configuration to defaults.")
        if not click.confirm("Continue?"):
            console.print("Cancelled")
            return

    backup_path = config_mgr.config_path.with_suffix(".yml.backup")
    if config_mgr.config_path.exists():
        shutil.copy(config_mgr.config_path, backup_path)
        console.print(f"Backed up current config to {backup_path}")

    config_mgr.reset()
    console.print("[green]✓[/green] Configuration reset to defaults")
    console.print(f"Config file: {config_mgr.config_path}")


@config.command("path")
@pass_app
def config_path(app: AppContext) -> None:
    """Show path to configuration file."""
    console.print(str(app.config_path or app.config.config_path))
