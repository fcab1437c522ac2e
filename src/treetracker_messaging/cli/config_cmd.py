"""CLI: treetracker-messages config show|set"""

import click
from pydantic import ValidationError
from rich.console import Console

from treetracker_messaging import config as settings_file
from treetracker_messaging.config import Settings, load_config_file, save_config_file

console = Console()


@click.group()
def config():
    """Configuration commands."""


@config.command("show")
def config_show():
    """Show the effective settings."""
    settings = Settings.load()
    for name, value in settings.model_dump().items():
        console.print(f"[bold]{name}[/bold] = {value}")


@config.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str):
    """Save a setting to the config file."""
    if key not in Settings.model_fields:
        console.print(f"[red]Unknown setting: {key}[/red]")
        raise SystemExit(1)
    cfg = load_config_file()
    cfg[key] = value
    try:
        Settings.model_validate(cfg)
    except ValidationError as e:
        console.print(f"[red]Invalid value for {key}: {e.errors()[0]['msg']}[/red]")
        raise SystemExit(1)
    save_config_file(cfg)
    console.print(f"[dim]Saved {key} to {settings_file.CONFIG_FILE}[/dim]")
