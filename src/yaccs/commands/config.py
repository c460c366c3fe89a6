"""Config command group for yaccs.

Shows and changes the settings stored in ROOT/config.toml.
"""

import logging

import click
from rich.markup import escape

from yaccs.cli_helpers import console, get_store, load_settings, report_errors
from yaccs.click_group import YaccsGroup
from yaccs.config_manager import ConfigManager

logger = logging.getLogger(__name__)


@click.group(name="config", cls=YaccsGroup)
def config_group():
    """Show or change yaccs settings.

    \b
    SETTINGS:
        target_command   Program launched after switching (default: claude)
        redact_length    Characters of a secret shown at each end (default: 5)

    \b
    EXAMPLES:
        $ yaccs config show
        $ yaccs config set target_command /opt/claude/bin/claude
    """
    pass


@config_group.command(name="show")
@click.pass_context
def show_config(ctx: click.Context):
    """Show current settings."""
    with report_errors("show config"):
        store = get_store(ctx)
        settings = load_settings(store)

        console.print(f"[green]Store root:[/green] {store.root}")
        console.print(f"Config file: {ConfigManager.get_config_path(store.root)}")
        for key, value in settings.to_dict().items():
            console.print(f"  {key} = {escape(str(value))}")


@config_group.command(name="set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def set_config(ctx: click.Context, key: str, value: str):
    """Change one setting."""
    with report_errors("set config"):
        store = get_store(ctx)
        settings = ConfigManager.set_value(store.root, key, value)
        normalized = key.replace("-", "_")
        console.print(f"[green]Set {normalized}[/green] = {escape(str(getattr(settings, normalized)))}")


__all__ = ["config_group"]
