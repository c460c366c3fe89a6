"""Custom variable command group for yaccs.

Custom variables are provider-specific environment variables stored in a
marked section of the provider file. They are applied after the standard
variables when the provider is activated and cleared when switching away.

Names must be shell identifiers and cannot start with ANTHROPIC_ or
CLAUDE_CODE_ (those are standard fields, see 'yaccs modify').
"""

import logging

import click
from rich.markup import escape
from rich.table import Table

from yaccs.cli_helpers import console, get_store, report_errors
from yaccs.click_group import YaccsGroup
from yaccs.log_sanitizer import LogSanitizer

logger = logging.getLogger(__name__)


@click.group(name="var", cls=YaccsGroup)
def var_group():
    """Manage provider-specific custom variables.

    \b
    EXAMPLES:
        # List custom variables of a provider
        $ yaccs var list glm

        # Add or change a variable
        $ yaccs var set glm DISABLE_PROMPT_CACHING 1

        # Remove a variable
        $ yaccs var unset glm DISABLE_PROMPT_CACHING
    """
    pass


@var_group.command(name="list")
@click.argument("name")
@click.option("--show-values", is_flag=True, help="Show values of secret-looking variables")
@click.pass_context
def list_vars(ctx: click.Context, name: str, show_values: bool):
    """List custom variables of a provider."""
    with report_errors("list custom variables"):
        store = get_store(ctx)
        custom_vars = store.list_custom_vars(name)

        if not custom_vars:
            console.print(f"No custom variables configured for '{escape(name)}'.")
            console.print("\nAdd one with:")
            console.print(f"  yaccs var set {escape(name)} <NAME> <VALUE>")
            return

        shown = custom_vars if show_values else LogSanitizer.sanitize_env_vars(custom_vars)

        table = Table(title=f"Custom variables: {escape(name)}")
        table.add_column("Name", style="green")
        table.add_column("Value", style="blue")
        for key, value in shown.items():
            table.add_row(key, escape(value))

        console.print(table)


@var_group.command(name="set")
@click.argument("name")
@click.argument("key")
@click.argument("value")
@click.pass_context
def set_var(ctx: click.Context, name: str, key: str, value: str):
    """Add or update a custom variable.

    \b
    EXAMPLES:
        $ yaccs var set glm DISABLE_PROMPT_CACHING 1
        $ yaccs var set openrouter API_TIMEOUT_MS 600000
    """
    with report_errors("set custom variable"):
        store = get_store(ctx)
        existed = key in store.list_custom_vars(name)
        store.set_custom_var(name, key, value)

        action = "Updated" if existed else "Added"
        console.print(f"[green]{action} {key} on provider '{escape(name)}'[/green]")
        if store.get_active() == name:
            console.print("Takes effect the next time the provider is launched.")


@var_group.command(name="unset")
@click.argument("name")
@click.argument("key")
@click.pass_context
def unset_var(ctx: click.Context, name: str, key: str):
    """Remove a custom variable.

    \b
    EXAMPLES:
        $ yaccs var unset glm DISABLE_PROMPT_CACHING
    """
    with report_errors("unset custom variable"):
        store = get_store(ctx)
        store.delete_custom_var(name, key)
        console.print(f"[green]Deleted {key} from provider '{escape(name)}'[/green]")


__all__ = ["var_group"]
