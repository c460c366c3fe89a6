"""CLI entry point for yaccs.

Commands:
    yaccs configure <provider>     # Create or replace a provider
    yaccs modify <provider>        # Change selected fields of a provider
    yaccs rename <old> <new>       # Rename a provider
    yaccs remove <provider>        # Delete a provider
    yaccs list                     # List providers, active one marked
    yaccs status                   # Show the active provider
    yaccs <provider> [args...]     # Activate a provider and run Claude Code
    yaccs default [args...]        # Deactivate and run Claude Code
    yaccs export [provider]        # Print the switch as shell commands
    yaccs var ...                  # Provider-specific extra variables
    yaccs config ...               # yaccs settings
"""

import logging
import sys

import click
from rich.markup import escape
from rich.table import Table

from yaccs import __version__, launcher
from yaccs.cli_helpers import (
    cancelled,
    console,
    display_value,
    get_store,
    load_settings,
    print_profile,
    report_errors,
)
from yaccs.click_group import YaccsGroup
from yaccs.commands.config import config_group
from yaccs.commands.vars import var_group
from yaccs.errors import ProfileExistsError, ProfileNotFoundError, YaccsError
from yaccs.log_sanitizer import LogSanitizer
from yaccs.profile_codec import ProviderProfile, TierModels
from yaccs.profile_store import (
    PROFILE_FIELDS,
    ProfileChanges,
    ProfileStore,
    field_value,
    profile_diff,
    validate_profile_name,
)
from yaccs.prompts import confirm, prompt

logger = logging.getLogger(__name__)

# Tier prompts: (TierModels attribute, label)
TIER_PROMPTS = (
    ("haiku", "Haiku model (fast)"),
    ("sonnet", "Sonnet model (balanced)"),
    ("opus", "Opus model (powerful)"),
    ("subagent", "Subagent model"),
    ("small_fast", "Small/Fast model"),
)

# Menu number -> ProfileChanges attribute, following PROFILE_FIELDS order
MODIFY_MENU = (
    "name",
    "base_url",
    "api_key",
    "main_model",
    "haiku_model",
    "sonnet_model",
    "opus_model",
    "subagent_model",
    "small_fast_model",
)


def model_options(func):
    """Shared --model/--<tier>-model options."""
    options = [
        click.option("--model", "main_model", help="Main model ID (e.g., claude-opus-4-5)"),
        click.option("--haiku-model", help="Haiku tier model (default: main model)"),
        click.option("--sonnet-model", help="Sonnet tier model (default: main model)"),
        click.option("--opus-model", help="Opus tier model (default: main model)"),
        click.option("--subagent-model", help="Subagent model (default: main model)"),
        click.option("--small-fast-model", help="Small/fast model (default: main model)"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group(cls=YaccsGroup, invoke_without_command=True)
@click.option("--root", help="Store directory (default: $YACCS_HOME or ~/.yaccs)")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.version_option(version=__version__, prog_name="yaccs")
@click.pass_context
def main(ctx: click.Context, root: str | None, verbose: bool) -> None:
    """yaccs - Yet Another Claude Code Switcher.

    Manage multiple Claude Code provider configurations and launch
    Claude Code with one of them applied.

    \b
    EXAMPLES:
        # Configure a new provider
        $ yaccs configure openrouter

        # Switch to a provider and run Claude Code
        $ yaccs glm

        # Pass arguments through to Claude Code
        $ yaccs chutes --resume

        # List providers / show the active one
        $ yaccs list
        $ yaccs status

        # Switch back to the default Claude subscription
        $ yaccs default

    \b
    CONFIGURATION:
        Providers are stored in: ~/.yaccs/providers/
        Active provider tracking: ~/.yaccs/active
        Settings: ~/.yaccs/config.toml
        API keys are stored in plaintext with 0600 permissions.
    """
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format="%(message)s")

    ctx.ensure_object(dict)
    ctx.obj["root"] = root

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(0)


@main.command(name="help")
@click.argument("command_name", required=False, type=str)
@click.pass_context
def help_command(ctx: click.Context, command_name: str | None) -> None:
    """Show help for commands.

    \b
    Examples:
        yaccs help              # Show general help
        yaccs help modify       # Show help for modify command
    """
    if command_name is None:
        click.echo(ctx.parent.get_help())
        return

    cmd = ctx.parent.command.commands.get(command_name)  # type: ignore[union-attr]
    if cmd is None:
        click.echo(f"Error: No such command '{command_name}'.", err=True)
        ctx.exit(1)

    cmd_ctx = click.Context(cmd, info_name=command_name, parent=ctx.parent)  # type: ignore[arg-type]
    click.echo(cmd.get_help(cmd_ctx))  # type: ignore[union-attr]


def _ask(label: str, current: str | None = None, secret: bool = False, redact_length: int = 5) -> str:
    """Prompt for one field; an empty answer keeps ``current``."""
    if current is None:
        return prompt(f"Enter {label}", secret=secret)

    shown = LogSanitizer.redact_key(current, redact_length) if secret else current
    value = prompt(f"{label} (current: {shown}, leave blank to keep)", secret=secret)
    return value or current


def _print_preview(profile: ProviderProfile, redact_length: int) -> None:
    console.print()
    console.print("[cyan]Configuration preview:[/cyan]")
    print_profile(profile, redact_length)
    console.print()


@main.command(name="configure")
@click.argument("name")
@click.option("--base-url", help="API base URL (e.g., https://api.example.com)")
@click.option("--api-key", help="API key (prompted without echo if omitted)")
@model_options
@click.option("--yes", "-y", is_flag=True, help="Keep existing values and save without asking")
@click.pass_context
def configure_provider(
    ctx: click.Context,
    name: str,
    base_url: str | None,
    api_key: str | None,
    main_model: str | None,
    haiku_model: str | None,
    sonnet_model: str | None,
    opus_model: str | None,
    subagent_model: str | None,
    small_fast_model: str | None,
    yes: bool,
) -> None:
    """Configure a new or existing provider.

    Prompts for Base URL, API Key and Model ID(s) unless given as options.
    If the provider exists you can keep its values as defaults or replace
    it entirely.

    \b
    EXAMPLES:
        $ yaccs configure openrouter
        $ yaccs configure glm --base-url https://x --api-key sk_123 --model m1 --yes
    """
    with report_errors("configure provider"):
        store = get_store(ctx)
        settings = load_settings(store)
        validate_profile_name(name)

        existing = None
        if store.exists(name):
            console.print(f"[cyan]Found existing configuration for '{escape(name)}'[/cyan]")
            if yes or confirm("Keep existing values?"):
                existing = store.read(name)

        base_url = base_url or _ask("Base URL", existing.base_url if existing else None)
        api_key = api_key or _ask(
            "API Key", existing.api_key if existing else None, secret=True,
            redact_length=settings.redact_length,
        )
        main_model = main_model or _ask("Main Model ID", existing.models.main if existing else None)

        # Existing per-tier overrides stay; everything else follows the main model
        tiers: dict[str, str | None] = {}
        for attr, _label in TIER_PROMPTS:
            current = getattr(existing.models, attr) if existing else None
            tiers[attr] = current if existing and current != existing.models.main else None

        explicit = {
            "haiku": haiku_model,
            "sonnet": sonnet_model,
            "opus": opus_model,
            "subagent": subagent_model,
            "small_fast": small_fast_model,
        }
        if any(value is not None for value in explicit.values()):
            tiers.update({attr: value for attr, value in explicit.items() if value is not None})
        elif not yes:
            console.print()
            if confirm("Customize models per tier (haiku/sonnet/opus/subagent)?"):
                for attr, label in TIER_PROMPTS:
                    default = tiers[attr] or main_model
                    tiers[attr] = prompt(f"{label} [default: {default}]") or default

        profile = ProviderProfile(
            name=name,
            base_url=base_url,
            api_key=api_key,
            models=TierModels(main=main_model, **tiers),
            custom_vars=dict(existing.custom_vars) if existing else {},
        )

        _print_preview(profile, settings.redact_length)

        if not yes and not confirm("Save configuration?"):
            cancelled("Configuration cancelled")

        path = store.write(name, profile)

        console.print(f"[green]Provider '{escape(name)}' configured successfully[/green]")
        console.print(f"Config file: {path}")


def _collect_menu_changes(
    store: ProfileStore, name: str, current: ProviderProfile, redact_length: int
) -> tuple[ProfileChanges, bool]:
    """Interactive numbered menu; returns (changes, overwrite_confirmed)."""
    console.print(f"Current configuration for '{escape(name)}':")
    print_profile(current, redact_length, numbered=True)
    console.print()

    selected: list[int] = []
    while True:
        selection = prompt("Select fields to modify (enter number, 'done' when finished)")
        if selection.lower() in ("done", ""):
            break
        numbers = selection.replace(",", " ").split()
        if not all(n.isdigit() and int(n) < len(MODIFY_MENU) for n in numbers):
            console.print(f"Invalid selection. Please enter a number (0-{len(MODIFY_MENU) - 1}) or 'done'.")
            continue
        for number in map(int, numbers):
            if number in selected:
                console.print(f"Field {number} already selected")
            else:
                selected.append(number)
                console.print(f"Added field {number} to modification list")

    changes = ProfileChanges()
    overwrite = False
    for number in selected:
        label, attr_path = PROFILE_FIELDS[number]
        old_value = field_value(current, attr_path)
        secret = label == "API Key"
        shown = display_value(label, old_value, redact_length)
        value = prompt(f"Enter new {label} (current: {shown})", secret=secret)
        if not value:
            continue

        if MODIFY_MENU[number] == "name" and value != name and store.exists(value):
            console.print(f"[yellow]Warning:[/yellow] Provider '{escape(value)}' already exists. This will overwrite it.")
            if not confirm("Continue?"):
                console.print("Skipping provider name change.")
                continue
            overwrite = True

        setattr(changes, MODIFY_MENU[number], value)

    return changes, overwrite


@main.command(name="modify")
@click.argument("name")
@click.option("--rename", "new_name", help="New provider name")
@click.option("--base-url", help="New API base URL")
@click.option("--api-key", help="New API key")
@model_options
@click.option("--force", "-f", is_flag=True, help="Allow --rename to overwrite an existing provider")
@click.option("--yes", "-y", is_flag=True, help="Apply without asking for confirmation")
@click.pass_context
def modify_provider(
    ctx: click.Context,
    name: str,
    new_name: str | None,
    base_url: str | None,
    api_key: str | None,
    main_model: str | None,
    haiku_model: str | None,
    sonnet_model: str | None,
    opus_model: str | None,
    subagent_model: str | None,
    small_fast_model: str | None,
    force: bool,
    yes: bool,
) -> None:
    """Modify an existing provider configuration.

    Without options, shows a numbered menu of fields to change. All
    changes are validated together and written in one step.

    \b
    EXAMPLES:
        $ yaccs modify glm
        $ yaccs modify glm --model glm-4.6 --yes
        $ yaccs modify glm --rename zhipu
    """
    with report_errors("modify provider"):
        store = get_store(ctx)
        settings = load_settings(store)
        current = store.read(name)

        changes = ProfileChanges(
            name=new_name,
            base_url=base_url,
            api_key=api_key,
            main_model=main_model,
            haiku_model=haiku_model,
            sonnet_model=sonnet_model,
            opus_model=opus_model,
            subagent_model=subagent_model,
            small_fast_model=small_fast_model,
        )
        overwrite = force
        if changes.is_empty():
            changes, overwrite = _collect_menu_changes(store, name, current, settings.redact_length)

        if changes.is_empty():
            cancelled("No fields selected for modification. Exiting.")

        updated = changes.apply_to(current)
        diff = profile_diff(current, updated)
        if not diff:
            cancelled("No changes to apply.")

        if updated.name != name and store.exists(updated.name) and not overwrite:
            raise ProfileExistsError(
                f"Provider '{updated.name}' already exists\nUse --force to overwrite it"
            )

        console.print()
        console.print("[cyan]Changes preview:[/cyan]")
        for label, old, new in diff:
            if label == "API Key":
                old, new = "***", "***"
            console.print(f"  {label}: {escape(old)} -> {escape(new)}")
        console.print()

        if not yes and not confirm("Apply changes?"):
            cancelled("Modification cancelled")

        store.update(name, changes, overwrite=overwrite)

        if updated.name != name:
            console.print(
                f"[green]Provider '{escape(name)}' renamed to '{escape(updated.name)}' "
                "and modified successfully[/green]"
            )
        else:
            console.print(f"[green]Provider '{escape(name)}' modified successfully[/green]")
        console.print(f"Config file: {store.path_for(updated.name)}")


@main.command(name="rename")
@click.argument("old_name")
@click.argument("new_name")
@click.option("--force", "-f", is_flag=True, help="Overwrite NEW_NAME if it exists")
@click.pass_context
def rename_provider(ctx: click.Context, old_name: str, new_name: str, force: bool) -> None:
    """Rename a provider.

    If the provider is active, the active marker follows the new name.

    \b
    EXAMPLES:
        $ yaccs rename glm zhipu
    """
    with report_errors("rename provider"):
        store = get_store(ctx)

        if not store.exists(old_name):
            raise ProfileNotFoundError(f"Provider '{old_name}' not configured")

        if old_name != new_name and store.exists(new_name) and not force:
            console.print(f"[yellow]Warning:[/yellow] Provider '{escape(new_name)}' already exists. This will overwrite it.")
            if not confirm("Continue?"):
                cancelled("Rename cancelled")
            force = True

        store.rename(old_name, new_name, overwrite=force)

        console.print(f"[green]Renamed provider:[/green] {escape(old_name)} -> {escape(new_name)}")
        if store.get_active() == new_name:
            console.print("[green]Active provider updated[/green]")


@main.command(name="remove")
@click.argument("name")
@click.option("--force", "-f", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def remove_provider(ctx: click.Context, name: str, force: bool) -> None:
    """Remove a configured provider.

    \b
    EXAMPLES:
        $ yaccs remove openrouter
        $ yaccs remove openrouter --force
    """
    with report_errors("remove provider"):
        store = get_store(ctx)

        if not store.exists(name):
            raise ProfileNotFoundError(f"Provider '{name}' not configured")

        was_active = store.get_active() == name
        if not force:
            if was_active:
                console.print("[yellow]Warning:[/yellow] This is the active provider")
            if not confirm(f"Delete provider '{name}'?"):
                cancelled("Deletion cancelled")

        store.remove(name)

        console.print(f"[green]Provider '{escape(name)}' removed[/green]")
        if was_active:
            console.print("[yellow]Active provider has been unset[/yellow]")


@main.command(name="list")
@click.pass_context
def list_providers(ctx: click.Context) -> None:
    """List all configured providers.

    The active provider is marked with an asterisk (*).
    """
    with report_errors("list providers"):
        store = get_store(ctx)
        entries = list(store.list())

        if not entries:
            console.print("No providers configured yet.")
            console.print("Use 'yaccs configure <provider>' to add a provider")
            return

        table = Table(title="Configured providers")
        table.add_column("Active", style="cyan", width=6)
        table.add_column("Name", style="green")
        table.add_column("Base URL", style="blue")
        table.add_column("Model", style="yellow")

        for entry in entries:
            marker = "*" if entry.active else ""
            try:
                profile = store.read(entry.name)
                table.add_row(marker, escape(entry.name), escape(profile.base_url), escape(profile.models.main))
            except YaccsError as e:
                logger.debug(f"Could not read provider '{entry.name}': {e}")
                table.add_row(marker, escape(entry.name), "[red]unreadable[/red]", "-")

        console.print(table)


@main.command(name="status")
@click.pass_context
def show_status(ctx: click.Context) -> None:
    """Show the currently active provider and its variables."""
    with report_errors("show status"):
        store = get_store(ctx)

        if store.get_active() is None:
            console.print("No provider active (using default Claude Code)")
            return

        profile = store.get_active_profile()
        console.print(f"[green]Active provider:[/green] {escape(profile.name)}")
        console.print(f"Config file: {store.path_for(profile.name)}")
        console.print()
        console.print("Environment variables:")
        for key, value in LogSanitizer.sanitize_env_vars(profile.to_env()).items():
            console.print(f"  {key}={escape(value)}")


@main.command(
    name="use",
    add_help_option=False,
    context_settings={"ignore_unknown_options": True, "allow_extra_args": True},
)
@click.argument("name")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def use_provider(ctx: click.Context, name: str, args: tuple[str, ...]) -> None:
    """Switch to a provider and run Claude Code.

    Same as 'yaccs NAME [ARGS...]'. ARGS (including --help) are passed to
    Claude Code unchanged.
    """
    with report_errors("switch provider"):
        store = get_store(ctx)
        settings = load_settings(store)

        if not store.exists(name):
            available = store.list().names()
            console.print(f"[red]Error:[/red] Provider '{escape(name)}' not configured")
            console.print(f"Available providers: {escape(', '.join(available)) if available else '(none configured yet)'}")
            sys.exit(1)

        launcher.resolve_command(settings.target_command)
        projection = store.activate(name)
        launcher.launch(projection, settings.target_command, args)


@click.command(
    name="default",
    add_help_option=False,
    context_settings={"ignore_unknown_options": True, "allow_extra_args": True},
)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def default_provider(ctx: click.Context, args: tuple[str, ...]) -> None:
    """Reset to the default Claude Code subscription and run Claude Code.

    Unsets all provider variables. ARGS are passed to Claude Code unchanged.
    """
    with report_errors("reset provider"):
        store = get_store(ctx)
        settings = load_settings(store)

        launcher.resolve_command(settings.target_command)
        projection = store.deactivate()
        console.print("[green]Reset to default Claude Code subscription[/green]")
        launcher.launch(projection, settings.target_command, args)


main.add_command(default_provider, name="default")
main.add_command(default_provider, name="reset")


@main.command(name="export")
@click.argument("name", required=False)
@click.pass_context
def export_provider(ctx: click.Context, name: str | None) -> None:
    """Print shell commands that switch the current shell to a provider.

    Does not change the active provider. Without NAME, prints the commands
    that reset to the default subscription.

    \b
    EXAMPLES:
        $ eval "$(yaccs export glm)"
        $ eval "$(yaccs export)"
    """
    with report_errors("export provider"):
        store = get_store(ctx)
        projection = store.preview_activation(name)
        click.echo(projection.to_shell())


main.add_command(var_group)
main.add_command(config_group)


if __name__ == "__main__":
    main()
