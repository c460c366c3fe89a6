"""Custom Click group for the yaccs command line.

Two behaviors on top of click.Group:
- An unknown command name is treated as a provider name, so
  ``yaccs glm --resume`` means ``yaccs use glm --resume``
- Usage errors print the error followed by the relevant help
"""

import sys
from typing import Any

import click


class YaccsGroup(click.Group):
    """Click group that routes unknown commands to provider activation."""

    # Command that receives unknown command names as its first argument
    fallback_command = "use"

    def main(self, *args: Any, **kwargs: Any) -> Any:
        """Override main to auto-display help on usage errors."""
        try:
            return super().main(*args, **kwargs)
        except (
            click.exceptions.UsageError,
            click.exceptions.BadParameter,
            click.exceptions.MissingParameter,
        ) as e:
            click.echo(f"Error: {e.format_message()}", err=True)

            ctx = e.ctx if hasattr(e, "ctx") and e.ctx else None
            if ctx:
                click.echo("")
                click.echo(ctx.get_help())
                ctx.exit(e.exit_code if hasattr(e, "exit_code") else 1)
                return None
            sys.exit(e.exit_code if hasattr(e, "exit_code") else 1)
            return None

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> tuple[str | None, click.Command | None, list[str]]:
        """Resolve known commands normally; treat anything else as a provider name."""
        cmd_name = args[0] if args else None
        if cmd_name and cmd_name not in self.commands and not cmd_name.startswith("-"):
            fallback = self.get_command(ctx, self.fallback_command)
            if fallback is not None:
                return self.fallback_command, fallback, args

        try:
            return super().resolve_command(ctx, args)
        except click.UsageError as e:
            if isinstance(e, click.exceptions.MissingParameter | click.exceptions.BadParameter):
                raise
            click.echo(f"Error: {e.format_message()}", err=True)
            click.echo("")
            click.echo(ctx.get_help())
            ctx.exit(1)
            return None, None, []


# Subgroups created with @main.group() also use YaccsGroup
YaccsGroup.group_class = YaccsGroup
