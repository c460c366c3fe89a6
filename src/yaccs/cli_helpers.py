"""CLI Helper Functions.

Shared plumbing for yaccs commands: store and settings lookup from the
click context, uniform error reporting, and profile previews.
"""

import contextlib
import logging
import sys
from collections.abc import Iterator

import click
from rich.console import Console
from rich.markup import escape

from yaccs.config_manager import ConfigManager, YaccsConfig
from yaccs.errors import StoreInitError, YaccsError
from yaccs.log_sanitizer import LogSanitizer
from yaccs.profile_codec import ProviderProfile
from yaccs.profile_store import PROFILE_FIELDS, ProfileStore, field_value

logger = logging.getLogger(__name__)
console = Console()


@contextlib.contextmanager
def report_errors(action: str) -> Iterator[None]:
    """Turn yaccs errors into an error message and exit code 1.

    Declining or interrupting a prompt exits 0 without changes.
    """
    try:
        yield
    except StoreInitError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        console.print("yaccs cannot continue without a writable store directory.")
        sys.exit(1)
    except YaccsError as e:
        console.print(f"[red]Error:[/red] {escape(LogSanitizer.sanitize_exception(e))}")
        sys.exit(1)
    except click.exceptions.Abort:
        console.print("\nCancelled")
        sys.exit(0)
    except Exception as e:
        console.print(f"[red]Unexpected error:[/red] {escape(LogSanitizer.sanitize_exception(e))}")
        logger.error(f"Failed to {action}: {LogSanitizer.sanitize_exception(e)}", exc_info=True)
        sys.exit(1)


def get_store(ctx: click.Context) -> ProfileStore:
    """Open the store for the root chosen on the command line (created lazily)."""
    obj = ctx.find_root().obj or {}
    store = ProfileStore(ConfigManager.resolve_root(obj.get("root")))
    store.ensure_root()
    return store


def load_settings(store: ProfileStore) -> YaccsConfig:
    return ConfigManager.load_config(store.root)


def cancelled(message: str) -> None:
    """Report a declined confirmation and exit 0."""
    console.print(message)
    sys.exit(0)


def display_value(label: str, value: str, redact_length: int) -> str:
    if label == "API Key":
        return f"{LogSanitizer.redact_key(value, redact_length)} ({len(value)} chars)"
    return value


def print_profile(profile: ProviderProfile, redact_length: int, numbered: bool = False) -> None:
    """Print every displayed field of a profile, secrets redacted."""
    for index, (label, attr_path) in enumerate(PROFILE_FIELDS):
        value = display_value(label, field_value(profile, attr_path), redact_length)
        prefix = f"{index}. " if numbered else ""
        console.print(f"  {prefix}{label}: {escape(value)}")
    if profile.custom_vars:
        console.print("  Custom variables:")
        for key, value in LogSanitizer.sanitize_env_vars(profile.custom_vars).items():
            console.print(f"    {key}={escape(value)}")


__all__ = [
    "cancelled",
    "console",
    "display_value",
    "get_store",
    "load_settings",
    "print_profile",
    "report_errors",
]
