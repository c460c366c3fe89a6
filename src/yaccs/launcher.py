"""Hand control to the target program with a projected environment.

``launch`` never returns on success: the current process image is replaced
by the target program, so everything yaccs needs to do must happen before
it is called.
"""

import logging
import os
import shutil
from collections.abc import Sequence
from typing import NoReturn

from yaccs.env_projector import EnvProjection
from yaccs.errors import LaunchError

logger = logging.getLogger(__name__)


def build_environment(projection: EnvProjection, base: dict[str, str] | None = None) -> dict[str, str]:
    """Return a copy of ``base`` (default: ``os.environ``) with the projection applied."""
    env = dict(os.environ if base is None else base)
    projection.apply(env)
    return env


def resolve_command(command: str) -> str:
    """Locate the target program.

    Returns:
        Full path of the program

    Raises:
        LaunchError: If the program is not on PATH
    """
    path = shutil.which(command)
    if path is None:
        raise LaunchError(
            f"Target program '{command}' not found on PATH.\n"
            "Install it, or point yaccs at it with: yaccs config set target_command <path>"
        )
    return path


def launch(projection: EnvProjection, command: str, args: Sequence[str] = ()) -> NoReturn:
    """Apply the projection and exec the target program.

    Args:
        projection: Environment change to apply
        command: Target program name or path
        args: Arguments forwarded unchanged

    Raises:
        LaunchError: If the program cannot be found or executed
    """
    resolve_command(command)

    env = build_environment(projection)
    argv = [command, *args]

    logger.debug(f"Executing {command} with {len(args)} forwarded argument(s)")

    try:
        os.execvpe(command, argv, env)
    except OSError as e:
        raise LaunchError(f"Failed to execute '{command}': {e}") from e

    # os.execvpe only returns by raising
    raise LaunchError(f"Failed to execute '{command}'")


__all__ = ["build_environment", "launch", "resolve_command"]
