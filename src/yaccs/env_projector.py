"""Environment projection for switching between provider profiles.

Switching profiles is expressed as a value: the variables to unset and the
variables to apply. Nothing here touches ``os.environ``; the launcher
applies the projection right before handing control to the target program.

The previous profile's custom variables come from its on-disk record, not
from the live environment, which may have drifted.
"""

import logging
import shlex
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, field

from yaccs.profile_codec import STANDARD_VARS, ProviderProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredProfile:
    """Name and custom variables of a profile as read from disk.

    Enough to project away a previous profile whose file no longer decodes
    in full.
    """

    name: str
    custom_vars: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class EnvProjection:
    """Variables to clear, then variables to set.

    Attributes:
        to_unset: Variable names removed first (order irrelevant)
        to_apply: Variable name -> value set afterwards
        stale_custom: Custom names inherited from the previous profile
    """

    to_unset: frozenset[str]
    to_apply: dict[str, str] = field(default_factory=dict)
    stale_custom: frozenset[str] = frozenset()

    def apply(self, environ: MutableMapping[str, str]) -> None:
        """Apply to an environment mapping: unset first, then set."""
        for name in self.to_unset:
            environ.pop(name, None)
        environ.update(self.to_apply)

    def to_shell(self) -> str:
        """Render as POSIX shell lines suitable for ``eval``."""
        lines = [f"unset {name}" for name in sorted(self.to_unset - self.to_apply.keys())]
        lines.extend(f"export {name}={shlex.quote(value)}" for name, value in self.to_apply.items())
        return "\n".join(lines)


def project(
    previous: ProviderProfile | StoredProfile | None, activating: ProviderProfile | None
) -> EnvProjection:
    """Compute the environment change for activating a profile.

    Args:
        previous: Profile currently marked active, as stored on disk (or None)
        activating: Profile being activated, or None to deactivate

    Returns:
        EnvProjection where ``to_unset`` holds every standard variable plus
        the previous profile's custom variables (unless it is the profile
        being activated), and ``to_apply`` holds the activating profile's
        full variable set
    """
    stale: set[str] = set()
    if previous is not None and (activating is None or previous.name != activating.name):
        stale.update(previous.custom_vars)

    to_apply = activating.to_env() if activating is not None else {}

    logger.debug(
        f"Projection {previous.name if previous else '<none>'} -> "
        f"{activating.name if activating else '<none>'}: "
        f"{len(stale)} stale custom variable(s), {len(to_apply)} to apply"
    )

    return EnvProjection(
        to_unset=frozenset(STANDARD_VARS) | frozenset(stale),
        to_apply=to_apply,
        stale_custom=frozenset(stale),
    )


__all__ = ["EnvProjection", "StoredProfile", "project"]
