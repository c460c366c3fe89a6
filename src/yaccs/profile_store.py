"""Provider profile store.

Profiles live one per file under a user-owned root directory, next to a
marker file naming the active profile:

    ROOT/providers/<name>.sh    # one file per profile, mode 0600
    ROOT/active                 # single line: active profile name

Architecture:
- The store owns files and the active marker; encoding belongs to
  ``profile_codec`` and environment math to ``env_projector``
- Every write goes to a temporary file that is atomically moved into place
- Rename and remove keep the active marker consistent with the files
- A missing active marker file means "no active profile"

The store does not lock across processes. Two invocations racing on the
same profile may interleave; each single operation is still atomic.
"""

import logging
import os
from collections.abc import Iterator
from dataclasses import dataclass, replace
from pathlib import Path

from yaccs import profile_codec
from yaccs.config_manager import ConfigManager
from yaccs.env_projector import EnvProjection, StoredProfile, project
from yaccs.errors import (
    ActiveMarkerError,
    InvalidNameError,
    ProfileExistsError,
    ProfileNotFoundError,
    StoreInitError,
    StoreIOError,
    ValidationError,
    YaccsError,
)
from yaccs.log_sanitizer import LogSanitizer
from yaccs.profile_codec import ProviderProfile, TierModels

logger = logging.getLogger(__name__)


def validate_profile_name(name: str) -> None:
    """Validate profile name format.

    Args:
        name: Profile name to validate

    Raises:
        InvalidNameError: If name format is invalid

    Rules:
        - Non-empty
        - No path separators, NUL or line breaks
        - Cannot start with '.' (reserved for temporary files)
    """
    if not name:
        raise InvalidNameError("Provider name cannot be empty")

    if any(ch in name for ch in ("/", "\\", "\x00", "\n", "\r")):
        raise InvalidNameError(
            f"Invalid provider name: {name!r}\n"
            "Provider names cannot contain slashes, NUL characters, or line breaks"
        )

    if name.startswith("."):
        raise InvalidNameError(f"Provider name cannot start with '.': {name}")


@dataclass(frozen=True)
class ProfileEntry:
    """One row of the profile listing."""

    name: str
    active: bool
    path: Path


@dataclass
class ProfileChanges:
    """Pending field changes for one profile.

    Collected before any mutation, validated as a batch by ``apply_to`` and
    written with a single ``ProfileStore.update``. A field left as None is
    unchanged.
    """

    name: str | None = None
    base_url: str | None = None
    api_key: str | None = None
    main_model: str | None = None
    haiku_model: str | None = None
    sonnet_model: str | None = None
    opus_model: str | None = None
    subagent_model: str | None = None
    small_fast_model: str | None = None
    disable_nonessential_traffic: bool | None = None

    def is_empty(self) -> bool:
        return all(value is None for value in vars(self).values())

    def apply_to(self, profile: ProviderProfile) -> ProviderProfile:
        """Return a new profile with these changes applied.

        Tiers that used the old main model follow a new main model unless
        they are changed explicitly.

        Raises:
            ValidationError: If a changed field is empty or unstorable
            InvalidNameError: If the new name is not allowed
        """
        if self.name is not None:
            validate_profile_name(self.name)

        old = profile.models
        main = self.main_model if self.main_model is not None else old.main

        tiers = {}
        for attr in profile_codec.TIER_VARS:
            explicit = getattr(self, f"{attr}_model")
            current = getattr(old, attr)
            if explicit is not None:
                tiers[attr] = explicit
            elif current == old.main:
                tiers[attr] = main
            else:
                tiers[attr] = current

        return replace(
            profile,
            name=self.name if self.name is not None else profile.name,
            base_url=self.base_url if self.base_url is not None else profile.base_url,
            api_key=self.api_key if self.api_key is not None else profile.api_key,
            models=TierModels(main=main, **tiers),
            disable_nonessential_traffic=(
                self.disable_nonessential_traffic
                if self.disable_nonessential_traffic is not None
                else profile.disable_nonessential_traffic
            ),
            custom_vars=dict(profile.custom_vars),
        )


# (label, attribute path) pairs shown in previews, in display order
PROFILE_FIELDS = (
    ("Provider Name", "name"),
    ("Base URL", "base_url"),
    ("API Key", "api_key"),
    ("Main Model", "models.main"),
    ("Haiku Model", "models.haiku"),
    ("Sonnet Model", "models.sonnet"),
    ("Opus Model", "models.opus"),
    ("Subagent Model", "models.subagent"),
    ("Small/Fast Model", "models.small_fast"),
)


def field_value(profile: ProviderProfile, attr_path: str) -> str:
    value = profile
    for part in attr_path.split("."):
        value = getattr(value, part)
    return value


def profile_diff(before: ProviderProfile, after: ProviderProfile) -> list[tuple[str, str, str]]:
    """List (label, old, new) for every displayed field that differs."""
    changes = []
    for label, attr_path in PROFILE_FIELDS:
        old, new = field_value(before, attr_path), field_value(after, attr_path)
        if old != new:
            changes.append((label, old, new))
    if before.disable_nonessential_traffic != after.disable_nonessential_traffic:
        changes.append(
            (
                "Disable Nonessential Traffic",
                str(before.disable_nonessential_traffic),
                str(after.disable_nonessential_traffic),
            )
        )
    return changes


class ProfileListing:
    """Sorted listing of stored profiles.

    Iterating scans the providers directory again, so the listing can be
    iterated any number of times and always reflects the current files.
    """

    def __init__(self, store: "ProfileStore"):
        self._store = store

    def __iter__(self) -> Iterator[ProfileEntry]:
        active = self._store.get_active()
        try:
            paths = sorted(
                (p for p in self._store.providers_dir.glob(f"*{ProfileStore.PROFILE_SUFFIX}")
                 if p.is_file() and not p.name.startswith(".")),
                key=lambda p: p.stem,
            )
        except OSError as e:
            raise StoreIOError(f"Failed to list providers: {e}") from e

        for path in paths:
            yield ProfileEntry(name=path.stem, active=path.stem == active, path=path)

    def names(self) -> list[str]:
        return [entry.name for entry in self]


class ProfileStore:
    """Durable CRUD over provider profiles plus the active marker."""

    PROVIDERS_DIRNAME = "providers"
    ACTIVE_FILENAME = "active"
    PROFILE_SUFFIX = ".sh"

    def __init__(self, root: Path | str | None = None):
        self.root = Path(root) if root is not None else ConfigManager.resolve_root()
        self.providers_dir = self.root / self.PROVIDERS_DIRNAME
        self.active_file = self.root / self.ACTIVE_FILENAME
        self._ready = False

    # Root and paths

    def ensure_root(self) -> None:
        """Create the root and providers directories on first use.

        Raises:
            StoreInitError: If the directories cannot be created
        """
        if self._ready:
            return

        ConfigManager.guard_test_mode(self.root)

        try:
            for directory in (self.root, self.providers_dir):
                if not directory.is_dir():
                    directory.mkdir(parents=True, exist_ok=True)
                    os.chmod(directory, 0o700)
        except OSError as e:
            raise StoreInitError(f"Failed to create directory: {e}") from e

        logger.debug(f"Provider store ready: {self.root}")
        self._ready = True

    def path_for(self, name: str) -> Path:
        validate_profile_name(name)
        return self.providers_dir / f"{name}{self.PROFILE_SUFFIX}"

    def exists(self, name: str) -> bool:
        self.ensure_root()
        return self.path_for(name).is_file()

    def _require_path(self, name: str) -> Path:
        path = self.path_for(name)
        if not path.is_file():
            raise ProfileNotFoundError(f"Provider '{name}' not configured")
        return path

    def _atomic_write(self, path: Path, text: str) -> None:
        """Write text with owner-only permissions via temp file and rename."""
        temp_path = path.with_name(f".{path.name}.tmp")
        try:
            fd = os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())

            # Set secure permissions before moving
            os.chmod(temp_path, 0o600)

            # Atomic rename
            temp_path.replace(path)

        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise StoreIOError(f"Failed to write {path}: {e}") from e

    # Profiles

    def read_text(self, name: str) -> str:
        """Read the raw content of a profile file.

        Raises:
            ProfileNotFoundError: If the profile does not exist
            StoreIOError: If the file cannot be read
        """
        self.ensure_root()
        path = self._require_path(name)
        try:
            mode = path.stat().st_mode & 0o777
            if mode & 0o077:
                logger.warning(f"Provider file has insecure permissions: {oct(mode)}. Fixing to 0600...")
                os.chmod(path, 0o600)
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise StoreIOError(f"Failed to read provider '{name}': {e}") from e

    def read(self, name: str) -> ProviderProfile:
        """Load and decode one profile.

        Raises:
            ProfileNotFoundError: If the profile does not exist
            ProfileFormatError: If the file cannot be decoded
            StoreIOError: If the file cannot be read
        """
        return profile_codec.decode(self.read_text(name), name)

    def write(self, name: str, profile: ProviderProfile) -> Path:
        """Encode and persist a profile, replacing any existing one.

        Returns:
            Path of the written file

        Raises:
            ValidationError: If the profile is invalid or its name does not match
            StoreIOError: If the file cannot be written
        """
        self.ensure_root()
        if profile.name != name:
            raise ValidationError(f"Profile name '{profile.name}' does not match '{name}'")

        path = self.path_for(name)
        self._atomic_write(path, profile_codec.encode(profile))
        logger.debug(f"Saved provider '{name}' to: {path}")
        return path

    def create(self, name: str, profile: ProviderProfile, overwrite: bool = False) -> Path:
        """Write a new profile.

        Raises:
            ProfileExistsError: If the name is taken and overwrite is False
        """
        if self.exists(name) and not overwrite:
            raise ProfileExistsError(f"Provider '{name}' already exists")
        path = self.write(name, profile)
        logger.info(f"Provider '{name}' configured")
        return path

    def update(self, name: str, changes: ProfileChanges, overwrite: bool = False) -> ProviderProfile:
        """Apply a batch of field changes, renaming if the batch says so.

        Nothing is written unless the whole batch validates. With a rename,
        the updated profile is written under the new name, the active marker
        follows, and only then is the old file removed.

        Args:
            name: Profile to modify
            changes: Pending field changes
            overwrite: Allow the new name to replace an existing profile

        Returns:
            The updated profile

        Raises:
            ProfileNotFoundError: If the profile does not exist
            ProfileExistsError: If renaming onto an existing profile without overwrite
            ValidationError: If the batch does not validate
            StoreIOError: If a file operation fails
        """
        current = self.read(name)
        updated = changes.apply_to(current)
        new_name = updated.name

        if new_name == name:
            self.write(name, updated)
            logger.info(f"Provider '{name}' modified")
            return updated

        target_existed = self.exists(new_name)
        if target_existed and not overwrite:
            raise ProfileExistsError(f"Provider '{new_name}' already exists")

        was_active = self.get_active() == name
        self.write(new_name, updated)
        try:
            if was_active:
                self._write_active(new_name)
            self.path_for(name).unlink()
        except (OSError, StoreIOError) as e:
            if not target_existed:
                self.path_for(new_name).unlink(missing_ok=True)
            if was_active:
                try:
                    self._write_active(name)
                except StoreIOError as revert_error:
                    logger.error(f"Failed to restore active marker for '{name}': {revert_error}")
            raise StoreIOError(f"Failed to rename provider '{name}' to '{new_name}': {e}") from e

        logger.info(f"Provider '{name}' renamed to '{new_name}' and modified")
        return updated

    def rename(self, old_name: str, new_name: str, overwrite: bool = False) -> None:
        """Rename a profile, moving the active marker with it.

        Raises:
            ProfileNotFoundError: If old_name does not exist
            ProfileExistsError: If new_name exists and overwrite is False
            StoreIOError: If the move or marker update fails (the move is reverted)
        """
        self.ensure_root()
        validate_profile_name(new_name)
        old_path = self._require_path(old_name)
        new_path = self.path_for(new_name)

        if old_name == new_name:
            return

        if new_path.exists() and not overwrite:
            raise ProfileExistsError(f"Provider '{new_name}' already exists")

        was_active = self.get_active() == old_name

        try:
            old_path.replace(new_path)
        except OSError as e:
            raise StoreIOError(f"Failed to rename provider '{old_name}': {e}") from e

        if was_active:
            try:
                self._write_active(new_name)
            except StoreIOError:
                try:
                    new_path.replace(old_path)
                except OSError as revert_error:
                    logger.error(f"Failed to revert rename of '{old_name}': {revert_error}")
                raise

        logger.info(f"Provider '{old_name}' renamed to '{new_name}'")

    def remove(self, name: str) -> None:
        """Delete a profile and clear the active marker if it pointed here.

        Raises:
            ProfileNotFoundError: If the profile does not exist
            StoreIOError: If the file cannot be deleted
        """
        self.ensure_root()
        path = self._require_path(name)
        was_active = self.get_active() == name

        try:
            path.unlink()
        except OSError as e:
            raise StoreIOError(f"Failed to remove provider '{name}': {e}") from e

        if was_active:
            self.clear_active()

        logger.info(f"Provider '{name}' removed")

    def list(self) -> ProfileListing:
        """All stored profile names in lexicographic order, with the active one flagged."""
        self.ensure_root()
        return ProfileListing(self)

    # Active marker

    def get_active(self) -> str | None:
        """Name recorded in the active marker, or None.

        Only the trailing newline is dropped; names may start or end with spaces.
        """
        self.ensure_root()
        try:
            name = self.active_file.read_text(encoding="utf-8").rstrip("\n")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StoreIOError(f"Failed to read active marker: {e}") from e
        return name or None

    def _write_active(self, name: str) -> None:
        self._atomic_write(self.active_file, name + "\n")

    def set_active(self, name: str) -> None:
        """Point the active marker at an existing profile.

        Raises:
            ProfileNotFoundError: If the profile does not exist
        """
        self.ensure_root()
        self._require_path(name)
        self._write_active(name)
        logger.debug(f"Active provider set to '{name}'")

    def clear_active(self) -> None:
        self.ensure_root()
        try:
            self.active_file.unlink(missing_ok=True)
        except OSError as e:
            raise StoreIOError(f"Failed to clear active marker: {e}") from e
        logger.debug("Active provider cleared")

    def get_active_profile(self) -> ProviderProfile | None:
        """Decode the active profile.

        Raises:
            ActiveMarkerError: If the marker names a profile that does not exist
                or is not a valid profile name
        """
        name = self.get_active()
        if name is None:
            return None
        try:
            found = self.exists(name)
        except InvalidNameError as e:
            raise ActiveMarkerError(name) from e
        if not found:
            raise ActiveMarkerError(name)
        return self.read(name)

    # Activation

    def _previous_for_projection(self) -> StoredProfile | None:
        """Custom variables of the marked profile, read straight from its file.

        Only the export lines are parsed, so a profile missing a standard
        field still has its custom variables cleared. Problems with the
        marker or the file are logged and never block switching.
        """
        name = self.get_active()
        if name is None:
            return None
        try:
            parsed = profile_codec.parse_profile_text(self.read_text(name))
        except (InvalidNameError, ProfileNotFoundError):
            logger.warning(f"{ActiveMarkerError(name)}; ignoring stale active marker")
            return None
        except StoreInitError:
            raise
        except YaccsError as e:
            logger.warning(
                f"Active provider could not be read, its custom variables will not be cleared: "
                f"{LogSanitizer.sanitize_exception(e)}"
            )
            return None
        return StoredProfile(name=name, custom_vars=parsed.custom_vars)

    def preview_activation(self, name: str | None) -> EnvProjection:
        """Projection for activating ``name`` (None = deactivate), without changing the marker."""
        target = self.read(name) if name is not None else None
        return project(self._previous_for_projection(), target)

    def activate(self, name: str) -> EnvProjection:
        """Mark ``name`` active and return the environment change to apply.

        Raises:
            ProfileNotFoundError: If the profile does not exist
            ProfileFormatError: If the profile cannot be decoded
        """
        projection = self.preview_activation(name)
        self.set_active(name)
        logger.info(f"Activated provider '{name}'")
        return projection

    def deactivate(self) -> EnvProjection:
        """Clear the active marker and return the environment change to apply."""
        projection = self.preview_activation(None)
        self.clear_active()
        logger.info("Reset to default Claude Code subscription")
        return projection

    # Custom variables

    def list_custom_vars(self, name: str) -> dict[str, str]:
        return profile_codec.parse_profile_text(self.read_text(name)).custom_vars

    def set_custom_var(self, name: str, key: str, value: str) -> None:
        """Add or update one custom variable, rewriting only its line.

        Raises:
            ProfileNotFoundError: If the profile does not exist
            InvalidNameError: If the variable name is not allowed
            ValidationError: If the value cannot be stored
        """
        text = self.read_text(name)
        self._atomic_write(self.path_for(name), profile_codec.set_custom_var(text, key, value))
        logger.info(f"Set {key} on provider '{name}'")

    def delete_custom_var(self, name: str, key: str) -> None:
        """Remove one custom variable.

        Raises:
            ProfileNotFoundError: If the profile or the variable does not exist
        """
        text = self.read_text(name)
        self._atomic_write(self.path_for(name), profile_codec.delete_custom_var(text, key))
        logger.info(f"Deleted {key} from provider '{name}'")


__all__ = [
    "PROFILE_FIELDS",
    "ProfileChanges",
    "ProfileEntry",
    "ProfileListing",
    "ProfileStore",
    "field_value",
    "profile_diff",
    "validate_profile_name",
]
