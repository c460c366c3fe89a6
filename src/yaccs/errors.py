"""Error types raised by the yaccs provider store.

Every failure the store reports is one of these classes so the CLI can
present it and pick an exit code without string matching.
"""


class YaccsError(Exception):
    """Base class for all yaccs errors."""

    pass


class ProfileNotFoundError(YaccsError):
    """Raised when a profile (or one of its custom variables) does not exist."""

    pass


class ProfileExistsError(YaccsError):
    """Raised when a profile name is already taken and overwrite was not confirmed."""

    pass


class InvalidNameError(YaccsError):
    """Raised when a profile or custom variable name is not acceptable."""

    pass


class ValidationError(YaccsError):
    """Raised when a required field is empty or a value cannot be stored."""

    pass


class ProfileFormatError(ValidationError):
    """Raised when a profile file cannot be decoded."""

    pass


class StoreIOError(YaccsError):
    """Raised when a filesystem operation on the store fails."""

    pass


class StoreInitError(StoreIOError):
    """Raised when the store root cannot be created. Not recoverable."""

    pass


class ActiveMarkerError(YaccsError):
    """Raised when the active marker points at a profile that no longer exists."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Active provider '{name}' config not found")


class LaunchError(YaccsError):
    """Raised when the target program cannot be executed."""

    pass


__all__ = [
    "ActiveMarkerError",
    "InvalidNameError",
    "LaunchError",
    "ProfileExistsError",
    "ProfileFormatError",
    "ProfileNotFoundError",
    "StoreIOError",
    "StoreInitError",
    "ValidationError",
    "YaccsError",
]
