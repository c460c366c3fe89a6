"""Configuration management module.

This module resolves the yaccs store root and handles the optional tool
settings file ``ROOT/config.toml``:

    target_command = "claude"
    redact_length = 5

Root resolution order: ``--root`` option, ``YACCS_HOME``, ``~/.yaccs``.

Security:
- Config file permissions: 0600 (owner read/write only)
- Atomic writes through a temporary file
- Comments and unknown keys preserved on save (tomlkit)
"""

import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

try:
    import tomli  # type: ignore[import]
except ImportError:
    # Fallback for newer Python versions
    try:
        import tomllib as tomli  # type: ignore[import]
    except ImportError as e:
        raise ImportError("toml library not available. Install with: pip install tomli") from e

try:
    import tomlkit
except ImportError as e:
    raise ImportError("tomlkit library not available. Install with: pip install tomlkit") from e

from yaccs.errors import YaccsError

logger = logging.getLogger(__name__)


class ConfigError(YaccsError):
    """Raised when configuration operations fail."""

    pass


@dataclass
class YaccsConfig:
    """yaccs tool settings."""

    target_command: str = "claude"
    redact_length: int = 5

    def __post_init__(self):
        if not isinstance(self.target_command, str) or not self.target_command.strip():
            raise ConfigError("target_command cannot be empty")
        if isinstance(self.redact_length, bool) or not isinstance(self.redact_length, int):
            raise ConfigError(f"redact_length must be an integer, got: {self.redact_length!r}")
        if not 0 <= self.redact_length <= 32:
            raise ConfigError(f"redact_length must be between 0 and 32, got: {self.redact_length}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for TOML serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "YaccsConfig":
        """Create from dictionary, ignoring unknown keys."""
        return cls(
            target_command=data.get("target_command", "claude"),
            redact_length=data.get("redact_length", 5),
        )


class ConfigManager:
    """Resolve the store root and manage ``config.toml`` inside it."""

    CONFIG_FILENAME = "config.toml"
    ROOT_ENV_VAR = "YACCS_HOME"
    TEST_MODE_ENV_VAR = "YACCS_TEST_MODE"

    # key -> type used to parse values given on the command line
    SETTABLE_KEYS: dict[str, type] = {
        "target_command": str,
        "redact_length": int,
    }

    @classmethod
    def default_root(cls) -> Path:
        return Path.home() / ".yaccs"

    @classmethod
    def resolve_root(cls, cli_value: str | None = None) -> Path:
        """Get store root with CLI override.

        Args:
            cli_value: Root directory from CLI argument (takes precedence)

        Returns:
            Absolute root path (not created)
        """
        if cli_value:
            return Path(cli_value).expanduser().resolve()

        env_value = os.environ.get(cls.ROOT_ENV_VAR)
        if env_value:
            return Path(env_value).expanduser().resolve()

        return cls.default_root()

    @classmethod
    def guard_test_mode(cls, root: Path) -> None:
        """Refuse to use the real ``~/.yaccs`` while tests are running.

        Raises:
            ConfigError: If test mode is on and root is the default root
        """
        if os.getenv(cls.TEST_MODE_ENV_VAR) != "true":
            return
        if Path(root).expanduser().resolve() == cls.default_root().resolve():
            raise ConfigError(
                "Cannot use the default ~/.yaccs root during tests. "
                "Tests must pass an explicit root (tmp_path fixture)."
            )

    @classmethod
    def get_config_path(cls, root: Path) -> Path:
        return Path(root) / cls.CONFIG_FILENAME

    @classmethod
    def load_config(cls, root: Path) -> YaccsConfig:
        """Load configuration from ``ROOT/config.toml``.

        Args:
            root: Store root directory

        Returns:
            YaccsConfig object (defaults if the file does not exist)

        Raises:
            ConfigError: If loading fails
        """
        config_path = cls.get_config_path(root)

        if not config_path.exists():
            logger.debug("Config file not found, using defaults")
            return YaccsConfig()

        try:
            # Verify file permissions
            mode = config_path.stat().st_mode & 0o777
            if mode & 0o077:
                logger.warning(f"Config file has insecure permissions: {oct(mode)}. Fixing to 0600...")
                os.chmod(config_path, 0o600)

            with open(config_path, "rb") as f:
                data = tomli.load(f)  # type: ignore[attr-defined]

            logger.debug(f"Loaded config from: {config_path}")
            return YaccsConfig.from_dict(data)

        except ConfigError:
            raise
        except Exception as e:
            raise ConfigError(f"Failed to load config: {e}") from e

    @classmethod
    def save_config(cls, config: YaccsConfig, root: Path) -> None:
        """Save configuration to ``ROOT/config.toml``.

        Args:
            config: Configuration to save
            root: Store root directory

        Raises:
            ConfigError: If saving fails
        """
        cls.guard_test_mode(root)

        config_path = cls.get_config_path(root)
        temp_path = config_path.with_suffix(".tmp")
        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)

            # Load existing file if it exists (preserves comments/formatting)
            if config_path.exists():
                with open(config_path) as f:
                    doc = tomlkit.load(f)
            else:
                doc = tomlkit.document()

            for key, value in config.to_dict().items():
                doc[key] = value

            fd = os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w") as f:
                tomlkit.dump(doc, f)

            # Set secure permissions before moving
            os.chmod(temp_path, 0o600)

            # Atomic rename
            temp_path.replace(config_path)

            logger.debug(f"Saved config to: {config_path}")

        except Exception as e:
            if temp_path.exists():
                temp_path.unlink()
            raise ConfigError(f"Failed to save config: {e}") from e

    @classmethod
    def set_value(cls, root: Path, key: str, raw_value: str) -> YaccsConfig:
        """Parse and store one setting given as text.

        Args:
            root: Store root directory
            key: Setting name (dashes accepted in place of underscores)
            raw_value: Value as typed by the user

        Returns:
            Updated YaccsConfig

        Raises:
            ConfigError: If the key is unknown or the value is invalid
        """
        key = key.replace("-", "_")
        if key not in cls.SETTABLE_KEYS:
            raise ConfigError(f"Unknown config key: {key}\nValid keys: {', '.join(sorted(cls.SETTABLE_KEYS))}")

        value_type = cls.SETTABLE_KEYS[key]
        try:
            value = value_type(raw_value)
        except ValueError as e:
            raise ConfigError(f"Invalid value for {key}: {raw_value}") from e

        data = cls.load_config(root).to_dict()
        data[key] = value
        config = YaccsConfig.from_dict(data)
        cls.save_config(config, root)
        return config


__all__ = ["ConfigError", "ConfigManager", "YaccsConfig"]
