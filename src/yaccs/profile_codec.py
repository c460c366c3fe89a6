"""Provider profile model and its on-disk shell encoding.

Each provider profile is stored as a small shell script that exports the
variables Claude Code reads. Standard fields are written first, in a fixed
order. Extra provider-specific variables live in a dedicated section
marked with special comments:

    #!/bin/bash
    # YACCS Provider Configuration
    # Generated automatically - do not edit manually unless you know what you're doing

    export ANTHROPIC_AUTH_TOKEN="sk-..."
    export ANTHROPIC_BASE_URL="https://api.example.com"
    ...
    export CLAUDE_CODE_DISABLE_NONESSENTIAL_TRAFFIC=1
    # YACCS_CUSTOM_VARS_START - Do not edit this section manually
    export DISABLE_PROMPT_CACHING="1"
    # YACCS_CUSTOM_VARS_END

Values are double-quoted with shell escaping so the file stays valid to
``source``. Decoding is keyed by variable name, never by line position.
Custom variable edits rewrite only the lines inside the marked section.
"""

import logging
import re
from dataclasses import dataclass, field

from yaccs.errors import (
    InvalidNameError,
    ProfileFormatError,
    ProfileNotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

AUTH_TOKEN_VAR = "ANTHROPIC_AUTH_TOKEN"
BASE_URL_VAR = "ANTHROPIC_BASE_URL"
MODEL_VAR = "ANTHROPIC_MODEL"
HAIKU_MODEL_VAR = "ANTHROPIC_DEFAULT_HAIKU_MODEL"
SONNET_MODEL_VAR = "ANTHROPIC_DEFAULT_SONNET_MODEL"
OPUS_MODEL_VAR = "ANTHROPIC_DEFAULT_OPUS_MODEL"
SUBAGENT_MODEL_VAR = "CLAUDE_CODE_SUBAGENT_MODEL"
SMALL_FAST_MODEL_VAR = "ANTHROPIC_SMALL_FAST_MODEL"
DISABLE_TRAFFIC_VAR = "CLAUDE_CODE_DISABLE_NONESSENTIAL_TRAFFIC"

# TierModels attribute -> environment variable
TIER_VARS = {
    "haiku": HAIKU_MODEL_VAR,
    "sonnet": SONNET_MODEL_VAR,
    "opus": OPUS_MODEL_VAR,
    "subagent": SUBAGENT_MODEL_VAR,
    "small_fast": SMALL_FAST_MODEL_VAR,
}

# Encode order
STANDARD_VARS = (
    AUTH_TOKEN_VAR,
    BASE_URL_VAR,
    MODEL_VAR,
    HAIKU_MODEL_VAR,
    SONNET_MODEL_VAR,
    OPUS_MODEL_VAR,
    SUBAGENT_MODEL_VAR,
    SMALL_FAST_MODEL_VAR,
    DISABLE_TRAFFIC_VAR,
)

RESERVED_PREFIXES = ("ANTHROPIC_", "CLAUDE_CODE_")

PREAMBLE = (
    "#!/bin/bash",
    "# YACCS Provider Configuration",
    "# Generated automatically - do not edit manually unless you know what you're doing",
    "",
)

CUSTOM_START_TOKEN = "YACCS_CUSTOM_VARS_START"
CUSTOM_END_TOKEN = "YACCS_CUSTOM_VARS_END"
CUSTOM_MARKER_START = f"# {CUSTOM_START_TOKEN} - Do not edit this section manually"
CUSTOM_MARKER_END = f"# {CUSTOM_END_TOKEN}"

_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_EXPORT_PATTERN = re.compile(r"^\s*export\s+([A-Za-z_][A-Za-z0-9_]*)=(.*?)\s*$")
_ESCAPE_PATTERN = re.compile(r'([\\"$`])')
_ESCAPABLE = '\\"$`'
_FALSE_FLAGS = {"", "0", "false", "no", "off"}


def validate_custom_var_name(key: str) -> None:
    """Validate a custom environment variable name.

    Args:
        key: Variable name to validate

    Raises:
        InvalidNameError: If the name is not a shell identifier, uses a
            reserved prefix, or would fabricate a section marker
    """
    if not key:
        raise InvalidNameError("Variable name cannot be empty")

    if not _IDENTIFIER_PATTERN.match(key):
        raise InvalidNameError(
            f"Invalid variable name: {key}\n"
            "Variable names must start with a letter or underscore and contain "
            "only letters, numbers, and underscores"
        )

    for prefix in RESERVED_PREFIXES:
        if key.startswith(prefix):
            raise InvalidNameError(
                f"Variable name '{key}' uses reserved prefix '{prefix}'\n"
                "Standard fields are configured with 'yaccs modify'"
            )

    if CUSTOM_START_TOKEN in key or CUSTOM_END_TOKEN in key:
        raise InvalidNameError(f"Variable name '{key}' is reserved and cannot be used")


def validate_value(value: str, label: str) -> None:
    """Validate that a value can be stored on a single export line.

    Args:
        value: Value to validate
        label: Field or variable name (for error messages)

    Raises:
        ValidationError: If the value spans lines or contains a marker token
    """
    if any(ch in value for ch in ("\n", "\r", "\x00")):
        raise ValidationError(f"{label} cannot contain line breaks or NUL characters")
    if CUSTOM_START_TOKEN in value or CUSTOM_END_TOKEN in value:
        raise ValidationError(f"{label} cannot contain the text '{CUSTOM_START_TOKEN}' or '{CUSTOM_END_TOKEN}'")


def _require(value: str | None, label: str) -> None:
    if not value:
        raise ValidationError(f"{label} cannot be empty")
    validate_value(value, label)


@dataclass
class TierModels:
    """Model identifiers per Claude Code tier.

    Any tier left as None falls back to the main model.
    """

    main: str
    haiku: str | None = None
    sonnet: str | None = None
    opus: str | None = None
    subagent: str | None = None
    small_fast: str | None = None

    def __post_init__(self):
        _require(self.main, "Main model")
        for attr in TIER_VARS:
            value = getattr(self, attr)
            if value is None:
                setattr(self, attr, self.main)
            else:
                _require(value, f"{attr.replace('_', '/').title()} model")


@dataclass
class ProviderProfile:
    """One configured provider credential set.

    Attributes:
        name: Profile name, also the file stem on disk
        base_url: API endpoint
        api_key: Auth token (secret)
        models: Model identifiers per tier
        disable_nonessential_traffic: Emit the traffic optimization flag
        custom_vars: Extra provider-specific variables, in insertion order
    """

    name: str
    base_url: str
    api_key: str
    models: TierModels
    disable_nonessential_traffic: bool = True
    custom_vars: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Validate required fields and custom variables.

        Raises:
            ValidationError: If a required field is empty or a value is unstorable
            InvalidNameError: If a custom variable name is not allowed
        """
        _require(self.base_url, "Base URL")
        _require(self.api_key, "API Key")
        if not isinstance(self.models, TierModels):
            raise ValidationError("models must be a TierModels instance")
        for key, value in self.custom_vars.items():
            validate_custom_var_name(key)
            validate_value(value, key)

    def standard_env(self) -> dict[str, str]:
        """Standard variables for this profile, in encode order."""
        env = {
            AUTH_TOKEN_VAR: self.api_key,
            BASE_URL_VAR: self.base_url,
            MODEL_VAR: self.models.main,
        }
        for attr, var in TIER_VARS.items():
            env[var] = getattr(self.models, attr)
        if self.disable_nonessential_traffic:
            env[DISABLE_TRAFFIC_VAR] = "1"
        return env

    def to_env(self) -> dict[str, str]:
        """All variables this profile applies: standard then custom."""
        env = self.standard_env()
        env.update(self.custom_vars)
        return env


@dataclass
class ParsedProfile:
    """Raw variables read from a profile file.

    A standard variable absent from the file is absent from ``standard``;
    ``get`` then returns None rather than an empty string.
    """

    standard: dict[str, str] = field(default_factory=dict)
    custom_vars: dict[str, str] = field(default_factory=dict)

    def has(self, var: str) -> bool:
        return var in self.standard

    def get(self, var: str) -> str | None:
        return self.standard.get(var)


def quote_value(value: str) -> str:
    """Double-quote a value with shell escaping."""
    return '"' + _ESCAPE_PATTERN.sub(r"\\\1", value) + '"'


def _export_line(key: str, value: str) -> str:
    return f"export {key}={quote_value(value)}"


def _parse_value(raw: str, line_no: int) -> str:
    """Parse the right-hand side of an export line."""
    if raw.startswith('"'):
        chars = []
        i = 1
        while i < len(raw):
            ch = raw[i]
            if ch == "\\" and i + 1 < len(raw) and raw[i + 1] in _ESCAPABLE:
                chars.append(raw[i + 1])
                i += 2
                continue
            if ch == '"':
                trailing = raw[i + 1 :].strip()
                if trailing and not trailing.startswith("#"):
                    raise ProfileFormatError(f"Unexpected text after closing quote on line {line_no}")
                return "".join(chars)
            chars.append(ch)
            i += 1
        raise ProfileFormatError(f"Unterminated quoted value on line {line_no}")

    if raw.startswith("'"):
        end = raw.find("'", 1)
        if end == -1:
            raise ProfileFormatError(f"Unterminated quoted value on line {line_no}")
        return raw[1:end]

    return raw


def _split_lines(text: str, keepends: bool = False) -> list[str]:
    """Split on newline characters only.

    Values may hold other characters that ``str.splitlines`` treats as line
    boundaries (form feed, U+2028 and so on); the file format does not.
    """
    lines = text.split("\n")
    if not keepends:
        return lines
    kept = [line + "\n" for line in lines[:-1]]
    if lines[-1]:
        kept.append(lines[-1])
    return kept


def _find_custom_section(lines: list[str]) -> tuple[int, int] | None:
    """Locate the custom section markers.

    Returns:
        (start_index, end_index) of the marker lines, or None if absent

    Raises:
        ProfileFormatError: If markers are unmatched or repeated
    """
    start = end = None
    for i, line in enumerate(lines):
        if CUSTOM_START_TOKEN in line:
            if start is not None:
                raise ProfileFormatError("Custom variables section start marker appears twice")
            start = i
        elif CUSTOM_END_TOKEN in line:
            if start is None or end is not None:
                raise ProfileFormatError("Custom variables section end marker without matching start")
            end = i

    if start is None:
        return None
    if end is None:
        raise ProfileFormatError("Custom variables section is missing its end marker")
    return start, end


def parse_profile_text(text: str) -> ParsedProfile:
    """Parse export lines from profile file content.

    Args:
        text: Profile file content

    Returns:
        ParsedProfile with the standard and custom variables found

    Raises:
        ProfileFormatError: If the content cannot be parsed
    """
    lines = _split_lines(text)
    section = _find_custom_section(lines)
    parsed = ParsedProfile()

    for i, line in enumerate(lines):
        if section and i in section:
            continue
        match = _EXPORT_PATTERN.match(line)
        if not match:
            continue

        key = match.group(1)
        value = _parse_value(match.group(2), i + 1)

        if section and section[0] < i < section[1]:
            parsed.custom_vars[key] = value
        elif key in STANDARD_VARS:
            parsed.standard[key] = value
        else:
            logger.debug(f"Ignoring unknown variable outside custom section: {key}")

    return parsed


def encode(profile: ProviderProfile) -> str:
    """Serialize a profile to file content.

    Args:
        profile: Profile to encode

    Returns:
        Shell script text ending with a newline

    Raises:
        ValidationError: If the profile fails validation
        InvalidNameError: If a custom variable name is not allowed
    """
    profile.validate()

    lines = list(PREAMBLE)
    for key, value in profile.standard_env().items():
        if key == DISABLE_TRAFFIC_VAR:
            lines.append(f"export {key}={value}")
        else:
            lines.append(_export_line(key, value))

    if profile.custom_vars:
        lines.append(CUSTOM_MARKER_START)
        for key, value in profile.custom_vars.items():
            lines.append(_export_line(key, value))
        lines.append(CUSTOM_MARKER_END)

    return "\n".join(lines) + "\n"


def decode(text: str, name: str) -> ProviderProfile:
    """Deserialize file content into a profile.

    Missing per-tier models fall back to the main model so profiles written
    before tier customization existed keep working.

    Args:
        text: Profile file content
        name: Profile name (the file stem)

    Returns:
        Decoded ProviderProfile

    Raises:
        ProfileFormatError: If a required field is missing or the file is malformed
        ValidationError: If a present field is empty
    """
    parsed = parse_profile_text(text)

    missing = [var for var in (AUTH_TOKEN_VAR, BASE_URL_VAR, MODEL_VAR) if not parsed.has(var)]
    if missing:
        raise ProfileFormatError(f"Profile '{name}' is missing required field(s): {', '.join(missing)}")

    models = TierModels(
        main=parsed.get(MODEL_VAR),
        **{attr: parsed.get(var) for attr, var in TIER_VARS.items()},
    )
    traffic = parsed.get(DISABLE_TRAFFIC_VAR)

    return ProviderProfile(
        name=name,
        base_url=parsed.get(BASE_URL_VAR),
        api_key=parsed.get(AUTH_TOKEN_VAR),
        models=models,
        disable_nonessential_traffic=traffic is not None and traffic.strip().lower() not in _FALSE_FLAGS,
        custom_vars=dict(parsed.custom_vars),
    )


def set_custom_var(text: str, key: str, value: str) -> str:
    """Add or update one custom variable in file content.

    Only the matching line (or one inserted line) changes. If the file has
    no custom section yet, one is appended.

    Args:
        text: Profile file content
        key: Variable name
        value: Variable value

    Returns:
        Updated file content

    Raises:
        InvalidNameError: If the name is not allowed
        ValidationError: If the value cannot be stored
        ProfileFormatError: If the existing section markers are broken
    """
    validate_custom_var_name(key)
    validate_value(value, key)

    lines = _split_lines(text, keepends=True)
    section = _find_custom_section(lines)
    new_line = _export_line(key, value) + "\n"

    if section is None:
        if text and not text.endswith("\n"):
            text += "\n"
        return text + CUSTOM_MARKER_START + "\n" + new_line + CUSTOM_MARKER_END + "\n"

    start, end = section
    # Last definition wins when sourced, so update the last one
    for i in range(end - 1, start, -1):
        match = _EXPORT_PATTERN.match(lines[i])
        if match and match.group(1) == key:
            lines[i] = new_line
            return "".join(lines)

    lines.insert(end, new_line)
    return "".join(lines)


def delete_custom_var(text: str, key: str) -> str:
    """Remove one custom variable from file content.

    The section markers are dropped when nothing is left between them.

    Args:
        text: Profile file content
        key: Variable name to remove

    Returns:
        Updated file content

    Raises:
        ProfileNotFoundError: If the variable is not in the custom section
        ProfileFormatError: If the section markers are broken
    """
    lines = _split_lines(text, keepends=True)
    section = _find_custom_section(lines)
    if section is None:
        raise ProfileNotFoundError(f"Custom variable '{key}' not found")

    start, end = section
    kept = []
    for line in lines[start + 1 : end]:
        match = _EXPORT_PATTERN.match(line)
        if match and match.group(1) == key:
            continue
        kept.append(line)

    if len(kept) == end - start - 1:
        raise ProfileNotFoundError(f"Custom variable '{key}' not found")

    if kept:
        return "".join(lines[: start + 1] + kept + lines[end:])
    return "".join(lines[:start] + lines[end + 1 :])


__all__ = [
    "CUSTOM_MARKER_END",
    "CUSTOM_MARKER_START",
    "RESERVED_PREFIXES",
    "STANDARD_VARS",
    "TIER_VARS",
    "ParsedProfile",
    "ProviderProfile",
    "TierModels",
    "decode",
    "delete_custom_var",
    "encode",
    "parse_profile_text",
    "quote_value",
    "set_custom_var",
    "validate_custom_var_name",
    "validate_value",
]
