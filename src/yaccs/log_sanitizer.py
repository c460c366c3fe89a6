"""Secret redaction for display and logs.

Provider profiles carry API keys in plain text on disk. Anything shown to
the user or written to a log goes through this module first:
- ``redact_key`` for previews (short prefix and suffix only)
- ``sanitize`` for free-form messages such as exception text
- ``sanitize_env_vars`` for variable listings
"""

import re
from re import Pattern


class LogSanitizer:
    """Sanitize sensitive data from logs and user-facing output.

    All methods are class methods and can be called without instantiation.
    """

    REDACTED = "***REDACTED***"
    MASKED = "****"

    SECRET_PATTERNS: dict[str, Pattern] = {
        # export ANTHROPIC_AUTH_TOKEN="..." or ANTHROPIC_AUTH_TOKEN=...
        "auth_token_env": re.compile(
            r"(ANTHROPIC_(?:AUTH_TOKEN|API_KEY)[\"']?\s*[:=]\s*[\"']?)([^\s\"']+)"
        ),
        "api_key_assignment": re.compile(
            r'(api[_-]?key["\']?\s*[:=]\s*["\']?)([^\s"\'&,\)]+)', re.IGNORECASE
        ),
        "authorization_bearer": re.compile(r"(Authorization:\s*Bearer\s+)([^\s]+)", re.IGNORECASE),
        "token_assignment": re.compile(
            r'([^a-zA-Z]token["\']?\s*[:=]\s*["\']?)([^\s"\'&,\)]+)', re.IGNORECASE
        ),
        "password": re.compile(r'(password["\']?\s*[:=]\s*["\']?)([^\s"\'&,\)]+)', re.IGNORECASE),
        "secret_assignment": re.compile(
            r'(secret["\']?\s*[:=]\s*["\']?)([^\s"\'&,\)]+)', re.IGNORECASE
        ),
        # sk-..., sk_..., sk-ant-... style keys appearing bare
        "bare_key": re.compile(r"()\b(sk[-_][A-Za-z0-9_\-]{6,})"),
    }

    SENSITIVE_WORDS = ("SECRET", "PASSWORD", "TOKEN", "CREDENTIAL", "KEY")

    @classmethod
    def redact_key(cls, key: str, length: int = 5) -> str:
        """Show only the first and last ``length`` characters of a secret.

        Secrets too short to keep anything hidden are masked completely.

        Examples:
            >>> LogSanitizer.redact_key("sk-abcdefghijklmnop")
            'sk-ab...lmnop'
            >>> LogSanitizer.redact_key("short")
            '****'
        """
        if length <= 0 or len(key) <= 2 * length:
            return cls.MASKED
        return f"{key[:length]}...{key[-length:]}"

    @classmethod
    def sanitize(cls, message: str) -> str:
        """Sanitize message by redacting sensitive patterns.

        Examples:
            >>> LogSanitizer.sanitize('export ANTHROPIC_AUTH_TOKEN="sk-123456789"')
            'export ANTHROPIC_AUTH_TOKEN="***REDACTED***"'
        """
        if not isinstance(message, str):
            message = str(message)

        result = message
        for pattern in cls.SECRET_PATTERNS.values():
            result = pattern.sub(r"\1" + cls.REDACTED, result)
        return result

    @classmethod
    def is_sensitive_name(cls, name: str) -> bool:
        """True if a variable name looks like it holds a secret."""
        name_upper = name.upper()
        return any(word in name_upper for word in cls.SENSITIVE_WORDS)

    @classmethod
    def sanitize_env_vars(cls, env_dict: dict[str, str]) -> dict[str, str]:
        """Return a copy with values of sensitive-looking variables redacted."""
        return {
            key: cls.REDACTED if cls.is_sensitive_name(key) else value
            for key, value in env_dict.items()
        }

    @classmethod
    def sanitize_exception(cls, exc: Exception) -> str:
        """Sanitize exception message."""
        return cls.sanitize(str(exc))


__all__ = ["LogSanitizer"]
