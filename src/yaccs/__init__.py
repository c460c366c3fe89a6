"""yaccs - Yet Another Claude Code Switcher

Philosophy:
- Ruthless simplicity
- One file per provider, one pointer for the active one
- Secrets stay on disk with owner-only permissions
- Fail fast with helpful guidance

yaccs stores named provider profiles (endpoint, auth token, model ids and
extra variables) and launches Claude Code with exactly one of them applied
to the environment.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
