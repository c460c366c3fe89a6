"""Interactive input helpers.

All interactive input goes through these two functions so commands never
care whether stdin is a terminal or a pipe; click handles both.
"""

import click


def prompt(question: str, secret: bool = False, default: str | None = None) -> str:
    """Ask the user for a value.

    Args:
        question: Prompt text
        secret: Hide typed characters
        default: Value returned when the user just presses enter

    Returns:
        The entered text, stripped ("" when nothing was entered and no default)
    """
    value = click.prompt(
        question,
        default=default if default is not None else "",
        hide_input=secret,
        show_default=default is not None and not secret,
        type=str,
    )
    return value.strip()


def confirm(question: str, default: bool = False) -> bool:
    """Ask a yes/no question."""
    return click.confirm(question, default=default)


__all__ = ["confirm", "prompt"]
