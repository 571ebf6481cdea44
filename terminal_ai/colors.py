"""ANSI colour helpers and stderr diagnostics for the terminal-ai CLI."""

from __future__ import annotations

import os
import sys
from typing import Optional, TextIO

__all__ = ["color", "info", "warn", "error"]

RESET = "\033[0m"
BOLD = "\033[1m"

_FG_CODES = {
    "black": "30",
    "red": "31",
    "green": "32",
    "yellow": "33",
    "blue": "34",
    "magenta": "35",
    "cyan": "36",
    "white": "37",
}


def _colors_enabled(stream: Optional[TextIO]) -> bool:
    if os.getenv("NO_COLOR"):
        return False
    target = stream if stream is not None else sys.stdout
    isatty = getattr(target, "isatty", None)
    try:
        return bool(isatty and isatty())
    except ValueError:  # closed stream
        return False


def color(
    text: str,
    *,
    fg: Optional[str] = None,
    bold: bool = False,
    stream: Optional[TextIO] = None,
) -> str:
    """Wrap ``text`` in ANSI codes when ``stream`` (default stdout) is a TTY."""

    if not _colors_enabled(stream):
        return text
    prefix = ""
    if bold:
        prefix += BOLD
    code = _FG_CODES.get((fg or "").lower())
    if code:
        prefix += f"\033[{code}m"
    if not prefix:
        return text
    return f"{prefix}{text}{RESET}"


def info(message: str) -> None:
    print(color(f"[Info] {message}", fg="cyan", stream=sys.stderr), file=sys.stderr)


def warn(message: str) -> None:
    print(color(f"[Warning] {message}", fg="yellow", stream=sys.stderr), file=sys.stderr)


def error(message: str) -> None:
    print(color(f"Error: {message}", fg="red", bold=True, stream=sys.stderr), file=sys.stderr)
