"""terminal-ai: a streaming Ollama client with a rolling context shared between terminals."""

from __future__ import annotations

__version__ = "1.0.0"

__all__ = ["__version__", "main"]


def main(argv: list[str]) -> int:
    from .app import main as _main

    return _main(argv)
