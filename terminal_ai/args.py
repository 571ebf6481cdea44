"""Command-line arguments for the ``ai`` command."""

from __future__ import annotations

import argparse
import sys
from typing import List, NoReturn, Optional

from .paths import ManagedPaths
from .settings import DEFAULT_API_URL, DEFAULT_MAX_CONTEXT_SIZE, DEFAULT_MODEL, Settings

__all__ = ["MULTILINE_MARKER", "DEFAULT_URL", "build_parser", "parse_args"]

MULTILINE_MARKER = '"""'
DEFAULT_URL = DEFAULT_API_URL


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"Error: {message}\n")


def build_parser(
    settings: Optional[Settings] = None,
    paths: Optional[ManagedPaths] = None,
) -> argparse.ArgumentParser:
    model = settings.model if settings else DEFAULT_MODEL
    limit = settings.max_context_size if settings else DEFAULT_MAX_CONTEXT_SIZE

    epilog = None
    if paths is not None:
        epilog = (
            "configuration files:\n"
            f"  settings:   {paths.settings} (optional; model, API URL, max context)\n"
            f"  notes:      {paths.notes} (plain text, edited by hand)\n"
            f"  sysprompt:  {paths.system_prompt} (plain text, edited by hand)\n"
            f"  context:    {paths.context} (JSON, managed automatically)"
        )

    parser = _Parser(
        prog="ai",
        usage=f'ai [options] [prompt ... | {MULTILINE_MARKER}]\n       ai <command>',
        description=(
            "Talk to a local Ollama model with streaming replies, a rolling "
            "context shared between terminals, persistent notes and a system prompt."
        ),
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
    )

    parser.add_argument(
        "-r",
        "--reset",
        action="store_true",
        help="Reset the conversation context before sending the prompt. Used alone, just resets.",
    )
    parser.add_argument(
        "-m",
        "--model",
        default=None,
        metavar="MODEL",
        help=f"Ollama model for this run only (current: {model}).",
    )
    parser.add_argument(
        "-s",
        "--system",
        default=None,
        metavar="PROMPT",
        help="System prompt for this run only. Resets the context if one exists.",
    )

    commands = parser.add_argument_group("management commands (run locally and exit)")
    exclusive = commands.add_mutually_exclusive_group()
    exclusive.add_argument(
        "--info",
        choices=["context"],
        default=None,
        help=f"Show the current context size (limit: {limit}).",
    )
    exclusive.add_argument("--view-notes", action="store_true", help="Print the persistent notes file.")
    exclusive.add_argument("--edit-notes", action="store_true", help="Open the notes file in $EDITOR.")
    exclusive.add_argument("--view-system", action="store_true", help="Print the system prompt file.")
    exclusive.add_argument("--edit-system", action="store_true", help="Open the system prompt file in $EDITOR.")
    exclusive.add_argument("--show-settings", action="store_true", help="Print the effective settings.")
    exclusive.add_argument("--edit-settings", action="store_true", help="Open the settings file in $EDITOR.")
    exclusive.add_argument(
        "--init",
        action="store_true",
        help="Create default settings, notes and system prompt files if missing.",
    )
    exclusive.add_argument("-V", "--version", action="store_true", help="Print the version and exit.")

    parser.add_argument(
        "prompt",
        nargs=argparse.REMAINDER,
        help=f"Prompt text, or {MULTILINE_MARKER} to enter multi-line input (end with {MULTILINE_MARKER}).",
    )
    return parser


def parse_args(
    argv: List[str],
    *,
    settings: Optional[Settings] = None,
    paths: Optional[ManagedPaths] = None,
) -> argparse.Namespace:
    parser = build_parser(settings, paths)
    args = parser.parse_args(argv)
    if args.model is not None and not args.model.strip():
        parser.error("-m/--model requires a value")
    args.multiline = args.prompt == [MULTILINE_MARKER]
    if args.multiline:
        args.prompt = []
    return args
