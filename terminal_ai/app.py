"""
Command-line entrypoint for ``ai``: one streamed turn against a local Ollama
``/api/generate`` endpoint, with a rolling context shared between terminals.

No external dependencies (stdlib only).
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional, TextIO

from . import __version__
from .args import MULTILINE_MARKER, parse_args
from .bootstrap import ensure_dirs, seed_default_files
from .colors import error, info, warn
from .commands import edit_file, show_context_info, show_settings, view_file
from .context_store import ContextStore
from .paths import ManagedPaths, resolve_paths
from .prompt import read_text_resource
from .session import Session
from .settings import Settings, resolve_settings

__all__ = ["main", "run", "read_multiline_prompt"]


def read_multiline_prompt(stream: Optional[TextIO] = None) -> str:
    """Read lines from ``stream`` until a line that is exactly the marker."""

    source = stream or sys.stdin
    info(f"Entering multi-line mode (end with '{MULTILINE_MARKER}' on a new line)...")
    lines: List[str] = []
    for raw in source:
        line = raw.rstrip("\r\n")
        if line == MULTILINE_MARKER:
            break
        lines.append(line)
    return "\n".join(lines)


def _run_management_command(
    args: argparse.Namespace,
    settings: Settings,
    paths: ManagedPaths,
) -> Optional[int]:
    if args.info:
        return show_context_info(ContextStore(paths.context), settings)
    if args.view_notes:
        return view_file(paths.notes, "Notes")
    if args.view_system:
        return view_file(paths.system_prompt, "System Prompt")
    if args.edit_notes:
        return edit_file(paths.notes, "notes")
    if args.edit_system:
        return edit_file(paths.system_prompt, "system prompt")
    if args.edit_settings:
        return edit_file(paths.settings, "settings")
    if args.show_settings:
        return show_settings(settings, paths)
    if args.init:
        created = seed_default_files(paths)
        for path in created:
            info(f"Created {path}")
        if not created:
            info("All configuration files already exist; nothing to do.")
        return 0
    return None


def main(argv: List[str]) -> int:
    paths = resolve_paths()
    settings = resolve_settings(paths.settings)

    try:
        args = parse_args(list(argv), settings=settings, paths=paths)
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 1

    if args.version:
        print(__version__)
        return 0

    if not ensure_dirs(paths):
        return 1

    outcome = _run_management_command(args, settings, paths)
    if outcome is not None:
        return outcome

    prompt = " ".join(args.prompt)
    if args.multiline:
        try:
            prompt = read_multiline_prompt()
        except KeyboardInterrupt:
            print(file=sys.stderr)
            return 130

    store = ContextStore(paths.context)
    session = Session(settings=settings, store=store)

    system_prompt = read_text_resource(paths.system_prompt)
    force_reset = bool(args.reset)
    if args.system is not None:
        system_prompt = args.system
        if store.has_context():
            info("Using -s flag with existing context forces context reset.")
            force_reset = True

    if force_reset:
        if not session.reset():
            return 1
        info("Conversation context reset and cleared.")
        if not prompt.strip():
            return 0

    if not prompt.strip():
        error("No prompt provided.")
        return 1

    notes = read_text_resource(paths.notes)
    try:
        result = session.run_turn(
            prompt,
            notes=notes,
            system=system_prompt,
            model=args.model,
        )
    except KeyboardInterrupt:
        print()
        warn("Interrupted; context not saved.")
        return 130
    return result.exit_code


def run() -> None:
    """Console-script entrypoint."""

    sys.exit(main(sys.argv[1:]))
