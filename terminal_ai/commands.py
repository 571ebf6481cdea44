"""Management commands that run locally and never contact the backend."""

from __future__ import annotations

import os
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Optional

from .colors import color, error
from .context_store import ContextStore
from .paths import ManagedPaths
from .settings import Settings

__all__ = [
    "FALLBACK_EDITORS",
    "resolve_editor",
    "show_context_info",
    "view_file",
    "edit_file",
    "show_settings",
]

FALLBACK_EDITORS = ("nano", "vim", "vi")


def show_context_info(store: ContextStore, settings: Settings) -> int:
    if not store.path.exists():
        print(f"No context file found at {store.path}", file=sys.stderr)
        return 0
    size = store.size()
    if size is None:
        error(f"Failed parsing context file {store.path}")
        return 0
    print(f"Context: {size} tokens (Limit: {settings.max_context_size}) in {store.path}")
    return 0


def view_file(path: Path, label: str) -> int:
    try:
        text = path.read_text(encoding="utf-8") if path.is_file() else None
    except (OSError, UnicodeDecodeError):
        text = None
    if text is None:
        print(f"No {label} file found or readable at {path}", file=sys.stderr)
        return 0
    print(color(f"--- {label} ({path}) ---", fg="magenta", bold=True))
    print(text, end="" if text.endswith("\n") else "\n")
    print(color(f"--- End {label} ---", fg="magenta", bold=True))
    return 0


def resolve_editor(preferred: Optional[str] = None) -> Optional[str]:
    """Return the editor command to launch, or ``None`` when nothing is usable.

    An explicitly configured ``$EDITOR`` must resolve on ``PATH``; only when it
    is unset do the fallbacks apply.
    """

    configured = preferred if preferred is not None else os.getenv("EDITOR", "")
    configured = configured.strip()
    if configured:
        return configured if shutil.which(configured.split()[0]) else None
    for candidate in FALLBACK_EDITORS:
        if shutil.which(candidate):
            return candidate
    return None


def edit_file(path: Path, label: str) -> int:
    editor = resolve_editor()
    if editor is None:
        configured = os.getenv("EDITOR", "").strip()
        if configured:
            error(f"Editor '{configured}' not found.")
        else:
            error("No editor found. Set $EDITOR or install nano/vim/vi.")
        return 1

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.touch(exist_ok=True)
    except OSError as exc:
        error(f"Cannot create {label} file: {path} ({exc})")
        return 1
    if not os.access(path, os.W_OK):
        error(f"Cannot write {label} file: {path}")
        return 1

    print(f"Opening {label} file ({path}) in {editor}...", file=sys.stderr)
    try:
        subprocess.call([*editor.split(), str(path)])
    except OSError as exc:
        error(f"Failed to launch editor '{editor}': {exc}")
        return 1
    print(f"{label.capitalize()} file closed.", file=sys.stderr)
    return 0


def show_settings(settings: Settings, paths: ManagedPaths) -> int:
    print(color("Effective AI Settings:", fg="yellow", bold=True))
    print(f"  Model (-m overrides):  {settings.model}")
    print(f"  API URL:               {settings.api_url}")
    print(f"  Max Context Tokens:    {settings.max_context_size}")
    print(color("--- File Paths Used ---", fg="yellow", bold=True))
    print(f"  Context File:          {paths.context}")
    print(f"  Notes File:            {paths.notes}")
    print(f"  System Prompt File:    {paths.system_prompt}")
    print(f"  Settings File Src:     {paths.settings}")
    return 0
