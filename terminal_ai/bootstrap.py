"""Directory bootstrap and default file seeding for the ``ai`` command."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List

from .colors import error
from .paths import ManagedPaths
from .settings import DEFAULT_API_URL, DEFAULT_MAX_CONTEXT_SIZE, DEFAULT_MODEL

__all__ = ["ensure_dirs", "default_file_contents", "seed_default_files"]

DEFAULT_SETTINGS_TEXT = f"""\
# Settings for the `ai` command. Blank values fall back to the built-in defaults.

# Ollama model used when -m/--model is not given.
AI_OLLAMA_MODEL={DEFAULT_MODEL}

# Full URL of the /api/generate endpoint.
AI_OLLAMA_API_URL={DEFAULT_API_URL}

# Maximum number of context elements kept between turns (oldest are dropped).
AI_MAX_CONTEXT_TOKENS={DEFAULT_MAX_CONTEXT_SIZE}
"""

DEFAULT_SYSTEM_PROMPT_TEXT = (
    "You are a concise, helpful assistant running in the user's terminal. "
    "Prefer short answers and plain text that reads well in a shell.\n"
)

# Notes are sent verbatim with every prompt, so the seeded file starts empty.
DEFAULT_NOTES_TEXT = ""


def ensure_dirs(paths: ManagedPaths) -> bool:
    """Create the parent directory of every managed file."""

    for file_path in paths.all():
        parent = file_path.parent
        if parent == Path(parent.anchor) or parent == Path("."):
            continue
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            error(f"Cannot create directory {parent}: {exc}")
            return False
    return True


def default_file_contents(paths: ManagedPaths) -> Dict[Path, str]:
    return {
        paths.settings: DEFAULT_SETTINGS_TEXT,
        paths.system_prompt: DEFAULT_SYSTEM_PROMPT_TEXT,
        paths.notes: DEFAULT_NOTES_TEXT,
        paths.context: "[]\n",
    }


def seed_default_files(paths: ManagedPaths) -> List[Path]:
    """Write default files that do not exist yet and return the ones created."""

    if not ensure_dirs(paths):
        return []
    created: List[Path] = []
    for path, text in default_file_contents(paths).items():
        if path.exists():
            continue
        try:
            path.write_text(text, encoding="utf-8")
        except OSError as exc:
            error(f"Failed writing {path}: {exc}")
            continue
        created.append(path)
    return created
