"""Locations of the files managed by the terminal-ai CLI."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

SETTINGS_FILENAME = "ai_settings.conf"
NOTES_FILENAME = "ai_persistent_notes.txt"
SYSTEM_PROMPT_FILENAME = "ai_system_prompt.txt"
CONTEXT_FILENAME = "ollama_ai_context.json"


def _env_path(name: str) -> Optional[Path]:
    value = os.getenv(name)
    if not value:
        return None
    return Path(value).expanduser()


def config_home() -> Path:
    """Return the directory holding settings, notes and the system prompt."""

    override = _env_path("AI_CONFIG_HOME")
    if override:
        return override

    home = Path.home()
    if sys.platform == "win32":
        base = Path(os.getenv("APPDATA", home / "AppData" / "Roaming"))
        return base / "ollama"
    base = Path(os.getenv("XDG_CONFIG_HOME", home / ".config"))
    return base / "ollama"


def cache_home() -> Path:
    """Return the directory holding the rolling context file."""

    override = _env_path("AI_CACHE_HOME")
    if override:
        return override

    home = Path.home()
    if sys.platform == "win32":
        return Path(os.getenv("LOCALAPPDATA", home / "AppData" / "Local"))
    return Path(os.getenv("XDG_CACHE_HOME", home / ".cache"))


@dataclass(frozen=True, slots=True)
class ManagedPaths:
    settings: Path
    notes: Path
    system_prompt: Path
    context: Path

    def all(self) -> tuple[Path, ...]:
        return (self.context, self.notes, self.system_prompt, self.settings)


def resolve_paths() -> ManagedPaths:
    config = config_home()
    return ManagedPaths(
        settings=config / SETTINGS_FILENAME,
        notes=config / NOTES_FILENAME,
        system_prompt=config / SYSTEM_PROMPT_FILENAME,
        context=cache_home() / CONTEXT_FILENAME,
    )


__all__ = ["config_home", "cache_home", "ManagedPaths", "resolve_paths"]
