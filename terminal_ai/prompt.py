"""Prompt composition and ``/api/generate`` payload construction."""

from __future__ import annotations

import unicodedata
from pathlib import Path
from typing import Any, Dict, List, Optional

__all__ = [
    "read_text_resource",
    "strip_control_chars",
    "compose_prompt",
    "build_payload",
]

NOTES_HEADER = "[Persistent Notes For Your Reference:"
NOTES_DELIMITER = "---"
PROMPT_HEADER = "User Prompt:]"

_KEEP_CONTROLS = {"\t", "\n", "\r"}


def read_text_resource(path: Optional[Path]) -> str:
    """Return an externally authored text file without trailing newlines, or ``""``."""

    if path is None:
        return ""
    try:
        if path.is_file():
            return path.read_text(encoding="utf-8").rstrip("\r\n")
    except (OSError, UnicodeDecodeError):
        return ""
    return ""


def strip_control_chars(text: str) -> str:
    return "".join(
        ch for ch in text if ch in _KEEP_CONTROLS or unicodedata.category(ch) != "Cc"
    )


def compose_prompt(user_prompt: str, notes: Optional[str]) -> str:
    """Prefix ``user_prompt`` with the persistent notes, if there are any."""

    clean_notes = strip_control_chars(notes or "")
    if not clean_notes.strip():
        return user_prompt
    return "\n".join(
        [NOTES_HEADER, clean_notes, NOTES_DELIMITER, PROMPT_HEADER, user_prompt]
    )


def build_payload(
    *,
    prompt: str,
    model: str,
    system: Optional[str] = None,
    context: Optional[List[Any]] = None,
) -> Dict[str, Any]:
    """Build a streaming Ollama ``/api/generate`` request body.

    ``system`` is omitted when empty, and ``context`` only appears when a prior
    context was loaded.
    """

    payload: Dict[str, Any] = {
        "model": model,
        "prompt": prompt,
        "stream": True,
    }
    if system:
        payload["system"] = system
    if context is not None:
        payload["context"] = context
    return payload
