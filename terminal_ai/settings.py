"""Operational settings loaded from the ``ai_settings.conf`` key/value file."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import urlparse

from .colors import warn

__all__ = [
    "DEFAULT_MODEL",
    "DEFAULT_API_URL",
    "DEFAULT_MAX_CONTEXT_SIZE",
    "Settings",
    "parse_settings_text",
    "resolve_settings",
]

DEFAULT_MODEL = "gemma3:4b-it-qat"
DEFAULT_API_URL = "http://localhost:11434/api/generate"
DEFAULT_MAX_CONTEXT_SIZE = 4096

MODEL_KEY = "AI_OLLAMA_MODEL"
API_URL_KEY = "AI_OLLAMA_API_URL"
MAX_CONTEXT_KEY = "AI_MAX_CONTEXT_TOKENS"


@dataclass(frozen=True, slots=True)
class Settings:
    """Effective configuration for one invocation."""

    model: str = DEFAULT_MODEL
    api_url: str = DEFAULT_API_URL
    max_context_size: int = DEFAULT_MAX_CONTEXT_SIZE


def _is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def parse_settings_text(text: str) -> Dict[str, str]:
    """Return the raw ``key -> value`` pairs from settings file text.

    Blank lines and ``#`` comment lines are skipped, values lose anything after
    an inline ``#``, and keys whose value is empty after trimming are dropped so
    they never count as "set".
    """

    entries: Dict[str, str] = {}
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        key, _, value = stripped.partition("=")
        key = key.strip()
        value = value.split("#", 1)[0].strip()
        if not key or not value:
            continue
        entries[key] = value
    return entries


def resolve_settings(path: Optional[Path]) -> Settings:
    """Load settings from ``path``, defaulting each key independently.

    Never raises: a missing or unreadable file silently yields the defaults,
    and an invalid value is reported and replaced by its default.
    """

    if path is None:
        return Settings()
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return Settings()

    entries = parse_settings_text(text)
    model = entries.get(MODEL_KEY, DEFAULT_MODEL)

    api_url = DEFAULT_API_URL
    raw_url = entries.get(API_URL_KEY)
    if raw_url is not None:
        if _is_http_url(raw_url):
            api_url = raw_url
        else:
            warn(f"Invalid {API_URL_KEY} in settings: '{raw_url}'. Using default: {DEFAULT_API_URL}")

    max_context_size = DEFAULT_MAX_CONTEXT_SIZE
    raw_max = entries.get(MAX_CONTEXT_KEY)
    if raw_max is not None:
        if raw_max.isascii() and raw_max.isdigit() and int(raw_max) > 0:
            max_context_size = int(raw_max)
        else:
            warn(
                f"Invalid {MAX_CONTEXT_KEY} in settings: '{raw_max}'. "
                f"Using default: {DEFAULT_MAX_CONTEXT_SIZE}"
            )

    return Settings(model=model, api_url=api_url, max_context_size=max_context_size)
