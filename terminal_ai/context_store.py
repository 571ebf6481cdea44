"""On-disk rolling conversation context shared by every ``ai`` invocation.

The context file is one JSON array returned by the backend. Its elements are
opaque: the store only ever loads the whole array, drops elements from the
front, and writes the whole array back.

Every running invocation reads and writes the same file without locking. Two
turns started close together both load the same prior context and the last one
to commit wins; the other turn was shown to its user but is not part of the
persisted conversation.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional

from .colors import error, info, warn

__all__ = ["CommitResult", "ContextStore", "prune_context"]


@dataclass(frozen=True, slots=True)
class CommitResult:
    before: int
    after: int

    @property
    def pruned(self) -> bool:
        return self.after < self.before


def prune_context(context: List[Any], max_size: int) -> List[Any]:
    """Keep only the newest ``max_size`` elements of ``context``."""

    if len(context) <= max_size:
        return list(context)
    drop = max(len(context) - max_size, 1)
    return context[drop:]


class ContextStore:
    """Load, prune, persist and reset the rolling context file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def _read_array(self) -> Optional[List[Any]]:
        raw = self.path.read_text(encoding="utf-8")
        data = json.loads(raw)
        if not isinstance(data, list):
            return None
        return data

    def load(self) -> Optional[List[Any]]:
        """Return the stored context, or ``None`` when there is none to send."""

        if not self.path.exists():
            return None
        try:
            data = self._read_array()
        except (OSError, UnicodeDecodeError, json.JSONDecodeError):
            data = None
        if data is None:
            warn(f"Invalid rolling context file found ({self.path}). Starting new context.")
        return data

    def size(self) -> Optional[int]:
        if not self.path.exists():
            return None
        try:
            data = self._read_array()
        except (OSError, UnicodeDecodeError, json.JSONDecodeError):
            return None
        return None if data is None else len(data)

    def has_context(self) -> bool:
        try:
            return self.path.is_file() and self.path.stat().st_size > 0
        except OSError:
            return False

    def reset(self) -> bool:
        """Replace the stored context with an empty array."""

        try:
            self._write([])
        except OSError as exc:
            error(f"Failed to reset context file {self.path}: {exc}")
            return False
        return True

    def commit(self, raw_context: Any, max_size: int) -> Optional[CommitResult]:
        """Prune ``raw_context`` to ``max_size`` elements and persist it.

        Returns ``None`` when nothing valid could be written; in that case the
        context file is removed so the next invocation starts fresh instead of
        reading a corrupt array.
        """

        if not isinstance(raw_context, list):
            warn("Final context content is invalid JSON array. Context not saved.")
            self.discard()
            return None

        before = len(raw_context)
        final_context = prune_context(raw_context, max_size)
        if len(final_context) < before:
            info(f"Pruning context: {before} -> {len(final_context)} tokens.")

        try:
            self._write(final_context)
        except (OSError, TypeError, ValueError) as exc:
            error(f"Failed writing context file {self.path}: {exc}")
            self.discard()
            return None
        return CommitResult(before=before, after=len(final_context))

    def discard(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            error(f"Failed to remove context file {self.path}: {exc}")

    def _write(self, context: List[Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Unique temp name per process; concurrent writers must not share it.
        tmp_path = self.path.with_name(f".{self.path.name}.{os.getpid()}.tmp")
        try:
            tmp_path.write_text(json.dumps(context, separators=(",", ":")), encoding="utf-8")
            tmp_path.replace(self.path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise
