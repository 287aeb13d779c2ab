"""
Undo history — keeps the pre-edit content of files so a single edit can
be reverted. Optionally persisted as JSON.
"""

from __future__ import annotations

import json
import logging
import os

from .collaborators import UndoRecorder

logger = logging.getLogger(__name__)

DEFAULT_UNDO_FILE = ".patch_engine/undo.json"


class UndoHistory(UndoRecorder):
    """Bounded per-path stack of previous file contents.

    Parameters
    ----------
    filepath:
        JSON file to persist to, or None to keep history in memory only.
    limit:
        Maximum entries kept per path; the oldest are dropped first.
    """

    def __init__(self, filepath: str | None = None, limit: int = 20) -> None:
        self._filepath = filepath
        self._limit = max(1, limit)
        self._stacks: dict[str, list[str]] = self._load()

    def record_undo(self, path: str, previous_content: str) -> None:
        stack = self._stacks.setdefault(path, [])
        stack.append(previous_content)
        del stack[:-self._limit]
        self._save()

    def pop(self, path: str) -> str | None:
        """Remove and return the most recent content recorded for *path*."""
        stack = self._stacks.get(path)
        if not stack:
            return None
        content = stack.pop()
        if not stack:
            del self._stacks[path]
        self._save()
        return content

    def peek(self, path: str) -> str | None:
        stack = self._stacks.get(path)
        return stack[-1] if stack else None

    def depth(self, path: str) -> int:
        return len(self._stacks.get(path, []))

    def clear(self, path: str | None = None) -> None:
        if path is None:
            self._stacks.clear()
        else:
            self._stacks.pop(path, None)
        self._save()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> dict[str, list[str]]:
        """Load history from disk; missing or invalid files give {}."""
        if not self._filepath or not os.path.isfile(self._filepath):
            return {}
        try:
            with open(self._filepath, "r", encoding="utf-8") as f:
                state = json.load(f)
        except (json.JSONDecodeError, OSError, ValueError) as exc:
            logger.warning("[Undo] Ignoring unreadable history %s: %s",
                           self._filepath, exc)
            return {}
        if not isinstance(state, dict):
            return {}
        return {
            str(path): [str(c) for c in stack]
            for path, stack in state.items()
            if isinstance(stack, list)
        }

    def _save(self) -> None:
        if not self._filepath:
            return
        directory = os.path.dirname(self._filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp = self._filepath + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(self._stacks, f)
        # Atomic-ish rename (Windows: replaces if exists on Python 3.3+)
        os.replace(tmp, self._filepath)
