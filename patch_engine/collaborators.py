"""
Collaborator interfaces consumed by the edit engine, plus the local
file-system store.
"""

from __future__ import annotations

import logging
import os
import shutil
from abc import ABC, abstractmethod
from typing import Iterable, Iterator

logger = logging.getLogger(__name__)

_TMP_SUFFIX = ".patch_engine_tmp"


class FileStore(ABC):
    """Supplies file bytes and persists writes."""

    @abstractmethod
    def read(self, path: str) -> bytes:
        ...

    @abstractmethod
    def write(self, path: str, data: bytes) -> None:
        ...

    @abstractmethod
    def size(self, path: str) -> int:
        ...

    def iter_chunks(self, path: str, chunk_size: int) -> Iterator[bytes]:
        """Yield the file's bytes in pieces of at most *chunk_size*."""
        data = self.read(path)
        for start in range(0, len(data), chunk_size):
            yield data[start:start + chunk_size]

    def write_chunks(self, path: str, chunks: Iterable[bytes]) -> None:
        """Persist *chunks* as the new file content in one commit."""
        self.write(path, b"".join(chunks))


class UndoRecorder(ABC):
    """Captures pre-edit content before a file is mutated."""

    @abstractmethod
    def record_undo(self, path: str, previous_content: str) -> None:
        ...

    @abstractmethod
    def pop(self, path: str) -> str | None:
        """Remove and return the latest content recorded for *path*."""


class SyntaxValidator(ABC):
    """Advisory syntax check of new content; never blocks a write."""

    @abstractmethod
    def validate(self, path: str, content: str) -> "SyntaxReport":  # noqa: F821
        ...


class LocalFileStore(FileStore):
    """File store backed by the local file system.

    Writes go to a sibling temp file that is moved over the target once
    complete, so an interrupted write leaves the original untouched.
    """

    def __init__(self, root: str | None = None) -> None:
        self._root = root

    def resolve(self, path: str) -> str:
        if self._root and not os.path.isabs(path):
            return os.path.join(self._root, path)
        return path

    def read(self, path: str) -> bytes:
        with open(self.resolve(path), "rb") as f:
            return f.read()

    def size(self, path: str) -> int:
        return os.path.getsize(self.resolve(path))

    def iter_chunks(self, path: str, chunk_size: int) -> Iterator[bytes]:
        with open(self.resolve(path), "rb") as f:
            while True:
                chunk = f.read(chunk_size)
                if not chunk:
                    break
                yield chunk

    def write(self, path: str, data: bytes) -> None:
        self.write_chunks(path, [data])

    def write_chunks(self, path: str, chunks: Iterable[bytes]) -> None:
        abs_path = os.path.abspath(self.resolve(path))
        tmp_path = abs_path + _TMP_SUFFIX

        try:
            with open(tmp_path, "wb") as f:
                for chunk in chunks:
                    f.write(chunk)

            # On Windows, os.rename fails if destination exists
            if os.path.exists(abs_path):
                shutil.move(tmp_path, abs_path)
            else:
                os.rename(tmp_path, abs_path)
        except Exception:
            # Clean up temp file on failure or cancellation
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
