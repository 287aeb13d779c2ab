"""
patch_engine — applies AI- or user-authored edits to file text.

Public API for library usage::

    from patch_engine import EditEngine, LocalFileStore

    engine = EditEngine(LocalFileStore())
    outcome = engine.apply_diff("src/app.py", diff_text)
"""

from .collaborators import FileStore, LocalFileStore, SyntaxValidator, UndoRecorder
from .config import Config
from .editing import EditEngine, EditError, EditOutcome
from .undo import UndoHistory

__all__ = [
    "EditEngine", "EditOutcome", "EditError",
    "FileStore", "LocalFileStore", "UndoRecorder", "SyntaxValidator",
    "UndoHistory", "Config",
]
