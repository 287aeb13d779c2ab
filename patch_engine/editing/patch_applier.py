"""
Edit applier — composes replace, insert and diff-block edits against a
:class:`LineModel` and returns a new model.

Every edit is located against the *original* model first, then all edits
are applied bottom-up (descending start index) to one working copy, so an
edit never shifts the lines another edit refers to. Input order does not
matter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from .edits import DiffBlock, EditDescriptor, InsertLines, ReplaceLines
from .errors import BoundsError
from .line_model import LineModel
from .match_resolver import MatchResolver, MatchResult

logger = logging.getLogger(__name__)


@dataclass
class ApplyResult:
    """Result of applying a batch of edits to one file."""
    model: LineModel
    original_line_count: int = 0
    final_line_count: int = 0
    edits_applied: int = 0
    matches: list[MatchResult] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def strategies(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for match in self.matches:
            key = match.strategy.value
            counts[key] = counts.get(key, 0) + 1
        return counts


@dataclass(frozen=True)
class _Splice:
    """A resolved edit: replace ``[start, end)`` with ``lines``."""
    start: int
    end: int
    lines: tuple[str, ...]
    order: int
    label: str


class EditApplier:
    """Apply edit descriptors to line models without mutating them."""

    def __init__(self, resolver: MatchResolver | None = None) -> None:
        self._resolver = resolver or MatchResolver()

    def apply(
        self,
        model: LineModel,
        edits: Sequence[EditDescriptor],
    ) -> ApplyResult:
        """Apply *edits* to *model* and return the new model plus stats.

        Raises
        ------
        BoundsError
            For out-of-range or overlapping edits.
        MatchError
            If a diff block's search content cannot be located.
        """
        result = ApplyResult(
            model=model,
            original_line_count=model.line_count,
            final_line_count=model.line_count,
        )
        if not edits:
            return result

        splices = [
            self._resolve(model, edit, order, result)
            for order, edit in enumerate(edits)
        ]
        self._check_overlaps(splices)

        # Bottom-up; among equal starts the later input edit goes first so
        # that same-position inserts keep their input order.
        ordered = sorted(
            splices, key=lambda s: (s.start, s.end, s.order), reverse=True,
        )

        working = list(model.lines)
        for splice in ordered:
            working[splice.start:splice.end] = splice.lines

        result.model = model.with_lines(working)
        result.final_line_count = len(working)
        result.edits_applied = len(splices)
        return result

    # ------------------------------------------------------------------
    # Resolution against the original model
    # ------------------------------------------------------------------

    def _resolve(
        self,
        model: LineModel,
        edit: EditDescriptor,
        order: int,
        result: ApplyResult,
    ) -> _Splice:
        line_count = model.line_count

        if isinstance(edit, ReplaceLines):
            start, end = edit.start_line, edit.end_line
            if start < 1 or end < 1:
                raise BoundsError(
                    f"Line numbers must be >= 1: start_line={start}, "
                    f"end_line={end}", edit,
                )
            if start > end:
                raise BoundsError(
                    f"start_line ({start}) cannot be greater than "
                    f"end_line ({end})", edit,
                )
            if start > line_count:
                raise BoundsError(
                    f"start_line ({start}) exceeds file length ({line_count}).",
                    edit,
                )
            if end > line_count:
                warning = (
                    f"end_line ({end}) exceeds file length ({line_count}). "
                    f"Clamping to {line_count}."
                )
                logger.warning("[SmartEdit] %s", warning)
                result.warnings.append(warning)
                end = line_count
            return _Splice(start - 1, end, tuple(edit.new_lines), order,
                           f"replace_lines {start}-{end}")

        if isinstance(edit, InsertLines):
            position = edit.line_number
            if position < 0 or position > line_count:
                raise BoundsError(
                    f"Invalid line number for insert: {position} "
                    f"(file has {line_count} lines)", edit,
                )
            return _Splice(position, position, tuple(edit.new_lines), order,
                           f"insert_lines {position}")

        if isinstance(edit, DiffBlock):
            declared = edit.declared_start_line
            upper = line_count + 1 if not edit.search_lines else line_count
            if declared < 1 or declared > upper:
                raise BoundsError(
                    f"Invalid start_line {declared}. File has "
                    f"{line_count} lines.", edit,
                )
            match = self._resolver.resolve(model, edit)
            result.matches.append(match)
            return _Splice(match.resolved_start_index, match.end_index,
                           edit.replace_lines, order,
                           f"diff block at line {declared}")

        raise TypeError(f"Unsupported edit descriptor: {edit!r}")

    @staticmethod
    def _check_overlaps(splices: list[_Splice]) -> None:
        ascending = sorted(splices, key=lambda s: (s.start, s.end))
        for prev, cur in zip(ascending, ascending[1:]):
            if cur.start < prev.end:
                raise BoundsError(
                    f"Edits overlap: {prev.label} and {cur.label} touch the "
                    f"same lines (lines {prev.start + 1}-{prev.end} and "
                    f"{cur.start + 1}-{max(cur.end, cur.start + 1)})",
                    cur,
                )
