"""
Match resolver — locates a diff block's search content in the current
file, tolerating drift between the declared start line and where the
content actually lives.

Strategies are tried in order and the first hit wins:

1. ``exact``: verbatim comparison at the declared line.
2. ``fuzzy``: whitespace-trimmed comparison within ±``fuzzy_window``.
3. ``partial``: first and last trimmed lines only, within
   ±``partial_window``; only for search bodies of ``partial_min_lines`` or
   more lines.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Iterator, Sequence

from .edits import DiffBlock
from .errors import MatchError
from .line_model import LineModel

logger = logging.getLogger(__name__)


class MatchStrategy(str, enum.Enum):
    EXACT = "exact"
    FUZZY = "fuzzy"
    PARTIAL = "partial"


@dataclass(frozen=True)
class MatchResult:
    """Where a diff block's search content was found (0-based)."""
    resolved_start_index: int
    strategy: MatchStrategy
    length: int

    @property
    def end_index(self) -> int:
        return self.resolved_start_index + self.length


class MatchResolver:
    """Resolve diff blocks against a :class:`LineModel`."""

    def __init__(
        self,
        fuzzy_window: int = 10,
        partial_window: int = 5,
        partial_min_lines: int = 3,
        context_lines: int = 3,
    ) -> None:
        self._fuzzy_window = fuzzy_window
        self._partial_window = partial_window
        self._partial_min_lines = partial_min_lines
        self._context_lines = context_lines

    def find(self, model: LineModel, block: DiffBlock) -> MatchResult | None:
        """Return the first successful match for *block*, or None."""
        lines = model.lines
        search = block.search_lines
        target = block.declared_start_line - 1

        if self._match_exact(lines, target, search):
            return MatchResult(target, MatchStrategy.EXACT, len(search))

        for index in self._window(target, self._fuzzy_window):
            if self._match_fuzzy(lines, index, search):
                self._log_drift(block, index, MatchStrategy.FUZZY)
                return MatchResult(index, MatchStrategy.FUZZY, len(search))

        if len(search) >= self._partial_min_lines:
            for index in self._window(target, self._partial_window):
                if self._match_partial(lines, index, search):
                    self._log_drift(block, index, MatchStrategy.PARTIAL)
                    return MatchResult(index, MatchStrategy.PARTIAL, len(search))

        return None

    def resolve(self, model: LineModel, block: DiffBlock) -> MatchResult:
        """Like :meth:`find` but raise :class:`MatchError` on failure."""
        match = self.find(model, block)
        if match is None:
            raise self._match_error(model, block)
        return match

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    @staticmethod
    def _in_bounds(lines: Sequence[str], start: int, search: Sequence[str]) -> bool:
        return 0 <= start and start + len(search) <= len(lines)

    def _match_exact(self, lines, start, search) -> bool:
        if not self._in_bounds(lines, start, search):
            return False
        return all(lines[start + i] == s for i, s in enumerate(search))

    def _match_fuzzy(self, lines, start, search) -> bool:
        if not self._in_bounds(lines, start, search):
            return False
        return all(
            lines[start + i].strip() == s.strip() for i, s in enumerate(search)
        )

    def _match_partial(self, lines, start, search) -> bool:
        if not self._in_bounds(lines, start, search):
            return False
        last = len(search) - 1
        return (
            lines[start].strip() == search[0].strip()
            and lines[start + last].strip() == search[last].strip()
        )

    @staticmethod
    def _window(target: int, radius: int) -> Iterator[int]:
        """Yield candidate start indexes nearest-first: 0, -1, +1, -2, ..."""
        yield target
        for offset in range(1, radius + 1):
            yield target - offset
            yield target + offset

    @staticmethod
    def _log_drift(block: DiffBlock, index: int, strategy: MatchStrategy) -> None:
        logger.debug(
            "[MatchResolver] %s match: block declared at line %d matched at %d "
            "(offset %+d)",
            strategy.value, block.declared_start_line, index + 1,
            index + 1 - block.declared_start_line,
        )

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def _match_error(self, model: LineModel, block: DiffBlock) -> MatchError:
        lines = model.lines
        declared = block.declared_start_line
        span = len(block.search_lines)

        context_start = max(0, declared - 1 - self._context_lines)
        context_end = min(len(lines), declared - 1 + span + self._context_lines)
        context = [
            (number + 1, lines[number])
            for number in range(context_start, context_end)
        ]
        actual = "\n".join(lines[max(0, declared - 1):declared - 1 + span])

        logger.warning(
            "[MatchResolver] No strategy matched block declared at line %d",
            declared,
        )
        return MatchError(
            declared_line=declared,
            context=context,
            expected=block.search_content,
            actual=actual,
        )
