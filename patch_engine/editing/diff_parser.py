"""
Diff parser — parses the SEARCH/REPLACE diff-block format into
:class:`DiffBlock` descriptors.

Expected grammar, one or more times::

    <<<<<<< SEARCH
    :start_line:N
    -------
    <search body, 0+ lines>
    =======
    <replace body, 0+ lines>
    >>>>>>> REPLACE
"""

from __future__ import annotations

import logging
import re

from .edits import DiffBlock
from .errors import ParseError

logger = logging.getLogger(__name__)

# Markers
_SEARCH_MARKER = "<<<<<<< SEARCH"
_REPLACE_MARKER = ">>>>>>> REPLACE"
_START_LINE = ":start_line:"
_SEPARATOR = "-------"
_EQUALS = "======="

# Patterns
_SEARCH_SPLIT = re.compile(r"^<{7} SEARCH[ \t]*$", re.MULTILINE)
_START_LINE_PATTERN = re.compile(r"\A[ \t]*\n:start_line:[ \t]*(\S*)[ \t]*\n")
_SEPARATOR_PATTERN = re.compile(r"\A-{7}[ \t]*\n")
_EQUALS_PATTERN = re.compile(r"^={7}[ \t]*\n", re.MULTILINE)
_REPLACE_PATTERN = re.compile(r"^>{7} REPLACE[ \t]*$", re.MULTILINE)
_DIGITS = re.compile(r"[0-9]+")


def _body_lines(body: str) -> tuple[str, ...]:
    """Turn a captured body (each line ending in a newline) into lines."""
    if not body:
        return ()
    return tuple(body[:-1].split("\n"))


class DiffParser:
    """Parse diff-block text produced by an agent or a user.

    Parameters
    ----------
    strict:
        When True (default) a malformed block fails the whole request even
        if other blocks parse. When False malformed blocks are skipped and
        logged, and only a request with zero parseable blocks fails.
    """

    def __init__(self, strict: bool = True) -> None:
        self._strict = strict

    def parse(self, diff_text: str) -> list[DiffBlock]:
        """Parse every diff block in *diff_text*.

        Raises
        ------
        ParseError
            If no block parses, or (strict mode) if any block is malformed.
        """
        text = diff_text.replace("\r\n", "\n")
        candidates = _SEARCH_SPLIT.split(text)[1:]

        blocks: list[DiffBlock] = []
        block_errors: list[str] = []
        for index, candidate in enumerate(candidates, start=1):
            block, error = self._parse_candidate(candidate)
            if block is not None:
                blocks.append(block)
            else:
                block_errors.append(f"Block {index}: {error}")
                logger.warning("[DiffEdit] Skipping diff block %d: %s", index, error)

        if not blocks or (self._strict and block_errors):
            raise ParseError(diff_text, self.checklist(text), block_errors)

        logger.debug(
            "[DiffEdit] Parsed %d diff block(s), %d skipped",
            len(blocks), len(block_errors),
        )
        return blocks

    @staticmethod
    def checklist(diff_text: str) -> dict[str, bool]:
        """Report which structural tokens appear anywhere in *diff_text*."""
        return {
            "has_search_marker": _SEARCH_MARKER in diff_text,
            "has_replace_marker": _REPLACE_MARKER in diff_text,
            "has_start_line": _START_LINE in diff_text,
            "has_separator": _SEPARATOR in diff_text,
            "has_equals": _EQUALS in diff_text,
        }

    # ------------------------------------------------------------------
    # Internal parsing
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_candidate(candidate: str) -> tuple[DiffBlock | None, str]:
        """Match the text after one SEARCH marker against the grammar.

        Returns ``(block, "")`` on success or ``(None, reason)``.
        """
        start_match = _START_LINE_PATTERN.match(candidate)
        if not start_match:
            return None, "missing ':start_line:N' line after '<<<<<<< SEARCH'"
        raw_number = start_match.group(1)
        if not _DIGITS.fullmatch(raw_number):
            return None, f"invalid start_line value {raw_number!r}"
        start_line = int(raw_number)

        rest = candidate[start_match.end():]
        sep_match = _SEPARATOR_PATTERN.match(rest)
        if not sep_match:
            return None, "missing '-------' separator after ':start_line:'"
        rest = rest[sep_match.end():]

        equals_match = _EQUALS_PATTERN.search(rest)
        if not equals_match:
            return None, "missing '=======' between search and replace bodies"
        search_body = rest[:equals_match.start()]
        rest = rest[equals_match.end():]

        replace_match = _REPLACE_PATTERN.search(rest)
        if not replace_match:
            return None, "missing '>>>>>>> REPLACE' end marker"
        replace_body = rest[:replace_match.start()]

        return DiffBlock(
            declared_start_line=start_line,
            search_lines=_body_lines(search_body),
            replace_lines=_body_lines(replace_body),
        ), ""
