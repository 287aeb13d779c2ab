"""
Line model — the line-array view of a file plus its line-ending style.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass

_LINE_BREAK = re.compile(r"\r?\n")


class LineEnding(str, enum.Enum):
    LF = "\n"
    CRLF = "\r\n"

    @classmethod
    def detect(cls, text: str) -> "LineEnding":
        """CRLF if any ``\\r\\n`` appears in *text*, otherwise LF."""
        return cls.CRLF if "\r\n" in text else cls.LF


def split_lines(text: str) -> list[str]:
    """Split *text* on LF or CRLF, keeping a trailing empty line.

    ``"a\\nb\\n"`` gives ``["a", "b", ""]`` so joining restores the text.
    """
    return _LINE_BREAK.split(text)


@dataclass(frozen=True)
class LineModel:
    """Immutable sequence of physical lines with a detected ending."""
    lines: tuple[str, ...]
    ending: LineEnding = LineEnding.LF

    @classmethod
    def from_text(cls, text: str) -> "LineModel":
        return cls(tuple(split_lines(text)), LineEnding.detect(text))

    def to_text(self) -> str:
        return self.ending.value.join(self.lines)

    def with_lines(self, lines) -> "LineModel":
        """Return a new model with *lines* and the same ending style."""
        return LineModel(tuple(lines), self.ending)

    @property
    def line_count(self) -> int:
        return len(self.lines)

    def __len__(self) -> int:
        return len(self.lines)

    def __getitem__(self, index):
        return self.lines[index]
