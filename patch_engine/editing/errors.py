"""
Edit errors — structured failures raised by the patch engine.

Each error keeps its diagnostic data in typed fields and renders the
human-readable text from them, so callers (often an autonomous agent)
can self-correct from the message alone while tests inspect the fields.
"""

from __future__ import annotations

from typing import Any

EXPECTED_DIFF_FORMAT = (
    "<<<<<<< SEARCH\n"
    ":start_line:N\n"
    "-------\n"
    "old content\n"
    "=======\n"
    "new content\n"
    ">>>>>>> REPLACE"
)


class EditError(Exception):
    """Base class for every failure of a single edit invocation."""


class ParseError(EditError):
    """Diff text could not be turned into diff blocks."""

    _CHECK_LABELS = (
        ("has_search_marker", "Has SEARCH marker"),
        ("has_replace_marker", "Has REPLACE marker"),
        ("has_start_line", "Has start_line"),
        ("has_separator", "Has separator (-------)"),
        ("has_equals", "Has equals (=======)"),
    )

    def __init__(
        self,
        text: str,
        checklist: dict[str, bool],
        block_errors: list[str] | None = None,
    ) -> None:
        self.text = text
        self.checklist = dict(checklist)
        self.block_errors = list(block_errors or [])
        super().__init__(self.render())

    @property
    def missing(self) -> list[str]:
        return [key for key, present in self.checklist.items() if not present]

    def render(self) -> str:
        if self.block_errors and not self.missing:
            header = "Malformed diff block(s) found. Debug info:\n"
        else:
            header = "No valid diff blocks found. Debug info:\n"
        parts = [header]
        for key, label in self._CHECK_LABELS:
            present = self.checklist.get(key, False)
            parts.append(f"- {label}: {'present' if present else 'ABSENT'}\n")
        if self.block_errors:
            parts.append("\nBlock errors:\n")
            for err in self.block_errors:
                parts.append(f"- {err}\n")
        parts.append(f"\nExpected format:\n{EXPECTED_DIFF_FORMAT}\n")
        parts.append(f"\nActual content received:\n{self.text}")
        return "".join(parts)


class MatchError(EditError):
    """A diff block's search content was not found by any strategy."""

    def __init__(
        self,
        declared_line: int,
        context: list[tuple[int, str]],
        expected: str,
        actual: str,
    ) -> None:
        self.declared_line = declared_line
        self.context = list(context)
        self.expected = expected
        self.actual = actual
        super().__init__(self.render())

    def render(self) -> str:
        lines = [f"Could not find search content around line {self.declared_line}."]
        if self.context:
            first, last = self.context[0][0], self.context[-1][0]
            lines.append(f"Context (lines {first}-{last}):")
            for number, text in self.context:
                marker = ">>>" if number == self.declared_line else "   "
                lines.append(f"{marker} {number}: {text}")
        return (
            f"Search content does not match at line {self.declared_line}.\n\n"
            + "\n".join(lines)
            + f"\n\nExpected content:\n{self.expected}"
            + f"\n\nActual content:\n{self.actual}"
        )


class BoundsError(EditError):
    """Line numbers of an edit are out of range or inconsistent."""

    def __init__(self, message: str, edit: Any = None) -> None:
        self.edit = edit
        super().__init__(message)


class EditSchemaError(EditError):
    """A structured edit does not follow the edit schema."""


class EditCancelled(EditError):
    """The host cancelled a streaming edit before the final write."""
