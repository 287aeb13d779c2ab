"""
Edit descriptors — the three kinds of change the engine can apply, plus
coercion of the structured ``edits`` array into descriptors.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

from .errors import BoundsError, EditSchemaError
from .line_model import split_lines

VALID_EDIT_TYPES = ("replace_lines", "insert_lines")

_FENCED = re.compile(r"\A```\w*\n(.+)\n```\Z", re.DOTALL)


def strip_code_fence(content: str) -> str:
    """Drop a markdown fence wrapping the whole of *content*, if any."""
    match = _FENCED.match(content)
    return match.group(1) if match else content


@dataclass(frozen=True)
class ReplaceLines:
    """Replace lines ``start_line..end_line`` (1-based, inclusive)."""
    start_line: int
    end_line: int
    new_content: str

    @property
    def new_lines(self) -> list[str]:
        return split_lines(self.new_content)


@dataclass(frozen=True)
class InsertLines:
    """Insert content after ``line_number`` (0 inserts at file start)."""
    line_number: int
    new_content: str

    @property
    def new_lines(self) -> list[str]:
        return split_lines(self.new_content)


@dataclass(frozen=True)
class DiffBlock:
    """One SEARCH/REPLACE unit anchored at a declared start line.

    Bodies are kept as line tuples so an empty body (zero lines) stays
    distinct from a body made of one blank line.
    """
    declared_start_line: int
    search_lines: tuple[str, ...]
    replace_lines: tuple[str, ...]

    @classmethod
    def from_text(
        cls, declared_start_line: int, search_content: str, replace_content: str,
    ) -> "DiffBlock":
        return cls(
            declared_start_line,
            tuple(split_lines(search_content)) if search_content else (),
            tuple(split_lines(replace_content)) if replace_content else (),
        )

    @property
    def search_content(self) -> str:
        return "\n".join(self.search_lines)

    @property
    def replace_content(self) -> str:
        return "\n".join(self.replace_lines)


EditDescriptor = Union[ReplaceLines, InsertLines, DiffBlock]


def _require_int(edit: dict, key: str) -> int:
    value = edit.get(key)
    # bool is an int subclass but never a line number
    if not isinstance(value, int) or isinstance(value, bool):
        raise BoundsError(
            f"Invalid line numbers in edit: {key}={value!r} is not an integer",
            edit,
        )
    return value


def _content(edit: dict, strip_fences: bool) -> str:
    content = edit.get("new_content", "")
    if content is None:
        content = ""
    if not isinstance(content, str):
        raise EditSchemaError(
            f"'new_content' must be a string, got {type(content).__name__}"
        )
    return strip_code_fence(content) if strip_fences else content


def parse_edits(
    raw_edits: list, strip_fences: bool = True,
) -> list[EditDescriptor]:
    """Turn the structured ``edits`` array into edit descriptors.

    Accepts schema dicts (``{"type": "replace_lines", ...}``) and already
    built descriptors. Only type-level checks happen here; range checks
    against the file happen in the applier.
    """
    if not isinstance(raw_edits, list):
        raise EditSchemaError(
            "The 'edits' parameter must be an array of edit objects."
        )

    descriptors: list[EditDescriptor] = []
    for edit in raw_edits:
        if isinstance(edit, (ReplaceLines, InsertLines, DiffBlock)):
            descriptors.append(edit)
            continue
        if not isinstance(edit, dict):
            raise EditSchemaError(
                f"Each edit must be an object, got {type(edit).__name__}"
            )

        edit_type = edit.get("type")
        if not edit_type:
            raise EditSchemaError(
                "Each edit must have a 'type' property. Valid types are: "
                + ", ".join(f"'{t}'" for t in VALID_EDIT_TYPES)
            )
        if edit_type == "replace_lines":
            descriptors.append(ReplaceLines(
                start_line=_require_int(edit, "start_line"),
                end_line=_require_int(edit, "end_line"),
                new_content=_content(edit, strip_fences),
            ))
        elif edit_type == "insert_lines":
            descriptors.append(InsertLines(
                line_number=_require_int(edit, "line_number"),
                new_content=_content(edit, strip_fences),
            ))
        else:
            raise EditSchemaError(
                f"Invalid edit type: '{edit_type}'. Valid types are: "
                + ", ".join(f"'{t}'" for t in VALID_EDIT_TYPES)
            )
    return descriptors
