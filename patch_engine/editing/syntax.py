"""
Syntax validation gate — advisory tree-sitter check of composed content.

The result never blocks a write; the engine appends problems to its
success message.

Uses tree-sitter >= 0.22 API with individual language packages.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from ..collaborators import SyntaxValidator

logger = logging.getLogger(__name__)

EXTENSION_TO_LANGUAGE: dict[str, str] = {
    ".py": "python",
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".tsx": "tsx",
    ".java": "java",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".hpp": "cpp",
    ".go": "go",
    ".rs": "rust",
    ".rb": "ruby",
    ".php": "php",
    ".cs": "c_sharp",
}

_MAX_REPORTED = 20


@dataclass
class SyntaxReport:
    """Outcome of validating one file's new content."""
    valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def detect_language(file_path: str) -> Optional[str]:
    """Return the tree-sitter language for *file_path*, or None."""
    ext = os.path.splitext(file_path)[1].lower()
    return EXTENSION_TO_LANGUAGE.get(ext)


def _get_lang_func(language: str):
    """Return the grammar's ``language()`` function for *language*, or None."""
    try:
        if language == "python":
            import tree_sitter_python as m  # type: ignore
            return m.language
        elif language == "javascript":
            import tree_sitter_javascript as m  # type: ignore
            return m.language
        elif language == "typescript":
            import tree_sitter_typescript as m  # type: ignore
            return m.language_typescript
        elif language == "tsx":
            import tree_sitter_typescript as m  # type: ignore
            return m.language_tsx
        elif language == "java":
            import tree_sitter_java as m  # type: ignore
            return m.language
        elif language == "c":
            import tree_sitter_c as m  # type: ignore
            return m.language
        elif language == "cpp":
            import tree_sitter_cpp as m  # type: ignore
            return m.language
        elif language == "go":
            import tree_sitter_go as m  # type: ignore
            return m.language
        elif language == "rust":
            import tree_sitter_rust as m  # type: ignore
            return m.language
        elif language == "ruby":
            import tree_sitter_ruby as m  # type: ignore
            return m.language
        elif language == "php":
            import tree_sitter_php as m  # type: ignore
            return m.language_php
        elif language == "c_sharp":
            import tree_sitter_c_sharp as m  # type: ignore
            return m.language
    except ImportError:
        pass
    return None


class TreeSitterValidator(SyntaxValidator):
    """Report ERROR and MISSING nodes found by tree-sitter.

    Parsers are built lazily and kept per validator instance.
    """

    def __init__(self) -> None:
        self._parsers: dict[str, object] = {}

    def validate(self, path: str, content: str) -> SyntaxReport:
        language = detect_language(path)
        if language is None:
            return SyntaxReport(warnings=[
                f"Syntax validation skipped: unsupported file type for {path}"
            ])

        parser = self._get_parser(language)
        if parser is None:
            return SyntaxReport(warnings=[
                f"Syntax validation unavailable for language '{language}'"
            ])

        tree = parser.parse(content.encode("utf-8", errors="surrogateescape"))
        report = SyntaxReport()
        if tree.root_node.has_error:
            report.valid = False
            report.errors = self._collect_errors(tree.root_node)
            logger.warning(
                "[DiffEdit] Syntax errors in new content of %s: %d found",
                path, len(report.errors),
            )
        return report

    def _get_parser(self, language: str):
        if language in self._parsers:
            return self._parsers[language]
        import tree_sitter as ts

        func = _get_lang_func(language)
        if func is None:
            logger.debug("[DiffEdit] No tree-sitter grammar for %s", language)
            return None
        parser = ts.Parser(ts.Language(func()))
        self._parsers[language] = parser
        return parser

    @staticmethod
    def _collect_errors(root) -> list[str]:
        errors: list[str] = []
        stack = [root]
        while stack and len(errors) < _MAX_REPORTED:
            node = stack.pop()
            if node.is_missing:
                errors.append(
                    f"Line {node.start_point[0] + 1}: missing '{node.type}'"
                )
                continue
            if node.type == "ERROR":
                snippet = node.text.decode("utf-8", errors="replace") if node.text else ""
                snippet = snippet.splitlines()[0][:60] if snippet else ""
                errors.append(
                    f"Line {node.start_point[0] + 1}: unexpected syntax near "
                    f"'{snippet}'"
                )
                continue
            if node.has_error:
                stack.extend(reversed(node.children))
        errors.sort(key=lambda e: int(e.split(":", 1)[0].split()[1]))
        return errors
