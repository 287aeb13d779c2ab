"""Patch application engine — diff blocks and line edits applied to file text."""

from .line_model import LineModel, LineEnding, split_lines
from .edits import (
    ReplaceLines, InsertLines, DiffBlock, EditDescriptor, parse_edits,
    strip_code_fence,
)
from .errors import (
    EditError, ParseError, MatchError, BoundsError, EditSchemaError,
    EditCancelled,
)
from .diff_parser import DiffParser
from .match_resolver import MatchResolver, MatchResult, MatchStrategy
from .patch_applier import EditApplier, ApplyResult
from .streaming import StreamingAdapter, StreamingResult
from .syntax import TreeSitterValidator, SyntaxReport
from .metrics import log_edit_metric, read_edit_stats
from .engine import EditEngine, EditOutcome

__all__ = [
    "LineModel", "LineEnding", "split_lines",
    "ReplaceLines", "InsertLines", "DiffBlock", "EditDescriptor",
    "parse_edits", "strip_code_fence",
    "EditError", "ParseError", "MatchError", "BoundsError",
    "EditSchemaError", "EditCancelled",
    "DiffParser",
    "MatchResolver", "MatchResult", "MatchStrategy",
    "EditApplier", "ApplyResult",
    "StreamingAdapter", "StreamingResult",
    "TreeSitterValidator", "SyntaxReport",
    "log_edit_metric", "read_edit_stats",
    "EditEngine", "EditOutcome",
]
