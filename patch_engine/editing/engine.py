"""
Edit engine — the service object that runs one edit request end to end:

read -> parse/validate -> resolve + apply -> serialize -> record undo ->
write -> advisory syntax check -> outcome with statistics.

All dependencies are passed in; the engine keeps no state between calls
apart from what its collaborators hold.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from ..collaborators import FileStore, SyntaxValidator, UndoRecorder
from ..config import Config
from .diff_parser import DiffParser
from .edits import EditDescriptor, parse_edits
from .errors import EditError
from .line_model import LineModel
from .match_resolver import MatchResolver
from .metrics import log_edit_metric
from .patch_applier import ApplyResult, EditApplier
from .streaming import CancelFn, ProgressFn, StreamingAdapter, YieldFn

logger = logging.getLogger(__name__)

# Undecodable bytes survive the round trip as lone surrogates
_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


def _decode(data: bytes) -> str:
    return data.decode(_ENCODING, errors=_ERRORS)


def _encode(text: str) -> bytes:
    return text.encode(_ENCODING, errors=_ERRORS)


@dataclass
class EditOutcome:
    """Success result returned to the caller."""
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "details": dict(self.details)}


@dataclass
class _Composed:
    """New content plus bookkeeping for the write and the outcome."""
    result: ApplyResult
    original_text: str
    processing_method: str
    chunks_processed: int = 0
    chunks_written: int = 0


class EditEngine:
    """Apply diff blocks or structured edits to one file at a time.

    Callers must serialize invocations per file path.
    """

    def __init__(
        self,
        store: FileStore,
        undo: Optional[UndoRecorder] = None,
        validator: Optional[SyntaxValidator] = None,
        config: Optional[Config] = None,
        metrics_root: Optional[str] = None,
    ) -> None:
        self._store = store
        self._undo = undo
        self._validator = validator
        self._config = config or Config()
        self._metrics_root = metrics_root

        cfg = self._config
        resolver = MatchResolver(
            fuzzy_window=cfg.FUZZY_WINDOW,
            partial_window=cfg.PARTIAL_WINDOW,
            partial_min_lines=cfg.PARTIAL_MIN_LINES,
            context_lines=cfg.CONTEXT_LINES,
        )
        self._applier = EditApplier(resolver)
        self._parser = DiffParser(strict=cfg.STRICT_BLOCKS)
        self._streaming = StreamingAdapter(
            self._applier,
            write_chunk_lines=cfg.WRITE_CHUNK_LINES,
            yield_every=cfg.YIELD_EVERY,
        )

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def apply_diff(
        self,
        path: str,
        diff_text: str,
        yield_fn: Optional[YieldFn] = None,
        should_cancel: Optional[CancelFn] = None,
        progress: Optional[ProgressFn] = None,
    ) -> EditOutcome:
        """Apply SEARCH/REPLACE diff blocks from *diff_text* to *path*."""
        try:
            blocks = self._parser.parse(diff_text)
            return self._run(
                path, blocks, "diff", yield_fn, should_cancel, progress,
            )
        except EditError as exc:
            self._record_failure(path, "diff", exc)
            raise

    def edit_file(
        self,
        path: str,
        edits: Sequence[Any],
        yield_fn: Optional[YieldFn] = None,
        should_cancel: Optional[CancelFn] = None,
        progress: Optional[ProgressFn] = None,
    ) -> EditOutcome:
        """Apply structured ``replace_lines`` / ``insert_lines`` edits."""
        try:
            descriptors = parse_edits(
                edits, strip_fences=self._config.STRIP_CODE_FENCES,
            )
            return self._run(
                path, descriptors, "edits", yield_fn, should_cancel, progress,
            )
        except EditError as exc:
            self._record_failure(path, "edits", exc)
            raise

    def undo(self, path: str) -> EditOutcome:
        """Restore the most recent pre-edit content recorded for *path*."""
        if self._undo is None:
            raise EditError("No undo history is configured for this engine.")
        previous = self._undo.pop(path)
        if previous is None:
            raise EditError(f"Nothing to undo for '{path}'.")
        self._store.write(path, _encode(previous))
        restored = LineModel.from_text(previous)
        return EditOutcome(
            message=f"Reverted last edit to '{path}'.",
            details={"finalLines": restored.line_count},
        )

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _run(
        self,
        path: str,
        edits: list[EditDescriptor],
        mode: str,
        yield_fn: Optional[YieldFn],
        should_cancel: Optional[CancelFn],
        progress: Optional[ProgressFn],
    ) -> EditOutcome:
        file_size = self._store.size(path)
        streaming = file_size > self._config.STREAMING_THRESHOLD
        logger.info(
            "[SmartEdit] Processing %s (%d bytes, %d edit(s), %s)",
            path, file_size, len(edits), "streaming" if streaming else "standard",
        )

        if streaming:
            composed = self._compose_streaming(
                path, edits, file_size, yield_fn, should_cancel, progress,
            )
        else:
            original_text = _decode(self._store.read(path))
            composed = _Composed(
                result=self._applier.apply(LineModel.from_text(original_text), edits),
                original_text=original_text,
                processing_method="standard",
            )

        result = composed.result
        if not edits:
            return EditOutcome(
                message=f"No edits to apply to '{path}'; file left unchanged.",
                details=self._details(composed, mode, file_size),
            )

        new_text = result.model.to_text()

        if self._undo is not None:
            self._undo.record_undo(path, composed.original_text)

        try:
            if streaming:
                self._store.write_chunks(path, self._streaming.iter_output(
                    result.model, yield_fn, should_cancel, progress,
                ))
            else:
                self._store.write(path, _encode(new_text))
        except Exception:
            # Write failed or was cancelled; drop the entry just recorded
            if self._undo is not None:
                self._undo.pop(path)
            raise

        syntax_warnings = self._check_syntax(path, new_text)

        if mode == "diff":
            message = (
                f"Applied {result.edits_applied} diff block(s) to '{path}' "
                f"successfully."
            )
        else:
            message = (
                f"Smart edit applied to '{path}' successfully. "
                f"{result.edits_applied} edit(s) applied."
            )
        if result.warnings:
            message += "\n\nNotes:\n" + "\n".join(f"- {w}" for w in result.warnings)
        if syntax_warnings:
            message += (
                "\n\nWARNING: Syntax errors were detected and have been "
                "written to the file.\nErrors:\n" + "\n".join(syntax_warnings)
            )

        details = self._details(composed, mode, file_size)
        details["syntaxValid"] = not syntax_warnings
        self._record_success(path, mode, composed)
        return EditOutcome(message=message, details=details)

    def _compose_streaming(
        self,
        path: str,
        edits: list[EditDescriptor],
        file_size: int,
        yield_fn: Optional[YieldFn],
        should_cancel: Optional[CancelFn],
        progress: Optional[ProgressFn],
    ) -> _Composed:
        chunk_size = max(1, self._config.READ_CHUNK_SIZE)
        streamed = self._streaming.apply(
            self._store.iter_chunks(path, chunk_size),
            edits,
            total_chunks=math.ceil(file_size / chunk_size),
            yield_fn=yield_fn,
            should_cancel=should_cancel,
            progress=progress,
        )
        return _Composed(
            result=streamed.apply_result,
            original_text=streamed.original_text,
            processing_method="streaming",
            chunks_processed=streamed.chunks_processed,
            chunks_written=streamed.chunks_written,
        )

    def _check_syntax(self, path: str, new_text: str) -> list[str]:
        """Run the advisory validator; problems come back as text, never raise."""
        if self._validator is None or not self._config.VALIDATE_SYNTAX:
            return []
        try:
            report = self._validator.validate(path, new_text)
        except Exception as exc:
            logger.warning("[SmartEdit] Validation failed for %s: %s", path, exc)
            return []
        for warning in report.warnings:
            logger.debug("[SmartEdit] %s", warning)
        if report.valid:
            return []
        return list(report.errors) or ["Syntax validation reported errors."]

    @staticmethod
    def _details(composed: _Composed, mode: str, file_size: int) -> dict[str, Any]:
        result = composed.result
        details: dict[str, Any] = {
            "originalLines": result.original_line_count,
            "finalLines": result.final_line_count,
            "processingMethod": composed.processing_method,
            "fileSize": file_size,
            "warnings": list(result.warnings),
        }
        if mode == "diff":
            details["blocksApplied"] = result.edits_applied
            details["strategies"] = result.strategies
        else:
            details["editsApplied"] = result.edits_applied
        if composed.processing_method == "streaming":
            details["chunksProcessed"] = composed.chunks_processed
            details["chunksWritten"] = composed.chunks_written
        return details

    # ------------------------------------------------------------------
    # Metrics
    # ------------------------------------------------------------------

    def _record_success(self, path: str, mode: str, composed: _Composed) -> None:
        if not self._config.METRICS_ENABLED:
            return
        result = composed.result
        log_edit_metric({
            "file": path,
            "mode": mode,
            "success": True,
            "processing_method": composed.processing_method,
            "original_lines": result.original_line_count,
            "final_lines": result.final_line_count,
            "edits_applied": result.edits_applied,
            "strategies": result.strategies,
        }, project_root=self._metrics_root)

    def _record_failure(self, path: str, mode: str, exc: EditError) -> None:
        if not self._config.METRICS_ENABLED:
            return
        log_edit_metric({
            "file": path,
            "mode": mode,
            "success": False,
            "error_type": type(exc).__name__,
        }, project_root=self._metrics_root)
