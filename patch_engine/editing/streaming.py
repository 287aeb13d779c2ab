"""
Streaming adapter — the large-file path of the edit engine.

Reads the source in byte chunks, merges line fragments that straddle chunk
boundaries, applies the usual :class:`EditApplier` logic and produces the
output in bounded line chunks. Between chunks it hands control back to the
host through ``yield_fn`` and polls ``should_cancel``; all progress lives in
local state, so the host can run other work between chunks.
"""

from __future__ import annotations

import codecs
import logging
import math
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Optional, Sequence

from .edits import EditDescriptor
from .errors import EditCancelled
from .line_model import LineEnding, LineModel
from .patch_applier import ApplyResult, EditApplier

logger = logging.getLogger(__name__)

YieldFn = Callable[[], None]
CancelFn = Callable[[], bool]
ProgressFn = Callable[[str, int, int], None]


@dataclass
class StreamingResult:
    """Outcome of the streaming read + apply phase."""
    apply_result: ApplyResult
    original_text: str
    chunks_processed: int
    chunks_written: int


class StreamingAdapter:
    """Chunked read / apply / write with cooperative yielding."""

    def __init__(
        self,
        applier: EditApplier | None = None,
        write_chunk_lines: int = 100_000,
        yield_every: int = 5,
        encoding: str = "utf-8",
    ) -> None:
        self._applier = applier or EditApplier()
        self._write_chunk_lines = max(1, write_chunk_lines)
        self._yield_every = max(1, yield_every)
        self._encoding = encoding

    def apply(
        self,
        chunks: Iterable[bytes],
        edits: Sequence[EditDescriptor],
        total_chunks: int = 0,
        yield_fn: Optional[YieldFn] = None,
        should_cancel: Optional[CancelFn] = None,
        progress: Optional[ProgressFn] = None,
    ) -> StreamingResult:
        """Build the line model from *chunks* and apply *edits* to it."""
        model, original_text, processed = self.read_model(
            chunks, total_chunks, yield_fn, should_cancel, progress,
        )
        logger.info(
            "[StreamingEdit] Loaded %d lines from %d chunks",
            model.line_count, processed,
        )
        result = self._applier.apply(model, edits)
        return StreamingResult(
            apply_result=result,
            original_text=original_text,
            chunks_processed=processed,
            chunks_written=self.count_output_chunks(result.model),
        )

    def read_model(
        self,
        chunks: Iterable[bytes],
        total_chunks: int = 0,
        yield_fn: Optional[YieldFn] = None,
        should_cancel: Optional[CancelFn] = None,
        progress: Optional[ProgressFn] = None,
    ) -> tuple[LineModel, str, int]:
        """Decode *chunks* into a :class:`LineModel`.

        Returns ``(model, original_text, chunks_processed)``.
        """
        decoder = codecs.getincrementaldecoder(self._encoding)(
            errors="surrogateescape",
        )
        pieces: list[str] = []
        lines: list[str] = []
        carry = ""
        crlf = False
        processed = 0

        for chunk in chunks:
            self._check_cancel(should_cancel, "read")
            piece = decoder.decode(chunk)
            pieces.append(piece)

            # The tail after the last newline may continue in the next chunk
            text = carry + piece
            if not crlf and "\r\n" in text:
                crlf = True
            parts = text.split("\n")
            carry = parts.pop()
            lines.extend(p[:-1] if p.endswith("\r") else p for p in parts)

            processed += 1
            self._report(progress, "read", processed, total_chunks)
            if processed % self._yield_every == 0 and yield_fn is not None:
                yield_fn()

        tail = decoder.decode(b"", final=True)
        pieces.append(tail)
        lines.append(carry + tail)

        ending = LineEnding.CRLF if crlf else LineEnding.LF
        return LineModel(tuple(lines), ending), "".join(pieces), processed

    def iter_output(
        self,
        model: LineModel,
        yield_fn: Optional[YieldFn] = None,
        should_cancel: Optional[CancelFn] = None,
        progress: Optional[ProgressFn] = None,
    ) -> Iterator[bytes]:
        """Yield the serialized *model* in chunks of ``write_chunk_lines``."""
        lines = model.lines
        joiner = model.ending.value
        size = self._write_chunk_lines
        total = self.count_output_chunks(model)

        written = 0
        for start in range(0, len(lines), size):
            self._check_cancel(should_cancel, "write")
            text = joiner.join(lines[start:start + size])
            if start + size < len(lines):
                text += joiner
            yield text.encode(self._encoding, errors="surrogateescape")

            written += 1
            self._report(progress, "write", written, total)
            if written % self._yield_every == 0 and yield_fn is not None:
                yield_fn()

        logger.info("[StreamingEdit] Wrote %d lines in %d chunks", len(lines), written)

    def count_output_chunks(self, model: LineModel) -> int:
        return math.ceil(model.line_count / self._write_chunk_lines)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _check_cancel(should_cancel: Optional[CancelFn], stage: str) -> None:
        if should_cancel is not None and should_cancel():
            logger.warning("[StreamingEdit] Cancelled during %s", stage)
            raise EditCancelled(
                f"Streaming edit cancelled during {stage}; file left unchanged."
            )

    @staticmethod
    def _report(
        progress: Optional[ProgressFn], stage: str, current: int, total: int,
    ) -> None:
        if progress is not None:
            progress(stage, current, total)
        if total > 10 and current % max(1, total // 10) == 0:
            logger.debug(
                "[StreamingEdit] %s progress: %d%% (%d/%d chunks)",
                stage.capitalize(), round(current / total * 100), current, total,
            )
