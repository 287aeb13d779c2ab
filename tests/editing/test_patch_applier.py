"""Tests for EditApplier: bounds, ordering and line-count bookkeeping."""

import pytest

from patch_engine.editing.edits import DiffBlock, InsertLines, ReplaceLines
from patch_engine.editing.errors import BoundsError, MatchError
from patch_engine.editing.line_model import LineEnding, LineModel
from patch_engine.editing.patch_applier import EditApplier


FIVE = LineModel(("a", "b", "c", "d", "e"))
TEN = LineModel(tuple(f"l{i}" for i in range(1, 11)))


def _apply(model, edits):
    return EditApplier().apply(model, edits)


class TestReplaceLines:
    def test_replace_range_with_two_lines(self):
        result = _apply(FIVE, [ReplaceLines(2, 3, "X\nY")])

        assert result.model.lines == ("a", "X", "Y", "d", "e")
        assert result.original_line_count == 5
        assert result.final_line_count == 5
        assert result.edits_applied == 1

    def test_replace_shrinks_file(self):
        result = _apply(FIVE, [ReplaceLines(1, 4, "only")])
        assert result.model.lines == ("only", "e")
        assert result.final_line_count == 2

    def test_end_line_past_eof_is_clamped(self):
        result = _apply(TEN, [ReplaceLines(9, 50, "tail")])

        assert result.model.lines[-1] == "tail"
        assert result.final_line_count == 9
        assert len(result.warnings) == 1
        assert "end_line (50) exceeds file length (10)" in result.warnings[0]
        assert "Clamping to 10" in result.warnings[0]

    @pytest.mark.parametrize("start,end", [(0, 2), (2, 0), (-1, 3)])
    def test_line_numbers_below_one(self, start, end):
        with pytest.raises(BoundsError, match="must be >= 1"):
            _apply(TEN, [ReplaceLines(start, end, "x")])

    def test_start_after_end(self):
        with pytest.raises(BoundsError, match="cannot be greater than"):
            _apply(TEN, [ReplaceLines(5, 3, "x")])

    def test_start_past_eof(self):
        with pytest.raises(BoundsError, match=r"start_line \(11\) exceeds"):
            _apply(TEN, [ReplaceLines(11, 12, "x")])


class TestInsertLines:
    def test_insert_at_file_start(self):
        result = _apply(TEN, [InsertLines(0, "HEADER")])

        assert result.model.lines[0] == "HEADER"
        assert result.model.lines[1] == "l1"
        assert result.final_line_count == 11

    def test_insert_after_last_line(self):
        result = _apply(FIVE, [InsertLines(5, "f\ng")])
        assert result.model.lines == ("a", "b", "c", "d", "e", "f", "g")

    @pytest.mark.parametrize("position", [-1, 11])
    def test_insert_out_of_range(self, position):
        with pytest.raises(BoundsError, match="Invalid line number for insert"):
            _apply(TEN, [InsertLines(position, "x")])

    def test_same_position_inserts_keep_input_order(self):
        result = _apply(FIVE, [InsertLines(2, "first"), InsertLines(2, "second")])
        assert result.model.lines == ("a", "b", "first", "second", "c", "d", "e")

    def test_insert_just_before_replaced_range(self):
        result = _apply(FIVE, [ReplaceLines(2, 3, "BC"), InsertLines(1, "new")])
        assert result.model.lines == ("a", "new", "BC", "d", "e")


class TestDiffBlocks:
    def test_block_deletes_lines(self):
        result = _apply(FIVE, [DiffBlock(2, ("b", "c"), ())])

        assert result.model.lines == ("a", "d", "e")
        assert result.final_line_count == 3
        assert result.strategies == {"exact": 1}

    def test_drifted_block_counts_strategy(self):
        result = _apply(TEN, [DiffBlock(2, ("l6",), ("L6",))])

        assert result.model.lines[5] == "L6"
        assert result.strategies == {"fuzzy": 1}

    def test_empty_search_inserts_at_declared_line(self):
        result = _apply(FIVE, [DiffBlock(6, (), ("f",))])
        assert result.model.lines == ("a", "b", "c", "d", "e", "f")

    @pytest.mark.parametrize("declared", [0, 6])
    def test_declared_line_out_of_range(self, declared):
        with pytest.raises(BoundsError, match="Invalid start_line"):
            _apply(FIVE, [DiffBlock(declared, ("a",), ("z",))])

    def test_unmatched_block_raises_match_error(self):
        with pytest.raises(MatchError):
            _apply(FIVE, [DiffBlock(2, ("zzz",), ("y",))])


class TestBatchSemantics:
    def test_empty_edit_list_returns_same_model(self):
        result = _apply(FIVE, [])

        assert result.model is FIVE
        assert result.edits_applied == 0
        assert result.final_line_count == 5

    def test_mixed_edits_use_original_line_numbers(self):
        model = LineModel(tuple("abcdefghij"))
        edits = [
            ReplaceLines(1, 1, "A1\nA2\nA3"),
            DiffBlock(8, ("h",), ("H",)),
            InsertLines(4, "after-d"),
        ]
        result = _apply(model, edits)

        assert result.model.lines == (
            "A1", "A2", "A3", "b", "c", "d", "after-d", "e", "f", "g",
            "H", "i", "j",
        )

    def test_input_order_does_not_matter(self):
        edits = [
            ReplaceLines(2, 2, "B"),
            InsertLines(7, "x\ny"),
            DiffBlock(9, ("l9", "l10"), ("end",)),
        ]
        forward = _apply(TEN, edits)
        backward = _apply(TEN, list(reversed(edits)))

        assert forward.model.lines == backward.model.lines

    def test_final_count_matches_line_algebra(self):
        edits = [
            ReplaceLines(1, 3, "one"),           # -2
            InsertLines(5, "p\nq\nr"),           # +3
            DiffBlock(8, ("l8", "l9"), ("z",)),  # -1
        ]
        result = _apply(TEN, edits)

        assert result.final_line_count == 10 - 2 + 3 - 1
        assert result.model.line_count == result.final_line_count

    def test_overlapping_edits_are_rejected(self):
        with pytest.raises(BoundsError, match="Edits overlap"):
            _apply(TEN, [ReplaceLines(2, 4, "x"), ReplaceLines(4, 6, "y")])

    def test_insert_inside_replaced_range_is_rejected(self):
        with pytest.raises(BoundsError, match="Edits overlap"):
            _apply(TEN, [ReplaceLines(2, 4, "x"), InsertLines(3, "y")])

    def test_crlf_ending_is_kept(self):
        model = LineModel.from_text("a\r\nb\r\nc\r\n")
        result = _apply(model, [ReplaceLines(2, 2, "B")])

        assert result.model.ending is LineEnding.CRLF
        assert result.model.to_text() == "a\r\nB\r\nc\r\n"
