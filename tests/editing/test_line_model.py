"""Tests for the line model and line-ending handling."""

from patch_engine.editing.line_model import LineEnding, LineModel, split_lines


class TestSplitLines:
    def test_lf(self):
        assert split_lines("a\nb\nc") == ["a", "b", "c"]

    def test_crlf_and_mixed(self):
        assert split_lines("a\r\nb\nc") == ["a", "b", "c"]

    def test_trailing_newline_keeps_empty_line(self):
        assert split_lines("a\nb\n") == ["a", "b", ""]

    def test_lone_carriage_return_is_content(self):
        assert split_lines("a\rb\nc") == ["a\rb", "c"]


class TestLineModel:
    def test_from_text_lf(self):
        model = LineModel.from_text("one\ntwo\nthree")
        assert model.lines == ("one", "two", "three")
        assert model.ending is LineEnding.LF
        assert model.line_count == 3

    def test_detects_crlf(self):
        model = LineModel.from_text("one\r\ntwo")
        assert model.ending is LineEnding.CRLF
        assert model.to_text() == "one\r\ntwo"

    def test_any_crlf_makes_whole_file_crlf(self):
        model = LineModel.from_text("a\r\nb\nc")
        assert model.ending is LineEnding.CRLF
        # Only the join character normalises; line content is unchanged
        assert model.lines == ("a", "b", "c")
        assert model.to_text() == "a\r\nb\r\nc"

    def test_round_trip_preserves_text(self):
        text = "def foo():\n    return 1\n\n# end\n"
        assert LineModel.from_text(text).to_text() == text

    def test_empty_text_is_one_empty_line(self):
        model = LineModel.from_text("")
        assert model.lines == ("",)
        assert model.to_text() == ""

    def test_with_lines_keeps_ending(self):
        model = LineModel.from_text("a\r\nb")
        updated = model.with_lines(["x", "y", "z"])
        assert updated.ending is LineEnding.CRLF
        assert updated.to_text() == "x\r\ny\r\nz"
        # Original untouched
        assert model.lines == ("a", "b")

    def test_indexing_and_len(self):
        model = LineModel.from_text("a\nb\nc")
        assert len(model) == 3
        assert model[1] == "b"
        assert model[-1] == "c"
