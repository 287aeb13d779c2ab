"""Tests for the patch-engine command line."""

import io
import json

import pytest

from patch_engine.cli import main

DIFF = """\
<<<<<<< SEARCH
:start_line:1
-------
alpha
=======
ALPHA
>>>>>>> REPLACE
"""


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "doc.txt").write_text("alpha\nbeta\n")
    return tmp_path


class TestApplyDiffCommand:
    def test_diff_from_file(self, workdir, capsys):
        (workdir / "change.diff").write_text(DIFF)

        assert main(["--no-log", "apply-diff", "doc.txt", "change.diff"]) == 0
        assert (workdir / "doc.txt").read_text() == "ALPHA\nbeta\n"
        assert "Applied 1 diff block(s)" in capsys.readouterr().out

    def test_diff_from_stdin_with_json_output(self, workdir, capsys, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO(DIFF))

        assert main(["--no-log", "--json", "apply-diff", "doc.txt"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["details"]["blocksApplied"] == 1
        assert payload["details"]["strategies"] == {"exact": 1}

    def test_failure_exits_nonzero(self, workdir, capsys):
        (workdir / "bad.diff").write_text("not a diff")

        assert main(["--no-log", "apply-diff", "doc.txt", "bad.diff"]) == 1
        assert "No valid diff blocks found" in capsys.readouterr().err
        assert (workdir / "doc.txt").read_text() == "alpha\nbeta\n"


class TestEditAndUndoCommands:
    def test_edit_then_undo(self, workdir, capsys):
        (workdir / "edits.json").write_text(json.dumps({"edits": [
            {"type": "insert_lines", "line_number": 1, "new_content": "inserted"},
        ]}))

        assert main(["--no-log", "edit", "doc.txt", "edits.json"]) == 0
        assert (workdir / "doc.txt").read_text() == "alpha\ninserted\nbeta\n"

        assert main(["--no-log", "undo", "doc.txt"]) == 0
        assert (workdir / "doc.txt").read_text() == "alpha\nbeta\n"
        assert "Reverted last edit" in capsys.readouterr().out

    def test_invalid_json(self, workdir, capsys):
        (workdir / "edits.json").write_text("[{")

        assert main(["--no-log", "edit", "doc.txt", "edits.json"]) == 1
        assert "not valid JSON" in capsys.readouterr().err

    def test_undo_with_empty_history(self, workdir, capsys):
        assert main(["--no-log", "undo", "doc.txt"]) == 1
        assert "Nothing to undo" in capsys.readouterr().err


class TestStatsCommand:
    def test_stats_json(self, workdir, capsys, monkeypatch):
        monkeypatch.setenv("PATCH_METRICS_ENABLED", "true")
        (workdir / "change.diff").write_text(DIFF)
        main(["--no-log", "apply-diff", "doc.txt", "change.diff"])
        capsys.readouterr()

        assert main(["--no-log", "--json", "stats"]) == 0
        stats = json.loads(capsys.readouterr().out)
        assert stats["total_edits"] == 1
        assert stats["success_rate"] == 100.0
