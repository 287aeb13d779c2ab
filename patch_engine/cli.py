"""
`patch-engine` command line.

Commands
--------
patch-engine apply-diff <file> [<diff_file>|-]   -- apply SEARCH/REPLACE blocks
patch-engine edit <file> <edits.json>            -- apply structured line edits
patch-engine undo <file>                         -- revert the last edit
patch-engine stats                               -- show edit metrics summary
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys

from tqdm import tqdm

from .collaborators import LocalFileStore
from .config import Config
from .editing import EditEngine, EditError, TreeSitterValidator, read_edit_stats
from .log_setup import setup_logger
from .undo import UndoHistory

logger = logging.getLogger(__name__)


def _read_input(path: str) -> str:
    """Read text from *path*, or from stdin when *path* is ``-``."""
    if path == "-":
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


class _ProgressBars:
    """tqdm bars for the streaming read and write stages."""

    def __init__(self) -> None:
        self._bars: dict[str, tqdm] = {}

    def __call__(self, stage: str, current: int, total: int) -> None:
        bar = self._bars.get(stage)
        if bar is None:
            bar = tqdm(total=total or None, unit="chunk", desc=stage.capitalize())
            self._bars[stage] = bar
        bar.update(current - bar.n)

    def close(self) -> None:
        for bar in self._bars.values():
            bar.close()


def _build_engine(args: argparse.Namespace, config: Config) -> EditEngine:
    if args.lenient:
        config.STRICT_BLOCKS = False
    if args.no_validate:
        config.VALIDATE_SYNTAX = False
    return EditEngine(
        store=LocalFileStore(),
        undo=UndoHistory(config.UNDO_FILE, limit=config.UNDO_LIMIT),
        validator=TreeSitterValidator(),
        config=config,
        metrics_root=os.getcwd(),
    )


# ---------------------------------------------------------------------------
# Sub-command handlers
# ---------------------------------------------------------------------------

def _cmd_apply_diff(engine: EditEngine, args: argparse.Namespace, progress):
    diff_text = _read_input(args.diff_file)
    return engine.apply_diff(args.file, diff_text, progress=progress)


def _cmd_edit(engine: EditEngine, args: argparse.Namespace, progress):
    raw = _read_input(args.edits_file)
    try:
        edits = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise EditError(f"Edits file is not valid JSON: {exc}") from exc
    if isinstance(edits, dict) and "edits" in edits:
        edits = edits["edits"]
    return engine.edit_file(args.file, edits, progress=progress)


def _cmd_undo(engine: EditEngine, args: argparse.Namespace, progress):
    return engine.undo(args.file)


def _cmd_stats(args: argparse.Namespace) -> int:
    stats = read_edit_stats(last_n=args.last, project_root=os.getcwd())
    if args.json:
        print(json.dumps(stats, indent=2))
        return 0
    print(f"Edits recorded:    {stats['total_edits']}")
    print(f"Success rate:      {stats['success_rate']:.1f}%")
    print(f"Streaming rate:    {stats['streaming_rate']:.1f}%")
    print(f"Avg edits applied: {stats['avg_edits_applied']:.1f}")
    for name, pct in stats["strategies"].items():
        print(f"  strategy {name:<8} {pct:.1f}%")
    for name, count in stats["error_types"].items():
        print(f"  error {name:<14} {count}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="patch-engine",
        description="Apply diff blocks and line edits to files",
    )
    parser.add_argument("--config", default=None,
                        help="Path to a .patch_engine.yaml config file")
    parser.add_argument("--json", action="store_true",
                        help="Print the result as JSON")
    parser.add_argument("--no-validate", action="store_true",
                        help="Skip the advisory syntax check")
    parser.add_argument("--lenient", action="store_true",
                        help="Skip malformed diff blocks instead of failing")
    parser.add_argument("--no-log", action="store_true",
                        help="Do not write a log file")

    sub = parser.add_subparsers(dest="command", required=True)

    p_diff = sub.add_parser("apply-diff", help="Apply SEARCH/REPLACE blocks")
    p_diff.add_argument("file")
    p_diff.add_argument("diff_file", nargs="?", default="-",
                        help="File holding the diff text (default: stdin)")
    p_diff.set_defaults(func=_cmd_apply_diff)

    p_edit = sub.add_parser("edit", help="Apply structured line edits")
    p_edit.add_argument("file")
    p_edit.add_argument("edits_file",
                        help="JSON array of replace_lines/insert_lines edits")
    p_edit.set_defaults(func=_cmd_edit)

    p_undo = sub.add_parser("undo", help="Revert the last edit to a file")
    p_undo.add_argument("file")
    p_undo.set_defaults(func=_cmd_undo)

    p_stats = sub.add_parser("stats", help="Show edit metrics")
    p_stats.add_argument("--last", type=int, default=50)
    p_stats.set_defaults(func=None)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    config = Config.load(args.config)

    if not args.no_log:
        setup_logger(config.LOG_DIR)

    if args.command == "stats":
        return _cmd_stats(args)

    engine = _build_engine(args, config)
    progress = _ProgressBars()
    try:
        outcome = args.func(engine, args, progress)
    except (EditError, OSError) as exc:
        logger.error("[CLI] %s failed: %s", args.command, exc)
        print(str(exc), file=sys.stderr)
        return 1
    finally:
        progress.close()

    if args.json:
        print(json.dumps(outcome.to_dict(), indent=2))
    else:
        print(outcome.message)
    return 0


if __name__ == "__main__":
    sys.exit(main())
