"""
Edit metrics — records one entry per engine invocation in a JSONL log.
"""

from __future__ import annotations

import json
import logging
import os
from collections import Counter
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

_METRICS_DIR = ".patch_engine"
_METRICS_FILE = "edit_metrics.jsonl"


def _metrics_path(project_root: str | None = None) -> str:
    """Return the absolute path to the metrics file."""
    base = project_root or os.getcwd()
    return os.path.join(base, _METRICS_DIR, _METRICS_FILE)


def log_edit_metric(data: dict, project_root: str | None = None) -> None:
    """Append a single edit metric entry to the JSONL log.

    Parameters
    ----------
    data:
        Metric fields to log (file, mode, processing_method, success, ...).
    project_root:
        Optional project root directory. Defaults to CWD.
    """
    path = _metrics_path(project_root)

    entry = {"timestamp": datetime.now(timezone.utc).isoformat()}
    entry.update(data)

    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry) + "\n")
    except OSError as exc:
        logger.warning("[DiffEdit] Failed to write metrics: %s", exc)


def read_edit_stats(
    last_n: int = 50,
    project_root: str | None = None,
) -> dict:
    """Compute rolling statistics from the metrics log.

    Parameters
    ----------
    last_n:
        Number of most-recent entries to include.
    project_root:
        Optional project root directory.

    Returns
    -------
    dict
        Statistics including total_edits, success_rate, streaming_rate,
        avg_edits_applied, strategies and error_types.
    """
    path = _metrics_path(project_root)

    entries: list[dict] = []
    if os.path.isfile(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if line:
                        try:
                            entries.append(json.loads(line))
                        except json.JSONDecodeError:
                            continue
        except OSError as exc:
            logger.warning("[DiffEdit] Failed to read metrics: %s", exc)

    # Take last N entries
    entries = entries[-last_n:]

    if not entries:
        return {
            "total_edits": 0,
            "success_rate": 0.0,
            "streaming_rate": 0.0,
            "avg_edits_applied": 0.0,
            "strategies": {},
            "error_types": {},
        }

    total = len(entries)
    successes = sum(1 for e in entries if e.get("success", False))
    streamed = sum(
        1 for e in entries if e.get("processing_method") == "streaming"
    )
    applied = [e.get("edits_applied", 0) for e in entries if e.get("success")]

    strategies: Counter = Counter()
    for e in entries:
        for name, count in (e.get("strategies") or {}).items():
            strategies[name] += count
    strategy_total = sum(strategies.values())

    errors = Counter(e["error_type"] for e in entries if e.get("error_type"))

    return {
        "total_edits": total,
        "success_rate": successes / total * 100,
        "streaming_rate": streamed / total * 100,
        "avg_edits_applied": sum(applied) / len(applied) if applied else 0.0,
        "strategies": {
            name: count / strategy_total * 100
            for name, count in strategies.most_common()
        },
        "error_types": dict(errors.most_common()),
    }
