"""
Logging setup — file logger for CLI runs. Library use stays silent unless
the host configures logging itself.
"""

import logging
import os
from datetime import datetime


def setup_logger(log_dir: str = ".patch_engine/logs") -> logging.Logger:
    """Creates a file logger. All verbose output goes here."""
    os.makedirs(log_dir, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = os.path.join(log_dir, f"edit_{timestamp}.log")

    logger = logging.getLogger("patch_engine")
    logger.setLevel(logging.DEBUG)

    # File handler: captures everything
    fh = logging.FileHandler(log_file, encoding="utf-8")
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt="%H:%M:%S"
    ))
    logger.addHandler(fh)

    return logger
