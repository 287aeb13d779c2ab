"""
Configuration — loads settings from .patch_engine.yaml, environment
variables, and built-in defaults (in that priority order: CLI args > env >
YAML > defaults).
"""

import os

import yaml


_DEFAULTS = {
    "fuzzy_window": 10,
    "partial_window": 5,
    "partial_min_lines": 3,
    "context_lines": 3,
    "streaming_threshold": 10_000_000,
    "read_chunk_size": 512 * 1024,
    "write_chunk_lines": 100_000,
    "yield_every": 5,
    "strict_blocks": True,
    "strip_code_fences": True,
    "validate_syntax": True,
    "undo_file": ".patch_engine/undo.json",
    "undo_limit": 20,
    "metrics_enabled": False,
    "log_dir": ".patch_engine/logs",
}

# Config file search locations
_CONFIG_FILENAMES = [".patch_engine.yaml", ".patch_engine.yml"]


def _find_config_file(explicit_path: str | None = None) -> str | None:
    """Find the config file. Checks explicit path, CWD, then user home."""
    if explicit_path:
        if os.path.isfile(explicit_path):
            return explicit_path
        return None

    # Search CWD first, then home directory
    search_dirs = [os.getcwd(), os.path.expanduser("~")]
    for d in search_dirs:
        for name in _CONFIG_FILENAMES:
            path = os.path.join(d, name)
            if os.path.isfile(path):
                return path
    return None


def _load_yaml(path: str) -> dict:
    """Load YAML file, returns empty dict on failure."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError):
        return {}


class Config:
    """Patch engine configuration.

    Settings are resolved in priority order:
    1. CLI arguments (handled by caller)
    2. Environment variables (``PATCH_<KEY>``)
    3. .patch_engine.yaml config file
    4. Built-in defaults
    """

    def __init__(self, yaml_data: dict | None = None):
        yd = yaml_data or {}

        # Helper: env var > yaml > default
        def _get(env_key: str, yaml_key: str, default, cast=str):
            env_val = os.getenv(env_key)
            if env_val is not None:
                return cast(env_val)
            yaml_val = yd.get(yaml_key)
            if yaml_val is not None:
                return cast(yaml_val)
            return default

        def _get_bool(env_key: str, yaml_key: str, default: bool) -> bool:
            env_val = os.getenv(env_key)
            if env_val is not None:
                return env_val.lower() == "true"
            yaml_val = yd.get(yaml_key)
            if yaml_val is not None:
                return bool(yaml_val)
            return default

        # Match strategies
        self.FUZZY_WINDOW = _get("PATCH_FUZZY_WINDOW", "fuzzy_window",
                                 _DEFAULTS["fuzzy_window"], cast=int)
        self.PARTIAL_WINDOW = _get("PATCH_PARTIAL_WINDOW", "partial_window",
                                   _DEFAULTS["partial_window"], cast=int)
        self.PARTIAL_MIN_LINES = _get("PATCH_PARTIAL_MIN_LINES",
                                      "partial_min_lines",
                                      _DEFAULTS["partial_min_lines"], cast=int)
        self.CONTEXT_LINES = _get("PATCH_CONTEXT_LINES", "context_lines",
                                  _DEFAULTS["context_lines"], cast=int)

        # Large-file streaming
        self.STREAMING_THRESHOLD = _get("PATCH_STREAMING_THRESHOLD",
                                        "streaming_threshold",
                                        _DEFAULTS["streaming_threshold"],
                                        cast=int)
        self.READ_CHUNK_SIZE = _get("PATCH_READ_CHUNK_SIZE", "read_chunk_size",
                                    _DEFAULTS["read_chunk_size"], cast=int)
        self.WRITE_CHUNK_LINES = _get("PATCH_WRITE_CHUNK_LINES",
                                      "write_chunk_lines",
                                      _DEFAULTS["write_chunk_lines"], cast=int)
        self.YIELD_EVERY = _get("PATCH_YIELD_EVERY", "yield_every",
                                _DEFAULTS["yield_every"], cast=int)

        # Parsing and validation
        self.STRICT_BLOCKS = _get_bool("PATCH_STRICT_BLOCKS", "strict_blocks",
                                       _DEFAULTS["strict_blocks"])
        self.STRIP_CODE_FENCES = _get_bool("PATCH_STRIP_CODE_FENCES",
                                           "strip_code_fences",
                                           _DEFAULTS["strip_code_fences"])
        self.VALIDATE_SYNTAX = _get_bool("PATCH_VALIDATE_SYNTAX",
                                         "validate_syntax",
                                         _DEFAULTS["validate_syntax"])

        # Undo history
        self.UNDO_FILE = _get("PATCH_UNDO_FILE", "undo_file",
                              _DEFAULTS["undo_file"])
        self.UNDO_LIMIT = _get("PATCH_UNDO_LIMIT", "undo_limit",
                               _DEFAULTS["undo_limit"], cast=int)

        # Metrics and logs
        self.METRICS_ENABLED = _get_bool("PATCH_METRICS_ENABLED",
                                         "metrics_enabled",
                                         _DEFAULTS["metrics_enabled"])
        self.LOG_DIR = _get("PATCH_LOG_DIR", "log_dir", _DEFAULTS["log_dir"])

    @classmethod
    def load(cls, config_path: str | None = None) -> "Config":
        """Load config from YAML file (if found) + env vars + defaults."""
        path = _find_config_file(config_path)
        yaml_data = _load_yaml(path) if path else {}
        return cls(yaml_data)
