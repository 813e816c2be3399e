"""Tool configuration loaded from ``gridcalc.yaml``, with defaults."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


CONFIG_FILENAME = "gridcalc.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "column_width": 18,
    "color": True,
    "separator_width": 80,
    "logging_fsync": False,
    "logging_tail_bytes": 2_097_152,  # 2 MB
}


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load configuration, merging a YAML file over :data:`DEFAULT_CONFIG`.

    Args:
        path: Explicit config file.  When omitted, ``gridcalc.yaml`` in
            the current working directory is used if it exists.

    Returns:
        Merged configuration dict.

    Raises:
        FileNotFoundError: If an explicit *path* does not exist.
        ValueError: If the document is not a mapping.
    """
    config = dict(DEFAULT_CONFIG)
    if path is None:
        candidate = Path.cwd() / CONFIG_FILENAME
        if not candidate.exists():
            return config
        path = candidate
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    user_config = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(user_config, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    config.update(user_config)

    config["column_width"] = int(config["column_width"])
    if config["column_width"] < 1:
        raise ValueError("column_width must be positive")
    return config
