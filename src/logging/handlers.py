# src/logging/handlers.py — v2
"""File handlers for the textflow log file.

Rotation is size based. A rotation of "0" (or an empty string) keeps a
single, unbounded log file.
"""

from __future__ import annotations

import logging
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

_SIZE_RE = re.compile(r"^(\d+)\s*(B|KB|MB|GB)?$", re.IGNORECASE)
_MULTIPLIERS = {"B": 1, "KB": 1024, "MB": 1024**2, "GB": 1024**3}


def parse_size(size_str: str) -> int:
    """Parse size string like '10MB' into bytes.

    A bare number is taken as bytes. Supported suffixes: B, KB, MB, GB
    (case-insensitive).
    """
    match = _SIZE_RE.match(size_str.strip())
    if not match:
        raise ValueError(f"Invalid size format: {size_str!r}. Use e.g. '10MB'.")
    unit = (match.group(2) or "B").upper()
    return int(match.group(1)) * _MULTIPLIERS[unit]


def create_rotating_handler(
    log_file: str,
    rotation: str = "10MB",
    retention: int = 30,
) -> logging.FileHandler:
    """Create the file handler for ``log_file``.

    Args:
        log_file: Path to log file. Parent directories are created.
        rotation: Max file size before rotation (e.g. "10MB"); "0" disables it.
        retention: Number of backup files to keep.

    Returns:
        A RotatingFileHandler, or a plain FileHandler when rotation is off.
    """
    path = Path(log_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)

    max_bytes = parse_size(rotation) if rotation.strip() else 0
    if max_bytes == 0:
        return logging.FileHandler(str(path), encoding="utf-8", delay=True)

    return RotatingFileHandler(
        filename=str(path),
        maxBytes=max_bytes,
        backupCount=max(retention, 0),
        encoding="utf-8",
        delay=True,
    )
