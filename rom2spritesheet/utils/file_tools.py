"""Filesystem helpers."""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def ensure_directory(path: Path) -> Path:
    """Create a directory if it does not exist."""

    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)
    return path


def slot_output_path(output_dir: Path, slot_index: int, suffix: str = ".png") -> Path:
    """Return the sheet path for a sprite slot, e.g. ``sprites/0042.png``."""

    if not suffix.startswith("."):
        suffix = "." + suffix
    return output_dir / f"{slot_index:04d}{suffix}"
