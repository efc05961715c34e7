"""Validation helpers for user inputs."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

from ..core.errors import InvalidRomError, ValidationError
from ..core.rom_info import HEADER_SIZE

ALLOWED_ROM_EXTENSIONS = {".gba", ".agb", ".bin"}


def validate_rom_path(path: Path) -> Path:
    """Ensure the ROM path exists and looks like a GBA image."""

    if not path:
        raise InvalidRomError(Path("<unset>"), reason="No path provided")
    if not path.exists():
        raise InvalidRomError(path, reason="File not found")
    if not path.is_file():
        raise InvalidRomError(path, reason="Not a regular file")
    if path.suffix.lower() not in ALLOWED_ROM_EXTENSIONS:
        raise InvalidRomError(path, reason="Unsupported format")
    if path.stat().st_size < HEADER_SIZE:
        raise InvalidRomError(path, reason="Too small to contain a ROM header")
    return path


def parse_slot(value: str) -> int:
    """Parse a slot index given in decimal or ``0x`` hex."""

    try:
        parsed = int(value, 0)
    except ValueError as exc:
        raise ValidationError(f"Slot must be an integer, got {value!r}") from exc
    if parsed < 0:
        raise ValidationError("Slot must be zero or greater")
    return parsed


def validate_slots(slots: Optional[Iterable[int]], count: int) -> Optional[list[int]]:
    """Ensure requested slots exist in the sprite table; returns them sorted and unique."""

    if slots is None:
        return None
    unique = sorted(set(slots))
    negative = [slot for slot in unique if slot < 0]
    if negative:
        raise ValidationError(f"Slots {negative} are negative")
    out_of_range = [slot for slot in unique if slot >= count]
    if out_of_range:
        raise ValidationError(f"Slots {out_of_range} out of range, table has {count} entries")
    return unique


def validate_workers(value: Optional[int]) -> Optional[int]:
    """Ensure a worker count override is positive if provided."""

    if value is not None and value <= 0:
        raise ValidationError("Workers must be greater than zero")
    return value
