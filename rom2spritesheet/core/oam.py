"""Decoding of 5-byte OAM placement records."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Optional

from . import Flip, OAMEntry
from .binary_reader import BinaryReader
from .errors import SpriteDecodeError

logger = logging.getLogger(__name__)

OAM_END = 0xFF
OAM_RECORD_SIZE = 5

# (size class, shape modifier) -> (width tiles, height tiles)
SHAPE_TABLE = MappingProxyType(
    {
        (0, 0): (1, 1),
        (0, 1): (2, 1),
        (0, 2): (1, 2),
        (1, 0): (2, 2),
        (1, 1): (4, 1),
        (1, 2): (1, 4),
        (2, 0): (4, 4),
        (2, 1): (4, 2),
        (2, 2): (2, 4),
        (3, 0): (8, 8),
        (3, 1): (8, 4),
        (3, 2): (4, 8),
    }
)


def shape_dimensions(size_class: int, shape_modifier: int) -> tuple[int, int]:
    """Tile dimensions for a size/shape pair; (0, 0) for combinations the hardware lacks."""

    return SHAPE_TABLE.get((size_class, shape_modifier), (0, 0))


def read_oam_entry(reader: BinaryReader) -> Optional[OAMEntry]:
    """Read one record, or ``None`` at the end-of-list marker."""

    tile_index = reader.u8("read OAM tile index")
    if tile_index == OAM_END:
        return None

    x = reader.i8("read OAM x")
    y = reader.i8("read OAM y")
    size_and_flip = reader.u8("read OAM size and flip")
    palette_and_shape = reader.u8("read OAM palette offset and shape")

    size_class = size_and_flip & 0x0F
    shape_modifier = palette_and_shape & 0x0F
    width, height = shape_dimensions(size_class, shape_modifier)
    if not width:
        logger.debug("Unknown OAM shape size=%s shape=%s, entry draws nothing", size_class, shape_modifier)

    return OAMEntry(
        tile_index=tile_index,
        x=x,
        y=y,
        width_tiles=width,
        height_tiles=height,
        palette_offset=palette_and_shape >> 4,
        flip=Flip((size_and_flip >> 4) & Flip.BOTH),
    )


def read_oam_entries(reader: BinaryReader) -> list[OAMEntry]:
    entries = []
    while True:
        start = reader.tell()
        try:
            entry = read_oam_entry(reader)
        except SpriteDecodeError as exc:
            raise exc.within(f"read OAM entry {len(entries)}", start) from exc
        if entry is None:
            return entries
        entries.append(entry)
