"""ROM header parsing and the per-title sprite table lookup."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

from .errors import UnsupportedRomError

logger = logging.getLogger(__name__)

TITLE_OFFSET = 0x00A0
TITLE_LENGTH = 12
ROM_ID_OFFSET = 0x00AC
ROM_ID_LENGTH = 4
HEADER_SIZE = 0x00C0


@dataclass(frozen=True)
class RomHeader:
    title: str
    rom_id: str


@dataclass(frozen=True)
class RomInfo:
    """Where a title keeps its sprite pointer table."""

    rom_id: str
    offset: int
    count: int


def _entries(rom_ids: tuple[str, ...], offset: int, count: int) -> dict[str, RomInfo]:
    return {rom_id: RomInfo(rom_id, offset, count) for rom_id in rom_ids}


SPRITE_TABLES = MappingProxyType(
    {
        **_entries(("BR6E", "BR6P", "BR5E", "BR5P"), 0x00031CEC, 815),
        **_entries(("BR6J", "BR5J"), 0x00032CA8, 815),
        **_entries(("BRBE",), 0x00032750, 664),
        **_entries(("BRKE",), 0x00032754, 664),
        **_entries(("BRBJ",), 0x000326E8, 664),
        **_entries(("BRKJ",), 0x000326EC, 664),
        **_entries(("BR4J",), 0x0002B39C, 568),
        **_entries(("B4BE",), 0x00027968, 616),
        **_entries(("B4WE",), 0x00027964, 616),
        **_entries(("B4BJ",), 0x00027880, 616),
        **_entries(("B4WJ",), 0x0002787C, 616),
        **_entries(("A6BE",), 0x000247A0, 821),
        **_entries(("A3XE",), 0x00024788, 821),
        **_entries(("A6BJ",), 0x000248F8, 565),
        **_entries(("A3XJ",), 0x000248E0, 564),
        **_entries(("AE2E",), 0x0001E9FC, 501),
        **_entries(("AE2J",), 0x0001E888, 501),
        **_entries(("AREE",), 0x00012690, 344),
        **_entries(("AREP",), 0x0001269C, 344),
        **_entries(("AREJ",), 0x00012614, 344),
    }
)


def read_rom_bytes(path: str | Path) -> bytes:
    return Path(path).read_bytes()


def read_rom_header(data: bytes) -> RomHeader:
    if len(data) < HEADER_SIZE:
        raise ValueError("ROM too small to contain a valid header")
    title_raw = data[TITLE_OFFSET:TITLE_OFFSET + TITLE_LENGTH]
    title = title_raw.rstrip(b"\x00").decode("ascii", errors="replace")
    rom_id = data[ROM_ID_OFFSET:ROM_ID_OFFSET + ROM_ID_LENGTH].decode("ascii", errors="replace")
    return RomHeader(title=title, rom_id=rom_id)


def find_rom_info(rom_id: str) -> RomInfo | None:
    return SPRITE_TABLES.get(rom_id)


def load_rom_info(data: bytes) -> RomInfo:
    """Look up the sprite table for the ROM in ``data`` or raise."""

    header = read_rom_header(data)
    info = find_rom_info(header.rom_id)
    if info is None:
        raise UnsupportedRomError(header.rom_id)
    logger.info(
        "Game %r (%s): sprite table at 0x%08x, %s entries", header.title, info.rom_id, info.offset, info.count
    )
    return info
