"""Tagged ROM pointers and relative pointer resolution."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

from . import lz77
from .binary_reader import BinaryReader
from .errors import DecompressionError, PointerRangeError

logger = logging.getLogger(__name__)

LZ77_FLAG = 0x80000000
ROM_BASE_FLAG = 0x08000000
TAG_MASK = LZ77_FLAG | ROM_BASE_FLAG
# Compressed blobs repeat the 4-byte header pointer before the sprite proper.
COMPRESSED_SPRITE_BASE = 4


@dataclass(frozen=True)
class DirectPointer:
    offset: int


@dataclass(frozen=True)
class CompressedPointer:
    offset: int


RomPointer = Union[DirectPointer, CompressedPointer]


def parse_pointer(raw: int) -> RomPointer:
    """Decode the tag bits of a raw 32-bit pointer once."""

    offset = raw & ~TAG_MASK & 0xFFFFFFFF
    if raw & LZ77_FLAG:
        return CompressedPointer(offset)
    return DirectPointer(offset)


@dataclass(frozen=True)
class SpriteSource:
    """Buffer holding one sprite and the base its nested pointers are relative to."""

    data: bytes
    base: int

    def reader(self) -> BinaryReader:
        return BinaryReader(self.data, self.base)

    def resolve(self, value: int, operation: str) -> int:
        return resolve_relative(self.base, value, len(self.data), operation)


def resolve_relative(base: int, value: int, limit: int, operation: str) -> int:
    """Resolve a pointer stored in a record at ``base`` to an absolute offset."""

    target = base + 4 + value
    if target < 0 or target >= limit:
        raise PointerRangeError(f"resolves to 0x{target:x}, buffer is 0x{limit:x} bytes", operation, value)
    return target


def open_sprite(rom: bytes, raw: int) -> SpriteSource:
    """Follow a sprite-table entry to the sprite it points at."""

    pointer = parse_pointer(raw)
    if pointer.offset >= len(rom):
        raise PointerRangeError(f"outside ROM of 0x{len(rom):x} bytes", "open sprite", raw)

    if isinstance(pointer, CompressedPointer):
        logger.debug("Sprite pointer 0x%08x is LZ77 compressed at 0x%08x", raw, pointer.offset)
        try:
            data = lz77.decompress(rom, pointer.offset)
        except DecompressionError as exc:
            raise exc.within("decompress sprite", raw) from exc
        if len(data) <= COMPRESSED_SPRITE_BASE:
            raise PointerRangeError(
                f"decompressed sprite is only {len(data)} bytes", "decompress sprite", raw
            )
        return SpriteSource(data, COMPRESSED_SPRITE_BASE)

    return SpriteSource(rom, pointer.offset)
