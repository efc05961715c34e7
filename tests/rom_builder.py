"""Helpers that assemble synthetic sprite data and ROM images for tests."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

import numpy as np

from rom2spritesheet.core import FrameAction
from rom2spritesheet.core.pointers import LZ77_FLAG, ROM_BASE_FLAG
from rom2spritesheet.core.rom_info import ROM_ID_OFFSET, TITLE_OFFSET


def u16(value: int) -> bytes:
    return struct.pack("<H", value & 0xFFFF)


def u32(value: int) -> bytes:
    return struct.pack("<I", value & 0xFFFFFFFF)


def tile_bytes(pixels) -> bytes:
    flat = np.asarray(pixels, dtype=np.uint8).reshape(64)
    return bytes(int(flat[i]) | (int(flat[i + 1]) << 4) for i in range(0, 64, 2))


def solid_tile(value: int) -> bytes:
    return tile_bytes(np.full((8, 8), value, dtype=np.uint8))


def bank_bytes(colors: list[int] | None = None) -> bytes:
    colors = colors if colors is not None else [0x7FFF] * 16
    return struct.pack("<16H", *colors)


TERMINATOR_BANK = u32(4) + bytes(28)


def oam_bytes(tile_index: int, x: int = 0, y: int = 0, size: int = 0, shape: int = 0, flip: int = 0, bank: int = 0) -> bytes:
    return bytes(
        [
            tile_index,
            x & 0xFF,
            y & 0xFF,
            ((flip & 0xF) << 4) | (size & 0xF),
            ((bank & 0xF) << 4) | (shape & 0xF),
        ]
    )


@dataclass
class FrameSpec:
    tiles: list[bytes] = field(default_factory=lambda: [solid_tile(1)])
    banks: list[bytes] = field(default_factory=lambda: [bank_bytes()])
    oam: list[bytes] = field(default_factory=lambda: [oam_bytes(0)])
    delay: int = 4
    action: int = FrameAction.STOP
    terminate_palette: bool = True


def build_sprite(animations: list[list[FrameSpec]]) -> bytes:
    """Lay out a sprite: header, animation pointers, frame records, then data."""

    table_start = 4 + 4 * len(animations)
    heap_start = table_start + 20 * sum(len(frames) for frames in animations)
    heap = bytearray()

    def alloc(data: bytes) -> int:
        offset = heap_start + len(heap)
        heap.extend(data)
        return offset

    def rel(target: int) -> int:
        return target - 4

    animation_pointers = bytearray()
    records = bytearray()
    cursor = table_start
    for frames in animations:
        animation_pointers += u32(rel(cursor))
        for spec in frames:
            tiles_at = alloc(u32(32 * len(spec.tiles)) + b"".join(spec.tiles))
            palette = u32(32 * len(spec.banks)) + b"".join(spec.banks)
            if spec.terminate_palette:
                palette += TERMINATOR_BANK
            palette_at = alloc(palette)
            oam_pointer_at = heap_start + len(heap)
            alloc(u32(4))
            oam_list_at = alloc(b"".join(spec.oam) + b"\xff")
            heap[oam_pointer_at - heap_start:oam_pointer_at - heap_start + 4] = u32(oam_list_at - oam_pointer_at)
            records += u32(rel(tiles_at)) + u32(rel(palette_at)) + u32(0) + u32(rel(oam_pointer_at))
            records += u16(spec.delay) + u16(spec.action)
            cursor += 20

    return bytes(3) + bytes([len(animations)]) + bytes(animation_pointers) + bytes(records) + bytes(heap)


def lz77_literals(payload: bytes) -> bytes:
    """Encode ``payload`` as an LZ77 stream made only of literal blocks."""

    out = bytearray([0x10]) + len(payload).to_bytes(3, "little")
    for start in range(0, len(payload), 8):
        out.append(0)
        out.extend(payload[start:start + 8])
    return bytes(out)


@dataclass
class RomImage:
    data: bytes
    sprite_offsets: list[int]


def build_rom(
    sprites: list[bytes | None],
    rom_id: str = "BR6E",
    title: str = "MEGAMAN6_FXX",
    table_offset: int = 0x00031CEC,
    table_count: int | None = None,
    compressed: set[int] | None = None,
    raw_pointers: dict[int, int] | None = None,
) -> RomImage:
    """Build a ROM whose sprite table at ``table_offset`` points at ``sprites``.

    ``None`` entries get a pointer far outside the ROM. Indices in
    ``compressed`` are stored as LZ77 blobs.
    """

    compressed = compressed or set()
    raw_pointers = raw_pointers or {}
    count = table_count if table_count is not None else len(sprites)
    data = bytearray(table_offset + 4 * count)
    data[TITLE_OFFSET:TITLE_OFFSET + 12] = title.encode("ascii").ljust(12, b"\x00")[:12]
    data[ROM_ID_OFFSET:ROM_ID_OFFSET + 4] = rom_id.encode("ascii")

    offsets = []
    for index in range(count):
        blob = sprites[index] if index < len(sprites) else None
        while len(data) % 4:
            data.append(0)
        offset = len(data)
        if index in raw_pointers:
            pointer = raw_pointers[index]
        elif blob is None:
            pointer = ROM_BASE_FLAG | 0x01FFFFF0
        elif index in compressed:
            data.extend(lz77_literals(u32(0) + blob))
            pointer = LZ77_FLAG | ROM_BASE_FLAG | offset
        else:
            data.extend(blob)
            pointer = ROM_BASE_FLAG | offset
        offsets.append(offset)
        data[table_offset + 4 * index:table_offset + 4 * index + 4] = u32(pointer)
    return RomImage(bytes(data), offsets)
