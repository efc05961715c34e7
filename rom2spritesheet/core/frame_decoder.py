"""Decoding of a single sprite frame record and the data it points at."""

from __future__ import annotations

import logging

import numpy as np

from . import Color, Frame, FrameAction, OAMEntry
from .binary_reader import BinaryReader
from .errors import PointerRangeError, SpriteDecodeError
from .oam import read_oam_entries
from .pointers import SpriteSource
from .tiles import BANK_BYTES, TILE_BYTES, is_palette_terminator, read_palette_bank, read_tile

logger = logging.getLogger(__name__)

MAX_PALETTE_BANKS = 64


def parse_action(code: int) -> FrameAction:
    try:
        return FrameAction(code)
    except ValueError:
        logger.warning("Unknown frame action 0x%04x, treating it as STOP", code)
        return FrameAction.STOP


def read_frame(reader: BinaryReader, source: SpriteSource) -> Frame:
    """Read the frame record at the cursor and follow its pointers.

    The cursor is left just past the 20-byte record.
    """

    tiles_ptr = reader.u32("read tiles pointer")
    palette_ptr = reader.u32("read palette pointer")
    reader.skip(4, "read reserved pointer")
    oam_ptr_ptr = reader.u32("read OAM pointer pointer")
    delay = reader.u16("read delay")
    action = parse_action(reader.u16("read action"))

    tiles = _read_tiles(reader, source, tiles_ptr)
    palette = _read_palette(reader, source, palette_ptr)
    oam_entries = _read_oam(reader, source, oam_ptr_ptr)
    _check_tile_references(oam_entries, len(tiles), oam_ptr_ptr)

    return Frame(
        tiles=tuple(tiles),
        palette=tuple(palette),
        delay=delay,
        action=action,
        oam_entries=tuple(oam_entries),
    )


def _read_tiles(reader: BinaryReader, source: SpriteSource, tiles_ptr: int) -> list[np.ndarray]:
    target = source.resolve(tiles_ptr, "seek to tiles")
    with reader.peek_at(target, "seek to tiles"):
        try:
            byte_size = reader.u32("read tiles size")
            return [read_tile(reader, f"read tile {i}") for i in range(byte_size // TILE_BYTES)]
        except SpriteDecodeError as exc:
            raise exc.within("read tiles", tiles_ptr) from exc


def read_palette(reader: BinaryReader) -> list[Color]:
    """Read a palette region at the cursor as concatenated 16-color banks."""

    # Advisory only; banks are read until a short read or the terminator.
    reader.u32("read palette size")
    palette: list[Color] = []
    for _ in range(MAX_PALETTE_BANKS):
        raw = reader.read_upto(BANK_BYTES)
        if len(raw) < BANK_BYTES or is_palette_terminator(raw):
            break
        palette.extend(read_palette_bank(raw))
    return palette


def _read_palette(reader: BinaryReader, source: SpriteSource, palette_ptr: int) -> list[Color]:
    target = source.resolve(palette_ptr, "seek to palette")
    with reader.peek_at(target, "seek to palette"):
        try:
            return read_palette(reader)
        except SpriteDecodeError as exc:
            raise exc.within("read palette", palette_ptr) from exc


def _read_oam(reader: BinaryReader, source: SpriteSource, oam_ptr_ptr: int) -> list[OAMEntry]:
    indirect = source.resolve(oam_ptr_ptr, "seek to OAM pointer")
    with reader.peek_at(indirect, "seek to OAM pointer"):
        try:
            oam_ptr = reader.u32("read OAM pointer")
        except SpriteDecodeError as exc:
            raise exc.within("read OAM pointer", oam_ptr_ptr) from exc

    # The list offset is relative to the indirect pointer, in u32 arithmetic.
    target = source.resolve((oam_ptr_ptr + oam_ptr) & 0xFFFFFFFF, "seek to OAM entries")
    with reader.peek_at(target, "seek to OAM entries"):
        try:
            return read_oam_entries(reader)
        except SpriteDecodeError as exc:
            raise exc.within("read OAM entries", oam_ptr) from exc


def _check_tile_references(entries: list[OAMEntry], tile_count: int, oam_ptr_ptr: int) -> None:
    for i, entry in enumerate(entries):
        if entry.tile_count and entry.tile_index + entry.tile_count > tile_count:
            raise PointerRangeError(
                f"OAM entry {i} uses tiles {entry.tile_index}..{entry.tile_index + entry.tile_count - 1}"
                f" but the frame has {tile_count}",
                "check OAM tile references",
                oam_ptr_ptr,
            )
