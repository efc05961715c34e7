"""4bpp tile and BGR555 palette bank decoding."""

from __future__ import annotations

import struct

import numpy as np

from . import TRANSPARENT, Color
from .binary_reader import BinaryReader

TILE_SIZE = 8
TILE_BYTES = TILE_SIZE * TILE_SIZE // 2
BANK_COLORS = 16
BANK_BYTES = BANK_COLORS * 2
PALETTE_TERMINATOR = 4

_BANK = struct.Struct("<16H")


def decode_tile(raw: bytes) -> np.ndarray:
    """Unpack 32 bytes into an 8x8 grid of palette indices, low nibble first."""

    if len(raw) != TILE_BYTES:
        raise ValueError(f"Expected {TILE_BYTES} tile bytes, got {len(raw)}")
    packed = np.frombuffer(raw, dtype=np.uint8)
    pixels = np.empty(TILE_SIZE * TILE_SIZE, dtype=np.uint8)
    pixels[0::2] = packed & 0xF
    pixels[1::2] = packed >> 4
    return pixels.reshape(TILE_SIZE, TILE_SIZE)


def read_tile(reader: BinaryReader, operation: str = "read tile") -> np.ndarray:
    return decode_tile(reader.read(TILE_BYTES, operation))


def bgr555_to_rgba(value: int) -> Color:
    r = value & 0x1F
    g = (value >> 5) & 0x1F
    b = (value >> 10) & 0x1F
    return (r << 3, g << 3, b << 3, 0xFF)


def read_palette_bank(raw: bytes) -> list[Color]:
    """Decode one 16-color bank; slot 0 is always transparent."""

    bank = [bgr555_to_rgba(value) for value in _BANK.unpack(raw)]
    bank[0] = TRANSPARENT
    return bank


def is_palette_terminator(raw: bytes) -> bool:
    """Whether a bank's raw bytes mark the end of the palette region.

    Palette regions carry no reliable bank count, so decoding stops at a bank
    whose first four bytes read as the little-endian value 4.
    """

    return int.from_bytes(raw[:4], "little") == PALETTE_TERMINATOR
