"""Rendering a frame's OAM entries onto an indexed canvas."""

from __future__ import annotations

import logging

import numpy as np
from PIL import Image

from . import Color, Flip, Frame, OAMEntry
from .tiles import BANK_COLORS, TILE_SIZE

logger = logging.getLogger(__name__)

CANVAS_SIZE = 512
MAX_IMAGE_COLORS = 256


def build_entry_block(entry: OAMEntry, tiles: tuple[np.ndarray, ...]) -> np.ndarray:
    """Blit an entry's tiles row-major into one block, bank offset applied."""

    block = np.zeros((entry.height_tiles * TILE_SIZE, entry.width_tiles * TILE_SIZE), dtype=np.uint8)
    bank_base = BANK_COLORS * entry.palette_offset
    for row in range(entry.height_tiles):
        for col in range(entry.width_tiles):
            tile = tiles[entry.tile_index + row * entry.width_tiles + col]
            shifted = np.where(tile != 0, tile.astype(np.uint16) + bank_base, 0).astype(np.uint8)
            block[row * TILE_SIZE:(row + 1) * TILE_SIZE, col * TILE_SIZE:(col + 1) * TILE_SIZE] = shifted
    return apply_flips(block, entry.flip)


def apply_flips(block: np.ndarray, flip: Flip) -> np.ndarray:
    result = block
    if flip & Flip.H:
        result = result[:, ::-1]
    if flip & Flip.V:
        result = result[::-1, :]
    return result


def draw_over(canvas: np.ndarray, source: np.ndarray, left: int, top: int) -> None:
    """Copy non-zero source pixels onto ``canvas`` at (left, top), clipped to the canvas."""

    height, width = canvas.shape
    x0, y0 = max(left, 0), max(top, 0)
    x1 = min(left + source.shape[1], width)
    y1 = min(top + source.shape[0], height)
    if x0 >= x1 or y0 >= y1:
        return

    src = source[y0 - top:y1 - top, x0 - left:x1 - left]
    dst = canvas[y0:y1, x0:x1]
    mask = src != 0
    dst[mask] = src[mask]


def render_frame(frame: Frame, size: int = CANVAS_SIZE) -> np.ndarray:
    """Composite a frame onto a fresh canvas centred on the sprite pivot.

    Entries are drawn in list order, so later entries cover earlier ones.
    """

    canvas = np.zeros((size, size), dtype=np.uint8)
    center = size // 2
    for entry in frame.oam_entries:
        if not entry.tile_count:
            continue
        block = build_entry_block(entry, frame.tiles)
        draw_over(canvas, block, center + entry.x, center + entry.y)
    return canvas


def to_image(pixels: np.ndarray, palette: tuple[Color, ...]) -> Image.Image:
    """Wrap indexed pixels in a Pillow ``P`` image using the first 256 palette colors."""

    height, width = pixels.shape
    image = Image.frombytes("P", (width, height), np.ascontiguousarray(pixels, dtype=np.uint8).tobytes())
    colors = list(palette[:MAX_IMAGE_COLORS]) or [(0, 0, 0, 0)]
    image.putpalette(bytes(channel for color in colors for channel in color), "RGBA")
    return image
